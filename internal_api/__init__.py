"""
Contract shared by the Orchestrator and the Tool Gateway.

- signing: timestamped HMAC over request bodies
- context: correlation identifiers carried in headers
- models: request/response bodies
- errors: stable error codes and exceptions
"""
