"""
Orchestrator: the front-end facing service.

Authenticates browser clients, mints realtime session secrets and relays
tool calls to the Tool Gateway over signed internal requests.
"""
