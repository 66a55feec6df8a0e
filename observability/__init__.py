"""
Structured events shared by the Orchestrator and the Tool Gateway.
"""
