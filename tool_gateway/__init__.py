"""
Tool Gateway for the home voice assistant.

Executes locally-hosted tools on behalf of the Orchestrator:
verify signature -> resolve tool -> validate args -> execute -> classify.

Only signed requests are served; the Orchestrator is the only caller.
"""
