"""
Entry point for running the orchestrator.

Usage:
    python -m orchestrator

Starts the FastAPI server on http://0.0.0.0:$ORCHESTRATOR_PORT (default 3001).
"""
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from logging_setup import setup_logging

if __name__ == "__main__":
    load_dotenv(Path.cwd() / ".env", override=False)

    from .config import get_config

    config = get_config()
    setup_logging(level=config.log_level, use_json=True)

    uvicorn.run(
        "orchestrator.server:create_app",
        factory=True,
        host="0.0.0.0",
        port=config.port,
        log_level=config.log_level.lower(),
    )
