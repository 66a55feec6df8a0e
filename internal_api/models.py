"""
Wire models shared by both services.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

INVOKE_PATH = "/v1/tools/invoke"
LIST_PATH = "/v1/tools/list"

# Body that list requests are signed over
EMPTY_BODY = "{}"


def empty_object_schema() -> Dict[str, Any]:
    """Parameter schema for a tool that takes no arguments."""
    return {"type": "object", "properties": {}, "additionalProperties": False}


class ToolInvokeRequest(BaseModel):
    """Body of POST /v1/tools/invoke (and of the orchestrator's dispatch)."""

    tool: str = ""
    args: Any = None


class ToolCatalogEntry(BaseModel):
    """Externally visible, non-secret description of a tool."""

    name: str = Field(..., min_length=1)
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=empty_object_schema)


class ToolListResponse(BaseModel):
    """Body of GET /v1/tools/list."""

    tools: List[ToolCatalogEntry] = Field(default_factory=list)
