"""
Webhook tools declared in a YAML file.

Format:

    tools:
      - name: garage_door
        description: Opens or closes the garage door
        url: https://hooks.local/garage
        headers:
          X-Token: abc

Problems with the file (missing, unreadable, unparsable, wrong shape) disable
the configured tools as a group; an invalid entry disables only itself.
Neither prevents the gateway from starting.
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, ValidationError

from logging_setup import get_logger, Component

from ..registry import ToolDefinition
from .webhook import WebhookPoster, aiohttp_post, create_webhook_tool

logger = get_logger(Component.TOOL_REGISTRY)

CONFIGURED_TOOLS = "configured_tools"


class ConfiguredTool(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., pattern=r"^[A-Za-z0-9_-]{1,64}$")
    description: Optional[str] = None
    url: AnyHttpUrl
    headers: Dict[str, str] = Field(default_factory=dict)


class ToolConfigFile(BaseModel):
    # Entries are validated one by one so a bad entry only disables itself
    tools: List[Any] = Field(default_factory=list)


def _entry_label(index: int, entry: Any) -> str:
    name = entry.get("name") if isinstance(entry, dict) else None
    return name if isinstance(name, str) and name else f"{CONFIGURED_TOOLS}[{index}]"


def load_configured_tools(
    config_path: Optional[str],
    skip: Callable[[str, str], None],
    post: WebhookPoster = aiohttp_post,
) -> List[ToolDefinition]:
    """
    Build webhook tools from the YAML file at config_path.

    Returns [] (after reporting through skip) when the file is missing,
    unreadable or not a tool list. An invalid entry is reported under its
    own name and the remaining entries still load.
    """
    if not config_path:
        return []

    path = Path(config_path).resolve()
    if not path.exists():
        skip(CONFIGURED_TOOLS, f"config file not found: {path}")
        return []

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Unreadable tool config", path=str(path), error_type=type(e).__name__)
        skip(CONFIGURED_TOOLS, "config file unreadable")
        return []
    except yaml.YAMLError as e:
        logger.warning("Invalid tool config", path=str(path), error_type=type(e).__name__)
        skip(CONFIGURED_TOOLS, "invalid config format")
        return []

    try:
        parsed = ToolConfigFile.model_validate(raw)
    except ValidationError:
        logger.warning("Invalid tool config", path=str(path), error_type="ValidationError")
        skip(CONFIGURED_TOOLS, "invalid config format")
        return []

    tools: List[ToolDefinition] = []
    for index, entry in enumerate(parsed.tools):
        try:
            tool = ConfiguredTool.model_validate(entry)
        except ValidationError as e:
            label = _entry_label(index, entry)
            logger.warning("Invalid configured tool", path=str(path), tool=label, errors=e.error_count())
            skip(label, "invalid tool entry")
            continue
        tools.append(
            create_webhook_tool(
                name=tool.name,
                url=str(tool.url),
                description=tool.description,
                headers=tool.headers,
                post=post,
            )
        )

    logger.info("Loaded configured tools", path=str(path), count=len(tools))
    return tools
