"""
Tool registry.

Maps tool names to ToolDefinitions. Definitions are registered explicitly at
startup (see tool_gateway.tools.build_registry); the registry is sealed
afterwards and read-only for the life of the process.

Resolution and argument validation return values rather than raising:
an unknown name resolves to None and failed validation yields InvalidArgs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from internal_api.errors import ErrorCode
from internal_api.models import ToolCatalogEntry, empty_object_schema
from logging_setup import get_logger, Component

logger = get_logger(Component.TOOL_REGISTRY)

ToolHandler = Callable[[BaseModel], Awaitable[Any]]
SkipCallback = Callable[[str, str], None]

DUPLICATE = "duplicate"


class ToolArgs(BaseModel):
    """Base for tool input models: unknown fields rejected, no type coercion."""

    model_config = ConfigDict(extra="forbid", strict=True)


@dataclass(frozen=True)
class ToolDefinition:
    """
    A named capability.

    input_model is the argument schema; the handler only ever receives an
    instance of it. parameters is the JSON schema advertised in the catalog.
    requires lists what the tool touches (e.g. "network", "filesystem").
    """

    name: str
    description: str
    input_model: Type[BaseModel]
    handler: ToolHandler
    parameters: Dict[str, Any] = field(default_factory=empty_object_schema)
    requires: Tuple[str, ...] = ()

    async def execute(self, args: BaseModel) -> Any:
        return await self.handler(args)

    def catalog_entry(self) -> ToolCatalogEntry:
        return ToolCatalogEntry(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )


@dataclass(frozen=True)
class InvalidArgs:
    """Validation failure for one tool call."""

    tool: str
    errors: List[Dict[str, Any]]
    code: str = ErrorCode.INVALID_ARGS


@dataclass(frozen=True)
class SkippedTool:
    """A tool left out of the catalog and why."""

    name: str
    reason: str


class ToolRegistry:
    """Name -> ToolDefinition lookup, write-once at startup."""

    def __init__(self, on_skip: Optional[SkipCallback] = None):
        self._tools: Dict[str, ToolDefinition] = {}
        self._on_skip = on_skip
        self._sealed = False
        self.skipped: List[SkippedTool] = []

    def register(self, definition: ToolDefinition) -> bool:
        """
        Add a definition.

        Returns False (and reports "duplicate") if the name is taken; the
        earlier registration wins.
        """
        if self._sealed:
            raise RuntimeError(f"registry is sealed; cannot register {definition.name!r}")
        if definition.name in self._tools:
            self.skip(definition.name, DUPLICATE)
            return False
        self._tools[definition.name] = definition
        logger.debug("Tool registered", tool=definition.name, requires=list(definition.requires))
        return True

    def skip(self, name: str, reason: str) -> None:
        """Record a tool that is unavailable in this deployment."""
        self.skipped.append(SkippedTool(name, reason))
        logger.info("Tool disabled", tool=name, reason=reason)
        if self._on_skip is not None:
            self._on_skip(name, reason)

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def resolve(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def validate_args(
        self,
        definition: ToolDefinition,
        raw_args: Any,
    ) -> Union[BaseModel, InvalidArgs]:
        """
        Validate raw arguments strictly against the tool's input model.

        A missing (None) args value is validated as an empty object.
        """
        if raw_args is None:
            raw_args = {}
        try:
            return definition.input_model.model_validate(raw_args)
        except ValidationError as e:
            return InvalidArgs(
                tool=definition.name,
                errors=e.errors(include_url=False, include_input=False),
            )

    def catalog(self) -> List[ToolCatalogEntry]:
        return [tool.catalog_entry() for tool in self._tools.values()]

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
