"""Tool registration and name-based dispatch."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

ToolHandler = Callable[[dict[str, object]], dict[str, object]]


@dataclass(slots=True, frozen=True)
class ToolDispatchError(Exception):
    """Represents tool dispatch and argument validation failures."""

    code: str
    message: str


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """Public description of a registered tool."""

    name: str
    description: str
    input_schema: dict[str, object]

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


_EMPTY_SCHEMA: dict[str, object] = {"type": "object", "properties": {}, "required": []}


@dataclass(slots=True)
class ToolRegistry:
    """In-memory tool registry preserving insertion order."""

    _handlers: dict[str, ToolHandler] = field(default_factory=dict)
    _specs: dict[str, ToolSpec] = field(default_factory=dict)

    def register(
        self,
        name: str,
        handler: ToolHandler,
        description: str = "",
        input_schema: dict[str, object] | None = None,
    ) -> None:
        """Register a named handler with its listing metadata."""
        self._handlers[name] = handler
        self._specs[name] = ToolSpec(
            name=name,
            description=description,
            input_schema=input_schema if input_schema is not None else dict(_EMPTY_SCHEMA),
        )

    def get(self, name: str) -> ToolHandler | None:
        return self._handlers.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered tool names in registration order."""
        return tuple(self._handlers.keys())

    def specs(self) -> list[ToolSpec]:
        return [self._specs[name] for name in self._handlers]

    def dispatch(self, name: str, arguments: dict[str, object]) -> dict[str, object]:
        """Dispatch to a registered tool by name."""
        handler = self.get(name)
        if handler is None:
            raise ToolDispatchError(code="UNKNOWN_TOOL", message=f"Unknown tool: {name}")
        return handler(arguments)
