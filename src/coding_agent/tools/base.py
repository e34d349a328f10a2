"""Tool capability interface: definitions and the Tool base class."""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDefinition:
    """Schema definition for a tool exposed to the chat backend."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)  # JSON Schema, root type "object"


def schema(required: tuple[str, ...] = (), **properties: str | dict[str, Any]) -> dict[str, Any]:
    """Build an object JSON Schema from keyword properties.

    A string value is shorthand for ``{"type": "string", "description": value}``.
    """
    props = {
        key: {"type": "string", "description": value} if isinstance(value, str) else value
        for key, value in properties.items()
    }
    return {"type": "object", "properties": props, "required": list(required)}


class Tool(ABC):
    """A named, schema-described capability the backend can call.

    Subclasses set ``description`` and ``parameters`` and implement
    ``execute`` with keyword arguments matching the schema. ``name`` defaults
    to the class name. Callers go through ``run``, which never raises.

    Example::

        class Greet(Tool):
            description = "Greet someone by name"
            parameters = schema(required=("who",), who="Name to greet")

            def execute(self, who):
                return {"greeting": f"hello {who}"}
    """

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    parameters: ClassVar[dict[str, Any]] = {"type": "object", "properties": {}}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "name" not in cls.__dict__:
            cls.name = cls.__name__

    @abstractmethod
    def execute(self, **kwargs: Any) -> Any:
        """Perform the tool's action. Return a mapping, list or scalar."""

    def describe(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=inspect.cleandoc(self.description),
            parameters=self.parameters,
        )

    def run(self, arguments: dict[str, Any] | None = None) -> Any:
        """Execute with backend-supplied arguments, converting failures to ``{"error": ...}``."""
        try:
            return self.execute(**(arguments or {}))
        except Exception as exc:
            logger.debug("tool %s failed: %s", self.name, exc, exc_info=True)
            return {"error": str(exc)}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} tool {self.name!r}>"


def is_tool_type(obj: object) -> bool:
    """Return True when obj is a concrete Tool subclass."""
    return isinstance(obj, type) and issubclass(obj, Tool) and not inspect.isabstract(obj)
