"""Tool registry: entries, registration, and lookup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from coding_agent.errors import DuplicateNameError, ToolNotFoundError
from coding_agent.tools.base import Tool

if TYPE_CHECKING:
    from coding_agent.tools.context import AgentContext

logger = logging.getLogger(__name__)

ToolFactory = Callable[["AgentContext"], Tool]


class ToolEntry:
    """Either a ready-made tool or a factory that binds one to an agent.

    Exactly one of ``tool`` and ``factory`` must be given.
    """

    __slots__ = ("tool", "factory")

    def __init__(self, tool: Tool | None = None, factory: ToolFactory | None = None) -> None:
        if (tool is None) == (factory is None):
            raise ValueError("ToolEntry needs exactly one of tool or factory")
        self.tool = tool
        self.factory = factory

    @classmethod
    def of(cls, tool: Tool) -> ToolEntry:
        return cls(tool=tool)

    @classmethod
    def bound(cls, factory: ToolFactory) -> ToolEntry:
        return cls(factory=factory)

    @property
    def is_factory(self) -> bool:
        return self.factory is not None

    def bind(self, context: AgentContext) -> Tool:
        """Return the concrete tool, invoking the factory for this context."""
        if self.tool is not None:
            return self.tool
        return self.factory(context)  # type: ignore[misc]

    def __repr__(self) -> str:
        kind = "factory" if self.is_factory else repr(self.tool)
        return f"ToolEntry({kind})"


class ToolRegistry:
    """Mapping from tool name to ToolEntry.

    Grows only by explicit registration; entries are never removed.
    Registration order is kept for display.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ToolEntry] = {}

    def register(self, name: str, entry: ToolEntry, overwrite: bool = False) -> None:
        """Bind name to entry. Raises DuplicateNameError unless overwrite is set."""
        if name in self._entries and not overwrite:
            raise DuplicateNameError(name)
        self._entries[name] = entry
        logger.debug("registered tool %s (%r)", name, entry)

    def register_tool(self, tool: Tool, overwrite: bool = False) -> None:
        """Register a ready-made tool under its own name."""
        self.register(tool.name, ToolEntry.of(tool), overwrite=overwrite)

    def lookup(self, name: str) -> ToolEntry:
        """Return the entry for name. Raises ToolNotFoundError if absent."""
        try:
            return self._entries[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def get(self, name: str) -> ToolEntry | None:
        return self._entries.get(name)

    def names(self) -> set[str]:
        return set(self._entries)

    def ordered_names(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
