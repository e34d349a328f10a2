"""Active tool set and its resolution into concrete tools."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from coding_agent.tools.base import Tool
from coding_agent.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from coding_agent.tools.context import AgentContext

logger = logging.getLogger(__name__)


class ToolManager:
    """Tracks which registered tools are enabled for a chat session.

    The active set is ordered by enable order and holds no duplicates.
    ``resolve`` maps it through the registry on every call; nothing is
    cached, so callers resolve again before each backend request.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry
        self._active: list[str] = []

    @property
    def active(self) -> tuple[str, ...]:
        return tuple(self._active)

    def is_active(self, name: str) -> bool:
        return name in self._active

    def enable(self, name: str) -> bool:
        """Add name to the active set.

        Returns False, leaving state unchanged, when name is not registered
        or is already active.
        """
        if name not in self.registry:
            logger.warning("Tool %s is not registered", name)
            return False
        if name in self._active:
            logger.warning("Tool %s is already active", name)
            return False
        self._active.append(name)
        logger.info("enabled tool %s", name)
        return True

    def enable_many(self, names: Iterable[str]) -> list[str]:
        """Enable each name in order; return the ones that were newly enabled."""
        return [name for name in names if self.enable(name)]

    def disable(self, name: str) -> bool:
        if name not in self._active:
            return False
        self._active.remove(name)
        logger.info("disabled tool %s", name)
        return True

    def disable_all(self) -> None:
        self._active.clear()

    def resolve(self, context: AgentContext) -> list[Tool]:
        """Concrete tools for the active set, in enable order.

        Factory entries are invoked with context on every call.
        """
        return [self.registry.lookup(name).bind(context) for name in self._active]

    def status(self) -> list[tuple[str, bool]]:
        """(name, is_active) for every registered name, in registration order."""
        return [(name, name in self._active) for name in self.registry.ordered_names()]
