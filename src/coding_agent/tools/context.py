"""The agent context handed to tool factories at resolution time."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from coding_agent.environment.types import ExecutionEnvironment
    from coding_agent.interviewer.base import Interviewer
    from coding_agent.tools.manager import ToolManager
    from coding_agent.tools.registry import ToolRegistry
    from coding_agent.usage import TokenTracker


class AgentContext(Protocol):
    """What an agent-bound tool may reach.

    Factories receive the owning session through this interface instead of
    closing over it, so one registry can serve several sessions.
    """

    @property
    def registry(self) -> ToolRegistry: ...

    @property
    def tool_manager(self) -> ToolManager: ...

    @property
    def execution_env(self) -> ExecutionEnvironment: ...

    @property
    def interviewer(self) -> Interviewer: ...

    @property
    def token_tracker(self) -> TokenTracker: ...

    @property
    def dynamic_namespace(self) -> dict[str, Any]: ...

    def refresh_tools(self) -> None:
        """Re-resolve the active tools so the backend sees the current set."""
        ...
