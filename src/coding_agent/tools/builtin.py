"""Built-in tool set and the registration helper that seeds a registry."""

from __future__ import annotations

from coding_agent.environment.types import ExecutionEnvironment
from coding_agent.tools.empower import Empower
from coding_agent.tools.enabler import Enabler
from coding_agent.tools.files import EditFile, ListFiles, ReadFile
from coding_agent.tools.plans import SavePlan, WritePlan
from coding_agent.tools.registry import ToolEntry, ToolRegistry
from coding_agent.tools.shell import RunShellCommand
from coding_agent.tools.token_stats import TokenStats

BUILTIN_TOOL_NAMES: tuple[str, ...] = (
    "ReadFile",
    "ListFiles",
    "EditFile",
    "RunShellCommand",
    "SavePlan",
    "WritePlan",
    "TokenStats",
    "Empower",
    "Enabler",
)


def builtin_entries(
    env: ExecutionEnvironment,
    command_timeout_ms: int | None = None,
) -> dict[str, ToolEntry]:
    """Entries for every built-in, keyed by tool name.

    Stateless tools are ready-made; agent-bound tools are factories.
    """
    return {
        "ReadFile": ToolEntry.of(ReadFile(env)),
        "ListFiles": ToolEntry.of(ListFiles(env)),
        "EditFile": ToolEntry.of(EditFile(env)),
        "RunShellCommand": ToolEntry.of(RunShellCommand(env, timeout_ms=command_timeout_ms)),
        "SavePlan": ToolEntry.of(SavePlan(env)),
        "WritePlan": ToolEntry.of(WritePlan(env)),
        "TokenStats": ToolEntry.bound(lambda ctx: TokenStats(ctx.token_tracker)),
        "Empower": ToolEntry.bound(Empower),
        "Enabler": ToolEntry.bound(Enabler),
    }


def register_builtin_tools(
    registry: ToolRegistry,
    env: ExecutionEnvironment,
    exclude: set[str] | None = None,
    command_timeout_ms: int | None = None,
) -> None:
    """Register all built-in tools onto a registry.

    Args:
        registry: Target ToolRegistry.
        env: Execution environment the file and shell tools act on.
        exclude: Tool names to skip.
        command_timeout_ms: Timeout for RunShellCommand; None runs to completion.
    """
    skip = exclude or set()
    for name, entry in builtin_entries(env, command_timeout_ms).items():
        if name in skip:
            continue
        registry.register(name, entry)
