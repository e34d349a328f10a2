"""Tool capability interface, registry, active set, and built-in tools."""

from coding_agent.tools.base import Tool, ToolDefinition, is_tool_type, schema
from coding_agent.tools.builtin import BUILTIN_TOOL_NAMES, register_builtin_tools
from coding_agent.tools.context import AgentContext
from coding_agent.tools.manager import ToolManager
from coding_agent.tools.registry import ToolEntry, ToolRegistry

__all__ = [
    "AgentContext",
    "BUILTIN_TOOL_NAMES",
    "Tool",
    "ToolDefinition",
    "ToolEntry",
    "ToolManager",
    "ToolRegistry",
    "is_tool_type",
    "register_builtin_tools",
    "schema",
]
