"""Enabler: lets the model add a registered tool to its own active set."""

from __future__ import annotations

import logging
from typing import Any

from coding_agent.tools.base import Tool, schema
from coding_agent.tools.context import AgentContext

logger = logging.getLogger(__name__)


class Enabler(Tool):
    description = "Enables a tool based on the request."
    parameters = schema(required=("tool",), tool="Tool name to enable")

    def __init__(self, context: AgentContext) -> None:
        self.context = context

    def execute(self, tool: str) -> Any:
        manager = self.context.tool_manager
        if tool not in manager.registry:
            return {"error": f"Unknown tool: {tool}"}
        if manager.is_active(tool):
            return {"error": f"Tool {tool} is already active"}
        if not manager.enable(tool):
            return {"error": f"Tool {tool} could not be enabled"}

        self.context.refresh_tools()
        return {"success": True}
