"""Shell tool: run a command through the execution environment."""

from __future__ import annotations

import logging
from typing import Any

from coding_agent.environment.types import ExecutionEnvironment
from coding_agent.tools.base import Tool, schema

logger = logging.getLogger(__name__)


class RunShellCommand(Tool):
    description = "Execute a linux shell command"
    parameters = schema(required=("command",), command="The command to execute")

    def __init__(self, env: ExecutionEnvironment, timeout_ms: int | None = None) -> None:
        self.env = env
        self.timeout_ms = timeout_ms

    def execute(self, command: str) -> Any:
        logger.info("Running command: %s", command)
        try:
            result = self.env.exec_command(command, timeout_ms=self.timeout_ms)
        except OSError as exc:
            return {"error": str(exc)}

        output = (result.stdout or result.stderr).strip()
        if result.success:
            return {"output": output, "success": True}

        logger.info("Command failed with exit status %d", result.exit_code)
        return {"output": output, "success": False, "code": result.exit_code}
