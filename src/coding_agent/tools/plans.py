"""Plan tools: persist a markdown plan under ``plans/``."""

from __future__ import annotations

import logging
import os
from typing import Any

from coding_agent.environment.types import ExecutionEnvironment
from coding_agent.tools.base import Tool, schema

logger = logging.getLogger(__name__)

PLANS_DIR = "plans"


class SavePlan(Tool):
    description = "Save the plan to a markdown file"
    parameters = schema(
        required=("content", "title"),
        content="Detailed plan in markdown",
        title="Title of the plan",
    )

    def __init__(self, env: ExecutionEnvironment) -> None:
        self.env = env

    def execute(self, content: str, title: str) -> Any:
        if not title or "/" in title or os.sep in title or title in (".", ".."):
            return {"error": f"Invalid plan title: {title!r}"}

        filename = f"{PLANS_DIR}/{title}.md"
        logger.info("Saving plan to %s", filename)
        try:
            self.env.write_file(filename, content)
        except OSError as exc:
            return {"error": str(exc)}
        return {"success": True, "filename": filename}


class WritePlan(SavePlan):
    """Same behaviour as SavePlan; the planner toolset exposes it under this name."""

    description = "Write the plan to a markdown file"
