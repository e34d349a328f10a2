"""TokenStats: lets the model inspect or reset token accounting."""

from __future__ import annotations

from typing import Any

from coding_agent.tools.base import Tool, schema
from coding_agent.usage import TokenTracker

ACTIONS = ("session", "global", "reset_session", "reset_global")


class TokenStats(Tool):
    description = "View or manage token usage statistics for this agent session and globally"
    parameters = schema(
        required=("action",),
        action={
            "type": "string",
            "enum": list(ACTIONS),
            "description": (
                "Action to perform: 'session' (show session stats), 'global' (show global "
                "stats), 'reset_session' (reset session counters), or 'reset_global' "
                "(reset all global stats)"
            ),
        },
    )

    def __init__(self, tracker: TokenTracker) -> None:
        self.tracker = tracker

    def execute(self, action: str) -> Any:
        action = action.lower()
        if action == "session":
            return (
                f"Current session token usage: {self.tracker.session_input_tokens} input + "
                f"{self.tracker.session_output_tokens} output = "
                f"{self.tracker.session_total} total tokens"
            )
        if action == "global":
            stats = self.tracker.global_stats()
            return (
                f"Global token usage across all sessions: {stats['total_input_tokens']} input + "
                f"{stats['total_output_tokens']} output = {stats['total_tokens']} total tokens "
                f"across {stats['total_sessions']} sessions. Last updated: {stats['last_updated']}"
            )
        if action == "reset_session":
            self.tracker.reset_session()
            return "Session token counters have been reset to zero."
        if action == "reset_global":
            self.tracker.reset_global()
            return "Global token statistics have been reset to zero."
        return {
            "error": "Invalid action. Use 'session', 'global', 'reset_session', or 'reset_global'"
        }
