"""Conversation history records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCall:
    """A named tool invocation requested by the backend, with keyword arguments."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """What a tool returned for one call.

    ``value`` is the tool's return value (mapping, list or scalar) and goes
    back to the backend unchanged. A mapping with an ``error`` key marks a
    failed call.
    """

    tool_call_id: str
    name: str
    value: Any = None
    is_error: bool = False

    @classmethod
    def for_call(cls, call: ToolCall, value: Any) -> ToolResult:
        is_error = isinstance(value, dict) and "error" in value
        return cls(tool_call_id=call.id, name=call.name, value=value, is_error=is_error)


@dataclass(frozen=True)
class UserTurn:
    content: str


@dataclass(frozen=True)
class AssistantTurn:
    """One backend response: text, requested tool calls and token usage."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResultsTurn:
    """Results of every tool call from the preceding AssistantTurn, in call order."""

    results: list[ToolResult] = field(default_factory=list)


Turn = UserTurn | AssistantTurn | ToolResultsTurn
