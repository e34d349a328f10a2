"""Chat backend protocol, wire-neutral message types, and a scripted stub."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from coding_agent.tools.base import ToolDefinition
from coding_agent.turns import Role, ToolCall

TextCallback = Callable[[str], None]


@dataclass(frozen=True)
class Message:
    """One chat message. Tool messages carry the call id and tool name they answer."""

    role: Role
    content: str = ""
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @classmethod
    def system(cls, text: str) -> Message:
        return cls(Role.SYSTEM, text)

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(Role.USER, text)

    @classmethod
    def assistant(cls, text: str = "", tool_calls: list[ToolCall] | None = None) -> Message:
        return cls(Role.ASSISTANT, text, tool_calls=tool_calls)

    @classmethod
    def tool(cls, tool_call_id: str, content: str, name: str = "") -> Message:
        return cls(Role.TOOL, content, tool_call_id=tool_call_id, name=name)


def encode_tool_result(value: Any) -> str:
    """Serialize a tool's return value for the wire. Strings pass through."""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


@dataclass(frozen=True)
class CompletionRequest:
    messages: list[Message]
    model: str = ""
    tools: list[ToolDefinition] = field(default_factory=list)
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass(frozen=True)
class CompletionResponse:
    """A complete backend reply; ``usage`` has ``input_tokens``/``output_tokens``."""

    message: Message
    usage: dict[str, int] = field(default_factory=dict)
    model: str = ""
    stop_reason: str = "stop"

    @property
    def text(self) -> str:
        return self.message.content

    @property
    def tool_calls(self) -> list[ToolCall]:
        return list(self.message.tool_calls or ())


class Client(Protocol):
    """A chat backend.

    When ``on_text`` is given the backend streams and calls it with each
    text fragment as it arrives; the returned response is still complete.
    """

    def complete(
        self, request: CompletionRequest, on_text: TextCallback | None = None,
    ) -> CompletionResponse: ...


class StubClient:
    """Replays scripted responses; the last one repeats once the script runs out.

    Streams each response's text as a single fragment when ``on_text`` is
    given, and records every request for inspection.
    """

    DEFAULT_REPLY = "Hello! How can I help?"

    def __init__(self, responses: list[CompletionResponse] | None = None) -> None:
        self._script = list(responses or [
            CompletionResponse(message=Message.assistant(self.DEFAULT_REPLY)),
        ])
        self.requests: list[CompletionRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def complete(
        self, request: CompletionRequest, on_text: TextCallback | None = None,
    ) -> CompletionResponse:
        position = min(len(self.requests), len(self._script) - 1)
        self.requests.append(request)
        response = self._script[position]
        if on_text is not None and response.text:
            on_text(response.text)
        return response
