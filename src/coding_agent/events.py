"""Session events and a synchronous emitter.

The CLI renders streamed text and tool activity from these; tests subscribe
to observe the loop without patching it.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

Listener = Callable[[Any], None]


@dataclass(frozen=True)
class UserInputEvent:
    content: str


@dataclass(frozen=True)
class AssistantTextDeltaEvent:
    text: str


@dataclass(frozen=True)
class AssistantTextEndEvent:
    full_text: str


@dataclass(frozen=True)
class ToolCallStartEvent:
    tool_call_id: str
    tool_name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolCallEndEvent:
    tool_call_id: str
    tool_name: str
    result: Any = None
    is_error: bool = False


@dataclass(frozen=True)
class ToolsResolvedEvent:
    """The active set was resolved again; names in offer order."""

    tool_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class UsageEvent:
    input_tokens: int
    output_tokens: int
    model: str = ""


@dataclass(frozen=True)
class TurnLimitEvent:
    turns_used: int
    max_turns: int


@dataclass(frozen=True)
class ErrorEvent:
    error: str
    recoverable: bool = True


class EventEmitter:
    """Calls listeners inline, catch-all listeners first, then by exact event type."""

    def __init__(self) -> None:
        self._by_type: defaultdict[type, list[Listener]] = defaultdict(list)
        self._catch_all: list[Listener] = []

    def subscribe(self, event_type: type, callback: Listener) -> None:
        self._by_type[event_type].append(callback)

    def on_all(self, callback: Listener) -> None:
        self._catch_all.append(callback)

    def emit(self, event: Any) -> None:
        for callback in [*self._catch_all, *self._by_type.get(type(event), ())]:
            callback(event)
