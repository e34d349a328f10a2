"""Operator prompts: what is asked and what came back."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AnswerValue(Enum):
    YES = "yes"
    NO = "no"
    SKIPPED = "skipped"  # blank reply with no default
    TIMEOUT = "timeout"  # end of input, or timeout_seconds elapsed


@dataclass(frozen=True)
class Question:
    """A blocking yes/no prompt shown to the operator.

    ``detail`` is printed verbatim above the prompt; Empower puts the
    submitted source there. ``metadata`` is for programmatic interviewers.
    """

    text: str
    detail: str = ""
    default: str | None = None
    timeout_seconds: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Answer:
    """The reply; ``text`` is what the operator typed, when anything."""

    value: AnswerValue | None = None
    text: str = ""

    @property
    def is_yes(self) -> bool:
        # Strict identity: the string "yes" is not an approval.
        return self.value is AnswerValue.YES

    @property
    def timed_out(self) -> bool:
        return self.value is AnswerValue.TIMEOUT
