"""CallbackInterviewer: answers come from a plain function."""

from __future__ import annotations

from typing import Callable

from coding_agent.interviewer.question import Answer, Question

AnswerFn = Callable[[Question], Answer]


class CallbackInterviewer:
    """Adapts ``fn(question) -> Answer`` to the Interviewer protocol.

    Embedders use it to route Empower confirmations to their own UI; tests
    use it to script approvals and refusals.
    """

    def __init__(self, fn: AnswerFn) -> None:
        self.fn = fn

    def ask(self, question: Question) -> Answer:
        return self.fn(question)
