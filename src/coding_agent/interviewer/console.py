"""ConsoleInterviewer: asks the operator at the terminal."""

from __future__ import annotations

import signal
from typing import Any

from coding_agent.interviewer.question import Answer, AnswerValue, Question

YES_WORDS = frozenset({"y", "yes"})
NO_WORDS = frozenset({"n", "no"})
RULE = "-" * 60


def parse_yes_no(raw: str, default: str | None = None) -> Answer:
    """Interpret a typed yes/no reply.

    Only ``y``/``yes`` (any case) is YES. A blank reply takes ``default``
    when one is set, otherwise it is SKIPPED. Anything else is NO.
    """
    reply = raw.strip().lower()
    if not reply:
        if default is None:
            return Answer(value=AnswerValue.SKIPPED)
        reply = default.strip().lower()
    if reply in YES_WORDS:
        return Answer(value=AnswerValue.YES, text="YES")
    return Answer(value=AnswerValue.NO, text="NO" if reply in NO_WORDS else raw.strip())


class ConsoleInterviewer:
    """Interviewer backed by stdin/stdout.

    ``Question.detail`` (for Empower, the submitted source) is printed
    between rules above the prompt. End of input and an expired
    ``timeout_seconds`` (POSIX only, via SIGALRM) both answer TIMEOUT.
    """

    def ask(self, question: Question) -> Answer:
        print(f"\n{RULE}")
        if question.detail:
            print(question.detail.rstrip("\n"))
            print(RULE)
        print(f"  {question.text}")

        raw = self._read_line("  (y/n): ", question.timeout_seconds)
        if raw is None:
            return Answer(value=AnswerValue.TIMEOUT)
        return parse_yes_no(raw, question.default)

    @staticmethod
    def _read_line(prompt: str, timeout: float | None) -> str | None:
        """input() with an optional timeout; None on timeout or EOF."""
        if not timeout or timeout <= 0:
            try:
                return input(prompt)
            except EOFError:
                return None

        def _expired(signum: Any, frame: Any) -> None:
            raise TimeoutError

        previous = signal.signal(signal.SIGALRM, _expired)
        signal.alarm(max(1, int(timeout)))
        try:
            return input(prompt)
        except (TimeoutError, EOFError):
            return None
        finally:
            signal.alarm(0)
            signal.signal(signal.SIGALRM, previous)
