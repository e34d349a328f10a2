"""Tests for the operator interviewers."""

from __future__ import annotations

import pytest

from coding_agent.interviewer import (
    Answer,
    AnswerValue,
    CallbackInterviewer,
    ConsoleInterviewer,
    Question,
)


def _feed(monkeypatch, *responses: str) -> None:
    remaining = list(responses)

    def fake_input(prompt: str = "") -> str:
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    monkeypatch.setattr("builtins.input", fake_input)


class TestAnswer:
    def test_predicates(self) -> None:
        assert Answer(value=AnswerValue.YES).is_yes
        assert not Answer(value=AnswerValue.NO).is_yes
        assert not Answer(value=AnswerValue.SKIPPED).is_yes
        assert Answer(value=AnswerValue.TIMEOUT).timed_out

    def test_string_yes_is_not_yes(self) -> None:
        assert not Answer(value="YES").is_yes


class TestCallbackInterviewer:
    def test_delegates(self) -> None:
        seen: list[Question] = []

        def callback(question: Question) -> Answer:
            seen.append(question)
            return Answer(value=AnswerValue.NO, text="NO")

        q = Question(text="Proceed?")
        answer = CallbackInterviewer(callback).ask(q)

        assert answer.value is AnswerValue.NO
        assert seen == [q]


class TestConsoleInterviewer:
    @pytest.mark.parametrize("raw", ["y", "yes", " YES "])
    def test_yes(self, monkeypatch, raw) -> None:
        _feed(monkeypatch, raw)
        q = Question(text="Proceed?")
        assert ConsoleInterviewer().ask(q).is_yes

    @pytest.mark.parametrize("raw", ["n", "no", "maybe", "yep"])
    def test_anything_else_is_no(self, monkeypatch, raw) -> None:
        _feed(monkeypatch, raw)
        q = Question(text="Proceed?")
        answer = ConsoleInterviewer().ask(q)
        assert answer.value is AnswerValue.NO

    def test_empty_without_default_is_skipped(self, monkeypatch) -> None:
        _feed(monkeypatch, "")
        q = Question(text="Proceed?")
        assert ConsoleInterviewer().ask(q).value is AnswerValue.SKIPPED

    def test_empty_uses_default(self, monkeypatch) -> None:
        _feed(monkeypatch, "")
        q = Question(text="Proceed?", default="y")
        assert ConsoleInterviewer().ask(q).is_yes

    def test_eof_is_timeout(self, monkeypatch) -> None:
        _feed(monkeypatch)
        q = Question(text="Proceed?")
        assert ConsoleInterviewer().ask(q).timed_out

    def test_detail_is_printed(self, monkeypatch, capsys) -> None:
        _feed(monkeypatch, "n")
        q = Question(text="Add tool X?", detail="class X(Tool):\n    pass\n")
        ConsoleInterviewer().ask(q)
        out = capsys.readouterr().out
        assert "class X(Tool):" in out
        assert "Add tool X?" in out

