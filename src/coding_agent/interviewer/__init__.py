"""Operator prompts used to gate hazardous tool actions."""

from coding_agent.interviewer.base import Interviewer
from coding_agent.interviewer.callback import CallbackInterviewer
from coding_agent.interviewer.console import ConsoleInterviewer
from coding_agent.interviewer.question import Answer, AnswerValue, Question

__all__ = [
    "Interviewer",
    "Answer",
    "AnswerValue",
    "Question",
    "CallbackInterviewer",
    "ConsoleInterviewer",
]
