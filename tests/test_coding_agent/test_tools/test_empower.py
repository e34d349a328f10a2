"""Tests for Empower, the runtime tool loader."""

import textwrap

import pytest

from coding_agent.client import StubClient
from coding_agent.config import AgentConfig
from coding_agent.environment.local import LocalExecutionEnvironment
from coding_agent.errors import (
    ContractViolationError,
    DefinitionFailedError,
    NotFoundAfterEvalError,
    SyntaxInvalidError,
)
from coding_agent.interviewer import Answer, AnswerValue, CallbackInterviewer
from coding_agent.session import AgentSession
from coding_agent.tools.empower import (
    DECLINED_MESSAGE,
    Empower,
    check_syntax,
    define,
    find_tool_type,
    new_dynamic_namespace,
)
from coding_agent.usage import TokenTracker


REVERSE_TOOL = textwrap.dedent('''
    class ReverseText(Tool):
        description = "Reverse a string"
        parameters = schema(required=("text",), text="Text to reverse")

        def execute(self, text):
            return {"result": text[::-1]}
''')


def _answer(value):
    return CallbackInterviewer(lambda question: Answer(value=value))


def _make_session(tmp_path, interviewer) -> AgentSession:
    session = AgentSession(
        llm_client=StubClient(),
        config=AgentConfig(toolset="default", working_dir=str(tmp_path)),
        execution_env=LocalExecutionEnvironment(str(tmp_path)),
        interviewer=interviewer,
        token_tracker=TokenTracker(tmp_path / "stats.json"),
    )
    session.enable_tool("Empower")
    return session


def _snapshot(session):
    return set(session.registry.names()), list(session.tool_manager.active)


# --- Helpers ---


class TestCheckSyntax:
    def test_valid_source_parses(self):
        tree = check_syntax("x = 1", "T")
        assert tree.body

    def test_invalid_source_raises(self):
        with pytest.raises(SyntaxInvalidError) as exc_info:
            check_syntax("class Broken(Tool:\n    pass", "Broken")
        assert exc_info.value.tool_name == "Broken"
        assert "line" in str(exc_info.value)

    def test_null_bytes_raise(self):
        with pytest.raises(SyntaxInvalidError):
            check_syntax("x = 1\x00", "T")


class TestDefine:
    def test_names_land_in_namespace(self):
        namespace = new_dynamic_namespace()
        define(check_syntax(REVERSE_TOOL, "ReverseText"), namespace, "ReverseText")
        assert "ReverseText" in namespace

    def test_runtime_error_raises(self):
        with pytest.raises(DefinitionFailedError):
            define(check_syntax("raise ValueError('nope')", "T"), {}, "T")


class TestFindToolType:
    def test_missing_name(self):
        with pytest.raises(NotFoundAfterEvalError):
            find_tool_type(new_dynamic_namespace(), "Ghost")

    def test_non_tool_value(self):
        with pytest.raises(ContractViolationError):
            find_tool_type({"Ghost": 42}, "Ghost")

    def test_declared_name_must_match(self):
        namespace = new_dynamic_namespace()
        code = textwrap.dedent('''
            class Alias(Tool):
                name = "Other"
                description = "mismatch"

                def execute(self):
                    return None
        ''')
        define(check_syntax(code, "Alias"), namespace, "Alias")
        with pytest.raises(ContractViolationError):
            find_tool_type(namespace, "Alias")


# --- Empower end to end ---


class TestEmpower:
    def test_approved_tool_is_registered_enabled_and_resolved(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        result = session.execute_tool("Empower", {"code": REVERSE_TOOL, "tool_name": "ReverseText"})

        assert result["success"] is True
        assert "ReverseText" in session.registry
        assert session.tool_manager.active[-1] == "ReverseText"
        assert "ReverseText" in [t.name for t in session.tools]
        assert session.execute_tool("ReverseText", {"text": "abc"}) == {"result": "cba"}

    def test_definitions_persist_in_session_namespace(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        session.execute_tool("Empower", {"code": REVERSE_TOOL, "tool_name": "ReverseText"})
        assert "ReverseText" in session.dynamic_namespace

        follow_up = textwrap.dedent('''
            class ShoutText(ReverseText):
                description = "Reverse and upper-case"

                def execute(self, text):
                    return {"result": super().execute(text)["result"].upper()}
        ''')
        result = session.execute_tool("Empower", {"code": follow_up, "tool_name": "ShoutText"})
        assert result["success"] is True
        assert session.execute_tool("ShoutText", {"text": "ab"}) == {"result": "BA"}

    @pytest.mark.parametrize("value", [
        AnswerValue.NO, AnswerValue.SKIPPED, AnswerValue.TIMEOUT, "yes", None,
    ])
    def test_anything_but_yes_declines_without_mutation(self, tmp_path, value):
        session = _make_session(tmp_path, _answer(value))
        before = _snapshot(session)
        result = session.execute_tool("Empower", {"code": REVERSE_TOOL, "tool_name": "ReverseText"})
        assert result == {"error": DECLINED_MESSAGE}
        assert _snapshot(session) == before
        assert "ReverseText" not in session.dynamic_namespace

    def test_decline_happens_before_evaluation(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.NO))
        marker = tmp_path / "ran.txt"
        code = f"open({str(marker)!r}, 'w').write('x')"
        session.execute_tool("Empower", {"code": code, "tool_name": "Anything"})
        assert not marker.exists()

    def test_operator_sees_the_code(self, tmp_path):
        asked = []

        def refuse(question):
            asked.append(question)
            return Answer(value=AnswerValue.NO)

        session = _make_session(tmp_path, CallbackInterviewer(refuse))
        session.execute_tool("Empower", {"code": REVERSE_TOOL, "tool_name": "ReverseText"})
        assert len(asked) == 1
        question = asked[0]
        assert question.detail == REVERSE_TOOL
        assert "ReverseText" in question.text

    def test_invalid_syntax_mutates_nothing(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        before = _snapshot(session)
        result = session.execute_tool("Empower", {"code": "class (:", "tool_name": "Bad"})
        assert result["error"].startswith("Invalid Python syntax")
        assert _snapshot(session) == before

    def test_name_not_defined_after_evaluation(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        before = _snapshot(session)
        result = session.execute_tool("Empower", {"code": REVERSE_TOOL, "tool_name": "Missing"})
        assert result == {"error": "Tool class Missing not found after evaluation"}
        assert _snapshot(session) == before
        assert "ReverseText" not in session.dynamic_namespace

    def test_non_tool_class_is_rejected(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        code = "class Plain:\n    def execute(self):\n        return 1\n"
        result = session.execute_tool("Empower", {"code": code, "tool_name": "Plain"})
        assert "not a concrete subclass of Tool" in result["error"]
        assert "Plain" not in session.registry

    @pytest.mark.parametrize("attributes", [
        "description = None",
        "description = 42",
        "parameters = ['not', 'a', 'dict']",
        "parameters = {'type': 'object', 'default': object()}",
    ])
    def test_undescribable_tool_is_rejected(self, tmp_path, attributes):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        before = _snapshot(session)
        code = f"class Bad(Tool):\n    {attributes}\n\n    def execute(self):\n        return 1\n"

        result = session.execute_tool("Empower", {"code": code, "tool_name": "Bad"})

        assert "error" in result
        assert result["error"].startswith("Bad")
        assert _snapshot(session) == before
        assert "Bad" not in session.dynamic_namespace

    def test_session_keeps_working_after_rejected_tool(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        code = "class Bad(Tool):\n    description = None\n\n    def execute(self):\n        return 1\n"
        session.execute_tool("Empower", {"code": code, "tool_name": "Bad"})

        turn = session.process_input("hi")

        assert turn.content == StubClient.DEFAULT_REPLY

    def test_evaluation_error_is_reported(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        result = session.execute_tool("Empower", {"code": "1 / 0", "tool_name": "Zero"})
        assert result["error"].startswith("Failed to evaluate tool code")

    def test_already_active_tool_is_not_replaced(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        session.execute_tool("Empower", {"code": REVERSE_TOOL, "tool_name": "ReverseText"})
        original = session.registry.get("ReverseText").tool

        result = session.execute_tool("Empower", {"code": REVERSE_TOOL, "tool_name": "ReverseText"})
        assert result == {"success": False, "message": "Tool ReverseText is already active"}
        assert session.registry.get("ReverseText").tool is original
        assert session.tool_manager.active.count("ReverseText") == 1

    def test_registered_but_inactive_name_is_a_duplicate(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        code = textwrap.dedent('''
            class SavePlan(Tool):
                description = "shadow"

                def execute(self):
                    return None
        ''')
        result = session.execute_tool("Empower", {"code": code, "tool_name": "SavePlan"})
        assert result == {"error": "Tool SavePlan is already registered"}
        assert not session.tool_manager.is_active("SavePlan")

    def test_load_is_usable_directly(self, tmp_path):
        session = _make_session(tmp_path, _answer(AnswerValue.YES))
        with pytest.raises(SyntaxInvalidError):
            Empower(session).load("def (", "Nope")
