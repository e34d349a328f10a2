"""Tests for the error hierarchy."""
from __future__ import annotations

import pytest

from coding_agent.errors import (
    AgentError,
    AuthenticationError,
    BackendError,
    ContractViolationError,
    DefinitionFailedError,
    DuplicateNameError,
    DynamicToolError,
    NotFoundAfterEvalError,
    RateLimitError,
    ServerError,
    SyntaxInvalidError,
    ToolNotFoundError,
    error_from_status_code,
)


class TestHierarchy:
    @pytest.mark.parametrize("cls", [
        SyntaxInvalidError, DefinitionFailedError, NotFoundAfterEvalError, ContractViolationError,
    ])
    def test_dynamic_tool_errors(self, cls) -> None:
        err = cls("bad", tool_name="T")
        assert isinstance(err, DynamicToolError)
        assert isinstance(err, AgentError)
        assert err.tool_name == "T"

    def test_registry_error_messages(self) -> None:
        assert str(DuplicateNameError("X")) == "Tool X is already registered"
        assert str(ToolNotFoundError("X")) == "Unknown tool: X"

    def test_cause_kept(self) -> None:
        cause = ValueError("inner")
        assert AgentError("outer", cause=cause).cause is cause


class TestErrorFromStatusCode:
    @pytest.mark.parametrize("status,cls,retryable", [
        (401, AuthenticationError, False),
        (403, AuthenticationError, False),
        (429, RateLimitError, True),
        (502, ServerError, True),
        (404, BackendError, False),
    ])
    def test_mapping(self, status, cls, retryable) -> None:
        err = error_from_status_code(status, "msg", raw={"k": 1})
        assert type(err) is cls
        assert err.status_code == status
        assert err.retryable is retryable
        assert err.raw == {"k": 1}
