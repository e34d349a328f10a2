"""Error hierarchy for the coding agent."""
from __future__ import annotations

from typing import Any


class AgentError(Exception):
    """Base error for all coding_agent errors."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConfigError(AgentError):
    """Invalid or inconsistent configuration."""


# ---------------------------------------------------------------------------
# Registry errors
# ---------------------------------------------------------------------------


class DuplicateNameError(AgentError):
    """A tool name is already registered."""

    def __init__(self, name: str, **kwargs: Any) -> None:
        super().__init__(f"Tool {name} is already registered", **kwargs)
        self.name = name


class ToolNotFoundError(AgentError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str, **kwargs: Any) -> None:
        super().__init__(f"Unknown tool: {name}", **kwargs)
        self.name = name


# ---------------------------------------------------------------------------
# Dynamic tool loading errors
# ---------------------------------------------------------------------------


class DynamicToolError(AgentError):
    """Base for failures while defining a tool from source at runtime."""

    def __init__(self, message: str, *, tool_name: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.tool_name = tool_name


class SyntaxInvalidError(DynamicToolError):
    """The submitted source does not parse."""


class DefinitionFailedError(DynamicToolError):
    """The submitted source raised while being evaluated or instantiated."""


class NotFoundAfterEvalError(DynamicToolError):
    """The declared name does not exist after evaluating the source."""


class ContractViolationError(DynamicToolError):
    """The declared name is not a concrete Tool, or the tool cannot be described."""


# ---------------------------------------------------------------------------
# Chat backend errors
# ---------------------------------------------------------------------------


class BackendError(AgentError):
    """Error returned by the chat backend."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = False,
        raw: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.status_code = status_code
        self.retryable = retryable
        self.raw = raw


class AuthenticationError(BackendError):
    """Authentication failed (e.g. invalid API key)."""


class RateLimitError(BackendError):
    """Rate limit exceeded."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class ServerError(BackendError):
    """The backend failed internally."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class NetworkError(AgentError):
    """The backend could not be reached."""


class RequestTimeoutError(AgentError):
    """The backend did not answer in time."""


class ResponseFormatError(AgentError):
    """The backend answered with a payload that could not be understood."""


def error_from_status_code(
    status_code: int,
    message: str,
    *,
    raw: dict[str, Any] | None = None,
) -> BackendError:
    """Map an HTTP status code to the matching BackendError subclass."""
    if status_code in (401, 403):
        cls: type[BackendError] = AuthenticationError
    elif status_code == 429:
        cls = RateLimitError
    elif status_code >= 500:
        cls = ServerError
    else:
        cls = BackendError
    return cls(message, status_code=status_code, raw=raw)


# ---------------------------------------------------------------------------
# MCP errors
# ---------------------------------------------------------------------------


class McpError(AgentError):
    """Base for failures talking to an MCP server."""


class McpConnectionError(McpError):
    """The MCP server could not be started, reached or initialized."""


class McpToolCallError(McpError):
    """An MCP tool call failed or the server reported an error result."""
