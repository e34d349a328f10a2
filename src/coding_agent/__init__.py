"""coding_agent: a terminal coding assistant with a runtime-extensible toolset."""

from coding_agent.client import Client, CompletionRequest, CompletionResponse, Message, StubClient
from coding_agent.config import AgentConfig
from coding_agent.errors import (
    AgentError,
    ContractViolationError,
    DefinitionFailedError,
    DuplicateNameError,
    DynamicToolError,
    NotFoundAfterEvalError,
    SyntaxInvalidError,
    ToolNotFoundError,
)
from coding_agent.events import EventEmitter
from coding_agent.session import AgentSession
from coding_agent.tools import Tool, ToolDefinition, ToolEntry, ToolManager, ToolRegistry, schema
from coding_agent.turns import AssistantTurn, ToolCall, ToolResult, ToolResultsTurn, Turn, UserTurn
from coding_agent.usage import TokenTracker

__all__ = [
    # Session
    "AgentSession",
    "AgentConfig",
    # Chat backend
    "Client",
    "CompletionRequest",
    "CompletionResponse",
    "Message",
    "StubClient",
    # Tools
    "Tool",
    "ToolDefinition",
    "ToolEntry",
    "ToolManager",
    "ToolRegistry",
    "schema",
    # Errors
    "AgentError",
    "DuplicateNameError",
    "ToolNotFoundError",
    "DynamicToolError",
    "SyntaxInvalidError",
    "DefinitionFailedError",
    "NotFoundAfterEvalError",
    "ContractViolationError",
    # Accounting and events
    "TokenTracker",
    "EventEmitter",
    # Turn types
    "Turn",
    "UserTurn",
    "AssistantTurn",
    "ToolCall",
    "ToolResult",
    "ToolResultsTurn",
]
