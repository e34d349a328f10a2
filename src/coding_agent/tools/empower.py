"""Empower: define a new tool from model-written source at runtime.

This is deliberate arbitrary code execution driven by model output. The only
guard is the operator confirmation asked before anything is parsed or run;
there is no sandbox, and no code path skips the question.
"""

from __future__ import annotations

import ast
import builtins
import json
import logging
from typing import Any

from coding_agent.errors import (
    ContractViolationError,
    DefinitionFailedError,
    DuplicateNameError,
    DynamicToolError,
    NotFoundAfterEvalError,
    SyntaxInvalidError,
)
from coding_agent.interviewer.question import Question
from coding_agent.tools.base import Tool, ToolDefinition, is_tool_type, schema
from coding_agent.tools.context import AgentContext
from coding_agent.tools.registry import ToolEntry

logger = logging.getLogger(__name__)

DYNAMIC_MODULE_NAME = "coding_agent.dynamic"

DECLINED_MESSAGE = "Tool creation declined by operator"


def new_dynamic_namespace() -> dict[str, Any]:
    """Top-level namespace that dynamically defined tools are evaluated in."""
    return {
        "__name__": DYNAMIC_MODULE_NAME,
        "__builtins__": builtins,
        "Tool": Tool,
        "ToolDefinition": ToolDefinition,
        "schema": schema,
    }


def check_syntax(code: str, tool_name: str) -> ast.Module:
    """Parse without evaluating. Raises SyntaxInvalidError with the first diagnostic line."""
    try:
        return ast.parse(code, filename=f"<empower:{tool_name}>", mode="exec")
    except SyntaxError as exc:
        first_line = (exc.msg or "invalid syntax").splitlines()[0]
        where = f" (line {exc.lineno})" if exc.lineno else ""
        raise SyntaxInvalidError(
            f"Invalid Python syntax: {first_line}{where}", tool_name=tool_name, cause=exc,
        ) from exc
    except ValueError as exc:
        # e.g. null bytes in the source
        raise SyntaxInvalidError(
            f"Invalid Python syntax: {exc}", tool_name=tool_name, cause=exc,
        ) from exc


def define(tree: ast.Module, namespace: dict[str, Any], tool_name: str) -> None:
    """Evaluate parsed source into namespace. Raises DefinitionFailedError."""
    try:
        code = compile(tree, f"<empower:{tool_name}>", "exec")
        exec(code, namespace)
    except Exception as exc:
        raise DefinitionFailedError(
            f"Failed to evaluate tool code: {exc}", tool_name=tool_name, cause=exc,
        ) from exc


def find_tool_type(namespace: dict[str, Any], tool_name: str) -> type[Tool]:
    """Resolve tool_name in namespace and check it against the Tool interface."""
    if tool_name not in namespace:
        raise NotFoundAfterEvalError(
            f"Tool class {tool_name} not found after evaluation", tool_name=tool_name,
        )
    candidate = namespace[tool_name]
    if not is_tool_type(candidate):
        raise ContractViolationError(
            f"{tool_name} is not a concrete subclass of Tool", tool_name=tool_name,
        )
    if candidate.name != tool_name:
        raise ContractViolationError(
            f"{tool_name} declares tool name {candidate.name!r}", tool_name=tool_name,
        )
    return candidate


def instantiate(tool_cls: type[Tool], tool_name: str) -> Tool:
    try:
        return tool_cls()
    except Exception as exc:
        raise DefinitionFailedError(
            f"Failed to instantiate {tool_name}: {exc}", tool_name=tool_name, cause=exc,
        ) from exc


def check_definition(tool: Tool, tool_name: str) -> ToolDefinition:
    """Describe tool the way the chat backend will. Raises ContractViolationError.

    The description must be a string and the parameters a JSON-serializable
    object schema; anything else would fail on every later request.
    """
    if not isinstance(tool.description, str):
        raise ContractViolationError(
            f"{tool_name}.description must be a string, got {type(tool.description).__name__}",
            tool_name=tool_name,
        )
    if not isinstance(tool.parameters, dict):
        raise ContractViolationError(
            f"{tool_name}.parameters must be a dict, got {type(tool.parameters).__name__}",
            tool_name=tool_name,
        )
    try:
        definition = tool.describe()
        json.dumps(definition.parameters)
    except Exception as exc:
        raise ContractViolationError(
            f"{tool_name} cannot be described: {exc}", tool_name=tool_name, cause=exc,
        ) from exc
    return definition


class Empower(Tool):
    description = '''
        Evaluate Python code to define a new tool class and add it to the chat.
        The code should define a class that inherits from Tool. Tool and
        schema are already in scope.

        The code should be in the following format:

            class MyNewTool(Tool):
                description = "Description of the tool"
                parameters = schema(required=("param_name",), param_name="Description of the parameter")

                def execute(self, param_name):
                    # Implementation of the tool
                    return {"result": param_name}

        Errors raised by execute are returned to you as {"error": message}.
    '''
    parameters = schema(
        required=("code", "tool_name"),
        code="Python code that defines a tool class inheriting from Tool",
        tool_name='Name of the tool class to add (e.g., "MyNewTool")',
    )

    def __init__(self, context: AgentContext) -> None:
        self.context = context

    def execute(self, code: str, tool_name: str) -> Any:
        try:
            return self.load(code, tool_name)
        except DynamicToolError as exc:
            logger.warning("Empower %s failed: %s", tool_name, exc)
            return {"error": str(exc)}

    def load(self, code: str, tool_name: str) -> dict[str, Any]:
        """Confirm, validate, define, and register a tool. Raises DynamicToolError."""
        if not self._confirm(code, tool_name):
            logger.info("Empower %s declined", tool_name)
            return {"error": DECLINED_MESSAGE}

        tree = check_syntax(code, tool_name)

        # Definitions land in a scratch copy and are published only on success.
        scratch = dict(self.context.dynamic_namespace)
        define(tree, scratch, tool_name)
        tool_cls = find_tool_type(scratch, tool_name)

        manager = self.context.tool_manager
        if manager.is_active(tool_name):
            logger.warning("Tool %s is already active", tool_name)
            return {"success": False, "message": f"Tool {tool_name} is already active"}

        tool = instantiate(tool_cls, tool_name)
        check_definition(tool, tool_name)
        try:
            manager.registry.register(tool_name, ToolEntry.of(tool))
        except DuplicateNameError as exc:
            return {"error": str(exc)}

        self.context.dynamic_namespace.update(scratch)
        manager.enable(tool_name)
        self.context.refresh_tools()
        logger.info("Successfully evaluated and added tool: %s", tool_name)
        return {
            "success": True,
            "message": f"Tool {tool_name} has been evaluated and added to the chat",
        }

    def _confirm(self, code: str, tool_name: str) -> bool:
        question = Question(
            text=f"Do you want to proceed with adding tool {tool_name}?",
            detail=code,
            metadata={"tool_name": tool_name},
        )
        return self.context.interviewer.ask(question).is_yes
