"""Core conversational loop: the AgentSession orchestrator."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from coding_agent.client import Client, CompletionRequest, Message, encode_tool_result
from coding_agent.config import AgentConfig, toolset_names
from coding_agent.environment.local import LocalExecutionEnvironment
from coding_agent.environment.types import ExecutionEnvironment
from coding_agent.errors import AgentError
from coding_agent.events import (
    AssistantTextDeltaEvent,
    AssistantTextEndEvent,
    ErrorEvent,
    EventEmitter,
    ToolCallEndEvent,
    ToolCallStartEvent,
    ToolsResolvedEvent,
    TurnLimitEvent,
    UsageEvent,
    UserInputEvent,
)
from coding_agent.interviewer.base import Interviewer
from coding_agent.interviewer.console import ConsoleInterviewer
from coding_agent.mcp import McpToolSource, register_mcp_tools
from coding_agent.tools.base import Tool, ToolDefinition
from coding_agent.tools.builtin import register_builtin_tools
from coding_agent.tools.empower import new_dynamic_namespace
from coding_agent.tools.manager import ToolManager
from coding_agent.tools.registry import ToolRegistry
from coding_agent.turns import (
    AssistantTurn,
    ToolCall,
    ToolResult,
    ToolResultsTurn,
    Turn,
    UserTurn,
)
from coding_agent.usage import TokenTracker, UsageReport

logger = logging.getLogger(__name__)


class AgentSession:
    """One chat session: conversation history, tools, and the backend.

    Implements the AgentContext interface handed to tool factories. Tools
    are resolved again before every backend request and after every tool
    call, so a tool enabled mid-turn is offered on the next request.
    """

    def __init__(
        self,
        llm_client: Client,
        config: AgentConfig | None = None,
        execution_env: ExecutionEnvironment | None = None,
        interviewer: Interviewer | None = None,
        token_tracker: TokenTracker | None = None,
        event_emitter: EventEmitter | None = None,
        registry: ToolRegistry | None = None,
        mcp_source: McpToolSource | None = None,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or str(uuid.uuid4())
        self.config = config or AgentConfig()
        self.llm_client = llm_client
        self._execution_env = execution_env or LocalExecutionEnvironment(self.config.working_dir)
        self._interviewer = interviewer or ConsoleInterviewer()
        self._token_tracker = token_tracker or TokenTracker(self.config.stats_path)
        self.event_emitter = event_emitter or EventEmitter()
        self.history: list[Turn] = []
        self.last_usage: UsageReport | None = None

        if registry is None:
            registry = ToolRegistry()
            register_builtin_tools(
                registry, self._execution_env, command_timeout_ms=self.config.command_timeout_ms,
            )
        self._registry = registry
        self._tool_manager = ToolManager(registry)
        self._tool_manager.enable_many(
            toolset_names(self.config.toolset, registry.ordered_names())
        )
        if mcp_source is not None:
            register_mcp_tools(registry, self._tool_manager, mcp_source)
        self._dynamic_namespace = new_dynamic_namespace()
        self._tools: list[Tool] = []
        self.refresh_tools()

    # --- AgentContext ---

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def tool_manager(self) -> ToolManager:
        return self._tool_manager

    @property
    def execution_env(self) -> ExecutionEnvironment:
        return self._execution_env

    @property
    def interviewer(self) -> Interviewer:
        return self._interviewer

    @property
    def token_tracker(self) -> TokenTracker:
        return self._token_tracker

    @property
    def dynamic_namespace(self) -> dict[str, Any]:
        return self._dynamic_namespace

    def refresh_tools(self) -> None:
        try:
            self._tools = self._tool_manager.resolve(self)
        except Exception as exc:
            # Keep offering the last good set.
            logger.exception("Could not resolve active tools")
            self.event_emitter.emit(ErrorEvent(error=f"Could not resolve tools: {exc}"))
            return
        self.event_emitter.emit(ToolsResolvedEvent(tool_names=tuple(t.name for t in self._tools)))

    # --- Public API ---

    @property
    def tools(self) -> list[Tool]:
        """The tools resolved for the next backend request."""
        return list(self._tools)

    def enable_tool(self, name: str) -> bool:
        enabled = self._tool_manager.enable(name)
        if enabled:
            self.refresh_tools()
        return enabled

    def disable_tool(self, name: str) -> bool:
        disabled = self._tool_manager.disable(name)
        if disabled:
            self.refresh_tools()
        return disabled

    def reset_tools(self) -> None:
        """Disable every tool; the registry keeps its entries."""
        self._tool_manager.disable_all()
        self.refresh_tools()

    def process_input(self, user_input: str) -> AssistantTurn:
        """Run the conversational loop for one user input.

        Returns the final AssistantTurn (text-only response, or the last one
        when the tool-round limit is hit). Backend errors are emitted as an
        ErrorEvent and re-raised.
        """
        self.history.append(UserTurn(content=user_input))
        self.event_emitter.emit(UserInputEvent(content=user_input))

        round_count = 0
        last_assistant_turn = AssistantTurn(content="")

        while True:
            if round_count >= self.config.max_tool_rounds_per_input:
                self.event_emitter.emit(TurnLimitEvent(
                    turns_used=round_count, max_turns=self.config.max_tool_rounds_per_input,
                ))
                break

            self.refresh_tools()
            request = CompletionRequest(
                messages=[Message.system(self.config.instructions)] + self._history_to_messages(),
                model=self.config.model,
                tools=self._tool_definitions(),
            )

            on_text = self._emit_text_delta if self.config.stream else None
            try:
                response = self.llm_client.complete(request, on_text=on_text)
            except AgentError as exc:
                logger.error("Chat backend failed: %s", exc)
                self.event_emitter.emit(ErrorEvent(error=str(exc), recoverable=True))
                raise

            assistant_turn = AssistantTurn(
                content=response.text,
                tool_calls=response.tool_calls,
                usage=response.usage,
            )
            self.history.append(assistant_turn)
            last_assistant_turn = assistant_turn
            self.event_emitter.emit(AssistantTextEndEvent(full_text=response.text))
            self._track_usage(response.usage, response.model or self.config.model)

            if not response.tool_calls:
                break

            round_count += 1
            results = [self._execute_tool_call(tc) for tc in response.tool_calls]
            self.history.append(ToolResultsTurn(results=results))

        return last_assistant_turn

    def execute_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """Run a currently resolved tool by name; never raises."""
        tool = next((t for t in self._tools if t.name == name), None)
        if tool is None:
            return {"error": f"Unknown tool: {name}"}
        try:
            return tool.run(arguments or {})
        except Exception as exc:
            # Tool.run already converts failures; this guards overridden run()s.
            logger.exception("Tool %s raised past its boundary", name)
            return {"error": f"Tool error ({name}): {exc}"}

    # --- Private methods ---

    def _tool_definitions(self) -> list[ToolDefinition]:
        """Definitions for the resolved tools. A tool that cannot be described is disabled."""
        definitions: list[ToolDefinition] = []
        broken: set[str] = set()
        for tool in self._tools:
            try:
                definition = tool.describe()
                json.dumps(definition.parameters)
            except Exception as exc:
                logger.error("Disabling tool %s, it cannot be described: %s", tool.name, exc)
                self.event_emitter.emit(ErrorEvent(error=f"Tool {tool.name} disabled: {exc}"))
                self._tool_manager.disable(tool.name)
                broken.add(tool.name)
                continue
            definitions.append(definition)
        if broken:
            self._tools = [t for t in self._tools if t.name not in broken]
        return definitions

    def _emit_text_delta(self, text: str) -> None:
        self.event_emitter.emit(AssistantTextDeltaEvent(text=text))

    def _execute_tool_call(self, tool_call: ToolCall) -> ToolResult:
        self.event_emitter.emit(ToolCallStartEvent(
            tool_call_id=tool_call.id,
            tool_name=tool_call.name,
            arguments=tool_call.arguments,
        ))
        result = ToolResult.for_call(
            tool_call, self.execute_tool(tool_call.name, tool_call.arguments),
        )
        self.event_emitter.emit(ToolCallEndEvent(
            tool_call_id=tool_call.id, tool_name=tool_call.name,
            result=result.value, is_error=result.is_error,
        ))
        # Enabler and Empower may have changed the active set.
        self.refresh_tools()
        return result

    def _track_usage(self, usage: dict[str, int], model: str) -> None:
        if not usage:
            return
        self.last_usage = self._token_tracker.track(usage, model)
        self.event_emitter.emit(UsageEvent(
            input_tokens=self.last_usage.input_tokens,
            output_tokens=self.last_usage.output_tokens,
            model=model,
        ))

    def _history_to_messages(self) -> list[Message]:
        messages: list[Message] = []
        for turn in self.history:
            if isinstance(turn, UserTurn):
                messages.append(Message.user(turn.content))
            elif isinstance(turn, AssistantTurn):
                tc_list = turn.tool_calls if turn.tool_calls else None
                messages.append(Message.assistant(turn.content, tool_calls=tc_list))
            elif isinstance(turn, ToolResultsTurn):
                for result in turn.results:
                    messages.append(Message.tool(
                        tool_call_id=result.tool_call_id,
                        content=encode_tool_result(result.value),
                        name=result.name,
                    ))
        return messages
