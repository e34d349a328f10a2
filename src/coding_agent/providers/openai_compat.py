"""Chat Completions client for OpenAI-compatible servers (OpenAI, Ollama)."""
from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any

import httpx

from coding_agent.client import (
    CompletionRequest,
    CompletionResponse,
    Message,
    TextCallback,
    encode_tool_result,
)
from coding_agent.errors import (
    NetworkError,
    RequestTimeoutError,
    ResponseFormatError,
    error_from_status_code,
)
from coding_agent.sse import iter_sse_json
from coding_agent.turns import Role, ToolCall

logger = logging.getLogger(__name__)


class OpenAICompatibleClient:
    """Client for the ``/chat/completions`` endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 600.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"content-type": "application/json"}
        if api_key:
            headers["authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def complete(
        self, request: CompletionRequest, on_text: TextCallback | None = None,
    ) -> CompletionResponse:
        body = self.build_request_body(request, stream=on_text is not None)
        logger.info("chat request: model=%s tools=%d", request.model, len(request.tools))
        start = time.monotonic()

        if on_text is None:
            response = self._parse_response(self._post(body))
        else:
            response = self._stream(body, on_text)

        logger.info(
            "chat response: in=%d out=%d tool_calls=%d latency=%.2fs",
            response.usage.get("input_tokens", 0),
            response.usage.get("output_tokens", 0),
            len(response.tool_calls),
            time.monotonic() - start,
        )
        return response

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Request translation
    # ------------------------------------------------------------------

    def build_request_body(self, request: CompletionRequest, stream: bool = False) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": request.model,
            "messages": [self._translate_message(m) for m in request.messages],
        }
        if request.tools:
            body["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": t.name,
                        "description": t.description,
                        "parameters": t.parameters,
                    },
                }
                for t in request.tools
            ]
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.max_tokens is not None:
            body["max_tokens"] = request.max_tokens
        if stream:
            body["stream"] = True
            body["stream_options"] = {"include_usage": True}
        return body

    @staticmethod
    def _translate_message(message: Message) -> dict[str, Any]:
        if message.role == Role.TOOL:
            out: dict[str, Any] = {
                "role": "tool",
                "tool_call_id": message.tool_call_id,
                "content": message.content,
            }
            if message.name:
                out["name"] = message.name
            return out

        out = {"role": message.role.value, "content": message.content}
        if message.role == Role.ASSISTANT and message.tool_calls:
            out["content"] = message.content or None
            out["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.name,
                        "arguments": encode_tool_result(tc.arguments),
                    },
                }
                for tc in message.tool_calls
            ]
        return out

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self._client.post("/chat/completions", json=body)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(str(exc), cause=exc) from exc
        except httpx.TransportError as exc:
            raise NetworkError(str(exc), cause=exc) from exc

        if resp.status_code >= 300:
            raise self._error_for(resp.status_code, resp.text)
        try:
            return resp.json()
        except ValueError as exc:
            raise ResponseFormatError(f"Response is not JSON: {resp.text[:200]}", cause=exc) from exc

    def _stream(self, body: dict[str, Any], on_text: TextCallback) -> CompletionResponse:
        text_parts: list[str] = []
        partial_calls: dict[int, dict[str, str]] = {}
        usage: dict[str, int] = {}
        model = body["model"]
        stop_reason = "stop"

        try:
            with self._client.stream("POST", "/chat/completions", json=body) as resp:
                if resp.status_code >= 300:
                    raw = resp.read().decode("utf-8", errors="replace")
                    raise self._error_for(resp.status_code, raw)

                for chunk in iter_sse_json(resp.iter_lines()):
                    model = chunk.get("model") or model
                    if chunk.get("usage"):
                        usage = self._translate_usage(chunk["usage"])
                    for choice in chunk.get("choices") or []:
                        delta = choice.get("delta") or {}
                        if delta.get("content"):
                            text_parts.append(delta["content"])
                            on_text(delta["content"])
                        for fragment in delta.get("tool_calls") or []:
                            self._merge_tool_call_fragment(partial_calls, fragment)
                        if choice.get("finish_reason"):
                            stop_reason = choice["finish_reason"]
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(str(exc), cause=exc) from exc
        except httpx.TransportError as exc:
            raise NetworkError(str(exc), cause=exc) from exc

        tool_calls = [
            self._make_tool_call(p["id"], p["name"], p["arguments"])
            for _, p in sorted(partial_calls.items())
        ]
        return CompletionResponse(
            message=Message.assistant("".join(text_parts), tool_calls=tool_calls or None),
            usage=usage,
            model=model,
            stop_reason=stop_reason,
        )

    # ------------------------------------------------------------------
    # Response translation
    # ------------------------------------------------------------------

    def _parse_response(self, body: dict[str, Any]) -> CompletionResponse:
        choices = body.get("choices") or []
        if not choices:
            raise ResponseFormatError("Response has no choices")
        choice = choices[0]
        message = choice.get("message") or {}

        tool_calls = [
            self._make_tool_call(
                tc.get("id", ""),
                (tc.get("function") or {}).get("name", ""),
                (tc.get("function") or {}).get("arguments", ""),
            )
            for tc in message.get("tool_calls") or []
        ]
        return CompletionResponse(
            message=Message.assistant(message.get("content") or "", tool_calls=tool_calls or None),
            usage=self._translate_usage(body.get("usage") or {}),
            model=body.get("model", ""),
            stop_reason=choice.get("finish_reason") or "stop",
        )

    @staticmethod
    def _merge_tool_call_fragment(partial: dict[int, dict[str, str]], fragment: dict[str, Any]) -> None:
        index = fragment.get("index", len(partial))
        entry = partial.setdefault(index, {"id": "", "name": "", "arguments": ""})
        if fragment.get("id"):
            entry["id"] = fragment["id"]
        function = fragment.get("function") or {}
        if function.get("name"):
            entry["name"] += function["name"]
        if function.get("arguments"):
            entry["arguments"] += function["arguments"]

    @staticmethod
    def _make_tool_call(call_id: str, name: str, raw_arguments: Any) -> ToolCall:
        if isinstance(raw_arguments, dict):
            arguments = raw_arguments
        else:
            try:
                arguments = json.loads(raw_arguments) if raw_arguments else {}
            except ValueError:
                logger.warning("Tool call %s has malformed arguments: %.200s", name, raw_arguments)
                arguments = {}
            if not isinstance(arguments, dict):
                arguments = {}
        return ToolCall(id=call_id or f"call_{uuid.uuid4().hex[:12]}", name=name, arguments=arguments)

    @staticmethod
    def _translate_usage(usage: dict[str, Any]) -> dict[str, int]:
        return {
            "input_tokens": int(usage.get("prompt_tokens", 0) or 0),
            "output_tokens": int(usage.get("completion_tokens", 0) or 0),
        }

    @staticmethod
    def _error_for(status_code: int, raw_text: str) -> Exception:
        try:
            body = json.loads(raw_text)
        except ValueError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        message = error.get("message", raw_text) if isinstance(error, dict) else raw_text
        return error_from_status_code(status_code, message, raw=body if isinstance(body, dict) else None)
