"""Tests for the Chat Completions client."""
from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from coding_agent.client import CompletionRequest, Message
from coding_agent.config import AgentConfig
from coding_agent.errors import (
    AuthenticationError,
    BackendError,
    NetworkError,
    RateLimitError,
    ResponseFormatError,
    ServerError,
)
from coding_agent.providers import client_from_config
from coding_agent.providers.openai_compat import OpenAICompatibleClient
from coding_agent.tools.base import ToolDefinition, schema
from coding_agent.turns import ToolCall


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_client(handler, **kwargs) -> OpenAICompatibleClient:
    return OpenAICompatibleClient(
        "http://backend.test/v1", transport=httpx.MockTransport(handler), **kwargs,
    )


def _completion(**message: Any) -> dict[str, Any]:
    return {
        "model": "qwen3:14b",
        "choices": [{"index": 0, "message": {"role": "assistant", **message}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 4, "total_tokens": 16},
    }


def _sse(*chunks: dict[str, Any]) -> bytes:
    lines = [f"data: {json.dumps(c)}\n\n" for c in chunks]
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


def _request(**kwargs: Any) -> CompletionRequest:
    return CompletionRequest(messages=[Message.user("Hi")], model="qwen3:14b", **kwargs)


# ===========================================================================
# Request translation
# ===========================================================================

class TestBuildRequestBody:
    def test_tools_become_functions(self) -> None:
        client = _make_client(lambda r: httpx.Response(200))
        definition = ToolDefinition(
            name="ReadFile", description="Read a file", parameters=schema(required=("path",), path="p"),
        )
        body = client.build_request_body(_request(tools=[definition]))
        assert body["tools"] == [{
            "type": "function",
            "function": {
                "name": "ReadFile",
                "description": "Read a file",
                "parameters": definition.parameters,
            },
        }]
        assert "stream" not in body

    def test_no_tools_key_when_empty(self) -> None:
        client = _make_client(lambda r: httpx.Response(200))
        assert "tools" not in client.build_request_body(_request())

    def test_stream_requests_usage(self) -> None:
        client = _make_client(lambda r: httpx.Response(200))
        body = client.build_request_body(_request(), stream=True)
        assert body["stream"] is True
        assert body["stream_options"] == {"include_usage": True}

    def test_tool_history_is_translated(self) -> None:
        client = _make_client(lambda r: httpx.Response(200))
        call = ToolCall(id="call_1", name="ListFiles", arguments={"path": "."})
        request = CompletionRequest(messages=[
            Message.user("list"),
            Message.assistant("", tool_calls=[call]),
            Message.tool("call_1", '["a.txt"]', name="ListFiles"),
        ])
        messages = client.build_request_body(request)["messages"]
        assert messages[1] == {
            "role": "assistant",
            "content": None,
            "tool_calls": [{
                "id": "call_1",
                "type": "function",
                "function": {"name": "ListFiles", "arguments": '{"path": "."}'},
            }],
        }
        assert messages[2] == {
            "role": "tool", "tool_call_id": "call_1", "content": '["a.txt"]', "name": "ListFiles",
        }


# ===========================================================================
# Non-streaming completions
# ===========================================================================

class TestComplete:
    def test_text_response(self) -> None:
        captured: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion(content="Hello!"))

        response = _make_client(handler).complete(_request())
        assert captured["url"] == "http://backend.test/v1/chat/completions"
        assert captured["body"]["messages"] == [{"role": "user", "content": "Hi"}]
        assert response.text == "Hello!"
        assert response.tool_calls == []
        assert response.usage == {"input_tokens": 12, "output_tokens": 4}
        assert response.model == "qwen3:14b"

    def test_api_key_sent_as_bearer(self) -> None:
        captured: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers.get("authorization", "")
            return httpx.Response(200, json=_completion(content="ok"))

        _make_client(handler, api_key="sk-test").complete(_request())
        assert captured["auth"] == "Bearer sk-test"

    def test_tool_calls_are_parsed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion(content=None, tool_calls=[{
                "id": "call_9",
                "type": "function",
                "function": {"name": "ReadFile", "arguments": '{"path": "a.txt"}'},
            }]))

        response = _make_client(handler).complete(_request())
        assert response.text == ""
        assert response.tool_calls == [ToolCall(id="call_9", name="ReadFile", arguments={"path": "a.txt"})]

    def test_malformed_arguments_become_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion(tool_calls=[{
                "type": "function",
                "function": {"name": "ReadFile", "arguments": "{not json"},
            }]))

        call = _make_client(handler).complete(_request()).tool_calls[0]
        assert call.arguments == {}
        assert call.id.startswith("call_")

    def test_no_choices_is_format_error(self) -> None:
        client = _make_client(lambda r: httpx.Response(200, json={"choices": []}))
        with pytest.raises(ResponseFormatError):
            client.complete(_request())

    def test_non_json_is_format_error(self) -> None:
        client = _make_client(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(ResponseFormatError):
            client.complete(_request())

    @pytest.mark.parametrize("status,error_cls", [
        (401, AuthenticationError),
        (429, RateLimitError),
        (500, ServerError),
        (400, BackendError),
    ])
    def test_http_errors(self, status, error_cls) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"error": {"message": "nope"}})

        with pytest.raises(error_cls) as exc_info:
            _make_client(handler).complete(_request())
        assert exc_info.value.status_code == status
        assert str(exc_info.value) == "nope"

    def test_connection_failure_is_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(NetworkError):
            _make_client(handler).complete(_request())


# ===========================================================================
# Streaming completions
# ===========================================================================

class TestStreaming:
    def test_text_fragments_reach_callback(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["stream"] is True
            return httpx.Response(200, content=_sse(
                {"model": "qwen3:14b", "choices": [{"delta": {"content": "Hel"}}]},
                {"choices": [{"delta": {"content": "lo"}, "finish_reason": "stop"}]},
                {"choices": [], "usage": {"prompt_tokens": 3, "completion_tokens": 2}},
            ), headers={"content-type": "text/event-stream"})

        fragments: list[str] = []
        response = _make_client(handler).complete(_request(), on_text=fragments.append)
        assert fragments == ["Hel", "lo"]
        assert response.text == "Hello"
        assert response.usage == {"input_tokens": 3, "output_tokens": 2}
        assert response.stop_reason == "stop"

    def test_tool_call_fragments_are_merged(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_sse(
                {"choices": [{"delta": {"tool_calls": [{
                    "index": 0, "id": "call_a", "function": {"name": "EditFile", "arguments": '{"pa'},
                }]}}]},
                {"choices": [{"delta": {"tool_calls": [{
                    "index": 0, "function": {"arguments": 'th": "x"}'},
                }]}}]},
                {"choices": [{"delta": {"tool_calls": [{
                    "index": 1, "id": "call_b", "function": {"name": "ListFiles", "arguments": "{}"},
                }]}, "finish_reason": "tool_calls"}]},
            ))

        response = _make_client(handler).complete(_request(), on_text=lambda t: None)
        assert response.tool_calls == [
            ToolCall(id="call_a", name="EditFile", arguments={"path": "x"}),
            ToolCall(id="call_b", name="ListFiles", arguments={}),
        ]
        assert response.stop_reason == "tool_calls"

    def test_malformed_chunk_is_skipped(self) -> None:
        body = b"data: {broken\n\n" + _sse({"choices": [{"delta": {"content": "ok"}}]})
        client = _make_client(lambda r: httpx.Response(200, content=body))
        assert client.complete(_request(), on_text=lambda t: None).text == "ok"

    def test_stream_error_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": {"message": "overloaded"}})

        with pytest.raises(ServerError):
            _make_client(handler).complete(_request(), on_text=lambda t: None)


# ===========================================================================
# Factory
# ===========================================================================

class TestClientFromConfig:
    def test_builds_client_for_ollama(self) -> None:
        client = client_from_config(AgentConfig(provider="ollama"))
        try:
            assert isinstance(client, OpenAICompatibleClient)
        finally:
            client.close()
