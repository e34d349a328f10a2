"""Synchronous client for one MCP server, and its tools as registry entries.

The ``mcp`` SDK is asyncio-only while the chat loop is synchronous, so the
client session lives on an event loop in a background thread and tool calls
are submitted to it with ``run_coroutine_threadsafe``.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import os
import threading
from contextlib import AsyncExitStack
from typing import Any

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client

from coding_agent.errors import McpConnectionError, McpToolCallError
from coding_agent.mcp import McpServerConfig
from coding_agent.tools.base import Tool

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 30.0
CALL_TIMEOUT_SECONDS = 60.0


def result_text(result: Any) -> str:
    """Flatten a CallToolResult's content blocks into text."""
    parts = []
    for item in result.content or ():
        text = getattr(item, "text", None)
        if text is not None:
            parts.append(text)
        else:
            parts.append(f"[{getattr(item, 'type', 'content')}: {getattr(item, 'mimeType', '')}]")
    return "\n".join(parts) if parts else "(no output)"


class McpTool(Tool):
    """A tool served by an MCP server; execute forwards the call to it."""

    def __init__(
        self,
        client: McpClient,
        name: str,
        description: str = "",
        parameters: dict[str, Any] | None = None,
    ) -> None:
        self.client = client
        self.name = name
        self.description = description
        self.parameters = parameters or {"type": "object", "properties": {}}

    @classmethod
    def from_descriptor(cls, client: McpClient, descriptor: Any) -> McpTool:
        return cls(
            client,
            descriptor.name,
            descriptor.description or "",
            dict(descriptor.inputSchema or {}),
        )

    def execute(self, **kwargs: Any) -> Any:
        return self.client.call_tool(self.name, kwargs)


class McpClient:
    """One connected MCP server session. Supplies tools to ``register_mcp_tools``.

    Use as a context manager, or call ``connect`` and ``close`` yourself::

        with McpClient(server) as client:
            for tool in client.tools():
                print(tool.name)
    """

    def __init__(
        self,
        server: McpServerConfig,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        call_timeout: float = CALL_TIMEOUT_SECONDS,
    ) -> None:
        self.server = server
        self.connect_timeout = connect_timeout
        self.call_timeout = call_timeout
        self._descriptors: list[Any] = []
        self._session: ClientSession | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop: asyncio.Event | None = None
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()
        self._error: BaseException | None = None

    @property
    def connected(self) -> bool:
        return self._session is not None and self._thread is not None and self._thread.is_alive()

    def connect(self) -> McpClient:
        """Start the server session and list its tools. Raises McpConnectionError."""
        if self._thread is not None:
            return self
        self._thread = threading.Thread(
            target=self._run, name=f"mcp-{self.server.name}", daemon=True,
        )
        self._thread.start()
        if not self._ready.wait(self.connect_timeout):
            self.close()
            raise McpConnectionError(
                f"Timed out connecting to MCP server {self.server.name} after {self.connect_timeout}s"
            )
        if self._error is not None or self._session is None:
            cause = self._error if isinstance(self._error, Exception) else None
            raise McpConnectionError(
                f"Could not connect to MCP server {self.server.name}: {self._error}", cause=cause,
            )
        logger.info("Connected to MCP server %s (%d tools)", self.server.name, len(self._descriptors))
        return self

    def tools(self) -> list[Tool]:
        return [McpTool.from_descriptor(self, d) for d in self._descriptors]

    def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Call a remote tool and return its text output. Raises McpToolCallError."""
        if not self.connected:
            raise McpToolCallError(f"MCP server {self.server.name} is not connected")
        future = asyncio.run_coroutine_threadsafe(
            self._session.call_tool(name, arguments), self._loop,
        )
        try:
            result = future.result(timeout=self.call_timeout)
        except concurrent.futures.TimeoutError as exc:
            future.cancel()
            raise McpToolCallError(
                f"MCP tool {name} timed out after {self.call_timeout}s", cause=exc,
            ) from exc
        except Exception as exc:
            raise McpToolCallError(f"MCP tool {name} failed: {exc}", cause=exc) from exc
        text = result_text(result)
        if getattr(result, "isError", False):
            raise McpToolCallError(text)
        return text

    def close(self) -> None:
        loop, stop = self._loop, self._stop
        if loop is not None and stop is not None and not loop.is_closed():
            try:
                loop.call_soon_threadsafe(stop.set)
            except RuntimeError:
                # loop closed between the check and the call
                pass
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._session = None

    def __enter__(self) -> McpClient:
        return self.connect()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- Background thread ---

    def _run(self) -> None:
        try:
            asyncio.run(self._serve())
        except Exception as exc:
            if not self._ready.is_set():
                self._error = exc
            else:
                logger.warning("MCP server %s session ended: %s", self.server.name, exc)
        finally:
            self._session = None
            self._ready.set()

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stop = asyncio.Event()
        async with AsyncExitStack() as stack:
            read, write = await stack.enter_async_context(self._transport())
            session = await stack.enter_async_context(ClientSession(read, write))
            await session.initialize()
            listed = await session.list_tools()
            self._descriptors = list(listed.tools)
            self._session = session
            self._ready.set()
            await self._stop.wait()

    def _transport(self) -> Any:
        if self.server.url:
            return sse_client(self.server.url)
        env = {**os.environ, **self.server.env} if self.server.env else None
        params = StdioServerParameters(
            command=self.server.command or "",
            args=list(self.server.args),
            env=env,
        )
        return stdio_client(params)
