"""MCP server configuration and folding MCP-supplied tools into the registry.

This module finds which server to use and treats whatever tools a source
supplies as ordinary registry entries. The connected client lives in
``coding_agent.mcp_client``.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from coding_agent.errors import DuplicateNameError
from coding_agent.tools.base import Tool
from coding_agent.tools.manager import ToolManager
from coding_agent.tools.registry import ToolEntry, ToolRegistry

logger = logging.getLogger(__name__)

# `//` to end of line, unless the slashes sit inside a JSON string
_LINE_COMMENT = re.compile(r'("(?:[^"\\]|\\.)*")|//[^\n]*')


@dataclass(frozen=True)
class McpServerConfig:
    """How to reach one MCP server: an SSE ``url`` or a stdio ``command``."""

    name: str
    url: str | None = None
    command: str | None = None
    args: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=dict)

    @property
    def transport(self) -> str:
        return "sse" if self.url else "stdio"


def strip_line_comments(text: str) -> str:
    """Remove ``//`` comments so the text parses as standard JSON."""
    return _LINE_COMMENT.sub(lambda m: m.group(1) or "", text)


def load_mcp_config(path: str | Path) -> McpServerConfig | None:
    """Read the first server under ``mcpServers`` from an mcp.json file.

    Returns None when the file is missing, lists no servers, or its first
    server has neither ``url`` nor ``command``. Malformed JSON is logged and
    also returns None.
    """
    config_path = Path(path)
    if not config_path.is_file():
        return None

    try:
        data = json.loads(strip_line_comments(config_path.read_text(encoding="utf-8")))
    except ValueError as exc:
        logger.warning("Error parsing %s: %s", config_path, exc)
        return None
    except OSError as exc:
        logger.warning("Could not read %s: %s", config_path, exc)
        return None

    servers = data.get("mcpServers") if isinstance(data, dict) else None
    if not isinstance(servers, dict) or not servers:
        return None

    name, server = next(iter(servers.items()))
    if not isinstance(server, dict):
        logger.warning("MCP server %s in %s is not an object", name, config_path)
        return None
    if server.get("url"):
        return McpServerConfig(name=name, url=server["url"])
    if server.get("command"):
        return McpServerConfig(
            name=name,
            command=server["command"],
            args=tuple(server.get("args") or ()),
            env=dict(server.get("env") or {}),
        )
    logger.warning("MCP server %s in %s has neither url nor command", name, config_path)
    return None


def mcp_config_from_env(environ: Mapping[str, str] | None = None) -> McpServerConfig | None:
    """Server config from ``MCP_SERVER_URL`` or ``MCP_SERVER_COMMAND``/``MCP_SERVER_ARGS``."""
    env = os.environ if environ is None else environ
    if env.get("MCP_SERVER_URL"):
        return McpServerConfig(name="env", url=env["MCP_SERVER_URL"])
    if env.get("MCP_SERVER_COMMAND"):
        return McpServerConfig(
            name="env",
            command=env["MCP_SERVER_COMMAND"],
            args=tuple(shlex.split(env.get("MCP_SERVER_ARGS", ""))),
        )
    return None


def find_mcp_config(
    path: str | Path,
    environ: Mapping[str, str] | None = None,
) -> McpServerConfig | None:
    """The mcp.json config if usable, else the environment one."""
    return load_mcp_config(path) or mcp_config_from_env(environ)


class McpToolSource(Protocol):
    """Anything that can list the tools an MCP server exposes."""

    def tools(self) -> list[Tool]: ...


def register_mcp_tools(
    registry: ToolRegistry,
    manager: ToolManager,
    source: McpToolSource,
) -> list[str]:
    """Register and enable every tool the source supplies.

    Names that are already registered are skipped with a warning. Returns
    the names that were added.
    """
    added: list[str] = []
    for tool in source.tools():
        try:
            registry.register(tool.name, ToolEntry.of(tool))
        except DuplicateNameError:
            logger.warning("Skipping MCP tool %s: name already registered", tool.name)
            continue
        manager.enable(tool.name)
        added.append(tool.name)
    if added:
        logger.info("Added MCP tools: %s", ", ".join(added))
    return added
