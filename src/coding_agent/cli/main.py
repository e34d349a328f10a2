"""coding-agent CLI entry point."""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click

from coding_agent.config import AgentConfig
from coding_agent.errors import AgentError, McpConnectionError
from coding_agent.session import AgentSession

if TYPE_CHECKING:
    from coding_agent.mcp import McpServerConfig
    from coding_agent.mcp_client import McpClient

HELP_TEXT = (
    "Chat with the agent. Type 'exit' to ... well, exit\n"
    "Special commands: '/tokens' (session stats), '/global_tokens' (global stats), "
    "'/reset_tokens' (reset session), '/tools' (list tools), '/enable <tool>', "
    "'/disable <tool>', '/reset_tools'"
)


def format_tool_status(status: list[tuple[str, bool]]) -> str:
    lines = ["Available Tools:"]
    for name, active in status:
        lines.append(f"  [{'x' if active else ' '}] {name}")
    return "\n".join(lines)


def _render_event(event: Any) -> None:
    from coding_agent.events import AssistantTextDeltaEvent, ToolCallEndEvent, ToolCallStartEvent

    if isinstance(event, AssistantTextDeltaEvent):
        click.echo(event.text, nl=False)
    elif isinstance(event, ToolCallStartEvent):
        click.echo(f"\n[tool] {event.tool_name} {event.arguments}")
    elif isinstance(event, ToolCallEndEvent) and event.is_error:
        click.echo(f"[tool] {event.tool_name} failed: {event.result['error']}")


def handle_command(session: AgentSession, line: str) -> bool:
    """Handle a slash command. Returns False if line is not one."""
    from coding_agent.usage import format_global_summary, format_session_summary

    command, _, arg = line.partition(" ")
    arg = arg.strip()
    tracker = session.token_tracker

    if command == "/tokens":
        click.echo(format_session_summary(tracker))
    elif command == "/global_tokens":
        click.echo(format_global_summary(tracker.global_stats()))
    elif command == "/reset_tokens":
        tracker.reset_session()
        click.echo("Session token counters reset.")
    elif command == "/tools":
        click.echo(format_tool_status(session.tool_manager.status()))
    elif command == "/enable":
        if session.enable_tool(arg):
            click.echo(f"Enabled {arg}")
        else:
            click.echo(f"Could not enable {arg!r} (unknown or already active)")
    elif command == "/disable":
        if session.disable_tool(arg):
            click.echo(f"Disabled {arg}")
        else:
            click.echo(f"{arg!r} is not active")
    elif command == "/reset_tools":
        session.reset_tools()
        click.echo("All tools disabled.")
    else:
        return False
    return True


def run_repl(session: AgentSession, read_line: Callable[[str], str] = input) -> None:
    """Read-eval-print loop until 'exit' or end of input."""
    from coding_agent.usage import format_request_summary, format_session_summary

    session.event_emitter.on_all(_render_event)
    click.echo(HELP_TEXT)

    while True:
        try:
            user_input = read_line("> ").strip()
        except EOFError:
            user_input = "exit"

        if user_input == "exit":
            click.echo(format_session_summary(session.token_tracker))
            break
        if not user_input:
            continue
        if user_input.startswith("/") and handle_command(session, user_input):
            continue

        previous = session.last_usage
        try:
            turn = session.process_input(user_input)
        except AgentError as exc:
            click.echo(f"\nError: {exc}", err=True)
            continue

        if not session.config.stream:
            click.echo(turn.content, nl=False)
        click.echo("")
        if session.last_usage is not None and session.last_usage is not previous:
            click.echo(format_request_summary(session.last_usage))


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """coding-agent: a terminal coding assistant with runtime-extensible tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def connect_mcp(config: AgentConfig) -> McpClient | None:
    """Connect to the MCP server from mcp.json or the environment, if any."""
    from coding_agent.mcp import find_mcp_config
    from coding_agent.mcp_client import McpClient

    server = find_mcp_config(config.resolved_mcp_config_path)
    if server is None:
        return None
    try:
        client = McpClient(server).connect()
    except McpConnectionError as exc:
        click.echo(f"MCP server {server.name} unavailable: {exc}", err=True)
        return None
    click.echo("MCP client connected. Adding MCP tools...")
    return client


@cli.command()
@click.option("--model", default=None, help="Model id (env MODEL_ID)")
@click.option("--provider", default=None, type=click.Choice(["ollama", "openai"]), help="Backend provider (env PROVIDER)")
@click.option("--api-base", default=None, help="Backend base URL")
@click.option("--toolset", default=None, help="Initial toolset: default, planner, or all (env AGENT_TOOLSET)")
@click.option("--working-dir", default=None, type=click.Path(exists=True, file_okay=False), help="Directory tools act on")
@click.option("--stream/--no-stream", default=None, help="Stream responses as they arrive")
def chat(
    model: str | None,
    provider: str | None,
    api_base: str | None,
    toolset: str | None,
    working_dir: str | None,
    stream: bool | None,
) -> None:
    """Start an interactive chat session."""
    from coding_agent.providers import client_from_config

    try:
        config = AgentConfig.from_env(
            model=model, provider=provider, api_base=api_base, toolset=toolset,
            working_dir=working_dir, stream=stream,
        )
        client = client_from_config(config)
    except AgentError as exc:
        raise click.ClickException(str(exc)) from exc

    mcp_client = connect_mcp(config)
    try:
        session = AgentSession(llm_client=client, config=config, mcp_source=mcp_client)
        run_repl(session)
    except AgentError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        client.close()
        if mcp_client is not None:
            mcp_client.close()


@cli.command()
@click.option("--toolset", default=None, help="Toolset to mark active: default, planner, or all")
@click.option("--working-dir", default=".", type=click.Path(exists=True, file_okay=False))
def tools(toolset: str | None, working_dir: str) -> None:
    """List registered tools and which ones start active."""
    from coding_agent.client import StubClient

    try:
        config = AgentConfig.from_env(toolset=toolset, working_dir=working_dir)
        session = AgentSession(llm_client=StubClient(), config=config)
    except AgentError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(format_tool_status(session.tool_manager.status()))


def _report_mcp_server(server: McpServerConfig, source: str) -> bool:
    from coding_agent.mcp_client import McpClient

    click.echo(f"MCP server {server.name!r} from {source}: transport={server.transport}")
    if server.url:
        click.echo(f"  url: {server.url}")
    else:
        click.echo(f"  command: {' '.join([server.command or '', *server.args]).strip()}")
    try:
        with McpClient(server) as client:
            remote_tools = client.tools()
    except McpConnectionError as exc:
        click.echo(f"Failed to connect: {exc}")
        return False
    click.echo("MCP client connected. Available MCP tools:")
    for tool in remote_tools:
        click.echo(f"  - {tool.name}: {tool.description}")
    return True


@cli.command("check-mcp")
@click.option("--config", "config_path", default="mcp.json", help="Path to mcp.json")
def check_mcp(config_path: str) -> None:
    """Connect to the configured MCP server and list its tools."""
    from coding_agent.mcp import load_mcp_config, mcp_config_from_env

    click.echo(f"Checking MCP configuration from {config_path}...")
    configured = False
    server = load_mcp_config(config_path)
    if server is not None:
        configured = True
        if _report_mcp_server(server, config_path):
            return

    click.echo("Trying environment variables as fallback...")
    server = mcp_config_from_env()
    if server is not None:
        configured = True
        if _report_mcp_server(server, "environment"):
            return

    if configured:
        click.echo("Could not connect to any configured MCP server.")
    else:
        click.echo("No MCP server configured. Check mcp.json or MCP_SERVER_URL / MCP_SERVER_COMMAND.")
    raise SystemExit(1)


@cli.command()
@click.option("--stats-path", default=None, help="Global token stats file")
@click.option("--reset", is_flag=True, default=False, help="Reset global statistics")
def tokens(stats_path: str | None, reset: bool) -> None:
    """Show global token usage across sessions."""
    from coding_agent.usage import TokenTracker, format_global_summary

    tracker = TokenTracker(stats_path or AgentConfig().stats_path)
    if reset:
        tracker.reset_global()
        click.echo("Global token statistics have been reset to zero.")
        return
    click.echo(format_global_summary(tracker.global_stats()))
