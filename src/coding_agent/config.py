"""Agent configuration and named toolsets."""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from coding_agent.errors import ConfigError

DEFAULT_INSTRUCTIONS = """\
Perform the tasks requested as quickly as possible.
When you call a tool, tell me what tool you called.
"""

DEFAULT_API_BASES = {
    "ollama": "http://localhost:11434/v1",
    "openai": "https://api.openai.com/v1",
}

ALL_TOOLS = "all"

TOOLSETS: dict[str, tuple[str, ...]] = {
    "default": ("ReadFile", "ListFiles", "EditFile", "RunShellCommand", "Enabler"),
    "planner": ("ReadFile", "ListFiles", "WritePlan", "Enabler"),
}


def toolset_names(toolset: str, registered: list[str]) -> list[str]:
    """Return the tool names a toolset enables, in enable order.

    ``all`` selects every registered name in registration order.
    """
    if toolset == ALL_TOOLS:
        return list(registered)
    if toolset not in TOOLSETS:
        known = ", ".join(sorted([*TOOLSETS, ALL_TOOLS]))
        raise ConfigError(f"Unknown toolset {toolset!r} (expected one of: {known})")
    return list(TOOLSETS[toolset])


@dataclass(frozen=True)
class AgentConfig:
    """Configuration for a coding agent session."""

    model: str = "qwen3:14b"
    provider: str = "ollama"
    api_base: str = ""  # empty = provider default
    api_key: str = ""
    instructions: str = DEFAULT_INSTRUCTIONS
    toolset: str = "default"
    max_tool_rounds_per_input: int = 200
    command_timeout_ms: int | None = None  # None = run to completion
    working_dir: str = "."
    mcp_config_path: str | None = None  # None = <working_dir>/mcp.json
    stats_path: str = str(Path.home() / ".coding_agent_token_stats.json")
    stream: bool = True

    @property
    def resolved_api_base(self) -> str:
        if self.api_base:
            return self.api_base.rstrip("/")
        try:
            return DEFAULT_API_BASES[self.provider]
        except KeyError:
            raise ConfigError(
                f"No default API base for provider {self.provider!r}; set api_base"
            ) from None

    @property
    def resolved_mcp_config_path(self) -> str:
        return self.mcp_config_path or str(Path(self.working_dir) / "mcp.json")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: object,
    ) -> AgentConfig:
        """Build a config from environment variables, then apply overrides.

        Overrides whose value is None are ignored so CLI options that were
        not given fall through to the environment.
        """
        env = os.environ if environ is None else environ
        provider = overrides.get("provider") or env.get("PROVIDER", cls.provider)
        if provider == "ollama":
            api_base = env.get("OLLAMA_API_BASE", "")
        else:
            api_base = env.get("OPENAI_API_BASE", "")

        config = cls(
            model=env.get("MODEL_ID", cls.model),
            provider=provider,
            api_base=api_base,
            api_key=env.get("OPENAI_API_KEY", ""),
            toolset=env.get("AGENT_TOOLSET", cls.toolset),
        )
        given = {k: v for k, v in overrides.items() if v is not None}
        return replace(config, **given) if given else config
