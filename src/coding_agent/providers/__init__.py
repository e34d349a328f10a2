"""Chat backend implementations."""

from __future__ import annotations

from coding_agent.config import AgentConfig
from coding_agent.providers.openai_compat import OpenAICompatibleClient


def client_from_config(config: AgentConfig) -> OpenAICompatibleClient:
    """Build the chat backend for a config.

    Both supported providers (``ollama``, ``openai``) speak the
    Chat Completions protocol; they differ only in base URL and key.
    """
    return OpenAICompatibleClient(
        base_url=config.resolved_api_base,
        api_key=config.api_key,
    )


__all__ = ["OpenAICompatibleClient", "client_from_config"]
