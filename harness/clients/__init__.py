"""Completion clients for the supported providers."""

from harness.clients.anthropic import AnthropicClient
from harness.clients.base import CompletionClient
from harness.clients.openai import OpenAICompatibleClient
from harness.config import Settings


def create_completion_client(settings: Settings) -> CompletionClient:
    """Build the completion client for the configured provider."""
    if settings.provider == "anthropic":
        return AnthropicClient(settings)
    return OpenAICompatibleClient(settings)


__all__ = ["AnthropicClient", "CompletionClient", "OpenAICompatibleClient", "create_completion_client"]
