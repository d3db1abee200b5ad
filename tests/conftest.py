"""Shared fixtures for harness tests."""

import json
from collections.abc import Sequence

import pytest

from harness.exceptions import CompletionError
from harness.models.llm import CompletionResponse, LLMUsage, ToolDeclaration
from harness.models.messages import AssistantMessage, Message, ToolCallRequest
from harness.tools.registry import ToolsRegistry


def tool_call(call_id: str, name: str, **arguments) -> ToolCallRequest:
    """Build a tool call request with JSON-encoded arguments."""
    return ToolCallRequest(id=call_id, tool_name=name, raw_arguments=json.dumps(arguments))


def reply(content: str | None = None, *calls: ToolCallRequest) -> CompletionResponse:
    """Build a scripted completion response."""
    return CompletionResponse(
        message=AssistantMessage(content=content, tool_calls=calls),
        model="test-model",
        finish_reason="tool_calls" if calls else "stop",
        usage=LLMUsage(input_tokens=10, output_tokens=5, total_tokens=15),
    )


class ScriptedClient:
    """Completion client that replays canned responses and records every request."""

    def __init__(self, *responses: CompletionResponse | Exception):
        self.responses = list(responses)
        self.requests: list[tuple[Sequence[Message], Sequence[ToolDeclaration], str]] = []

    async def complete(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDeclaration],
        model: str,
    ) -> CompletionResponse:
        self.requests.append((messages, tools, model))
        if not self.responses:
            raise CompletionError("No scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def registry():
    """Create the default tools registry."""
    return ToolsRegistry()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove harness configuration variables from the environment."""
    for name in [
        "LLM_PROVIDER",
        "OPENROUTER_BASE_URL",
        "OPENROUTER_API_KEY",
        "ANTHROPIC_API_KEY",
        "ANTHROPIC_BASE_URL",
        "MODEL",
        "SYSTEM_PROMPT",
        "MAX_TURNS",
        "MAX_TOKENS",
        "TOOL_ARGUMENT_ERRORS",
        "CONTEXT_WARNING_TOKENS",
        "LOG_LEVEL",
    ]:
        # setenv first so values loaded later (e.g. from .env) are undone on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch
