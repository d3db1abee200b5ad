"""Completion client interface."""

from collections.abc import Sequence
from typing import Protocol

from harness.exceptions import CompletionError
from harness.models.llm import CompletionResponse, ToolDeclaration
from harness.models.messages import Message, ToolCallRequest


class CompletionClient(Protocol):
    """Sends the conversation to a model and returns one assistant turn.

    Implementations raise CompletionError for transport failures and for
    responses that do not contain a usable assistant message.
    """

    async def complete(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDeclaration],
        model: str,
    ) -> CompletionResponse: ...


def check_tool_call_ids(tool_calls: Sequence[ToolCallRequest]) -> None:
    """Ensure every tool call in one assistant turn has a distinct, non-empty id.

    Raises:
        CompletionError: If an id is empty or repeated
    """
    seen: set[str] = set()
    for call in tool_calls:
        if not call.id:
            raise CompletionError(f"Unexpected response format: tool call {call.tool_name!r} has no id")
        if call.id in seen:
            raise CompletionError(f"Unexpected response format: duplicate tool call id {call.id!r}")
        seen.add(call.id)
