"""Anthropic Messages API client."""

import json
from collections.abc import Sequence
from typing import Any

import anthropic

from harness.clients.base import check_tool_call_ids
from harness.config import DEFAULT_MAX_TOKENS, Settings
from harness.exceptions import CompletionError
from harness.models.llm import CompletionResponse, LLMUsage, ToolDeclaration
from harness.models.messages import AssistantMessage, Message, SystemMessage, ToolCallRequest, ToolMessage
from harness.utils.logging import get_logger

logger = get_logger(__name__)


class AnthropicClient:
    """Completion client for Claude models.

    The Messages API has no tool role: consecutive tool results are sent as
    ``tool_result`` blocks inside a single user message, and system messages
    move to the top-level ``system`` parameter.
    """

    def __init__(self, settings: Settings, client: anthropic.AsyncAnthropic | None = None):
        """Initialize Anthropic client.

        Args:
            settings: Run configuration with API key and limits
            client: Preconfigured SDK client (tests inject a fake here)
        """
        self.settings = settings
        self.client = client or anthropic.AsyncAnthropic(
            api_key=settings.api_key,
            base_url=settings.base_url,
            max_retries=settings.max_retries,
        )

    async def complete(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDeclaration],
        model: str,
    ) -> CompletionResponse:
        """Send the conversation and return Claude's reply."""
        system_prompt = "\n\n".join(msg.content for msg in messages if isinstance(msg, SystemMessage))

        request_params: dict[str, Any] = {
            "model": model,
            "max_tokens": self.settings.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": self._convert_messages(messages),
        }
        if system_prompt:
            request_params["system"] = system_prompt
        if tools:
            request_params["tools"] = [
                {"name": tool.name, "description": tool.description, "input_schema": tool.parameters}
                for tool in tools
            ]

        logger.debug(f"Making Anthropic API call with model: {model}")
        try:
            response = await self.client.messages.create(**request_params)
        except anthropic.AnthropicError as e:
            raise CompletionError(f"Completion request failed: {e}") from e

        if getattr(response, "content", None) is None:
            raise CompletionError(f"Unexpected response format: no content in {response!r}")

        usage = None
        if response.usage:
            usage = LLMUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            )

        logger.debug(
            f"Response received - Stop reason: {response.stop_reason}, Content blocks: {len(response.content)}"
        )

        return CompletionResponse(
            message=self._convert_content_blocks(response.content),
            model=response.model or model,
            finish_reason=response.stop_reason,
            usage=usage,
        )

    def _convert_messages(self, messages: Sequence[Message]) -> list[dict[str, Any]]:
        """Convert the conversation to Anthropic message dicts."""
        converted: list[dict[str, Any]] = []
        for message in messages:
            if isinstance(message, SystemMessage):
                continue

            if isinstance(message, ToolMessage):
                block = {"type": "tool_result", "tool_use_id": message.tool_call_id, "content": message.content}
                previous = converted[-1] if converted else None
                if previous and previous["role"] == "user" and isinstance(previous["content"], list):
                    previous["content"].append(block)
                else:
                    converted.append({"role": "user", "content": [block]})
                continue

            if isinstance(message, AssistantMessage):
                blocks: list[dict[str, Any]] = []
                if message.content:
                    blocks.append({"type": "text", "text": message.content})
                for call in message.tool_calls:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": call.id,
                            "name": call.tool_name,
                            "input": json.loads(call.raw_arguments or "{}"),
                        }
                    )
                converted.append({"role": "assistant", "content": blocks})
                continue

            converted.append({"role": message.role, "content": message.content})

        return converted

    def _convert_content_blocks(self, content: Sequence[Any]) -> AssistantMessage:
        """Convert Anthropic content blocks to one AssistantMessage."""
        texts: list[str] = []
        tool_calls: list[ToolCallRequest] = []
        for block in content:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallRequest(id=block.id, tool_name=block.name, raw_arguments=json.dumps(block.input))
                )
            else:
                logger.warning(f"Unknown content block type: {block.type}")

        check_tool_call_ids(tool_calls)
        return AssistantMessage(content="".join(texts) if texts else None, tool_calls=tool_calls)
