"""OpenAI-compatible chat completions client (OpenRouter, Gemini, local servers)."""

from collections.abc import Sequence
from typing import Any

import openai

from harness.clients.base import check_tool_call_ids
from harness.config import Settings
from harness.exceptions import CompletionError
from harness.models.llm import CompletionResponse, LLMUsage, ToolDeclaration
from harness.models.messages import AssistantMessage, Message, ToolCallRequest
from harness.utils.logging import get_logger

logger = get_logger(__name__)


class OpenAICompatibleClient:
    """Completion client for any endpoint speaking the chat completions protocol."""

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None):
        """Initialize client.

        Args:
            settings: Run configuration with base URL, API key and limits
            client: Preconfigured SDK client (tests inject a fake here)
        """
        self.settings = settings
        self.client = client or openai.AsyncOpenAI(
            base_url=settings.base_url,
            api_key=settings.api_key,
            max_retries=settings.max_retries,
        )

    async def complete(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDeclaration],
        model: str,
    ) -> CompletionResponse:
        """Send the conversation and return the assistant's reply."""
        request_params: dict[str, Any] = {
            "model": model,
            "messages": [self._convert_message(msg) for msg in messages],
        }
        if tools:
            request_params["tools"] = [self._convert_tool(tool) for tool in tools]
        if self.settings.max_tokens is not None:
            request_params["max_tokens"] = self.settings.max_tokens

        logger.debug(f"Creating completion with {len(messages)} messages, {len(tools)} tools, model: {model}")
        try:
            response = await self.client.chat.completions.create(**request_params)
        except openai.OpenAIError as e:
            raise CompletionError(f"Completion request failed: {e}") from e

        if not getattr(response, "choices", None):
            raise CompletionError(f"Unexpected response format: no choices in {response!r}")

        choice = response.choices[0]
        if choice.message is None:
            raise CompletionError(f"Unexpected response format: choice without message in {response!r}")

        usage = None
        if response.usage:
            usage = LLMUsage(
                input_tokens=response.usage.prompt_tokens or 0,
                output_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )

        logger.debug(f"Response received - Finish reason: {choice.finish_reason}")

        return CompletionResponse(
            message=self._convert_response_message(choice.message),
            model=response.model or model,
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    def _convert_message(self, message: Message) -> dict[str, Any]:
        """Convert a conversation message to the chat completions wire format."""
        message_dict: dict[str, Any] = {"role": message.role, "content": message.content}

        if isinstance(message, AssistantMessage) and message.tool_calls:
            message_dict["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.tool_name, "arguments": call.raw_arguments},
                }
                for call in message.tool_calls
            ]

        if message.role == "tool":
            message_dict["tool_call_id"] = message.tool_call_id

        return message_dict

    def _convert_tool(self, tool: ToolDeclaration) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }

    def _convert_response_message(self, message: Any) -> AssistantMessage:
        """Convert the SDK's assistant message to our AssistantMessage."""
        tool_calls: list[ToolCallRequest] = []
        for tool_call in message.tool_calls or []:
            function = getattr(tool_call, "function", None)
            if function is None:
                raise CompletionError(f"Unsupported tool call type: {getattr(tool_call, 'type', None)!r}")
            tool_calls.append(
                ToolCallRequest(
                    id=tool_call.id,
                    tool_name=function.name,
                    raw_arguments=function.arguments or "",
                )
            )

        check_tool_call_ids(tool_calls)
        return AssistantMessage(content=message.content, tool_calls=tool_calls)
