"""Token estimation for conversation history."""

from collections.abc import Iterable

import tiktoken

from harness.models.messages import AssistantMessage, Message
from harness.utils.logging import get_logger

logger = get_logger(__name__)

_tokenizer: tiktoken.Encoding | None = None
_tokenizer_loaded = False


def get_tokenizer() -> tiktoken.Encoding | None:
    """Load the shared tokenizer once; None if it is unavailable."""
    global _tokenizer, _tokenizer_loaded

    if not _tokenizer_loaded:
        _tokenizer_loaded = True
        try:
            # Close approximation for most chat models
            _tokenizer = tiktoken.get_encoding("cl100k_base")
        except Exception as e:
            logger.debug(f"Tokenizer unavailable, falling back to character estimate: {e}")
            _tokenizer = None

    return _tokenizer


def estimate_text_tokens(text: str, tokenizer: tiktoken.Encoding | None = None) -> int:
    """Estimate token count for a piece of text."""
    tokenizer = tokenizer or get_tokenizer()
    if tokenizer is None:
        # Roughly 4 characters per token
        return len(text) // 4
    return len(tokenizer.encode(text, disallowed_special=()))


def estimate_message_tokens(messages: Iterable[Message], tokenizer: tiktoken.Encoding | None = None) -> int:
    """Estimate token count for a conversation history."""
    text_content = ""
    for message in messages:
        if message.content:
            text_content += message.content
        if isinstance(message, AssistantMessage):
            for call in message.tool_calls:
                text_content += call.tool_name + call.raw_arguments

    return estimate_text_tokens(text_content, tokenizer)
