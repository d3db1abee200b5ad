"""Append-only conversation state for a single run."""

from harness.exceptions import ConversationStateError
from harness.models.messages import AssistantMessage, Message, SystemMessage, ToolMessage, UserMessage
from harness.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationState:
    """Ordered message log sent to the model on every turn.

    The log only grows: messages are appended and never edited or removed.
    Tool messages must answer a request from the most recent assistant turn.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._open_call_ids: set[str] = set()

    def __len__(self) -> int:
        return len(self._messages)

    def seed(self, system_prompt: str | None, user_prompt: str) -> None:
        """Start the log with an optional system message and the user prompt."""
        if self._messages:
            raise ConversationStateError("Conversation has already been seeded")

        if system_prompt:
            self.append(SystemMessage(content=system_prompt))
        self.append(UserMessage(content=user_prompt))

    def append(self, message: Message) -> None:
        """Add one message to the end of the log."""
        if isinstance(message, ToolMessage):
            if message.tool_call_id not in self._open_call_ids:
                raise ConversationStateError(
                    f"Tool result {message.tool_call_id!r} does not answer the preceding assistant message"
                )
            self._open_call_ids.discard(message.tool_call_id)
        elif isinstance(message, AssistantMessage):
            self._open_call_ids = {call.id for call in message.tool_calls}
        else:
            self._open_call_ids = set()

        self._messages.append(message)
        logger.debug(f"Appended {message.role} message ({len(self._messages)} total)")

    def snapshot(self) -> tuple[Message, ...]:
        """Return the complete history, oldest first."""
        return tuple(self._messages)

    def last_assistant(self) -> AssistantMessage | None:
        """Return the most recent assistant message, if any."""
        for message in reversed(self._messages):
            if isinstance(message, AssistantMessage):
                return message
        return None
