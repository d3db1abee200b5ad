"""Harness exception hierarchy.

All harness-specific exceptions inherit from HarnessError. Anything raised
as a HarnessError is fatal to a run and reported by the CLI.
"""


class HarnessError(Exception):
    """Base exception for all harness errors."""


class ConfigurationError(HarnessError):
    """Raised when required process configuration is missing or invalid."""


class CompletionError(HarnessError):
    """Raised when the completion endpoint fails or returns an unusable response."""


class ToolArgumentError(HarnessError):
    """Raised when a tool call carries arguments that do not match the tool's schema."""

    def __init__(self, tool_name: str, details: str) -> None:
        self.tool_name = tool_name
        self.details = details
        super().__init__(f"Invalid arguments for {tool_name}: {details}")


class MaxTurnsExceededError(HarnessError):
    """Raised when the model keeps requesting tools past the configured turn limit."""

    def __init__(self, max_turns: int) -> None:
        self.max_turns = max_turns
        super().__init__(f"Agent loop exceeded the maximum of {max_turns} turns")


class ConversationStateError(HarnessError):
    """Raised when a message would break the append-only conversation log."""
