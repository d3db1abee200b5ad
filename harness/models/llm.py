"""LLM-related data models and types (provider-agnostic)."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from harness.models.messages import AssistantMessage, Message


class ToolDeclaration(BaseModel):
    """Tool name, description and JSON parameter schema advertised to the model."""

    name: str
    description: str
    parameters: dict[str, Any]

    class Config:
        frozen = True


@dataclass
class LLMUsage:
    """Token usage information from the completion endpoint."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def add(self, other: "LLMUsage | None") -> None:
        """Accumulate another turn's usage into this one."""
        if other is None:
            return
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.total_tokens += other.total_tokens


@dataclass
class CompletionResponse:
    """Provider-agnostic response from a completion client."""

    message: AssistantMessage
    model: str
    finish_reason: str | None = None
    usage: LLMUsage | None = None


@dataclass
class AgentLoopResult:
    """Result from executing an agent loop."""

    content: str | None
    messages: tuple[Message, ...]
    turns: int
    usage: LLMUsage = field(default_factory=LLMUsage)
