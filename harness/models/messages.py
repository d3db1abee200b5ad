"""Conversation message models.

Messages are tagged by ``role`` and frozen once built, so a message appended
to the conversation can never change afterwards.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class ToolCallRequest(BaseModel):
    """A model-issued request to run one tool."""

    id: str
    tool_name: str
    raw_arguments: str = ""

    class Config:
        frozen = True


class SystemMessage(BaseModel):
    """System instructions seeded ahead of the user prompt."""

    role: Literal["system"] = "system"
    content: str

    class Config:
        frozen = True


class UserMessage(BaseModel):
    """The user's prompt."""

    role: Literal["user"] = "user"
    content: str

    class Config:
        frozen = True


class AssistantMessage(BaseModel):
    """A model turn: text, tool call requests, or both."""

    role: Literal["assistant"] = "assistant"
    content: str | None = None
    tool_calls: tuple[ToolCallRequest, ...] = ()

    class Config:
        frozen = True

    @property
    def requests_tools(self) -> bool:
        """Whether this turn asks the harness to run tools."""
        return len(self.tool_calls) > 0


class ToolMessage(BaseModel):
    """The result of one tool call, correlated by ``tool_call_id``."""

    role: Literal["tool"] = "tool"
    content: str
    tool_call_id: str

    class Config:
        frozen = True


Message = Annotated[
    SystemMessage | UserMessage | AssistantMessage | ToolMessage,
    Field(discriminator="role"),
]
