"""Read file tool."""

import asyncio
from pathlib import Path

from pydantic import BaseModel, Field

from harness.tools.base import ToolDefinition


class ReadInput(BaseModel):
    """Input schema for reading a file."""

    file_path: str = Field(..., description="The path to the file to read")

    class Config:
        extra = "ignore"


def create_read_tool() -> ToolDefinition:
    async def read_handler(params: ReadInput) -> str:
        try:
            data = await asyncio.to_thread(Path(params.file_path).read_bytes)
            return data.decode("utf-8")
        except (OSError, ValueError) as e:
            return f"Error reading file: {e}"

    return ToolDefinition(
        name="Read",
        description="Read and return the contents of a file",
        input_schema_class=ReadInput,
        handler=read_handler,
    )
