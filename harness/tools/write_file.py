"""Write file tool."""

import asyncio
from pathlib import Path

from pydantic import BaseModel, Field

from harness.tools.base import ToolDefinition

WRITE_SUCCESS = "File written to successfully."


class WriteInput(BaseModel):
    """Input schema for writing a file."""

    file_path: str = Field(..., description="The path of the file to write")
    content: str = Field(..., description="The content to write to the file")

    class Config:
        extra = "ignore"


def create_write_tool() -> ToolDefinition:
    async def write_handler(params: WriteInput) -> str:
        try:
            # Creates the file or truncates an existing one
            await asyncio.to_thread(Path(params.file_path).write_bytes, params.content.encode("utf-8"))
        except (OSError, ValueError) as e:
            return f"Error writing file: {e}"
        return WRITE_SUCCESS

    return ToolDefinition(
        name="Write",
        description="Write content to a file, creating it or replacing its contents",
        input_schema_class=WriteInput,
        handler=write_handler,
    )
