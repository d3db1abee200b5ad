"""Tool executor: turns one tool call request into one tool result."""

from typing import Literal

from harness.exceptions import ToolArgumentError
from harness.models.messages import ToolCallRequest
from harness.tools.registry import ToolsRegistry
from harness.utils.logging import get_logger

logger = get_logger(__name__)

ArgumentErrorMode = Literal["abort", "report"]


class ToolExecutor:
    """Runs registered tools on behalf of the model.

    Expected failures (unknown tool, I/O errors inside a handler) come back as
    result text so the model can react to them. Malformed arguments raise
    ToolArgumentError unless ``argument_errors`` is ``"report"``, in which case
    the error text is returned like any other tool failure.
    """

    def __init__(self, registry: ToolsRegistry, argument_errors: ArgumentErrorMode = "abort"):
        self.registry = registry
        self.argument_errors = argument_errors

    async def execute(self, tool_name: str, raw_arguments: str) -> str:
        """Execute one tool call and return its result text.

        Raises:
            ToolArgumentError: If the arguments do not match the tool's schema
                and argument errors are not being reported back to the model
        """
        tool = self.registry.handler_for(tool_name)
        if tool is None:
            logger.warning(f"Unknown tool requested: {tool_name}")
            return f"Unknown tool: {tool_name}"

        try:
            params = tool.parse_input(raw_arguments)
        except ToolArgumentError as e:
            if self.argument_errors == "report":
                logger.warning(f"Reporting invalid arguments back to the model: {e}")
                return str(e)
            logger.error(f"Aborting on invalid arguments: {e}")
            raise

        logger.debug(f"Executing tool: {tool_name} with input: {params.model_dump()}")
        result = await tool.handler(params)
        logger.debug(f"Tool {tool_name} returned: {result[:100]}...")
        return result

    async def run(self, request: ToolCallRequest) -> str:
        """Execute a model-issued tool call request."""
        return await self.execute(request.tool_name, request.raw_arguments)
