"""Tools registry for the file tools exposed to the model."""

from harness.models.llm import ToolDeclaration
from harness.tools.base import ToolDefinition
from harness.tools.read_file import create_read_tool
from harness.tools.write_file import create_write_tool


class ToolsRegistry:
    """Registry mapping tool names to their schemas and handlers."""

    def __init__(self, register_defaults: bool = True):
        """Initialize tools registry, optionally with the default file tools."""
        self._tools: dict[str, ToolDefinition] = {}
        if register_defaults:
            self._register_default_tools()

    def _register_default_tools(self) -> None:
        """Register the default set of file tools."""
        for tool in [create_read_tool(), create_write_tool()]:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a new tool in the registry."""
        self._tools[tool.name] = tool

    def declarations(self) -> list[ToolDeclaration]:
        """Get declarations for every tool, in registration order."""
        return [tool.declaration() for tool in self._tools.values()]

    def handler_for(self, name: str) -> ToolDefinition | None:
        """Get the tool registered under ``name``, or None if it is unknown."""
        return self._tools.get(name)

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools
