"""Tools the harness can run for the model."""

from harness.tools.executor import ToolExecutor
from harness.tools.registry import ToolsRegistry

__all__ = ["ToolExecutor", "ToolsRegistry"]
