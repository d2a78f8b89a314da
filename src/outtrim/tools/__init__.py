"""Tool system: registration, dispatch, and built-in tools."""

from __future__ import annotations

from outtrim.config import Config
from outtrim.tools.output_hook import ToolOutputReducer
from outtrim.tools.registry import Tool as Tool
from outtrim.tools.registry import ToolContext as ToolContext
from outtrim.tools.registry import ToolRegistry
from outtrim.tools.registry import ToolResult as ToolResult
from outtrim.tools.registry import ToolSafetyError as ToolSafetyError
from outtrim.tools.shell import TruncatedShellTool


def create_default_registry(config: Config | None = None) -> ToolRegistry:
    """Create a registry with the built-in tools and the output hook."""
    config = config or Config()
    registry = ToolRegistry()
    registry.register(TruncatedShellTool(limits=config.limits, shell=config.shell))
    registry.add_after_hook(ToolOutputReducer(limits=config.limits, hook=config.hook))
    return registry
