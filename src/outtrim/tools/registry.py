"""Tool registry and dispatch system.

Provides registration, execution with timeout and post-execution output
hooks.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path

from outtrim.exceptions import ToolError

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Result of a tool execution."""

    success: bool
    output: str
    data: dict | None = None
    error: str | None = None

    @classmethod
    def ok(cls, output: str, **kwargs) -> ToolResult:
        return cls(success=True, output=output, **kwargs)

    @classmethod
    def fail(cls, error: str) -> ToolResult:
        return cls(success=False, output="", error=error)


@dataclass
class ToolContext:
    """Context passed to tool execution."""

    workspace: Path | None
    call_id: str = ""


class ToolSafetyError(ToolError):
    """Raised when a tool call violates safety constraints."""


# Called after every tool execution: (tool_name, call_id, result) -> result.
AfterHook = Callable[[str, str, ToolResult], ToolResult]


class Tool(ABC):
    """Abstract base class for all tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict:
        """JSON Schema for parameters."""
        ...

    @property
    def timeout_seconds(self) -> int:
        return 30

    @abstractmethod
    async def execute(self, args: dict, ctx: ToolContext) -> ToolResult:
        ...

    @staticmethod
    def _resolve_dir(raw_path: str, workspace: Path | None) -> Path:
        """Resolve a directory relative to the workspace (or cwd)."""
        path = Path(raw_path).expanduser()
        if not path.is_absolute():
            path = (workspace or Path.cwd()) / path
        resolved = path.resolve()
        if not resolved.is_dir():
            raise ToolError(f"Not a directory: {resolved}")
        return resolved


class ToolRegistry:
    """Registry for tool registration and dispatch."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}
        self._tools_lock = threading.RLock()
        self._after_hooks: list[AfterHook] = []

    def register(self, tool: Tool) -> None:
        """Register a tool. Raises if name conflicts."""
        with self._tools_lock:
            if tool.name in self._tools:
                raise ValueError(f"Tool already registered: {tool.name}")
            self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        with self._tools_lock:
            return self._tools.get(name)

    def has(self, name: str) -> bool:
        with self._tools_lock:
            return name in self._tools

    def add_after_hook(self, hook: AfterHook) -> None:
        """Run *hook* on every tool result, in registration order."""
        with self._tools_lock:
            self._after_hooks.append(hook)

    def _run_after_hooks(self, name: str, call_id: str, result: ToolResult) -> ToolResult:
        with self._tools_lock:
            hooks = list(self._after_hooks)
        for hook in hooks:
            try:
                result = hook(name, call_id, replace(result))
            except Exception as e:
                logger.warning(
                    "Tool output hook %s failed for %s: %s",
                    getattr(hook, "__name__", type(hook).__name__), name, e,
                )
        return result

    async def execute(
        self,
        name: str,
        arguments: dict,
        workspace: Path | None = None,
        call_id: str = "",
    ) -> ToolResult:
        """Execute a tool by name with timeout and context, then run hooks."""
        tool = self.get(name)
        if tool is None:
            return ToolResult.fail(f"Unknown tool: {name}")

        call_id = call_id or uuid.uuid4().hex[:12]
        ctx = ToolContext(workspace=workspace, call_id=call_id)

        try:
            result = await asyncio.wait_for(
                tool.execute(arguments, ctx),
                timeout=tool.timeout_seconds,
            )
        except TimeoutError:
            result = ToolResult.fail(
                f"Tool '{name}' timed out after {tool.timeout_seconds}s"
            )
        except ToolSafetyError as e:
            result = ToolResult.fail(f"Safety violation: {e}")
        except Exception as e:
            result = ToolResult.fail(f"Tool error: {type(e).__name__}: {e}")

        return self._run_after_hooks(name, call_id, result)

    def list_tools(self) -> list[str]:
        """Return registered tool names."""
        with self._tools_lock:
            return list(self._tools.keys())
