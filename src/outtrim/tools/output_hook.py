"""Post-execution hook that reduces oversized output from any tool."""

from __future__ import annotations

import logging

from outtrim.config import HookConfig, LimitsConfig
from outtrim.reduction import ReductionResult, reduce_text
from outtrim.tools.registry import ToolResult
from outtrim.tools.shell import METADATA_KEY, TOOL_NAME

logger = logging.getLogger(__name__)


def reduction_note(
    result: ReductionResult, tool_name: str, call_id: str, marker_prefix: str,
) -> str:
    state = "truncated" if result.truncated else "compressed"
    lines = [
        "",
        f"{marker_prefix} tool output {state} {marker_prefix}",
        f"tool={tool_name} callID={call_id}",
        f"originalLines={result.original.lines} originalBytes={result.original.bytes}",
    ]
    if result.after_compression is not None:
        lines.append(
            f"afterCompressionLines={result.after_compression.lines} "
            f"afterCompressionBytes={result.after_compression.bytes}"
        )
    return "\n".join(lines)


class ToolOutputReducer:
    """Rewrites tool output that exceeds the process-wide limits.

    Register with ``ToolRegistry.add_after_hook``. Output of
    ``truncated_bash`` is skipped since that tool reduces its own output.
    """

    def __init__(
        self,
        limits: LimitsConfig | None = None,
        hook: HookConfig | None = None,
    ) -> None:
        self._limits_config = limits or LimitsConfig()
        self._limits = self._limits_config.to_limits()
        self._config = hook or HookConfig()
        if self._config.log_on_load:
            logger.info(
                "Tool output reducer loaded (enabled=%s max_chars=%d max_bytes=%d "
                "max_lines=%d compress_repeats=%s)",
                self._config.enabled,
                self._limits.max_chars,
                self._limits.max_bytes,
                self._limits.max_lines,
                self._limits.compress_repeats,
            )

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def __call__(self, tool_name: str, call_id: str, result: ToolResult) -> ToolResult:
        if not self.enabled or tool_name == TOOL_NAME:
            return result

        text = result.output if isinstance(result.output, str) else str(result.output or "")
        reduced = reduce_text(text, self._limits)
        if not reduced.reduced:
            return result

        prefix = self._limits.marker_prefix
        result.output = reduced.text + reduction_note(reduced, tool_name, call_id, prefix)
        result.data = {
            **(result.data or {}),
            METADATA_KEY: reduced.to_dict(),
        }
        logger.debug(
            "Reduced %s output (call %s): %d -> %d lines",
            tool_name, call_id, reduced.original.lines, reduced.text.count("\n") + 1,
        )
        return result
