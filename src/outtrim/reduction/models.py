"""Data types shared by the reduction stages.

All types are frozen: a ``ReductionResult`` is built fresh per call and
handed to the caller, who owns it from then on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_MAX_CHARS = 120_000
DEFAULT_MAX_BYTES = 200_000
DEFAULT_MAX_LINES = 800
DEFAULT_BLOCK_MAX_SIZE = 20
DEFAULT_BLOCK_MAX_SCAN_LINES = 5_000
DEFAULT_MARKER_PREFIX = "---"


@dataclass(frozen=True)
class SizeLimits:
    """Budgets a reduced text must fit.

    Positive values are a precondition; ``outtrim.config`` validates them
    before a ``SizeLimits`` is built from user input.
    """

    max_chars: int = DEFAULT_MAX_CHARS
    max_bytes: int = DEFAULT_MAX_BYTES
    max_lines: int = DEFAULT_MAX_LINES
    compress_repeats: bool = True
    block_max_size: int = DEFAULT_BLOCK_MAX_SIZE
    block_max_scan_lines: int = DEFAULT_BLOCK_MAX_SCAN_LINES
    marker_prefix: str = DEFAULT_MARKER_PREFIX


@dataclass(frozen=True)
class SizeSnapshot:
    """Point-in-time measurement of a text blob."""

    chars: int
    bytes: int
    lines: int

    def to_dict(self) -> dict[str, int]:
        return {"chars": self.chars, "bytes": self.bytes, "lines": self.lines}


@dataclass(frozen=True)
class CompressionReport:
    collapsed_line_runs: int = 0
    collapsed_lines: int = 0
    collapsed_blocks: int = 0
    collapsed_block_repeats: int = 0
    block_scan_skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "collapsed_line_runs": self.collapsed_line_runs,
            "collapsed_lines": self.collapsed_lines,
            "collapsed_blocks": self.collapsed_blocks,
            "collapsed_block_repeats": self.collapsed_block_repeats,
            "block_scan_skipped": self.block_scan_skipped,
        }


@dataclass(frozen=True)
class TruncationReport:
    kept_head_lines: int
    kept_tail_lines: int
    omitted_lines: int

    def to_dict(self) -> dict[str, int]:
        return {
            "kept_head_lines": self.kept_head_lines,
            "kept_tail_lines": self.kept_tail_lines,
            "omitted_lines": self.omitted_lines,
        }


@dataclass(frozen=True)
class ReductionResult:
    """Outcome of ``reduce_text``.

    ``after_compression`` and ``compression`` are set only when compression
    changed the text; ``truncation`` only when the line window ran.
    """

    text: str
    compressed: bool
    truncated: bool
    original: SizeSnapshot
    after_compression: SizeSnapshot | None = None
    compression: CompressionReport | None = None
    truncation: TruncationReport | None = None

    @property
    def reduced(self) -> bool:
        return self.compressed or self.truncated

    def to_dict(self, *, include_text: bool = False) -> dict[str, Any]:
        """Serialise the metadata (and optionally the text) for a metadata map."""
        payload: dict[str, Any] = {
            "compressed": self.compressed,
            "truncated": self.truncated,
            "original": self.original.to_dict(),
        }
        if self.after_compression is not None:
            payload["after_compression"] = self.after_compression.to_dict()
        if self.compression is not None:
            payload["compression"] = self.compression.to_dict()
        if self.truncation is not None:
            payload["truncation"] = self.truncation.to_dict()
        if include_text:
            payload = {"text": self.text, **payload}
        return payload
