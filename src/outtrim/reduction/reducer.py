"""Reduction pipeline: measure, compress, then truncate if still too big."""

from __future__ import annotations

from outtrim.reduction.compress import compress_duplicate_lines, compress_repeated_blocks
from outtrim.reduction.metrics import measure, within_limits
from outtrim.reduction.models import CompressionReport, ReductionResult, SizeLimits
from outtrim.reduction.truncate import enforce_hard_caps, truncate_by_lines


def compress_text(text: str, limits: SizeLimits) -> tuple[str, CompressionReport]:
    """Run the duplicate-line then the repeated-block compressor."""
    text, line_stats = compress_duplicate_lines(text, limits.marker_prefix)
    text, block_stats = compress_repeated_blocks(
        text,
        limits.marker_prefix,
        limits.block_max_size,
        limits.block_max_scan_lines,
    )
    return text, CompressionReport(
        collapsed_line_runs=line_stats.collapsed_line_runs,
        collapsed_lines=line_stats.collapsed_lines,
        collapsed_blocks=block_stats.collapsed_blocks,
        collapsed_block_repeats=block_stats.collapsed_block_repeats,
        block_scan_skipped=block_stats.skipped,
    )


def reduce_text(text: str, limits: SizeLimits) -> ReductionResult:
    """Bring *text* within *limits*.

    Text already within limits is returned as-is. Otherwise repeats are
    compressed (when enabled) and, if that is not enough, the text is cut
    to a head/tail line window and finally hard-capped by characters.
    Deterministic: the same input always yields the same result.
    """
    original = measure(text)
    if within_limits(original, limits):
        return ReductionResult(text=text, compressed=False, truncated=False, original=original)

    current = text
    report: CompressionReport | None = None
    if limits.compress_repeats:
        current, report = compress_text(current, limits)

    compressed = current != text
    after = measure(current) if compressed else original
    if not compressed:
        report = None

    if within_limits(after, limits):
        return ReductionResult(
            text=current,
            compressed=compressed,
            truncated=False,
            original=original,
            after_compression=after if compressed else None,
            compression=report,
        )

    current, truncation = truncate_by_lines(current, limits)
    current = enforce_hard_caps(current, limits.max_chars, limits.max_bytes, limits.marker_prefix)

    return ReductionResult(
        text=current,
        compressed=compressed,
        truncated=True,
        original=original,
        after_compression=after if compressed else None,
        compression=report,
        truncation=truncation,
    )
