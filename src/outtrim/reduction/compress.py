"""Redundancy removal: consecutive duplicate lines and repeated blocks.

Both compressors only merge *consecutive* repetition; identical lines or
blocks separated by other content are left alone.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from outtrim.reduction.metrics import count_lines


@dataclass(frozen=True)
class LineRunStats:
    collapsed_line_runs: int = 0
    collapsed_lines: int = 0


@dataclass(frozen=True)
class BlockRunStats:
    collapsed_blocks: int = 0
    collapsed_block_repeats: int = 0
    skipped: bool = False


def line_repeat_marker(prefix: str, more: int) -> str:
    return f"{prefix} repeated previous line {more} more times {prefix}"


def block_repeat_marker(prefix: str, size: int, more: int) -> str:
    return f"{prefix} repeated previous {size} lines {more} more times {prefix}"


def _iter_lines(text: str) -> Iterator[str]:
    """Yield the pieces of ``text.split("\\n")`` lazily."""
    start = 0
    while True:
        end = text.find("\n", start)
        if end == -1:
            yield text[start:]
            return
        yield text[start:end]
        start = end + 1


def compress_duplicate_lines(text: str, marker_prefix: str) -> tuple[str, LineRunStats]:
    """Collapse runs of identical consecutive lines.

    Each run is emitted once, followed by a marker line stating how many
    more times it occurred.
    """
    if not text:
        return text, LineRunStats()

    out: list[str] = []
    runs = 0
    collapsed = 0

    lines = _iter_lines(text)
    prev = next(lines)
    count = 1

    def flush() -> None:
        nonlocal runs, collapsed
        out.append(prev)
        if count > 1:
            runs += 1
            collapsed += count - 1
            out.append(line_repeat_marker(marker_prefix, count - 1))

    for line in lines:
        if line == prev:
            count += 1
            continue
        flush()
        prev = line
        count = 1
    flush()

    return "\n".join(out), LineRunStats(collapsed_line_runs=runs, collapsed_lines=collapsed)


def _blocks_equal(lines: list[str], a: int, b: int, size: int) -> bool:
    return lines[a:a + size] == lines[b:b + size]


def _count_block_repeats(lines: list[str], start: int, size: int) -> int:
    """Number of back-to-back copies of ``lines[start:start + size]``."""
    repeats = 1
    while (
        start + (repeats + 1) * size <= len(lines)
        and _blocks_equal(lines, start, start + repeats * size, size)
    ):
        repeats += 1
    return repeats


def compress_repeated_blocks(
    text: str,
    marker_prefix: str,
    block_max_size: int,
    block_max_scan_lines: int,
) -> tuple[str, BlockRunStats]:
    """Collapse consecutive repeats of multi-line blocks.

    At each position the largest block size (up to *block_max_size*, and no
    more than half the remaining lines) that repeats immediately is chosen.
    Texts longer than *block_max_scan_lines* are returned untouched with
    ``skipped=True`` to keep the scan cheap on huge inputs.
    """
    if count_lines(text) > block_max_scan_lines:
        return text, BlockRunStats(skipped=True)

    lines = text.split("\n")
    total = len(lines)
    out: list[str] = []
    blocks = 0
    block_repeats = 0

    i = 0
    while i < total:
        largest = min(block_max_size, (total - i) // 2)
        matched_size = 0
        repeats = 0
        for size in range(largest, 1, -1):
            if _blocks_equal(lines, i, i + size, size):
                matched_size = size
                repeats = _count_block_repeats(lines, i, size)
                break

        if matched_size and repeats >= 2:
            out.extend(lines[i:i + matched_size])
            out.append(block_repeat_marker(marker_prefix, matched_size, repeats - 1))
            blocks += 1
            block_repeats += repeats - 1
            i += repeats * matched_size
            continue

        out.append(lines[i])
        i += 1

    return "\n".join(out), BlockRunStats(
        collapsed_blocks=blocks,
        collapsed_block_repeats=block_repeats,
    )
