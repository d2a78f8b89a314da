"""Lossy reduction: keep a head/tail window of lines, then hard-cap size."""

from __future__ import annotations

import math

from outtrim.reduction.metrics import count_lines, utf8_length
from outtrim.reduction.models import SizeLimits, TruncationReport

# Share of the line budget kept from the head, bounded to [MIN, MAX] lines.
HEAD_SHARE = 0.15
MIN_HEAD_LINES = 10
MAX_HEAD_LINES = 50


def omission_marker(prefix: str, omitted: int) -> str:
    return f"{prefix} omitted {omitted} lines {prefix}"


def hard_cap_marker(prefix: str, max_chars: int, max_bytes: int) -> str:
    return f"{prefix} truncated to {max_chars} chars / {max_bytes} bytes {prefix}"


def compute_keep_line_counts(total_lines: int, max_lines: int) -> tuple[int, int]:
    """Return ``(keep_head, keep_tail)`` for a text of *total_lines* lines.

    One line of *max_lines* is reserved for the omission marker. The rest
    goes mostly to the tail, where errors and results tend to be.
    """
    budget = max(0, max_lines - 1)
    if budget <= 0:
        return 0, 0

    desired_head = max(MIN_HEAD_LINES, min(MAX_HEAD_LINES, math.floor(max_lines * HEAD_SHARE)))
    keep_head = min(desired_head, max(0, total_lines))
    keep_tail = max(0, min(total_lines - keep_head, budget - keep_head))
    return keep_head, keep_tail


def slice_head_lines(text: str, keep: int, total_lines: int) -> str:
    """First *keep* lines of *text*, without the trailing newline."""
    if keep <= 0:
        return ""
    if keep >= total_lines:
        return text

    idx = -1
    for _ in range(keep):
        idx = text.find("\n", idx + 1)
        if idx == -1:
            return text
    return text[:idx]


def slice_tail_lines(text: str, keep: int) -> str:
    """Last *keep* lines of *text*; the whole text if it has fewer."""
    if keep <= 0:
        return ""

    end = len(text)
    for _ in range(keep):
        idx = text.rfind("\n", 0, end)
        if idx == -1:
            return text
        end = idx
    return text[end + 1:]


def truncate_by_lines(text: str, limits: SizeLimits) -> tuple[str, TruncationReport]:
    """Drop the middle of *text*, keeping a head and a tail window.

    The dropped region is replaced by a single omission marker line. When
    the window would drop nothing the text is returned unchanged.
    """
    total_lines = count_lines(text)
    keep_head, keep_tail = compute_keep_line_counts(total_lines, limits.max_lines)
    omitted = max(0, total_lines - keep_head - keep_tail)
    report = TruncationReport(
        kept_head_lines=keep_head,
        kept_tail_lines=keep_tail,
        omitted_lines=omitted,
    )
    if omitted == 0:
        return text, report

    head = slice_head_lines(text, keep_head, total_lines)
    tail = slice_tail_lines(text, keep_tail)
    marker = omission_marker(limits.marker_prefix, omitted)
    return f"{head}\n{marker}\n{tail}", report


def enforce_hard_caps(text: str, max_chars: int, max_bytes: int, marker_prefix: str) -> str:
    """Cut *text* to fit *max_chars*, appending a truncation marker.

    The cut is by characters, so multi-byte text can still end up over
    *max_bytes*. If the marker alone is longer than *max_chars* the result
    is just the marker and exceeds the char budget too.
    """
    if len(text) <= max_chars and utf8_length(text) <= max_bytes:
        return text

    marker = hard_cap_marker(marker_prefix, max_chars, max_bytes)
    room = max(0, max_chars - len(marker) - 2)
    return f"{text[:room]}\n{marker}"
