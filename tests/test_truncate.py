"""Tests for the line-window truncator and the hard cap enforcer."""

from __future__ import annotations

import pytest

from outtrim.reduction import SizeLimits, enforce_hard_caps, truncate_by_lines
from outtrim.reduction.metrics import utf8_length
from outtrim.reduction.truncate import (
    compute_keep_line_counts,
    hard_cap_marker,
    slice_head_lines,
    slice_tail_lines,
)


def numbered_lines(count: int) -> str:
    return "\n".join(f"line {i}" for i in range(count))


class TestKeepLineCounts:
    @pytest.mark.parametrize(
        ("total", "max_lines", "expected"),
        [
            (1000, 100, (15, 84)),
            (1000, 800, (50, 749)),
            (1000, 20, (10, 9)),
            (1000, 1, (0, 0)),
            (5, 100, (5, 0)),
        ],
    )
    def test_head_tail_split(self, total, max_lines, expected):
        assert compute_keep_line_counts(total, max_lines) == expected

    def test_head_never_below_minimum(self):
        keep_head, keep_tail = compute_keep_line_counts(500, 40)
        assert keep_head == 10
        assert keep_tail == 29


class TestSlicing:
    def test_head(self):
        assert slice_head_lines("a\nb\nc", 2, 3) == "a\nb"

    def test_head_zero(self):
        assert slice_head_lines("a\nb\nc", 0, 3) == ""

    def test_head_all(self):
        assert slice_head_lines("a\nb\nc", 3, 3) == "a\nb\nc"

    def test_tail(self):
        assert slice_tail_lines("a\nb\nc", 2) == "b\nc"

    def test_tail_zero(self):
        assert slice_tail_lines("a\nb\nc", 0) == ""

    def test_tail_more_than_available(self):
        assert slice_tail_lines("a\nb\nc", 5) == "a\nb\nc"

    def test_tail_with_trailing_newline(self):
        assert slice_tail_lines("a\nb\n", 2) == "b\n"


class TestTruncateByLines:
    def test_thousand_lines_to_hundred(self):
        text = numbered_lines(1000)
        result, report = truncate_by_lines(text, SizeLimits(max_lines=100))
        lines = result.split("\n")
        assert len(lines) == 100
        assert lines[:15] == [f"line {i}" for i in range(15)]
        assert lines[15] == "--- omitted 901 lines ---"
        assert lines[16:] == [f"line {i}" for i in range(916, 1000)]
        assert report.kept_head_lines == 15
        assert report.kept_tail_lines == 84
        assert report.omitted_lines == 901

    def test_nothing_omitted_returns_text(self):
        text = numbered_lines(5)
        result, report = truncate_by_lines(text, SizeLimits(max_lines=3))
        assert result == text
        assert report.omitted_lines == 0

    def test_single_line_budget_keeps_only_marker(self):
        result, report = truncate_by_lines("a\nb\nc\nd\ne", SizeLimits(max_lines=1))
        assert result == "\n--- omitted 5 lines ---\n"
        assert report.kept_head_lines == 0
        assert report.kept_tail_lines == 0

    def test_marker_uses_prefix(self):
        result, _ = truncate_by_lines(numbered_lines(100), SizeLimits(max_lines=20, marker_prefix="~~"))
        assert "~~ omitted 81 lines ~~" in result


class TestEnforceHardCaps:
    def test_within_caps_unchanged(self):
        assert enforce_hard_caps("short", 100, 100, "---") == "short"

    def test_char_cap(self):
        marker = hard_cap_marker("---", 100, 1000)
        assert marker == "--- truncated to 100 chars / 1000 bytes ---"
        result = enforce_hard_caps("x" * 500, 100, 1000, "---")
        assert result == "x" * (100 - len(marker) - 2) + "\n" + marker
        assert len(result) <= 100

    def test_marker_longer_than_budget(self):
        result = enforce_hard_caps("x" * 50, 10, 1000, "---")
        assert result == "\n" + hard_cap_marker("---", 10, 1000)
        assert len(result) > 10

    def test_byte_cap_is_char_sliced(self):
        # Slicing is by characters, so a byte-bound multi-byte text can
        # stay over the byte cap.
        text = "é" * 100
        result = enforce_hard_caps(text, 1000, 50, "---")
        assert result.startswith(text)
        assert result.endswith(hard_cap_marker("---", 1000, 50))
        assert utf8_length(result) > 50
