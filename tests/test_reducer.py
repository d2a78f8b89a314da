"""Tests for the reduction pipeline."""

from __future__ import annotations

import random

import pytest

from outtrim.reduction import SizeLimits, reduce_text
from outtrim.reduction.metrics import count_lines, utf8_length
from outtrim.reduction.truncate import hard_cap_marker


def numbered_lines(count: int) -> str:
    return "\n".join(f"line {i}" for i in range(count))


def _noisy_log(seed: int, lines: int) -> str:
    """Build a log-like text mixing unique lines, runs, blocks and long lines."""
    rng = random.Random(seed)
    out: list[str] = []
    while len(out) < lines:
        kind = rng.randrange(4)
        if kind == 0:
            out.append(f"INFO step {len(out)} ok")
        elif kind == 1:
            out.extend(["WARN retrying"] * rng.randint(2, 30))
        elif kind == 2:
            block = [f"  at frame {j}" for j in range(rng.randint(2, 6))]
            out.extend(block * rng.randint(2, 5))
        else:
            out.append("E" * rng.randint(100, 3000))
    return "\n".join(out)


class TestNoOp:
    def test_within_limits_returned_unchanged(self, limits: SizeLimits):
        text = "hello\nworld\n"
        result = reduce_text(text, limits)
        assert result.text is text
        assert result.compressed is False
        assert result.truncated is False
        assert result.after_compression is None
        assert result.compression is None
        assert result.truncation is None
        assert result.original.lines == 3

    def test_empty_text(self, limits: SizeLimits):
        result = reduce_text("", limits)
        assert result.text == ""
        assert not result.reduced


class TestCompressionOnly:
    def test_repeats_compressed_within_limits(self, small_limits: SizeLimits):
        text = "\n".join(["same"] * 500)
        result = reduce_text(text, small_limits)
        assert result.text == "same\n--- repeated previous line 499 more times ---"
        assert result.compressed is True
        assert result.truncated is False
        assert result.after_compression.lines == 2
        assert result.compression.collapsed_lines == 499
        assert result.truncation is None

    def test_compression_disabled(self):
        limits = SizeLimits(max_lines=100, compress_repeats=False)
        result = reduce_text("\n".join(["same"] * 500), limits)
        assert result.compressed is False
        assert result.truncated is True
        assert result.compression is None
        assert result.after_compression is None
        assert result.truncation.omitted_lines == 401

    def test_block_scan_skipped_over_scan_limit(self):
        limits = SizeLimits(max_lines=20, block_max_scan_lines=10)
        text = "\n".join(["same"] * 15 + ["a", "b"] * 3 + [f"row {i}" for i in range(4)])
        result = reduce_text(text, limits)
        # 12 lines remain after the line pass, more than the block scan allows.
        assert result.text == (
            "same\n--- repeated previous line 14 more times ---\n"
            "a\nb\na\nb\na\nb\nrow 0\nrow 1\nrow 2\nrow 3"
        )
        assert result.compressed is True
        assert result.truncated is False
        assert result.compression.collapsed_line_runs == 1
        assert result.compression.collapsed_blocks == 0
        assert result.compression.block_scan_skipped is True
        assert result.to_dict()["compression"]["block_scan_skipped"] is True


class TestTruncation:
    def test_unique_lines_truncated(self, small_limits: SizeLimits):
        result = reduce_text(numbered_lines(1000), small_limits)
        assert result.compressed is False
        assert result.truncated is True
        assert result.after_compression is None
        assert result.compression is None
        assert result.truncation.kept_head_lines == 15
        assert result.truncation.kept_tail_lines == 84
        assert result.truncation.omitted_lines == 901
        assert count_lines(result.text) == 100

    def test_compression_then_truncation(self, small_limits: SizeLimits):
        text = "\n".join(["dup"] * 50 + numbered_lines(1000).split("\n"))
        result = reduce_text(text, small_limits)
        assert result.compressed is True
        assert result.truncated is True
        assert result.original.lines == 1050
        assert result.after_compression.lines == 1002
        assert result.compression.collapsed_lines == 49
        assert result.truncation.omitted_lines == 1002 - 15 - 84
        assert result.text.startswith("dup\n--- repeated previous line 49 more times ---\nline 0")

    def test_long_single_line_hard_capped(self):
        limits = SizeLimits(max_chars=100, max_bytes=1000, max_lines=10)
        result = reduce_text("x" * 500, limits)
        marker = hard_cap_marker("---", 100, 1000)
        assert result.truncated is True
        assert result.text == "x" * (100 - len(marker) - 2) + "\n" + marker
        assert result.truncation.omitted_lines == 0

    def test_single_line_budget(self):
        result = reduce_text("a\nb\nc\nd\ne", SizeLimits(max_lines=1))
        assert result.text == "\n--- omitted 5 lines ---\n"


class TestProperties:
    @pytest.mark.parametrize("seed", range(8))
    @pytest.mark.parametrize(
        ("max_chars", "max_bytes", "max_lines"),
        [(80, 80, 30), (500, 600, 25), (2_000, 5_000, 40), (20_000, 40_000, 200)],
    )
    def test_budget_satisfied(self, seed, max_chars, max_bytes, max_lines):
        text = _noisy_log(seed, 2_000)
        limits = SizeLimits(max_chars=max_chars, max_bytes=max_bytes, max_lines=max_lines)
        result = reduce_text(text, limits)
        assert len(result.text) <= max_chars
        assert utf8_length(result.text) <= max_bytes
        assert count_lines(result.text) <= max_lines

    @pytest.mark.parametrize("seed", range(5))
    def test_reduction_never_grows_output(self, seed, small_limits: SizeLimits):
        text = _noisy_log(seed, 3_000)
        result = reduce_text(text, small_limits)
        assert result.reduced
        assert utf8_length(result.text) <= utf8_length(text)

    def test_deterministic(self, small_limits: SizeLimits):
        text = _noisy_log(42, 2_500)
        first = reduce_text(text, small_limits)
        second = reduce_text(text, small_limits)
        assert first == second

    def test_original_snapshot_always_set(self, small_limits: SizeLimits):
        for text in ["", "x", numbered_lines(5_000)]:
            assert reduce_text(text, small_limits).original.chars == len(text)


class TestToDict:
    def test_no_op_metadata(self, limits: SizeLimits):
        payload = reduce_text("abc", limits).to_dict()
        assert payload == {
            "compressed": False,
            "truncated": False,
            "original": {"chars": 3, "bytes": 3, "lines": 1},
        }

    def test_full_metadata(self, small_limits: SizeLimits):
        text = "\n".join(["dup"] * 50 + numbered_lines(1000).split("\n"))
        payload = reduce_text(text, small_limits).to_dict(include_text=True)
        assert set(payload) == {
            "text",
            "compressed",
            "truncated",
            "original",
            "after_compression",
            "compression",
            "truncation",
        }
        assert payload["compression"]["collapsed_line_runs"] == 1
        assert payload["truncation"]["omitted_lines"] == 903
