"""Shared test fixtures for Outtrim."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from outtrim.reduction import SizeLimits


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep real OUTTRIM_* variables and config files out of the tests."""
    for name in list(os.environ):
        if name.startswith("OUTTRIM_"):
            monkeypatch.delenv(name)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def limits() -> SizeLimits:
    return SizeLimits()


@pytest.fixture
def small_limits() -> SizeLimits:
    """Limits small enough for modest test inputs to trip them."""
    return SizeLimits(max_chars=10_000, max_bytes=20_000, max_lines=100)

