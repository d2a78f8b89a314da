"""Configuration loader for Outtrim.

Loads from outtrim.toml with sensible defaults when the file is absent,
then applies ``OUTTRIM_*`` environment overrides. Configuration is loaded
once at startup and passed via dependency injection.
"""

from __future__ import annotations

import logging
import math
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from outtrim.exceptions import OuttrimError
from outtrim.reduction.models import (
    DEFAULT_BLOCK_MAX_SCAN_LINES,
    DEFAULT_BLOCK_MAX_SIZE,
    DEFAULT_MARKER_PREFIX,
    DEFAULT_MAX_BYTES,
    DEFAULT_MAX_CHARS,
    DEFAULT_MAX_LINES,
    SizeLimits,
)

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes"}


class ConfigError(OuttrimError):
    """Raised when configuration loading or validation fails."""


@dataclass(frozen=True)
class LimitsConfig:
    """Process-wide default reduction limits."""

    max_chars: int = DEFAULT_MAX_CHARS
    max_bytes: int = DEFAULT_MAX_BYTES
    max_lines: int = DEFAULT_MAX_LINES
    compress_repeats: bool = True
    block_max_size: int = DEFAULT_BLOCK_MAX_SIZE
    block_max_scan_lines: int = DEFAULT_BLOCK_MAX_SCAN_LINES
    marker_prefix: str = DEFAULT_MARKER_PREFIX

    def to_limits(self) -> SizeLimits:
        return SizeLimits(
            max_chars=self.max_chars,
            max_bytes=self.max_bytes,
            max_lines=self.max_lines,
            compress_repeats=self.compress_repeats,
            block_max_size=self.block_max_size,
            block_max_scan_lines=self.block_max_scan_lines,
            marker_prefix=self.marker_prefix,
        )

    def with_overrides(
        self,
        *,
        max_chars: int | None = None,
        max_bytes: int | None = None,
        max_lines: int | None = None,
    ) -> SizeLimits:
        """Per-call limits; ``None`` keeps the configured default."""
        limits = self.to_limits()
        return replace(
            limits,
            max_chars=limits.max_chars if max_chars is None else max_chars,
            max_bytes=limits.max_bytes if max_bytes is None else max_bytes,
            max_lines=limits.max_lines if max_lines is None else max_lines,
        )


@dataclass(frozen=True)
class HookConfig:
    enabled: bool = True
    log_on_load: bool = False


@dataclass(frozen=True)
class ShellConfig:
    timeout_seconds: int = 120
    include_stderr: bool = True
    # Bytes captured per stream; beyond this the middle of the stream is dropped.
    max_capture_bytes: int = 8 * 1024 * 1024


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class Config:
    """Top-level Outtrim configuration."""

    limits: LimitsConfig = field(default_factory=LimitsConfig)
    hook: HookConfig = field(default_factory=HookConfig)
    shell: ShellConfig = field(default_factory=ShellConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _positive_int(section: str, key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{section}.{key} must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigError(f"{section}.{key} must be positive, got {value}")
    return value


def _boolean(section: str, key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{section}.{key} must be a boolean, got {value!r}")
    return value


def _section(raw: dict, name: str) -> dict:
    data = raw.get(name, {})
    if not isinstance(data, dict):
        raise ConfigError(f"[{name}] must be a table")
    return data


def _parse_limits(data: dict) -> LimitsConfig:
    defaults = LimitsConfig()
    prefix = data.get("marker_prefix", defaults.marker_prefix)
    if not isinstance(prefix, str):
        raise ConfigError(f"limits.marker_prefix must be a string, got {prefix!r}")

    numeric = {
        key: _positive_int("limits", key, data.get(key, getattr(defaults, key)))
        for key in (
            "max_chars",
            "max_bytes",
            "max_lines",
            "block_max_size",
            "block_max_scan_lines",
        )
    }
    return LimitsConfig(
        compress_repeats=_boolean(
            "limits", "compress_repeats", data.get("compress_repeats", True)
        ),
        marker_prefix=prefix,
        **numeric,
    )


def _parse_logging(data: dict) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    if level not in logging.getLevelNamesMapping():
        raise ConfigError(f"logging.level is not a logging level: {level!r}")
    return LoggingConfig(level=level)


def default_config_candidates() -> list[Path]:
    return [
        Path.cwd() / "outtrim.toml",
        Path.home() / ".outtrim" / "outtrim.toml",
    ]


def load_config(path: Path | None = None) -> Config:
    """Load configuration from a TOML file.

    If path is None, searches for outtrim.toml in current directory then
    ~/.outtrim/. Returns default config if no file is found.
    """
    if path is None:
        for candidate in default_config_candidates():
            if candidate.exists():
                path = candidate
                break

    if path is None or not path.exists():
        return Config()

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    limits = _parse_limits(_section(raw, "limits"))

    hook_data = _section(raw, "hook")
    hook = HookConfig(
        enabled=_boolean("hook", "enabled", hook_data.get("enabled", True)),
        log_on_load=_boolean("hook", "log_on_load", hook_data.get("log_on_load", False)),
    )

    shell_data = _section(raw, "shell")
    shell = ShellConfig(
        timeout_seconds=_positive_int(
            "shell", "timeout_seconds", shell_data.get("timeout_seconds", 120)
        ),
        include_stderr=_boolean(
            "shell", "include_stderr", shell_data.get("include_stderr", True)
        ),
        max_capture_bytes=_positive_int(
            "shell", "max_capture_bytes",
            shell_data.get("max_capture_bytes", ShellConfig.max_capture_bytes),
        ),
    )

    return Config(
        limits=limits,
        hook=hook,
        shell=shell,
        logging=_parse_logging(_section(raw, "logging")),
    )


def _env_number(environ: Mapping[str, str], name: str, current: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return current
    try:
        parsed = float(raw)
    except ValueError:
        parsed = math.nan
    if not math.isfinite(parsed):
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return current
    value = int(parsed)
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _env_bool(environ: Mapping[str, str], name: str, current: bool) -> bool:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return current
    return raw.strip().lower() in _TRUTHY


def apply_env_overrides(
    config: Config, environ: Mapping[str, str] | None = None,
) -> Config:
    """Overlay ``OUTTRIM_*`` environment variables onto *config*."""
    env = os.environ if environ is None else environ
    limits = replace(
        config.limits,
        max_chars=_env_number(env, "OUTTRIM_MAX_CHARS", config.limits.max_chars),
        max_bytes=_env_number(env, "OUTTRIM_MAX_BYTES", config.limits.max_bytes),
        max_lines=_env_number(env, "OUTTRIM_MAX_LINES", config.limits.max_lines),
    )
    hook = replace(
        config.hook,
        enabled=_env_bool(env, "OUTTRIM_ENABLED", config.hook.enabled),
        log_on_load=_env_bool(env, "OUTTRIM_LOG_ON_LOAD", config.hook.log_on_load),
    )
    return replace(config, limits=limits, hook=hook)
