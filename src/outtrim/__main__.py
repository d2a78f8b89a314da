"""CLI entry point for Outtrim."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import BinaryIO

import click

from outtrim import __version__
from outtrim.config import Config, ConfigError, apply_env_overrides, load_config
from outtrim.reduction import ReductionResult, reduce_text
from outtrim.tools import create_default_registry
from outtrim.tools.shell import TOOL_NAME

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=_LOG_FORMAT, stream=sys.stderr)


def _limit_options(func):
    """Attach the per-call limit override options to a command."""
    for flag, help_text in reversed([
        ("--max-chars", "Override the character budget."),
        ("--max-bytes", "Override the UTF-8 byte budget."),
        ("--max-lines", "Override the line budget."),
    ]):
        func = click.option(
            flag, type=click.IntRange(min=1), default=None, help=help_text,
        )(func)
    return func


def _exit_status(returncode: int) -> int:
    """Map a subprocess return code to a shell-style exit status.

    A negative code means the process died from that signal; shells report
    it as 128 + signal number.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def _stats_line(result: ReductionResult) -> str:
    parts = [
        f"compressed={result.compressed}",
        f"truncated={result.truncated}",
        f"original={result.original.lines} lines/{result.original.bytes} bytes",
    ]
    if result.after_compression is not None:
        parts.append(
            f"after_compression={result.after_compression.lines} lines/"
            f"{result.after_compression.bytes} bytes"
        )
    if result.truncation is not None:
        parts.append(f"omitted={result.truncation.omitted_lines} lines")
    return " ".join(parts)


@click.group()
@click.version_option(version=__version__, prog_name="outtrim")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to outtrim.toml configuration file.",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override the configured log level.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str | None) -> None:
    """Outtrim: keep tool output within size budgets."""
    ctx.ensure_object(dict)
    try:
        config = apply_env_overrides(load_config(config_path))
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    _configure_logging((log_level or config.logging.level).upper())
    ctx.obj["config"] = config


@cli.command(name="reduce")
@click.argument("source", type=click.File("rb"), default="-")
@_limit_options
@click.option("--no-compress", is_flag=True, default=False, help="Skip repeat compression.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit text and metadata as JSON.")
@click.option("--stats", is_flag=True, default=False, help="Print a summary line to stderr.")
@click.pass_context
def reduce_command(
    ctx: click.Context,
    source: BinaryIO,
    max_chars: int | None,
    max_bytes: int | None,
    max_lines: int | None,
    no_compress: bool,
    as_json: bool,
    stats: bool,
) -> None:
    """Reduce SOURCE (a file, or stdin) to fit the size limits."""
    config: Config = ctx.obj["config"]
    limits = config.limits.with_overrides(
        max_chars=max_chars, max_bytes=max_bytes, max_lines=max_lines,
    )
    if no_compress:
        limits = replace(limits, compress_repeats=False)

    text = source.read().decode("utf-8", errors="replace")
    result = reduce_text(text, limits)

    if as_json:
        click.echo(json.dumps(result.to_dict(include_text=True), indent=2))
    else:
        click.echo(result.text, nl=False)
    if stats:
        click.echo(_stats_line(result), err=True)


@cli.command()
@click.argument("command")
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Working directory for the command.",
)
@_limit_options
@click.option("--no-stderr", is_flag=True, default=False, help="Leave stderr out of the output.")
@click.pass_context
def run(
    ctx: click.Context,
    command: str,
    cwd: Path | None,
    max_chars: int | None,
    max_bytes: int | None,
    max_lines: int | None,
    no_stderr: bool,
) -> None:
    """Run COMMAND in a shell and print its reduced output."""
    config: Config = ctx.obj["config"]
    registry = create_default_registry(config)
    args: dict = {
        "command": command,
        "max_chars": max_chars,
        "max_bytes": max_bytes,
        "max_lines": max_lines,
    }
    if cwd is not None:
        args["cwd"] = str(cwd)
    if no_stderr:
        args["include_stderr"] = False

    result = asyncio.run(registry.execute(TOOL_NAME, args, workspace=Path.cwd()))
    exit_code = (result.data or {}).get("exit_code")
    if exit_code is None:
        click.echo(result.error or "Command failed", err=True)
        sys.exit(1)
    click.echo(result.output)
    sys.exit(_exit_status(exit_code))


@cli.command(name="config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Print the effective reduction limits as JSON."""
    config: Config = ctx.obj["config"]
    click.echo(json.dumps({
        "limits": asdict(config.limits.to_limits()),
        "hook": asdict(config.hook),
        "shell": asdict(config.shell),
        "logging": asdict(config.logging),
    }, indent=2))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
