"""Shell command execution tool that reduces its own output.

Runs a command, folds exit code, stdout and stderr into one text blob and
passes it through the reduction pipeline so the result fits the configured
(or per-call) size limits.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import re
from dataclasses import replace

from outtrim.config import LimitsConfig, ShellConfig
from outtrim.exceptions import ToolError
from outtrim.reduction import ReductionResult, SizeSnapshot, measure, reduce_text
from outtrim.reduction.metrics import utf8_length
from outtrim.tools.registry import Tool, ToolContext, ToolResult, ToolSafetyError

logger = logging.getLogger(__name__)

TOOL_NAME = "truncated_bash"
METADATA_KEY = "outtrim"

# Patterns that are obviously destructive
BLOCKED_PATTERNS = [
    r"\brm\b.*\s+-[a-zA-Z]*r[a-zA-Z]*\s+/(?:\s|$)",   # rm -rf /, rm -r -f /, etc.
    r"\brm\b.*\s+-[a-zA-Z]*r[a-zA-Z]*\s+~",            # rm -rf ~
    r"\brm\b.*\s+-[a-zA-Z]*r[a-zA-Z]*\s+/\*",          # rm -rf /*
    r"\bmkfs\b",                                         # mkfs
    r"\bdd\s+if=.*\bof=/dev/",                           # dd onto a device
    r"chmod\s+-R\s+777\s+/(?:\s|$)",                     # chmod -R 777 /
    r"curl\s+.*\|\s*(?:ba)?sh",                          # curl | sh
    r"wget\s+.*\|\s*(?:ba)?sh",                          # wget | bash
]

BLOCKED_RE = [re.compile(p, re.IGNORECASE) for p in BLOCKED_PATTERNS]

_LIMIT_ARGS = ("max_chars", "max_bytes", "max_lines")


def check_command_safety(command: str) -> str | None:
    """Check if a shell command matches any blocked patterns.

    Returns the matched pattern description if blocked, None if safe.
    """
    for pattern in BLOCKED_RE:
        if pattern.search(command):
            return f"Blocked dangerous command pattern: {pattern.pattern}"
    return None


class StreamCapture:
    """Bounded capture of one output stream.

    Keeps the first and last ``limit // 2`` bytes and drops the middle,
    while still counting the size of the whole stream as decoded text.
    """

    def __init__(self, limit: int) -> None:
        self.head_limit = limit - limit // 2
        self.tail_limit = limit // 2
        self.head = bytearray()
        self.tail = bytearray()
        self.dropped_bytes = 0
        self.chars = 0
        self.bytes = 0
        self.newlines = 0
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes, final: bool = False) -> None:
        self._count(self._decoder.decode(chunk, final))
        if not chunk:
            return
        room = self.head_limit - len(self.head)
        if room > 0:
            self.head += chunk[:room]
            chunk = chunk[room:]
        self.tail += chunk
        overflow = len(self.tail) - self.tail_limit
        if overflow > 0:
            del self.tail[:overflow]
            self.dropped_bytes += overflow

    def _count(self, text: str) -> None:
        self.chars += len(text)
        self.bytes += utf8_length(text)
        self.newlines += text.count("\n")

    def render(self, marker_prefix: str) -> str:
        head = self.head.decode("utf-8", errors="replace")
        tail = self.tail.decode("utf-8", errors="replace")
        if not self.dropped_bytes:
            return head + tail
        return (
            f"{head}\n{marker_prefix} {self.dropped_bytes} bytes of output "
            f"not captured {marker_prefix}\n{tail}"
        )


async def _capture(stream: asyncio.StreamReader | None, limit: int) -> StreamCapture:
    """Read *stream* to EOF into a :class:`StreamCapture`."""
    capture = StreamCapture(limit)
    if stream is None:
        return capture
    while True:
        chunk = await stream.read(65536)
        if not chunk:
            break
        capture.feed(chunk)
    capture.feed(b"", final=True)
    return capture


def format_command_output(
    exit_code: int | None, stdout: str, stderr: str, *, include_stderr: bool,
) -> str:
    """Fold a command's exit code and streams into one text blob."""
    if include_stderr:
        return f"# exitCode: {exit_code}\n\n## stdout\n{stdout}\n\n## stderr\n{stderr}"
    return f"# exitCode: {exit_code}\n\n{stdout}"


def _full_size(
    exit_code: int | None, streams: list[StreamCapture], *, include_stderr: bool,
) -> SizeSnapshot:
    """Size of the blob the command would have produced without capture limits."""
    frame = measure(format_command_output(exit_code, "", "", include_stderr=include_stderr))
    return SizeSnapshot(
        chars=frame.chars + sum(s.chars for s in streams),
        bytes=frame.bytes + sum(s.bytes for s in streams),
        lines=frame.lines + sum(s.newlines for s in streams),
    )


def reduction_suffix(
    result: ReductionResult, marker_prefix: str, uncaptured_bytes: int = 0,
) -> str:
    """Human-readable note appended to reduced command output."""
    state = "truncated" if result.truncated else "compressed"
    suffix = f"\n\n{marker_prefix} output {state} {marker_prefix}"
    suffix += (
        f"\n(originalLines={result.original.lines}, "
        f"originalBytes={result.original.bytes})"
    )
    if result.after_compression is not None:
        suffix += (
            f"\n(afterCompressionLines={result.after_compression.lines}, "
            f"afterCompressionBytes={result.after_compression.bytes})"
        )
    if uncaptured_bytes:
        suffix += f"\n(uncapturedBytes={uncaptured_bytes})"
    return suffix


def _limit_override(args: dict, key: str) -> int | None:
    value = args.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ToolError(f"{key} must be a positive integer, got {value!r}")
    return value


class TruncatedShellTool(Tool):
    def __init__(
        self,
        limits: LimitsConfig | None = None,
        shell: ShellConfig | None = None,
    ) -> None:
        self._limits = limits or LimitsConfig()
        self._shell = shell or ShellConfig()

    @property
    def name(self) -> str:
        return TOOL_NAME

    @property
    def description(self) -> str:
        return "Run a shell command and return reduced output with metadata."

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "command": {"type": "string", "minLength": 1, "description": "Shell command to execute"},
                "cwd": {"type": "string", "description": "Working directory"},
                "max_chars": {"type": "integer", "minimum": 1},
                "max_bytes": {"type": "integer", "minimum": 1},
                "max_lines": {"type": "integer", "minimum": 1},
                "include_stderr": {"type": "boolean"},
            },
            "required": ["command"],
        }

    @property
    def timeout_seconds(self) -> int:
        return self._shell.timeout_seconds

    async def execute(self, args: dict, ctx: ToolContext) -> ToolResult:
        command = args.get("command", "")
        if not isinstance(command, str) or not command.strip():
            return ToolResult.fail("Empty command")

        violation = check_command_safety(command)
        if violation:
            raise ToolSafetyError(violation)

        try:
            overrides = {key: _limit_override(args, key) for key in _LIMIT_ARGS}
            raw_cwd = args.get("cwd")
            if raw_cwd:
                cwd = str(self._resolve_dir(raw_cwd, ctx.workspace))
            else:
                cwd = str(ctx.workspace) if ctx.workspace else None
        except ToolError as e:
            return ToolResult.fail(str(e))

        include_stderr = args.get("include_stderr")
        if include_stderr is None:
            include_stderr = self._shell.include_stderr

        process = None
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
            stdout, stderr = await asyncio.gather(
                _capture(process.stdout, self._shell.max_capture_bytes),
                _capture(process.stderr, self._shell.max_capture_bytes),
            )
            await process.wait()
        except OSError as e:
            return ToolResult.fail(f"Failed to execute: {e}")
        except (asyncio.CancelledError, TimeoutError):
            # Ensure subprocess is terminated on cancellation/timeout
            if process is not None:
                try:
                    process.kill()
                    await process.wait()
                except ProcessLookupError:
                    pass
            raise

        exit_code = process.returncode
        limits = self._limits.with_overrides(**overrides)
        streams = [stdout, stderr] if include_stderr else [stdout]
        blob = format_command_output(
            exit_code,
            stdout.render(limits.marker_prefix),
            stderr.render(limits.marker_prefix),
            include_stderr=bool(include_stderr),
        )

        reduced = reduce_text(blob, limits)
        dropped = sum(s.dropped_bytes for s in streams)
        if dropped:
            reduced = replace(
                reduced,
                truncated=True,
                original=_full_size(exit_code, streams, include_stderr=bool(include_stderr)),
            )

        data: dict = {"exit_code": exit_code}
        output = reduced.text
        if reduced.reduced:
            output += reduction_suffix(reduced, limits.marker_prefix, uncaptured_bytes=dropped)
            meta = reduced.to_dict()
            if dropped:
                meta["uncaptured_bytes"] = dropped
            data[METADATA_KEY] = meta
            logger.debug(
                "Reduced output of %r: %d -> %d bytes",
                command, reduced.original.bytes, len(output.encode("utf-8", errors="replace")),
            )

        return ToolResult(
            success=exit_code == 0,
            output=output,
            error=f"Exit code: {exit_code}" if exit_code != 0 else None,
            data=data,
        )
