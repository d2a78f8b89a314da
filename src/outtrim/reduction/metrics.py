"""Size measurements used to decide whether a text fits its limits.

``chars`` is Python's ``len()``, i.e. code points; ASCII text therefore
counts one char per byte. Lines follow ``str.split("\\n")`` semantics: an
empty text is one line and a trailing newline adds an empty trailing line.
"""

from __future__ import annotations

from outtrim.reduction.models import SizeLimits, SizeSnapshot


def count_lines(text: str) -> int:
    """Return ``len(text.split("\\n"))`` without building the list."""
    return text.count("\n") + 1


def utf8_length(text: str) -> int:
    """UTF-8 byte length of *text*.

    Lone surrogates (e.g. from undecodable input round-tripped with
    ``surrogateescape``) are counted as their 3-byte encoding instead of
    raising.
    """
    if text.isascii():
        return len(text)
    return len(text.encode("utf-8", errors="surrogatepass"))


def measure(text: str) -> SizeSnapshot:
    return SizeSnapshot(
        chars=len(text),
        bytes=utf8_length(text),
        lines=count_lines(text),
    )


def within_limits(snapshot: SizeSnapshot, limits: SizeLimits) -> bool:
    return (
        snapshot.chars <= limits.max_chars
        and snapshot.bytes <= limits.max_bytes
        and snapshot.lines <= limits.max_lines
    )
