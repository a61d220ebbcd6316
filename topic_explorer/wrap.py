"""
Word wrapping for the console viewport.

``wrap_text`` turns arbitrary text into display lines no longer than ``width``,
keeping explicit line breaks (blank lines included) and cutting long lines at the
last space that fits, or hard-splitting when a run has no space at all.
"""

from __future__ import annotations

import re

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def _split_segments(text: str) -> list[str]:
    """Split on explicit line terminators; a trailing terminator adds no segment."""
    if not text:
        return []
    segments = _LINE_BREAK_RE.split(text)
    if segments[-1] == "":
        segments.pop()
    return segments


def _wrap_segment(segment: str, width: int) -> list[str]:
    lines: list[str] = []
    start = 0
    while start < len(segment):
        if len(segment) - start <= width:
            lines.append(segment[start:])
            break

        # Rightmost space in (start, start + width]; a space exactly at the cursor
        # would produce an empty line, so it is not a candidate.
        wrap_at = segment.rfind(" ", start + 1, start + width + 1)
        if wrap_at == -1:
            lines.append(segment[start : start + width])
            start += width
        else:
            lines.append(segment[start:wrap_at])
            start = wrap_at + 1
    return lines


def wrap_text(text: str, width: int) -> list[str]:
    """Wrap *text* into lines of at most *width* characters.

    Args:
        text: Text to wrap. Empty input yields no lines.
        width: Maximum line length, must be >= 1.

    Returns:
        list[str]: Display lines in order. Blank input lines are kept as ``""``.
    """
    if width < 1:
        raise ValueError("width must be >= 1")

    result: list[str] = []
    for segment in _split_segments(text or ""):
        if not segment:
            result.append("")
            continue
        result.extend(_wrap_segment(segment, width))
    return result
