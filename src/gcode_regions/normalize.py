"""
Line normalization for G-code region text
=========================================

Every decision about what a line of G-code "means" for comparison purposes is
made here. Three canonical keys are offered:

- :func:`key_with_tag` strips a ``1234:`` line-number prefix and one leading
  ``#...#`` anchor, deletes all whitespace and uppercases. Used for locating
  lines including their trailing display tag.
- :func:`key_as_is` only deletes whitespace and uppercases.
- :func:`key_for_match` additionally removes every ``(...)`` block so that
  comments and display tags do not take part in the comparison.

:func:`insert_and_align_tag` is the formatting counterpart used whenever a
stored line is written back into an editor document.

Usage:
    >>> key_with_tag("12: #u,3# g1 x10 y0 (M:A0003)")
    'G1X10Y0(M:A0003)'
    >>> key_for_match("#u,3#G1 X10 Y0 (FINISH) (M:A0003)")
    'G1X10Y0'
"""

from __future__ import annotations

import re

DISPLAY_TAG_PATTERN = r"\(\s*([A-Za-z])\s*:\s*([A-Za-z])\s*(\d{4})\s*\)"

_LINE_NUMBER_RE = re.compile(r"^\s*\d+\s*:\s*")
_PAREN_BLOCK_RE = re.compile(r"\([^)]*\)")
_TRAILING_TAG_RE = re.compile(DISPLAY_TAG_PATTERN + r"$")
_NUMBER_START = frozenset("0123456789+-.")
_AXIS_VALUE_RE: dict[str, re.Pattern[str]] = {}


def split_lines(text: str | None) -> list[str]:
    """Split ``text`` on any line-ending convention (``\\r\\n``, ``\\r`` or ``\\n``)."""

    return (text or "").replace("\r\n", "\n").replace("\r", "\n").split("\n")


def _single_line(text: str | None) -> str:
    return (text or "").replace("\r", "").replace("\n", "")


def strip_line_number(line: str | None) -> str:
    """Remove a leading ``1234:`` prefix (optional spaces around the colon)."""

    text = _single_line(line)
    return _LINE_NUMBER_RE.sub("", text, count=1)


def strip_leading_anchor(line: str | None) -> str:
    """Remove the first ``#...#`` block when it starts the line (after whitespace)."""

    text = _single_line(line)
    body = text.lstrip()
    if not body.startswith("#"):
        return text
    close = body.find("#", 1)
    if close < 0:
        return text
    return body[close + 1:]


def remove_paren_blocks(line: str | None) -> str:
    """Remove every ``(...)`` block anywhere in the line."""

    return _PAREN_BLOCK_RE.sub("", _single_line(line))


def count_paren_blocks(line: str | None) -> int:
    return len(_PAREN_BLOCK_RE.findall(_single_line(line)))


def strip_trailing_paren_block(line: str | None) -> str:
    """Drop one trailing ``(...)`` block (comment or tag) and the whitespace before it."""

    text = _single_line(line)
    if not text.strip():
        return ""
    close = text.rfind(")")
    if close < 0:
        return text
    opening = text.rfind("(", 0, close)
    if opening < 0:
        return text
    if text[close + 1:].strip():
        return text
    return text[:opening].rstrip()


def key_as_is(line: str | None) -> str:
    """Delete all whitespace and uppercase; nothing else is stripped."""

    return "".join(_single_line(line).split()).upper()


def key_with_tag(line: str | None) -> str:
    """Comparison key that keeps the trailing display tag."""

    text = _single_line(line)
    if not text.strip():
        return ""
    text = strip_line_number(text)
    text = strip_leading_anchor(text)
    return key_as_is(text)


def key_for_match(line: str | None) -> str:
    """Payload key: anchor, line number and every ``(...)`` block removed."""

    text = _single_line(line)
    if not text.strip():
        return ""
    text = strip_leading_anchor(text.strip())
    text = strip_line_number(text)
    text = remove_paren_blocks(text)
    return key_as_is(text)


def insert_and_align_tag(line: str | None, tag_column: int = 75) -> str:
    """Return ``line`` ready for an editor, its display tag aligned at ``tag_column``.

    The leading anchor and line-number prefix are removed. When the line ends
    with a well formed display tag the text before it is padded so the tag's
    opening parenthesis lands on ``tag_column`` (0-based); text that already
    reaches the column is separated from the tag by a single space. Lines
    without a trailing tag come back stripped but otherwise untouched.
    """

    text = _single_line(line)
    if not text:
        return ""

    text = strip_line_number(text)
    text = strip_leading_anchor(text)
    if not text:
        return ""

    text = text.rstrip()
    tag_start = text.rfind("(")
    if tag_start < 0:
        return text
    if text.find(")", tag_start) != len(text) - 1:
        return text

    tag_part = text[tag_start:].strip()
    if not _TRAILING_TAG_RE.fullmatch(tag_part):
        return text

    base_part = text[:tag_start].rstrip()
    column = max(tag_column, 0)
    if not base_part:
        return tag_part
    if len(base_part) < column:
        return base_part.ljust(column) + tag_part
    return f"{base_part} {tag_part}"


def has_axis_number(line: str | None, axis: str) -> bool:
    """Return ``True`` when ``axis`` (either case) is followed by a numeral start.

    Spaces and tabs may sit between the letter and the numeral. Only the first
    character is checked (``0-9``, ``+``, ``-`` or ``.``); the numeral itself is
    never validated.
    """

    if not line:
        return False

    upper = axis.upper()
    lower = axis.lower()
    length = len(line)
    for index, char in enumerate(line):
        if char != upper and char != lower:
            continue
        probe = index + 1
        while probe < length and line[probe] in " \t":
            probe += 1
        if probe >= length:
            return False
        if line[probe] in _NUMBER_START:
            return True
    return False


def _axis_value_pattern(axis: str) -> re.Pattern[str]:
    key = axis.upper()
    pattern = _AXIS_VALUE_RE.get(key)
    if pattern is None:
        pattern = re.compile(
            rf"(?i){re.escape(key)}\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))"
        )
        _AXIS_VALUE_RE[key] = pattern
    return pattern


def parse_axis_value(line: str | None, axis: str) -> float | None:
    """Parse the first ``<axis><number>`` word of ``line`` into a float."""

    match = _axis_value_pattern(axis).search(line or "")
    if match is None:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def format_number(value: float) -> str:
    """Render ``value`` without a trailing ``.0`` and with at most six decimals."""

    rounded = round(value)
    if abs(value - rounded) < 1e-12:
        return str(int(rounded))
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in {"", "-0"} else text


__all__ = [
    "DISPLAY_TAG_PATTERN",
    "count_paren_blocks",
    "format_number",
    "has_axis_number",
    "insert_and_align_tag",
    "key_as_is",
    "key_for_match",
    "key_with_tag",
    "parse_axis_value",
    "remove_paren_blocks",
    "split_lines",
    "strip_leading_anchor",
    "strip_line_number",
    "strip_trailing_paren_block",
]
