"""Identity anchors and display tags.

Two independent address spaces are attached to every stored region line:

``Anchor``
    ``#<uid>,<n>#`` prefix. ``uid`` identifies the region, ``n`` is the
    1-based ordinal of the line inside it. Never shown to the user.
``DisplayTag``
    ``(<kind>:<set><nnnn>)`` suffix shown in the editor, regenerated on every
    rebuild.

Both are only concatenated with a payload at the rendering boundary.
"""

from __future__ import annotations

import re
import string
import uuid
from dataclasses import dataclass

from .normalize import DISPLAY_TAG_PATTERN

_ANCHOR_RE = re.compile(r"^\s*#([^#,]+),\s*(\d+)\s*#")
_TRAILING_TAG_RE = re.compile(r"\s*" + DISPLAY_TAG_PATTERN + r"\s*$")
_LETTER_SCAN_RE = re.compile(r"\(\s*[A-Za-z]\s*:\s*([A-Za-z])\s*\d{4}\s*\)")

SET_LETTERS = string.ascii_uppercase


def new_uid() -> str:
    """Return a fresh opaque region identifier (32 hex characters, no commas)."""

    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Anchor:
    """Stable identity of one stored line: region uid plus 1-based ordinal."""

    uid: str
    ordinal: int

    def __str__(self) -> str:
        return f"#{self.uid},{self.ordinal}#"

    def apply(self, payload: str) -> str:
        return f"{self}{payload}"

    @classmethod
    def parse(cls, line: str | None) -> tuple["Anchor | None", str]:
        """Split a leading ``#uid,n#`` off ``line``.

        Returns ``(anchor, rest)``; ``anchor`` is ``None`` and ``rest`` is the
        unchanged line when no well formed anchor is present.
        """

        text = line or ""
        match = _ANCHOR_RE.match(text)
        if match is None:
            return None, text
        uid = match.group(1).strip()
        ordinal = int(match.group(2))
        if not uid or ordinal < 1:
            return None, text
        return cls(uid, ordinal), text[match.end():]


@dataclass(frozen=True, slots=True)
class DisplayTag:
    """Human-visible ``(K:Lnnnn)`` address regenerated on every rebuild."""

    kind_letter: str
    set_letter: str
    index: int

    def __str__(self) -> str:
        return f"({self.kind_letter.upper()}:{self.set_letter.upper()}{self.index:04d})"

    @classmethod
    def parse_trailing(cls, line: str | None) -> tuple["DisplayTag | None", str]:
        """Split a trailing display tag off ``line``.

        Returns ``(tag, rest)`` with ``rest`` right-stripped; when the line does
        not end with a tag the result is ``(None, line)``.
        """

        text = line or ""
        match = _TRAILING_TAG_RE.search(text)
        if match is None:
            return None, text
        tag = cls(match.group(1).upper(), match.group(2).upper(), int(match.group(3)))
        return tag, text[:match.start()].rstrip()


def set_letter_for_index(index: int) -> str:
    """Set letter for the region at ``index`` within its kind (wraps after ``Z``)."""

    return SET_LETTERS[index % len(SET_LETTERS)]


def next_letter(letter: str) -> str:
    """Advance one set letter, wrapping ``Z`` to ``A``."""

    position = SET_LETTERS.find(letter.upper())
    if position < 0:
        return SET_LETTERS[0]
    return SET_LETTERS[(position + 1) % len(SET_LETTERS)]


def highest_set_letter(document_text: str | None) -> str | None:
    highest: str | None = None
    for match in _LETTER_SCAN_RE.finditer(document_text or ""):
        letter = match.group(1).upper()
        if highest is None or letter > highest:
            highest = letter
    return highest


def next_available_letter(document_text: str | None) -> str:
    """Next set letter that no display tag of any kind in the document uses.

    The whole document is scanned on every call. ``A`` is returned when the
    document holds no tags.

    >>> next_available_letter("G1X1 (M:A0001)\\nG1X2 (U:C0042)\\nG0Z5 (T:B0005)")
    'D'
    """

    highest = highest_set_letter(document_text)
    if highest is None:
        return SET_LETTERS[0]
    return next_letter(highest)


__all__ = [
    "Anchor",
    "DisplayTag",
    "SET_LETTERS",
    "highest_set_letter",
    "new_uid",
    "next_available_letter",
    "next_letter",
    "set_letter_for_index",
]
