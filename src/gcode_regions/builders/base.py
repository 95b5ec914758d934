"""Shared pieces of the Mill/Turn/Drill region builders."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence

from ..addressing import Anchor, DisplayTag, new_uid, next_available_letter, next_letter
from ..config import load_named_config, tag_column
from ..normalize import insert_and_align_tag, key_with_tag, split_lines, strip_trailing_paren_block
from ..regions import REGION_UID_KEY, Region, RegionCollections, RegionKind

NO_TEXT = "No highlighted text."
NO_NAME = "No base name provided."
NO_LINES = "Highlighted selection has no usable lines."


def _word(code: str) -> re.Pattern[str]:
    # Not preceded by a letter/digit, not followed by a digit: G1 never matches G10 or G01.
    return re.compile(rf"(?:^|[^0-9A-Z]){code}(?!\d)", re.IGNORECASE)


class Motion(Enum):
    RAPID = "G0"
    FEED = "G1"
    ARC_CW = "G2"
    ARC_CCW = "G3"

    @property
    def cuts(self) -> bool:
        return self is not Motion.RAPID


_MOTION_PATTERNS = tuple((motion, _word(motion.value)) for motion in Motion)
CYCLE_START_RE = _word("G8[1-9]")
CYCLE_CANCEL_RE = _word("G80")


def detect_motion(line: str) -> Motion | None:
    """First motion word present on ``line`` (G0 before G1 before G2 before G3)."""

    for motion, pattern in _MOTION_PATTERNS:
        if pattern.search(line):
            return motion
    return None


@dataclass(slots=True)
class BuildResult:
    """Outcome of one builder call; ``blocks`` are complete ``ST``..``END`` blocks."""

    success: bool
    blocks: list[list[str]] = field(default_factory=list)
    message: str = ""

    @property
    def text(self) -> str:
        return "\n\n".join("\n".join(block) for block in self.blocks)

    @property
    def names(self) -> list[str]:
        return [block_name(block) for block in self.blocks]

    @classmethod
    def failure(cls, message: str) -> "BuildResult":
        return cls(False, [], message)


def block_name(block: Sequence[str]) -> str:
    header = (block[0] if block else "").strip()
    if header.startswith("(") and header.endswith(" ST)"):
        return header[1:-4]
    return header


def prepare_selection(selected_text: str | None, base_name: str | None) -> tuple[list[str], str | None]:
    """Trimmed, non-blank lines of the selection, or a failure message."""

    if not (selected_text or "").strip():
        return [], NO_TEXT
    if not (base_name or "").strip():
        return [], NO_NAME
    lines = [line.strip() for line in split_lines(selected_text)]
    lines = [line for line in lines if line]
    if not lines:
        return [], NO_LINES
    return lines, None


def clean_motion_line(line: str) -> str:
    return strip_trailing_paren_block(line.strip())


def collapse_duplicates(lines: Sequence[str]) -> list[str]:
    """Drop lines equal (case-insensitively) to the line just before them."""

    collapsed: list[str] = []
    for line in lines:
        if collapsed and collapsed[-1].casefold() == line.casefold():
            continue
        collapsed.append(line)
    return collapsed


class BlockWriter:
    """Turns content-line candidates into named, tagged region blocks.

    A set letter is consumed only when a block is actually written; region
    numbers in the names count written blocks only.
    """

    def __init__(self, kind: RegionKind, base_name: str, document_text: str | None, column: int | None = None):
        self.kind = kind
        self.base_name = base_name.strip()
        self.letter = next_available_letter(document_text)
        self.column = tag_column() if column is None else column
        self.blocks: list[list[str]] = []

    def write(self, content: Sequence[str]) -> bool:
        if not content:
            return False
        name = f"{self.base_name} ({len(self.blocks) + 1})"
        block = [f"({name} ST)"]
        for index, line in enumerate(content):
            tag = DisplayTag(self.kind.tag_letter, self.letter, index)
            block.append(insert_and_align_tag(f"{line} {tag}", self.column))
        block.append(f"({name} END)")
        self.blocks.append(block)
        self.letter = next_letter(self.letter)
        return True

    def result(self, empty_message: str) -> BuildResult:
        if not self.blocks:
            return BuildResult.failure(empty_message)
        count = len(self.blocks)
        plural = "region" if count == 1 else "regions"
        return BuildResult(True, self.blocks, f"Created {count} {self.kind.label} {plural}.")


def anchor_gcode_only(lines: Sequence[str]) -> tuple[str, list[str], list[str]]:
    """Anchor already segmented lines for direct registration.

    Returns ``(uid, anchored, keys)``. ``keys`` has one entry per input line
    (blank for blank inputs) so indexes line up with the input; ``anchored``
    only holds the non-blank lines, numbered by their input position.
    """

    uid = new_uid()
    anchored: list[str] = []
    keys: list[str] = []
    for index, raw in enumerate(lines):
        key = key_with_tag(raw)
        keys.append(key)
        if key:
            anchored.append(Anchor(uid, index + 1).apply(key))
    return uid, anchored, keys


def anchored_at(uid: str, keys: Sequence[str], index: int) -> str:
    if 0 <= index < len(keys) and keys[index]:
        return Anchor(uid, index + 1).apply(keys[index])
    return ""


def register_gcode_only(
    collections: RegionCollections,
    kind: RegionKind,
    name: str,
    uid: str,
    anchored: list[str],
    markers: Mapping[str, str],
    *,
    defaults: Mapping[str, str] | None = None,
    show_in_view_all: bool = True,
    export_enabled: bool = False,
) -> Region:
    snapshot = load_named_config(kind.value)
    snapshot.update(defaults or {})
    snapshot[REGION_UID_KEY] = uid
    snapshot.update(markers)
    region = Region(
        kind=kind,
        name=collections.make_unique_name(kind, name),
        lines=anchored,
        snapshot_values=snapshot,
        show_in_view_all=show_in_view_all,
        export_enabled=export_enabled,
    )
    return collections.add(region)


def require_gcode_only_input(name: str | None, lines: Sequence[str] | None) -> str:
    """Validate the caller contract of the gcode-only entry points."""

    stem = (name or "").strip()
    if not stem:
        raise ValueError("Region name must not be empty")
    if not lines or not any((line or "").strip() for line in lines):
        raise ValueError("Region lines must not be empty")
    return stem


__all__ = [
    "BlockWriter",
    "BuildResult",
    "CYCLE_CANCEL_RE",
    "CYCLE_START_RE",
    "Motion",
    "NO_LINES",
    "NO_NAME",
    "NO_TEXT",
    "anchor_gcode_only",
    "anchored_at",
    "block_name",
    "clean_motion_line",
    "collapse_duplicates",
    "detect_motion",
    "prepare_selection",
    "register_gcode_only",
    "require_gcode_only_input",
]
