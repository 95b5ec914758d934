"""Read region blocks back out of an editor document."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Sequence

from .addressing import DisplayTag
from .builders import GCODE_ONLY_REGISTRARS
from .config import get_logger
from .normalize import split_lines
from .regions import Region, RegionCollections, RegionKind

logger = get_logger("document")

_START_RE = re.compile(r"^\s*\((?P<name>.+?)\s+ST\)\s*$", re.IGNORECASE)
_END_RE = re.compile(r"^\s*\((?P<name>.+?)\s+END\)\s*$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class RegionBlock:
    name: str
    lines: list[str]
    start: int
    end: int


def iter_region_blocks(text: str | Sequence[str]) -> Iterator[RegionBlock]:
    """Yield every ``(NAME ST)`` .. ``(NAME END)`` block in document order.

    ``start``/``end`` are the 0-based indexes of the wrapper lines. A block whose
    ``END`` line never appears is ignored.
    """

    lines = split_lines(text) if isinstance(text, str) else list(text)
    open_name: str | None = None
    open_index = -1
    for index, line in enumerate(lines):
        start = _START_RE.match(line)
        if start is not None:
            if open_name is not None:
                logger.debug("Block %r at line %d was never closed", open_name, open_index + 1)
            open_name = start.group("name").strip()
            open_index = index
            continue

        end = _END_RE.match(line)
        if end is not None and open_name is not None:
            if end.group("name").strip().casefold() == open_name.casefold():
                yield RegionBlock(open_name, lines[open_index + 1:index], open_index, index)
                open_name = None

    if open_name is not None:
        logger.debug("Block %r at line %d was never closed", open_name, open_index + 1)


def infer_kind(lines: Sequence[str]) -> RegionKind | None:
    """Kind of the first line carrying a display tag with a known kind letter."""

    for line in lines:
        tag, _ = DisplayTag.parse_trailing(line)
        if tag is None:
            continue
        kind = RegionKind.from_tag_letter(tag.kind_letter)
        if kind is not None:
            return kind
    return None


def load_document_regions(
    text: str,
    collections: RegionCollections,
    default_kind: RegionKind | str | None = None,
) -> list[Region]:
    """Register every region block of ``text`` in ``collections``.

    Blocks are classified by their display tags, falling back to
    ``default_kind``; blocks that cannot be classified or hold no lines are
    skipped.
    """

    fallback = RegionKind.parse(default_kind) if default_kind is not None else None
    loaded: list[Region] = []
    for block in iter_region_blocks(text):
        kind = infer_kind(block.lines) or fallback
        if kind is None:
            logger.debug("Skipping block %r: no display tag to classify it", block.name)
            continue
        if not any(line.strip() for line in block.lines):
            logger.debug("Skipping block %r: no lines", block.name)
            continue
        loaded.append(GCODE_ONLY_REGISTRARS[kind](collections, block.name, block.lines))

    logger.info("Loaded %d region(s) from document", len(loaded))
    return loaded


__all__ = [
    "RegionBlock",
    "infer_kind",
    "iter_region_blocks",
    "load_document_regions",
]
