"""Locate stored lines and region blocks inside an editor document.

All comparisons use :func:`~gcode_regions.normalize.key_with_tag`, so anchors,
line-number prefixes, whitespace and case never matter while display tags do.
The locator reports how many times a block occurs and leaves it to the
caller to decide what an ambiguous match means.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .config import get_logger
from .normalize import key_with_tag, split_lines
from .regions import Region, ResolveStatus

logger = get_logger("locator")


@dataclass(frozen=True, slots=True)
class MultiLineMatch:
    start: int = -1
    end: int = -1
    match_count: int = 0

    @property
    def found(self) -> bool:
        return self.match_count > 0


_NO_MATCH = MultiLineMatch()


def _clamp(length: int, range_start: int, range_end: int | None) -> tuple[int, int]:
    lo = max(0, range_start)
    hi = length - 1 if range_end is None or range_end < 0 else min(length - 1, range_end)
    return lo, hi


def find_single_line(
    haystack: Sequence[str],
    needle: str,
    range_start: int = 0,
    range_end: int | None = None,
    prefer_last: bool = False,
) -> int:
    """Index of the first (or last) line whose key equals the needle's, else ``-1``."""

    want = key_with_tag(needle)
    if not want or not haystack:
        return -1

    lo, hi = _clamp(len(haystack), range_start, range_end)
    if lo > hi:
        return -1

    indexes = range(hi, lo - 1, -1) if prefer_last else range(lo, hi + 1)
    for index in indexes:
        if key_with_tag(haystack[index]) == want:
            return index
    return -1


def find_multi_line(
    haystack: Sequence[str],
    block: Sequence[str],
    range_start: int = 0,
    range_end: int | None = None,
) -> MultiLineMatch:
    """Slide ``block`` over the range and count every positional match.

    The first match's start/end indexes are returned together with the total
    number of matches. A block with any line that normalizes to empty can
    never be found.
    """

    size = len(block)
    if not haystack or size == 0:
        return _NO_MATCH

    needles = [key_with_tag(line) for line in block]
    if any(not needle for needle in needles):
        return _NO_MATCH

    lo, hi = _clamp(len(haystack), range_start, range_end)
    if hi - lo + 1 < size:
        return _NO_MATCH

    keys = [key_with_tag(line) for line in haystack[lo:hi + 1]]
    first = -1
    count = 0
    for offset in range(len(keys) - size + 1):
        if keys[offset:offset + size] == needles:
            if first < 0:
                first = lo + offset
            count += 1

    if count == 0:
        return _NO_MATCH
    return MultiLineMatch(start=first, end=first + size - 1, match_count=count)


def find_unique_in_range(
    haystack: Sequence[str],
    needle: str,
    range_start: int = 0,
    range_end: int | None = None,
) -> tuple[int, ResolveStatus]:
    """Locate ``needle`` and require it to occur exactly once in the range."""

    first = find_single_line(haystack, needle, range_start, range_end)
    if first < 0:
        return -1, ResolveStatus.MISSING
    last = find_single_line(haystack, needle, range_start, range_end, prefer_last=True)
    if last != first:
        return first, ResolveStatus.AMBIGUOUS
    return first, ResolveStatus.OK


def _anchored_references(region: Region) -> list[str]:
    references: list[str] = []
    for value in region.snapshot_values.values():
        if not value or "#" not in value:
            continue
        references.extend(piece for piece in split_lines(value) if piece.strip())
    return references


def resolve_region(
    region: Region,
    haystack: Sequence[str] | str,
    *,
    check_references: bool = True,
) -> ResolveStatus:
    """Resolve ``region`` against the document and record the outcome on it.

    The region's lines must occur exactly once. With ``check_references`` every
    anchored snapshot value must also resolve uniquely inside the located block.
    """

    lines = split_lines(haystack) if isinstance(haystack, str) else haystack
    if not region.lines:
        region.mark(ResolveStatus.UNSET)
        return region.status

    match = find_multi_line(lines, region.lines)
    if not match.found:
        region.mark(ResolveStatus.MISSING)
    elif match.match_count > 1:
        region.mark(ResolveStatus.AMBIGUOUS, match.start, match.end)
    else:
        region.mark(ResolveStatus.OK, match.start, match.end)
        if check_references:
            for reference in _anchored_references(region):
                _, status = find_unique_in_range(lines, reference, match.start, match.end)
                if status is not ResolveStatus.OK:
                    logger.debug("Region %r reference %r is %s", region.name, reference, status.value)
                    region.mark(status)
                    break

    logger.debug("Region %r resolved: %s", region.name, region.status_text)
    return region.status


__all__ = [
    "MultiLineMatch",
    "find_multi_line",
    "find_single_line",
    "find_unique_in_range",
    "resolve_region",
]
