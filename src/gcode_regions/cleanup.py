"""Cleanup/rebuild of every stored region.

The rebuild strips stale markup from each region, renumbers its anchors and
display tags, and moves every anchored snapshot reference to the line it
pointed at before the rewrite. References follow the old anchor ordinal,
never the line content, because payloads are not guaranteed unique.

Kinds are processed TURN, MILL, DRILL; the set letter restarts at ``A`` for
each kind and follows the region's position in its collection.
"""

from __future__ import annotations

from collections.abc import MutableSequence
from dataclasses import asdict, dataclass, field
from typing import Sequence

import pandas as pd

from .addressing import Anchor, DisplayTag, new_uid, set_letter_for_index
from .config import get_logger, tag_column
from .normalize import (
    count_paren_blocks,
    insert_and_align_tag,
    key_as_is,
    remove_paren_blocks,
    split_lines,
    strip_leading_anchor,
    strip_line_number,
)
from .regions import KIND_ORDER, REGION_UID_KEY, Region, RegionCollections, ResolveStatus

logger = get_logger("cleanup")

STATS_COLUMNS = [
    "kind",
    "name",
    "set_letter",
    "lines_in",
    "lines_out",
    "blanks_removed",
    "comments_removed",
    "comment_only_removed",
    "remapped",
    "stale",
]


class RegionStructureError(RuntimeError):
    """Raised when a region's line container cannot be rebuilt."""


@dataclass(slots=True)
class RegionCleanupStats:
    kind: str
    name: str
    set_letter: str
    lines_in: int = 0
    lines_out: int = 0
    blanks_removed: int = 0
    comments_removed: int = 0
    comment_only_removed: int = 0
    remapped: int = 0
    stale: int = 0


@dataclass(slots=True)
class CleanupResult:
    report: str
    editor_text: str
    stats: pd.DataFrame
    touched: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class _KeptLine:
    old_ordinal: int
    payload: str


def _scrub_line(raw: str | None, stats: RegionCleanupStats) -> tuple[Anchor | None, str]:
    """Return the line's anchor (if any) and its bare payload ("" when dropped)."""

    text = strip_line_number(raw or "")
    anchor, rest = Anchor.parse(text)
    if anchor is None:
        rest = strip_leading_anchor(rest)
    if not rest.strip():
        stats.blanks_removed += 1
        return anchor, ""

    _, rest = DisplayTag.parse_trailing(rest)
    comments = count_paren_blocks(rest)
    stats.comments_removed += comments
    payload = key_as_is(remove_paren_blocks(rest))
    if not payload:
        stats.comment_only_removed += 1
    return anchor, payload


def _remap_piece(piece: str, ordinal_map: dict[int, int], rebuilt: Sequence[str]) -> tuple[str, bool | None]:
    """Remap one anchored reference; ``True`` remapped, ``False`` stale, ``None`` not anchored."""

    anchor, _ = Anchor.parse(strip_line_number(piece))
    if anchor is None:
        return piece, None
    new_ordinal = ordinal_map.get(anchor.ordinal)
    if new_ordinal is None:
        return piece, False
    return rebuilt[new_ordinal - 1], True


def _remap_snapshot(region: Region, ordinal_map: dict[int, int], stats: RegionCleanupStats) -> None:
    for key, value in list(region.snapshot_values.items()):
        if not value or "#" not in value:
            continue

        pieces = split_lines(value)
        multi_line = len(pieces) > 1
        remapped_pieces: list[str] = []
        for piece in pieces:
            if not piece.strip():
                if not multi_line:
                    remapped_pieces.append(piece)
                continue
            new_piece, outcome = _remap_piece(piece, ordinal_map, region.lines)
            if outcome is True:
                stats.remapped += 1
            elif outcome is False:
                stats.stale += 1
                logger.warning(
                    "Region %r snapshot %s references a line that no longer exists: %s",
                    region.name,
                    key,
                    piece.strip(),
                )
            if new_piece.strip():
                remapped_pieces.append(new_piece)

        region.snapshot_values[key] = "\n".join(remapped_pieces)


def rebuild_region(region: Region, set_letter: str) -> RegionCleanupStats:
    """Rebuild one region in place and return its counts."""

    stats = RegionCleanupStats(kind=region.kind.label, name=region.name, set_letter=set_letter)
    if not isinstance(region.lines, MutableSequence):
        raise RegionStructureError(
            f"{region.kind.label} region {region.name!r} has no usable line container"
        )

    stats.lines_in = len(region.lines)
    uid: str | None = None
    kept: list[_KeptLine] = []
    for raw in region.lines:
        anchor, payload = _scrub_line(raw, stats)
        if anchor is not None and uid is None:
            uid = anchor.uid
        if payload:
            kept.append(_KeptLine(anchor.ordinal if anchor else -1, payload))

    if not kept:
        return stats

    uid = uid or (region.snapshot_values.get(REGION_UID_KEY) or "").strip() or new_uid()
    kind_letter = region.kind.tag_letter
    rebuilt: list[str] = []
    ordinal_map: dict[int, int] = {}
    for index, line in enumerate(kept):
        new_ordinal = index + 1
        tag = DisplayTag(kind_letter, set_letter, index)
        rebuilt.append(f"{Anchor(uid, new_ordinal)}{line.payload}{tag}")
        if line.old_ordinal >= 1:
            ordinal_map.setdefault(line.old_ordinal, new_ordinal)

    region.lines[:] = rebuilt
    if REGION_UID_KEY in region.snapshot_values:
        region.snapshot_values[REGION_UID_KEY] = uid
    region.mark(ResolveStatus.UNSET)
    stats.lines_out = len(rebuilt)
    _remap_snapshot(region, ordinal_map, stats)
    return stats


def render_region(region: Region, column: int | None = None, fallback_name: str = "") -> list[str]:
    """``(NAME ST)``, aligned lines, ``(NAME END)`` and a blank separator."""

    width = tag_column() if column is None else column
    name = (region.name or "").strip() or fallback_name
    rendered = [f"({name} ST)"]
    rendered.extend(insert_and_align_tag(line, width) for line in region.lines)
    rendered.append(f"({name} END)")
    rendered.append("")
    return rendered


def _report_line(stats: RegionCleanupStats, status: str) -> str:
    return (
        f"  [{stats.set_letter}] {stats.name}: {status} "
        f"in={stats.lines_in} out={stats.lines_out} blanks={stats.blanks_removed} "
        f"comments={stats.comments_removed} comment_only={stats.comment_only_removed} "
        f"remapped={stats.remapped} stale={stats.stale}"
    )


def rebuild_all(
    collections: RegionCollections | None = None,
    *,
    turn: list[Region] | None = None,
    mill: list[Region] | None = None,
    drill: list[Region] | None = None,
    column: int | None = None,
) -> CleanupResult:
    """Rebuild every region of every kind.

    Accepts either a :class:`RegionCollections` or the three per-kind lists.
    """

    if collections is None:
        collections = RegionCollections(turn=turn or [], mill=mill or [], drill=drill or [])

    width = tag_column() if column is None else column
    report = ["G-code region cleanup", "======================"]
    editor: list[str] = []
    rows: list[RegionCleanupStats] = []
    touched: dict[str, int] = {}

    for kind in KIND_ORDER:
        regions = collections.for_kind(kind)
        touched[kind.label] = 0
        report.append("")
        report.append(f"--- {kind.label} SETS ---")
        if not regions:
            report.append("  (none)")
            continue

        for position, region in enumerate(regions):
            set_letter = set_letter_for_index(position)
            if isinstance(region.lines, MutableSequence) and not region.lines:
                stats = RegionCleanupStats(kind=kind.label, name=region.name, set_letter=set_letter)
                report.append(_report_line(stats, "SKIP (no lines)"))
                rows.append(stats)
                continue

            stats = rebuild_region(region, set_letter)
            rows.append(stats)
            if stats.lines_out == 0:
                report.append(_report_line(stats, "SKIP (no lines after cleanup)"))
                continue

            touched[kind.label] += 1
            editor.extend(render_region(region, width, f"{kind.label}_SET_{position + 1}"))
            report.append(_report_line(stats, "OK"))
            logger.debug("Rebuilt %s region %r: %s", kind.label, region.name, stats)

        logger.info("Rebuilt %d of %d %s region(s)", touched[kind.label], len(regions), kind.label)

    stats_frame = pd.DataFrame([asdict(row) for row in rows], columns=STATS_COLUMNS)
    report.append("")
    report.append("Summary")
    report.append("-------")
    if stats_frame.empty:
        report.append("No regions.")
    else:
        report.append(stats_frame.to_string(index=False))

    return CleanupResult(
        report="\n".join(report),
        editor_text="\n".join(editor),
        stats=stats_frame,
        touched=touched,
    )


__all__ = [
    "CleanupResult",
    "RegionCleanupStats",
    "RegionStructureError",
    "STATS_COLUMNS",
    "rebuild_all",
    "rebuild_region",
    "render_region",
]
