"""Turn regions: XZ strokes between rapid moves."""

from __future__ import annotations

from typing import Mapping, Sequence

from ..config import get_logger
from ..normalize import has_axis_number, key_for_match, parse_axis_value
from ..regions import Region, RegionCollections, RegionKind
from .base import (
    BlockWriter,
    BuildResult,
    Motion,
    anchor_gcode_only,
    anchored_at,
    clean_motion_line,
    collapse_duplicates,
    detect_motion,
    prepare_selection,
    register_gcode_only,
    require_gcode_only_input,
)

logger = get_logger("builders", "turn")

NO_REGIONS = "No valid TURN regions could be derived from the highlighted text."


def _has_xz(line: str) -> bool:
    return parse_axis_value(line, "X") is not None or parse_axis_value(line, "Z") is not None


def split_turn_strokes(lines: Sequence[str]) -> list[list[str]]:
    """Split motion lines into strokes; a rapid with X or Z is the only boundary.

    Each stroke starts with the last X/Z rapid seen before it (its lead-in),
    followed by the feed/arc X/Z lines.
    """

    strokes: list[list[str]] = []
    modal: Motion | None = None
    last_rapid: str | None = None
    current: list[str] = []
    in_stroke = False
    has_cut = False

    def finish() -> None:
        if in_stroke and has_cut and current:
            strokes.append(collapse_duplicates(current))

    for raw in lines:
        line = clean_motion_line(raw)
        if not line:
            continue

        modal = detect_motion(line) or modal
        has_xz = _has_xz(line)

        if modal is Motion.RAPID and has_xz:
            if in_stroke and has_cut:
                finish()
                current = []
                in_stroke = False
                has_cut = False
            last_rapid = line
            continue

        if not (modal is not None and modal.cuts and has_xz):
            continue

        if not in_stroke:
            in_stroke = True
            current = [last_rapid] if last_rapid else []
        current.append(line)
        has_cut = True

    finish()
    return strokes


def build_turn_regions(
    selected_text: str | None,
    full_document_text: str | None,
    base_name: str | None,
) -> BuildResult:
    """Carve the selection into XZ stroke regions tagged ``(T:Lnnnn)``."""

    lines, problem = prepare_selection(selected_text, base_name)
    if problem:
        logger.debug("Turn selection rejected: %s", problem)
        return BuildResult.failure(problem)

    writer = BlockWriter(RegionKind.TURN, base_name or "", full_document_text)
    for stroke in split_turn_strokes(lines):
        writer.write(stroke)

    result = writer.result(NO_REGIONS)
    if result.success:
        logger.info("Built %d turn region(s)", len(result.blocks))
    return result


def turn_markers(uid: str, keys: Sequence[str]) -> dict[str, str]:
    """First and last X/Z line references."""

    payloads = [key_for_match(key) for key in keys]
    indexes = range(len(payloads))

    def first(axis: str) -> int:
        return next((i for i in indexes if has_axis_number(payloads[i], axis)), -1)

    def last(axis: str) -> int:
        return next((i for i in reversed(indexes) if has_axis_number(payloads[i], axis)), -1)

    return {
        "__StartXLine": anchored_at(uid, keys, first("X")),
        "__StartZLine": anchored_at(uid, keys, first("Z")),
        "__EndXLine": anchored_at(uid, keys, last("X")),
        "__EndZLine": anchored_at(uid, keys, last("Z")),
    }


def add_turn_region_from_gcode_only(
    collections: RegionCollections,
    name: str,
    lines: Sequence[str],
    *,
    defaults: Mapping[str, str] | None = None,
    show_in_view_all: bool = True,
    export_enabled: bool = False,
) -> Region:
    """Register already segmented turn lines (no ``ST``/``END`` wrapper) as a region."""

    stem = require_gcode_only_input(name, lines)
    uid, anchored, keys = anchor_gcode_only(lines)
    region = register_gcode_only(
        collections,
        RegionKind.TURN,
        stem,
        uid,
        anchored,
        turn_markers(uid, keys),
        defaults=defaults,
        show_in_view_all=show_in_view_all,
        export_enabled=export_enabled,
    )
    logger.info("Registered turn region %r (%d lines)", region.name, len(region.lines))
    return region


__all__ = [
    "NO_REGIONS",
    "add_turn_region_from_gcode_only",
    "build_turn_regions",
    "split_turn_strokes",
    "turn_markers",
]
