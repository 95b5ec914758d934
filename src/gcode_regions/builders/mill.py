"""Mill regions: XY strokes cut at one Z plane."""

from __future__ import annotations

from typing import Mapping, Sequence

from ..config import get_logger
from ..normalize import format_number, has_axis_number, key_for_match, parse_axis_value
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

logger = get_logger("builders", "mill")

NO_PLANE = "No Z value found in highlighted text (Auto Mill needs a Z plane)."
NO_REGIONS = "No valid MILL regions could be derived from the highlighted text."


def _has_xy(line: str) -> bool:
    return parse_axis_value(line, "X") is not None or parse_axis_value(line, "Y") is not None


def find_plane_z(lines: Sequence[str]) -> float | None:
    """Lowest Z value anywhere in ``lines``."""

    values = [parse_axis_value(clean_motion_line(line), "Z") for line in lines]
    found = [value for value in values if value is not None]
    return min(found) if found else None


def split_mill_strokes(lines: Sequence[str], plane_z: float) -> list[list[str]]:
    """Split motion lines into strokes at ``plane_z``.

    Each stroke starts with its remembered lead-ins (last XY rapid, then the
    plunge to the plane) followed by the feed/arc XY lines.
    """

    strokes: list[list[str]] = []
    modal: Motion | None = None
    last_rapid: str | None = None
    last_plunge: str | None = None
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
        has_xy = _has_xy(line)
        z_value = parse_axis_value(line, "Z")

        if modal is Motion.RAPID and has_xy:
            if in_stroke and has_cut:
                finish()
                current = []
                in_stroke = False
                has_cut = False
                last_plunge = None
            last_rapid = line
            continue

        if modal is Motion.FEED and not has_xy and z_value is not None and z_value == plane_z:
            last_plunge = line
            continue

        is_cut = modal is not None and modal.cuts and has_xy
        if not in_stroke:
            if not is_cut or (z_value is not None and z_value != plane_z):
                continue
            in_stroke = True
            current = [lead for lead in (last_rapid, last_plunge) if lead]

        if is_cut:
            current.append(line)
            has_cut = True

    finish()
    return strokes


def build_mill_regions(
    selected_text: str | None,
    full_document_text: str | None,
    base_name: str | None,
) -> BuildResult:
    """Carve the selection into XY stroke regions tagged ``(M:Lnnnn)``."""

    lines, problem = prepare_selection(selected_text, base_name)
    if problem:
        logger.debug("Mill selection rejected: %s", problem)
        return BuildResult.failure(problem)

    plane_z = find_plane_z(lines)
    if plane_z is None:
        logger.debug("Mill selection rejected: %s", NO_PLANE)
        return BuildResult.failure(NO_PLANE)

    writer = BlockWriter(RegionKind.MILL, base_name or "", full_document_text)
    for stroke in split_mill_strokes(lines, plane_z):
        if not any(_has_xy(line) for line in stroke):
            logger.debug("Skipping mill stroke without XY content: %s", stroke)
            continue
        writer.write([f"Z{format_number(plane_z)}", *stroke])

    result = writer.result(NO_REGIONS)
    if result.success:
        logger.info("Built %d mill region(s) at Z%s", len(result.blocks), format_number(plane_z))
    return result


def mill_markers(uid: str, keys: Sequence[str]) -> dict[str, str]:
    """Axis extrema references: first Z, first X/Y, last X/Y."""

    payloads = [key_for_match(key) for key in keys]

    def first(axis: str) -> int:
        return next((i for i, text in enumerate(payloads) if has_axis_number(text, axis)), -1)

    def last(axis: str) -> int:
        return next((i for i in range(len(payloads) - 1, -1, -1) if has_axis_number(payloads[i], axis)), -1)

    return {
        "PlaneZLineText": anchored_at(uid, keys, first("Z")),
        "StartXLineText": anchored_at(uid, keys, first("X")),
        "StartYLineText": anchored_at(uid, keys, first("Y")),
        "EndXLineText": anchored_at(uid, keys, last("X")),
        "EndYLineText": anchored_at(uid, keys, last("Y")),
    }


def add_mill_region_from_gcode_only(
    collections: RegionCollections,
    name: str,
    lines: Sequence[str],
    *,
    defaults: Mapping[str, str] | None = None,
    show_in_view_all: bool = True,
    export_enabled: bool = False,
) -> Region:
    """Register already segmented mill lines (no ``ST``/``END`` wrapper) as a region."""

    stem = require_gcode_only_input(name, lines)
    uid, anchored, keys = anchor_gcode_only(lines)
    region = register_gcode_only(
        collections,
        RegionKind.MILL,
        stem,
        uid,
        anchored,
        mill_markers(uid, keys),
        defaults=defaults,
        show_in_view_all=show_in_view_all,
        export_enabled=export_enabled,
    )
    logger.info("Registered mill region %r (%d lines)", region.name, len(region.lines))
    return region


__all__ = [
    "NO_PLANE",
    "NO_REGIONS",
    "add_mill_region_from_gcode_only",
    "build_mill_regions",
    "find_plane_z",
    "mill_markers",
    "split_mill_strokes",
]
