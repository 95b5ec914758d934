"""Drill regions: canned-cycle groups (``G81``..``G89`` until ``G80``)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from ..config import get_logger
from ..normalize import format_number, key_for_match, parse_axis_value
from ..regions import Region, RegionCollections, RegionKind
from .base import (
    CYCLE_CANCEL_RE,
    CYCLE_START_RE,
    BlockWriter,
    BuildResult,
    Motion,
    anchor_gcode_only,
    anchored_at,
    clean_motion_line,
    detect_motion,
    prepare_selection,
    register_gcode_only,
    require_gcode_only_input,
)

logger = get_logger("builders", "drill")

NO_CYCLES = "No drill cycles found (G81..G89)."
NO_REGIONS = "No valid DRILL regions could be derived from the highlighted text."


@dataclass(slots=True)
class CycleGroup:
    depth: float
    top: float
    points: list[tuple[float, float]] = field(default_factory=list)

    def content_lines(self) -> list[str]:
        lines = [f"D Z{format_number(self.depth)}", f"T Z{format_number(self.top)}"]
        lines.extend(f"X{format_number(x)}Y{format_number(y)}" for x, y in self.points)
        return lines


def collect_cycle_groups(lines: Sequence[str]) -> list[CycleGroup]:
    """Group hole positions by the canned cycle that drills them.

    Groups whose cycle line has no Z depth are ignored, as are groups that end
    without a single point.
    """

    groups: list[CycleGroup] = []
    modal_x: float | None = None
    modal_y: float | None = None
    last_rapid_z: float | None = None
    current: CycleGroup | None = None

    def finish() -> None:
        if current is not None and current.points:
            groups.append(current)

    for raw in lines:
        line = clean_motion_line(raw)
        if not line:
            continue

        x_value = parse_axis_value(line, "X")
        y_value = parse_axis_value(line, "Y")
        if x_value is not None:
            modal_x = x_value
        if y_value is not None:
            modal_y = y_value

        is_cycle = CYCLE_START_RE.search(line) is not None
        motion = detect_motion(line)
        if motion is Motion.RAPID:
            z_value = parse_axis_value(line, "Z")
            if z_value is not None:
                last_rapid_z = z_value

        if current is not None:
            if CYCLE_CANCEL_RE.search(line):
                finish()
                current = None
                continue
            if motion is not None and not is_cycle:
                finish()
                current = None
                continue

        if is_cycle:
            finish()
            current = None
            depth = parse_axis_value(line, "Z")
            if depth is None:
                logger.debug("Skipping drill cycle without Z depth: %s", line)
                continue
            top = parse_axis_value(line, "R")
            if top is None:
                top = last_rapid_z if last_rapid_z is not None else 0.0
            current = CycleGroup(depth=depth, top=top)
            if modal_x is not None and modal_y is not None:
                current.points.append((modal_x, modal_y))
            continue

        if current is not None and (x_value is not None or y_value is not None):
            if modal_x is not None and modal_y is not None:
                current.points.append((modal_x, modal_y))

    finish()
    return groups


def build_drill_regions(
    selected_text: str | None,
    full_document_text: str | None,
    base_name: str | None,
) -> BuildResult:
    """One region per canned-cycle group, tagged ``(D:Lnnnn)``."""

    lines, problem = prepare_selection(selected_text, base_name)
    if problem:
        logger.debug("Drill selection rejected: %s", problem)
        return BuildResult.failure(problem)

    groups = collect_cycle_groups(lines)
    if not groups:
        logger.debug("Drill selection rejected: %s", NO_CYCLES)
        return BuildResult.failure(NO_CYCLES)

    writer = BlockWriter(RegionKind.DRILL, base_name or "", full_document_text)
    for group in groups:
        writer.write(group.content_lines())

    result = writer.result(NO_REGIONS)
    if result.success:
        logger.info("Built %d drill region(s)", len(result.blocks))
    return result


def _header_value(payload: str, letter: str) -> float | None:
    if not payload.startswith(f"{letter}Z"):
        return None
    return parse_axis_value(payload[1:], "Z")


def drill_markers(uid: str, keys: Sequence[str]) -> dict[str, str]:
    """Depth line, hole lines and hole top taken from the ``T`` header."""

    markers: dict[str, str] = {}
    holes: list[str] = []
    depth_index = -1
    for index, key in enumerate(keys):
        payload = key_for_match(key)
        if not payload:
            continue
        if depth_index < 0 and _header_value(payload, "D") is not None:
            depth_index = index
            continue
        top = _header_value(payload, "T")
        if top is not None:
            markers.setdefault("TxtZHoleTop", format_number(top))
            continue
        if parse_axis_value(payload, "X") is not None or parse_axis_value(payload, "Y") is not None:
            holes.append(anchored_at(uid, keys, index))

    markers["DrillDepthLineText"] = anchored_at(uid, keys, depth_index)
    markers["HoleLineTexts"] = "\n".join(holes)
    return markers


def add_drill_region_from_gcode_only(
    collections: RegionCollections,
    name: str,
    lines: Sequence[str],
    *,
    defaults: Mapping[str, str] | None = None,
    show_in_view_all: bool = True,
    export_enabled: bool = False,
) -> Region:
    """Register already segmented drill lines (``D``/``T`` headers, then holes) as a region."""

    stem = require_gcode_only_input(name, lines)
    uid, anchored, keys = anchor_gcode_only(lines)
    region = register_gcode_only(
        collections,
        RegionKind.DRILL,
        stem,
        uid,
        anchored,
        drill_markers(uid, keys),
        defaults=defaults,
        show_in_view_all=show_in_view_all,
        export_enabled=export_enabled,
    )
    logger.info("Registered drill region %r (%d lines)", region.name, len(region.lines))
    return region


__all__ = [
    "CycleGroup",
    "NO_CYCLES",
    "NO_REGIONS",
    "add_drill_region_from_gcode_only",
    "build_drill_regions",
    "collect_cycle_groups",
    "drill_markers",
]
