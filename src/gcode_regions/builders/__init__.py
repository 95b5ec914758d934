"""Region builders for the supported machining kinds."""

from __future__ import annotations

from typing import Callable

from ..regions import RegionKind
from .base import BuildResult
from .drill import add_drill_region_from_gcode_only, build_drill_regions
from .mill import add_mill_region_from_gcode_only, build_mill_regions
from .turn import add_turn_region_from_gcode_only, build_turn_regions

BUILDERS: dict[RegionKind, Callable[[str | None, str | None, str | None], BuildResult]] = {
    RegionKind.TURN: build_turn_regions,
    RegionKind.MILL: build_mill_regions,
    RegionKind.DRILL: build_drill_regions,
}

GCODE_ONLY_REGISTRARS = {
    RegionKind.TURN: add_turn_region_from_gcode_only,
    RegionKind.MILL: add_mill_region_from_gcode_only,
    RegionKind.DRILL: add_drill_region_from_gcode_only,
}


def build_regions(kind: RegionKind | str, selected_text: str | None, full_document_text: str | None, base_name: str | None) -> BuildResult:
    return BUILDERS[RegionKind.parse(kind)](selected_text, full_document_text, base_name)


__all__ = [
    "BUILDERS",
    "BuildResult",
    "GCODE_ONLY_REGISTRARS",
    "add_drill_region_from_gcode_only",
    "add_mill_region_from_gcode_only",
    "add_turn_region_from_gcode_only",
    "build_drill_regions",
    "build_mill_regions",
    "build_regions",
    "build_turn_regions",
]
