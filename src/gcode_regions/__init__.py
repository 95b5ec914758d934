"""Named, addressable regions of G-code text.

The package builds Mill/Turn/Drill regions out of selected G-code, keeps every
stored line addressable through ``#uid,n#`` anchors and ``(K:Lnnnn)`` display
tags, rebuilds all regions in one pass, and locates region text inside an
edited document.
"""
from __future__ import annotations

from .addressing import Anchor, DisplayTag, next_available_letter
from .builders import (
    BuildResult,
    add_drill_region_from_gcode_only,
    add_mill_region_from_gcode_only,
    add_turn_region_from_gcode_only,
    build_drill_regions,
    build_mill_regions,
    build_turn_regions,
)
from .cleanup import CleanupResult, RegionStructureError, rebuild_all
from .config import ConfigError, configure_logging, get_logger
from .locator import MultiLineMatch, find_multi_line, find_single_line, resolve_region
from .normalize import insert_and_align_tag, key_as_is, key_for_match, key_with_tag
from .regions import Region, RegionCollections, RegionKind, ResolveStatus

__version__ = "0.1.0"

__all__ = [
    "Anchor",
    "BuildResult",
    "CleanupResult",
    "ConfigError",
    "DisplayTag",
    "MultiLineMatch",
    "Region",
    "RegionCollections",
    "RegionKind",
    "RegionStructureError",
    "ResolveStatus",
    "__version__",
    "add_drill_region_from_gcode_only",
    "add_mill_region_from_gcode_only",
    "add_turn_region_from_gcode_only",
    "build_drill_regions",
    "build_mill_regions",
    "build_turn_regions",
    "configure_logging",
    "find_multi_line",
    "find_single_line",
    "get_logger",
    "insert_and_align_tag",
    "key_as_is",
    "key_for_match",
    "key_with_tag",
    "next_available_letter",
    "rebuild_all",
    "resolve_region",
]
