import re

import pytest

from gcode_regions.cleanup import STATS_COLUMNS, RegionStructureError, rebuild_all, rebuild_region
from gcode_regions.normalize import key_with_tag
from gcode_regions.regions import Region, RegionCollections, RegionKind


def test_round_trip_drops_blank_and_remaps_by_ordinal(dirty_mill_region: Region) -> None:
    result = rebuild_all(RegionCollections(mill=[dirty_mill_region]))

    assert dirty_mill_region.lines == ["#u,1#G1X1Y1(M:A0000)", "#u,2#G1X2Y2(M:A0001)"]
    assert dirty_mill_region.snapshot_values["EndXLineText"] == "#u,2#G1X2Y2(M:A0001)"
    row = result.stats.iloc[0]
    assert row["blanks_removed"] == 1
    assert row["remapped"] == 1
    assert row["stale"] == 0
    assert result.touched == {"TURN": 0, "MILL": 1, "DRILL": 0}


def test_remap_follows_position_not_content() -> None:
    region = Region(
        RegionKind.MILL,
        "SLOT",
        lines=[
            "#u,1#G0X0Y0(M:B0000)",
            "#u,2#(ROUGHING)",
            "#u,3#G1X1Y1 (FAST) (M:B0002)",
            "#u,4#G1X1Y1(M:B0003)",
            "#u,5#   ",
        ],
        snapshot_values={
            "StartXLineText": "#u,3#G1X1Y1(M:B0002)",
            "EndXLineText": "#u,4#G1X1Y1(M:B0003)",
            "Note": "#u,2#(ROUGHING)",
            "TxtToolDia": "12",
        },
    )

    stats = rebuild_region(region, "A")

    assert region.lines == [
        "#u,1#G0X0Y0(M:A0000)",
        "#u,2#G1X1Y1(M:A0001)",
        "#u,3#G1X1Y1(M:A0002)",
    ]
    assert region.snapshot_values["StartXLineText"] == "#u,2#G1X1Y1(M:A0001)"
    assert region.snapshot_values["EndXLineText"] == "#u,3#G1X1Y1(M:A0002)"
    assert region.snapshot_values["Note"] == "#u,2#(ROUGHING)"
    assert region.snapshot_values["TxtToolDia"] == "12"
    assert (stats.lines_in, stats.lines_out) == (5, 3)
    assert stats.blanks_removed == 1
    assert stats.comments_removed == 2
    assert stats.comment_only_removed == 1
    assert (stats.remapped, stats.stale) == (2, 1)


def test_tag_only_line_is_counted_as_comment_only() -> None:
    region = Region(RegionKind.MILL, "FACE", lines=["#u,1#G1X1Y1(M:A0000)", "#u,2#   (M:A0001)"])

    result = rebuild_all(mill=[region])

    row = result.stats.iloc[0]
    assert (row["lines_in"], row["lines_out"]) == (2, 1)
    assert row["blanks_removed"] == 0
    assert row["comment_only_removed"] == 1
    assert row["lines_in"] == row["lines_out"] + row["blanks_removed"] + row["comment_only_removed"]
    assert "comment_only=1" in result.report


def test_multi_line_values_are_remapped_line_by_line() -> None:
    region = Region(
        RegionKind.DRILL,
        "HOLES",
        lines=[
            "#d,1#DZ-10(D:C0000)",
            "#d,2#TZ2(D:C0001)",
            "",
            "#d,4#X0Y0(D:C0003)",
            "#d,5#X10Y0(D:C0004)",
        ],
        snapshot_values={"HoleLineTexts": "#d,4#X0Y0(D:C0003)\n\n#d,5#X10Y0(D:C0004)\n"},
    )

    rebuild_all(drill=[region])

    assert region.snapshot_values["HoleLineTexts"] == "#d,3#X0Y0(D:A0002)\n#d,4#X10Y0(D:A0003)"


def test_line_numbers_and_unanchored_lines() -> None:
    region = Region(RegionKind.TURN, "OD", lines=["12: G1X48Z0 (T:Q0000)", "13: g1 z-20"])

    rebuild_all(turn=[region])

    uid = region.uid
    assert uid is not None and re.fullmatch(r"[0-9a-f]{32}", uid)
    assert region.lines == [f"#{uid},1#G1X48Z0(T:A0000)", f"#{uid},2#G1Z-20(T:A0001)"]


def test_set_letters_restart_per_kind() -> None:
    collections = RegionCollections(
        turn=[Region(RegionKind.TURN, "OD", lines=["#t,1#G1X1Z0(T:C0000)"])],
        mill=[
            Region(RegionKind.MILL, "A", lines=["#a,1#G1X1Y1(M:D0000)"]),
            Region(RegionKind.MILL, "B", lines=["#b,1#G1X2Y2(M:E0000)"]),
        ],
    )

    result = rebuild_all(collections)

    assert collections.turn[0].lines == ["#t,1#G1X1Z0(T:A0000)"]
    assert [region.lines[0] for region in collections.mill] == ["#a,1#G1X1Y1(M:A0000)", "#b,1#G1X2Y2(M:B0000)"]
    assert list(result.stats["set_letter"]) == ["A", "A", "B"]
    assert list(result.stats["kind"]) == ["TURN", "MILL", "MILL"]


def test_editor_text_renders_blocks_in_kind_order() -> None:
    collections = RegionCollections(
        mill=[Region(RegionKind.MILL, "POCKET (1)", lines=["#a,1#G1X1Y1(M:A0000)"])],
        turn=[Region(RegionKind.TURN, "OD", lines=["#t,1#G1X1Z0(T:A0000)"])],
    )

    result = rebuild_all(collections)
    lines = result.editor_text.split("\n")

    assert lines[0] == "(OD ST)"
    assert key_with_tag(lines[1]) == "G1X1Z0(T:A0000)"
    assert lines[1].index("(T:A0000)") == 75
    assert lines[2:5] == ["(OD END)", "", "(POCKET (1) ST)"]
    assert "#" not in result.editor_text


def test_rebuild_is_stable(dirty_mill_region: Region) -> None:
    collections = RegionCollections(mill=[dirty_mill_region])
    first = rebuild_all(collections)
    lines = list(dirty_mill_region.lines)
    values = dict(dirty_mill_region.snapshot_values)

    second = rebuild_all(collections)

    assert dirty_mill_region.lines == lines
    assert dirty_mill_region.snapshot_values == values
    assert second.editor_text == first.editor_text


def test_empty_regions_are_skipped_and_reported() -> None:
    empty = Region(RegionKind.DRILL, "NOTHING")
    comments_only = Region(RegionKind.DRILL, "NOTES", lines=["#n,1#(JUST A NOTE)"])

    result = rebuild_all(drill=[empty, comments_only])

    assert "NOTHING: SKIP (no lines)" in result.report
    assert "NOTES: SKIP (no lines after cleanup)" in result.report
    assert comments_only.lines == ["#n,1#(JUST A NOTE)"]
    assert result.touched["DRILL"] == 0
    assert result.editor_text == ""


def test_stats_frame_columns(dirty_mill_region: Region) -> None:
    result = rebuild_all(mill=[dirty_mill_region])

    assert list(result.stats.columns) == STATS_COLUMNS
    assert len(result.stats) == 1
    assert "POCKET (1)" in result.report


def test_missing_line_container_is_fatal() -> None:
    broken = Region(RegionKind.MILL, "BROKEN")
    broken.lines = None  # type: ignore[assignment]

    with pytest.raises(RegionStructureError):
        rebuild_all(mill=[broken])
