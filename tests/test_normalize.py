import pytest

from gcode_regions.normalize import (
    format_number,
    has_axis_number,
    insert_and_align_tag,
    key_as_is,
    key_for_match,
    key_with_tag,
    parse_axis_value,
    split_lines,
    strip_leading_anchor,
    strip_line_number,
    strip_trailing_paren_block,
)


@pytest.mark.parametrize(
    "line, expected",
    [
        ("12: #u,3# g1 x10 y0 (M:A0003)", "G1X10Y0(M:A0003)"),
        ("#u,3#G1X10Y0(M:A0003)", "G1X10Y0(M:A0003)"),
        ("  12 :  g0 z5", "G0Z5"),
        ("\tg1\tx1 y2  ", "G1X1Y2"),
        ("", ""),
        ("   ", ""),
        (None, ""),
    ],
)
def test_key_with_tag_strips_prefixes_and_whitespace(line, expected) -> None:
    assert key_with_tag(line) == expected


@pytest.mark.parametrize(
    "line",
    ["g1 x10 y0 (m:a0003)", "12: #abc,1# G0 Z5", "G1 X 1.5 Y -2 (FINISH PASS)", "#u,2#"],
)
def test_key_with_tag_is_idempotent(line: str) -> None:
    once = key_with_tag(line)
    assert key_with_tag(once) == once


@pytest.mark.parametrize("line", ["g1 x10 y0", "G2 X1 Y1 I0.5 J0 (ARC)", "m30"])
def test_key_as_is_matches_key_with_tag_without_prefixes(line: str) -> None:
    assert key_as_is(line) == key_with_tag(line)


def test_key_as_is_keeps_prefixes() -> None:
    assert key_as_is("12: #u,1# g1 x1") == "12:#U,1#G1X1"


def test_key_for_match_drops_every_paren_block() -> None:
    assert key_for_match("#u,3#G1 X10 Y0 (FINISH) (M:A0003)") == "G1X10Y0"
    assert key_for_match("7: G1 (A) X1 (B)") == "G1X1"
    assert key_for_match("(COMMENT ONLY)") == ""


def test_strip_helpers() -> None:
    assert strip_line_number("  42 : G1X1") == "G1X1"
    assert strip_line_number("G1X1") == "G1X1"
    assert strip_leading_anchor("  #abc,1#G1X1") == "G1X1"
    assert strip_leading_anchor("#unterminated G1") == "#unterminated G1"
    assert strip_trailing_paren_block("G1X1 (CUT) ") == "G1X1"
    assert strip_trailing_paren_block("G1X1 (A) Y2") == "G1X1 (A) Y2"
    assert split_lines("a\r\nb\rc\nd") == ["a", "b", "c", "d"]


def test_insert_and_align_tag_pads_to_column() -> None:
    aligned = insert_and_align_tag("G1X10Y0 (M:A0003)", 75)

    assert aligned.index("(M:A0003)") == 75
    assert aligned.startswith("G1X10Y0 ")
    assert aligned.endswith("(M:A0003)")


def test_insert_and_align_tag_strips_anchor_and_line_number() -> None:
    aligned = insert_and_align_tag("3: #u,1#G1X1Y1(M:A0000)", 20)

    assert aligned == "G1X1Y1".ljust(20) + "(M:A0000)"


def test_insert_and_align_tag_uses_single_space_past_column() -> None:
    base = "X" * 80
    assert insert_and_align_tag(f"{base}(T:B0001)", 75) == f"{base} (T:B0001)"


def test_insert_and_align_tag_is_idempotent() -> None:
    once = insert_and_align_tag("#u,4#G1X10Y10(M:A0004)", 75)
    assert insert_and_align_tag(once, 75) == once


@pytest.mark.parametrize("line", ["G1X1 (FINISH)", "G1X1 (M:A001)", "G1X1 (M:A0001) X2", "G1X1"])
def test_insert_and_align_tag_leaves_untagged_lines(line: str) -> None:
    assert insert_and_align_tag(line, 75) == line


@pytest.mark.parametrize(
    "line, axis, expected",
    [
        ("G1 X 10", "x", True),
        ("g1 x-.5", "X", True),
        ("G1 X\t+2", "X", True),
        ("G1 X.", "X", True),
        ("G1 X", "X", False),
        ("G1 XY10", "X", False),
        ("G1 Y10", "X", False),
        ("", "Z", False),
    ],
)
def test_has_axis_number(line: str, axis: str, expected: bool) -> None:
    assert has_axis_number(line, axis) is expected


def test_parse_axis_value() -> None:
    assert parse_axis_value("G1 x-.5", "X") == pytest.approx(-0.5)
    assert parse_axis_value("G81Z-10R2", "R") == pytest.approx(2.0)
    assert parse_axis_value("G81Z-10R2", "z") == pytest.approx(-10.0)
    assert parse_axis_value("G1Y5", "X") is None


@pytest.mark.parametrize(
    "value, expected",
    [(2.0, "2"), (-10.0, "-10"), (0.5, "0.5"), (1.23456789, "1.234568"), (-1e-7, "0"), (0.0, "0")],
)
def test_format_number(value: float, expected: str) -> None:
    assert format_number(value) == expected
