import re

import pytest

from gcode_regions.addressing import (
    Anchor,
    DisplayTag,
    new_uid,
    next_available_letter,
    next_letter,
    set_letter_for_index,
)


def test_anchor_parse_splits_payload() -> None:
    anchor, rest = Anchor.parse("#abc,3#G1X1")

    assert anchor == Anchor("abc", 3)
    assert rest == "G1X1"


@pytest.mark.parametrize("line", ["G1X1", "#abc#G1X1", "#abc,0#G1", "#,2#G1", "#abc,x#G1"])
def test_anchor_parse_rejects_malformed(line: str) -> None:
    anchor, rest = Anchor.parse(line)

    assert anchor is None
    assert rest == line


def test_anchor_formats_and_applies() -> None:
    anchor = Anchor("u", 2)

    assert str(anchor) == "#u,2#"
    assert anchor.apply("G1X2Y2") == "#u,2#G1X2Y2"
    assert Anchor.parse(anchor.apply("G0Z5")) == (anchor, "G0Z5")


def test_display_tag_renders_upper_case_with_four_digits() -> None:
    assert str(DisplayTag("m", "a", 3)) == "(M:A0003)"
    assert str(DisplayTag("D", "Q", 1234)) == "(D:Q1234)"


def test_display_tag_parse_trailing() -> None:
    tag, rest = DisplayTag.parse_trailing("G1X1   (m:b0012)  ")

    assert tag == DisplayTag("M", "B", 12)
    assert rest == "G1X1"


def test_display_tag_parse_trailing_ignores_comments() -> None:
    tag, rest = DisplayTag.parse_trailing("G1X1 (FINISH)")

    assert tag is None
    assert rest == "G1X1 (FINISH)"


def test_next_available_letter_uses_highest_letter_of_any_kind() -> None:
    document = "\n".join(["G1X1 (M:A0001)", "G1X2 (U:C0042)", "G0Z5 (T:B0005)"])

    assert next_available_letter(document) == "D"


def test_next_available_letter_defaults_and_wraps() -> None:
    assert next_available_letter("") == "A"
    assert next_available_letter(None) == "A"
    assert next_available_letter("G1X1 (M:Z0001)") == "A"
    assert next_available_letter("G1X1 (m:c0001)") == "D"


def test_next_available_letter_is_stateless() -> None:
    document = "G1X1 (D:E0000)"

    assert next_available_letter(document) == next_available_letter(document) == "F"


def test_set_letters_wrap() -> None:
    assert set_letter_for_index(0) == "A"
    assert set_letter_for_index(25) == "Z"
    assert set_letter_for_index(26) == "A"
    assert next_letter("Z") == "A"
    assert next_letter("b") == "C"


def test_new_uid_is_opaque_hex() -> None:
    first = new_uid()

    assert re.fullmatch(r"[0-9a-f]{32}", first)
    assert first != new_uid()
