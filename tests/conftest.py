from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from gcode_regions import config  # noqa: E402
from gcode_regions.regions import Region, RegionCollections, RegionKind  # noqa: E402


@pytest.fixture(autouse=True)
def packaged_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test against the packaged settings, never a developer override."""

    monkeypatch.delenv(config.APP_SETTINGS_ENV_VAR, raising=False)
    config.load_app_settings(reload=True)


@pytest.fixture
def collections() -> RegionCollections:
    return RegionCollections()


@pytest.fixture
def pocket_selection() -> str:
    return "\n".join(
        [
            "G0Z5",
            "G0X0Y0",
            "G1Z-2",
            "G1X10Y0",
            "G1X10Y10",
            "G0X0Y0",
        ]
    )


@pytest.fixture
def drill_selection() -> str:
    return "G81Z-10R2\nX0Y0\nX10Y0\nG80"


@pytest.fixture
def dirty_mill_region() -> Region:
    return Region(
        kind=RegionKind.MILL,
        name="POCKET (1)",
        lines=["#u,1#G1X1Y1(M:A0000)", "", "#u,2#G1X2Y2(M:A0001)"],
        snapshot_values={"EndXLineText": "#u,2#G1X2Y2(M:A0001)"},
    )
