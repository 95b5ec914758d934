"""Region model: named, ordered, anchored sub-sequences of G-code lines."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Mapping, Sequence

from .addressing import Anchor, new_uid
from .config import get_logger
from .normalize import key_with_tag

logger = get_logger("regions")

REGION_UID_KEY = "__RegionUid"


class RegionKind(Enum):
    TURN = "turn"
    MILL = "mill"
    DRILL = "drill"

    @property
    def tag_letter(self) -> str:
        return _TAG_LETTERS[self]

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def from_tag_letter(cls, letter: str) -> "RegionKind | None":
        wanted = (letter or "").strip().upper()
        for kind, tag_letter in _TAG_LETTERS.items():
            if tag_letter == wanted:
                return kind
        return None

    @classmethod
    def parse(cls, value: "str | RegionKind") -> "RegionKind":
        if isinstance(value, RegionKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown region kind: {value!r}") from exc


_TAG_LETTERS = {
    RegionKind.TURN: "T",
    RegionKind.MILL: "M",
    RegionKind.DRILL: "D",
}

# Order in which the rebuild engine walks the collections.
KIND_ORDER: tuple[RegionKind, ...] = (RegionKind.TURN, RegionKind.MILL, RegionKind.DRILL)


class ResolveStatus(Enum):
    UNSET = "Unset"
    OK = "OK"
    MISSING = "Missing"
    AMBIGUOUS = "Ambiguous"


@dataclass(slots=True)
class Region:
    """One stored region.

    ``lines`` holds anchored canonical lines (``#uid,n#PAYLOAD(K:Lnnnn)``).
    ``snapshot_values`` holds collaborator state; any value containing ``#`` is
    treated as one or more anchored line references and is remapped by the
    rebuild engine.
    """

    kind: RegionKind
    name: str
    lines: list[str] = field(default_factory=list)
    snapshot_values: dict[str, str] = field(default_factory=dict)
    show_in_view_all: bool = True
    export_enabled: bool = True
    status: ResolveStatus = ResolveStatus.UNSET
    resolved_start: int | None = None
    resolved_end: int | None = None

    @property
    def uid(self) -> str | None:
        stored = (self.snapshot_values.get(REGION_UID_KEY) or "").strip()
        if stored:
            return stored
        for line in self.lines or ():
            if not (line or "").strip():
                continue
            anchor, _ = Anchor.parse(line)
            return anchor.uid if anchor else None
        return None

    @property
    def status_text(self) -> str:
        if self.status is ResolveStatus.OK and self.resolved_start is not None:
            end = self.resolved_end if self.resolved_end is not None else self.resolved_start
            return f"OK (L{self.resolved_start + 1}..L{end + 1})"
        return self.status.value

    def mark(self, status: ResolveStatus, start: int | None = None, end: int | None = None) -> None:
        self.status = status
        self.resolved_start = start
        self.resolved_end = end


@dataclass(slots=True)
class RegionCollections:
    """Per-kind ordered region lists owned by the caller."""

    turn: list[Region] = field(default_factory=list)
    mill: list[Region] = field(default_factory=list)
    drill: list[Region] = field(default_factory=list)

    def for_kind(self, kind: RegionKind | str) -> list[Region]:
        return getattr(self, RegionKind.parse(kind).value)

    def __iter__(self) -> Iterator[Region]:
        for kind in KIND_ORDER:
            yield from self.for_kind(kind)

    def __len__(self) -> int:
        return len(self.turn) + len(self.mill) + len(self.drill)

    def add(self, region: Region) -> Region:
        self.for_kind(region.kind).append(region)
        return region

    def find(self, kind: RegionKind | str, name: str) -> Region | None:
        wanted = (name or "").strip().casefold()
        for region in self.for_kind(kind):
            if (region.name or "").strip().casefold() == wanted:
                return region
        return None

    def make_unique_name(self, kind: RegionKind | str, base: str) -> str:
        """Return ``base``, ``base_2``, ``base_3`` ... whichever is unused (exact match)."""

        stem = (base or "").strip() or "Region"
        taken = {region.name for region in self.for_kind(kind)}
        if stem not in taken:
            return stem
        counter = 2
        while f"{stem}_{counter}" in taken:
            counter += 1
        return f"{stem}_{counter}"


def anchor_lines(uid: str, lines: Iterable[str]) -> list[str]:
    """Anchor every line by its 1-based position, in canonical key form."""

    return [Anchor(uid, index + 1).apply(key_with_tag(raw)) for index, raw in enumerate(lines)]


def _apply_markers(
    snapshot: dict[str, str],
    anchored: Sequence[str],
    markers: Mapping[str, int] | None,
) -> None:
    for key, index in (markers or {}).items():
        if 0 <= index < len(anchored):
            snapshot[key] = anchored[index]
        else:
            snapshot[key] = ""


def create_region(
    kind: RegionKind | str,
    name: str,
    lines: Sequence[str],
    *,
    markers: Mapping[str, int] | None = None,
    values: Mapping[str, str] | None = None,
    defaults: Mapping[str, str] | None = None,
    show_in_view_all: bool = True,
    export_enabled: bool = True,
) -> Region:
    """Build a new region from raw editor lines.

    Every line is stored as ``#uid,n#KEY`` under a fresh uid. ``markers`` maps
    snapshot keys to 0-based line indexes; the anchored line at that index is
    stored (an empty string when out of range). ``defaults`` are seeded first,
    then ``values`` override them.
    """

    kind = RegionKind.parse(kind)
    uid = new_uid()
    anchored = anchor_lines(uid, lines)
    snapshot: dict[str, str] = dict(defaults or {})
    snapshot[REGION_UID_KEY] = uid
    _apply_markers(snapshot, anchored, markers)
    snapshot.update(values or {})
    region = Region(
        kind=kind,
        name=(name or "").strip(),
        lines=anchored,
        snapshot_values=snapshot,
        show_in_view_all=show_in_view_all,
        export_enabled=export_enabled,
    )
    logger.debug("Created %s region %r with %d lines", kind.label, region.name, len(anchored))
    return region


def edit_region(
    region: Region,
    *,
    lines: Sequence[str] | None = None,
    markers: Mapping[str, int] | None = None,
    values: Mapping[str, str] | None = None,
    defaults: Mapping[str, str] | None = None,
) -> Region:
    """Update ``region`` in place, keeping its uid when it already has one."""

    for key, value in (defaults or {}).items():
        region.snapshot_values.setdefault(key, value)

    if lines is not None:
        uid = region.uid or new_uid()
        region.lines[:] = anchor_lines(uid, lines)
        region.snapshot_values[REGION_UID_KEY] = uid
        region.mark(ResolveStatus.UNSET)

    _apply_markers(region.snapshot_values, region.lines, markers)
    region.snapshot_values.update(values or {})
    return region


def upsert_region(
    collections: RegionCollections,
    kind: RegionKind | str,
    name: str,
    lines: Sequence[str],
    **options,
) -> Region:
    """Edit the region called ``name`` (case-insensitive) or register a new one."""

    existing = collections.find(kind, name)
    if existing is not None:
        edit_kwargs = {key: options[key] for key in ("markers", "values", "defaults") if key in options}
        return edit_region(existing, lines=lines, **edit_kwargs)
    return collections.add(create_region(kind, name, lines, **options))


def strip_wrapper(block: Sequence[str]) -> list[str]:
    """Inner lines of a ``(NAME ST)`` .. ``(NAME END)`` block."""

    if len(block) < 3:
        return []
    return list(block[1:-1])


__all__ = [
    "KIND_ORDER",
    "REGION_UID_KEY",
    "Region",
    "RegionCollections",
    "RegionKind",
    "ResolveStatus",
    "anchor_lines",
    "create_region",
    "edit_region",
    "strip_wrapper",
    "upsert_region",
]
