"""
Report data model.

A ``StatsReport`` carries three titled sections.  Each section's rows are
one case of a tagged union over three row shapes that all embed the same
``StatFields`` block:

    AggregateRow  = category + StatFields + kill_shots   (8 columns)
    MemberRow     = member   + StatFields + kill_shots   (8 columns)
    SoloRow       = member   + StatFields                (7 columns)

The section ``header`` has the same shape as its rows but holds the
display labels.

Wire format
-----------
``StatsReport.from_dict`` accepts the JSON posted by the guild tool::

    {"avg": {...}, "members": {...}, "solo": {...}, "email": "..."}

Field keys use the tool's camelCase names (``type``, ``fameKd``,
``rawKd`` ...).  Longer descriptive aliases are accepted as well.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Literal, Optional, TypeVar, Union

from albion_sheets.errors import ReportInputError

Cell = Union[str, int, float, None]


# ---------------------------------------------------------------------------
# Row shapes
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class StatFields:
    """Fields shared by every row variant, in column order."""
    kill_fame: Cell = None
    death_fame: Cell = None
    fame_to_death_ratio: Cell = None
    kills: Cell = None
    deaths: Cell = None
    raw_kill_death_ratio: Cell = None

    def values(self) -> list[Cell]:
        return [
            self.kill_fame,
            self.death_fame,
            self.fame_to_death_ratio,
            self.kills,
            self.deaths,
            self.raw_kill_death_ratio,
        ]


@dataclass(frozen=True)
class AggregateRow:
    category: Cell
    stats: StatFields
    kill_shots: Cell = None
    kind: Literal["aggregate"] = "aggregate"


@dataclass(frozen=True)
class MemberRow:
    member: Cell
    stats: StatFields
    kill_shots: Cell = None
    kind: Literal["member"] = "member"


@dataclass(frozen=True)
class SoloRow:
    member: Cell
    stats: StatFields
    kind: Literal["solo"] = "solo"


StatRow = Union[AggregateRow, MemberRow, SoloRow]
RowT = TypeVar("RowT", AggregateRow, MemberRow, SoloRow)


@dataclass(frozen=True)
class Section(Generic[RowT]):
    """A titled block: one header row of labels plus data rows in order."""
    title: str
    header: RowT
    rows: tuple[RowT, ...] = ()


@dataclass(frozen=True)
class StatsReport:
    aggregate: Section[AggregateRow]
    members: Section[MemberRow]
    solo: Section[SoloRow]
    owner_email: str

    @classmethod
    def from_dict(cls, data: dict, default_owner: Optional[str] = None) -> "StatsReport":
        """Build a report from the decoded JSON body.

        Raises ``ReportInputError`` when a section is missing or malformed,
        or when no owner email is available.
        """
        if not isinstance(data, dict):
            raise ReportInputError("Report body must be a JSON object")

        owner = _first(data, ("email", "ownerEmail", "owner_email"))
        if isinstance(owner, str):
            owner = owner.strip()
        owner = owner or (default_owner or "").strip()
        if not owner or not isinstance(owner, str):
            raise ReportInputError("Report has no owner email")

        return cls(
            aggregate=_parse_section(data, ("avg", "aggregate"), _aggregate_row),
            members=_parse_section(data, ("members",), _member_row),
            solo=_parse_section(data, ("solo",), _solo_row),
            owner_email=owner,
        )


# ---------------------------------------------------------------------------
# Permissions / documents
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Permission:
    id: str
    role: str
    email: Optional[str] = None
    type: str = "user"

    @classmethod
    def from_api(cls, raw: dict) -> "Permission":
        return cls(
            id=raw["id"],
            role=raw.get("role", ""),
            email=raw.get("emailAddress"),
            type=raw.get("type", "user"),
        )


@dataclass
class Document:
    """A spreadsheet created by one pipeline run."""
    id: str
    url: str
    title: str = ""
    permissions: list[Permission] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------
_MISSING = object()

# attribute -> accepted JSON keys, first match wins
_STAT_KEYS: dict[str, tuple[str, ...]] = {
    "kill_fame":            ("killFame",),
    "death_fame":           ("deathFame",),
    "fame_to_death_ratio":  ("fameKd", "fameToDeathRatio"),
    "kills":                ("kills",),
    "deaths":               ("deaths",),
    "raw_kill_death_ratio": ("rawKd", "rawKillDeathRatio"),
}
_CATEGORY_KEYS = ("type", "category")
_MEMBER_KEYS = ("member",)
_KILL_SHOT_KEYS = ("killShots",)


def _first(raw: dict, keys: tuple[str, ...], default=None):
    for key in keys:
        value = raw.get(key, _MISSING)
        if value is not _MISSING:
            return value
    return default


def _stats(raw: dict) -> StatFields:
    return StatFields(**{attr: _first(raw, keys) for attr, keys in _STAT_KEYS.items()})


def _aggregate_row(raw: dict) -> AggregateRow:
    return AggregateRow(
        category=_first(raw, _CATEGORY_KEYS),
        stats=_stats(raw),
        kill_shots=_first(raw, _KILL_SHOT_KEYS),
    )


def _member_row(raw: dict) -> MemberRow:
    return MemberRow(
        member=_first(raw, _MEMBER_KEYS),
        stats=_stats(raw),
        kill_shots=_first(raw, _KILL_SHOT_KEYS),
    )


def _solo_row(raw: dict) -> SoloRow:
    return SoloRow(member=_first(raw, _MEMBER_KEYS), stats=_stats(raw))


def _parse_section(data: dict, keys: tuple[str, ...], make_row) -> Section:
    name = keys[0]
    raw = _first(data, keys)
    if not isinstance(raw, dict):
        raise ReportInputError(f"Section '{name}' is missing or not an object")

    title = raw.get("title")
    if not isinstance(title, str):
        raise ReportInputError(f"Section '{name}' has no title")

    header = _first(raw, ("fieldLabels", "header"))
    if not isinstance(header, dict):
        raise ReportInputError(f"Section '{name}' has no field labels")

    rows = raw.get("rows", [])
    if not isinstance(rows, list):
        raise ReportInputError(f"Section '{name}' rows must be a list")
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ReportInputError(f"Section '{name}' row {idx} is not an object")

    return Section(
        title=title,
        header=make_row(header),
        rows=tuple(make_row(r) for r in rows),
    )
