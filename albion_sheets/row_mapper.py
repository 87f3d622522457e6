"""
Row Mapper — section records to grid value arrays.

Every mapped section is row-major::

    row 0       [title, "", "", ...]         padded to the section width
    row 1       header labels, field order
    row 2..N+1  data rows, field order

Values are passed through untouched; the sheet is written with
``USER_ENTERED`` semantics so numeric-looking strings become numbers there.
"""

from __future__ import annotations

from functools import singledispatch

from albion_sheets.models import (
    AggregateRow,
    Cell,
    MemberRow,
    Section,
    SoloRow,
)

# Column widths per row variant
AGGREGATE_WIDTH = 8
MEMBER_WIDTH = 8
SOLO_WIDTH = 7

Grid = list[list[Cell]]


@singledispatch
def map_row(row) -> list[Cell]:
    """Convert one row record into its value array."""
    raise TypeError(f"Unsupported row type: {type(row).__name__}")


@map_row.register
def _(row: AggregateRow) -> list[Cell]:
    return [row.category, *row.stats.values(), row.kill_shots]


@map_row.register
def _(row: MemberRow) -> list[Cell]:
    return [row.member, *row.stats.values(), row.kill_shots]


@map_row.register
def _(row: SoloRow) -> list[Cell]:
    return [row.member, *row.stats.values()]


def _blank(value: Cell) -> Cell:
    # a missing field is written as an empty cell
    return "" if value is None else value


def map_section(section: Section) -> Grid:
    """Map a whole section to its grid: title row, label row, data rows."""
    labels = [_blank(v) for v in map_row(section.header)]
    width = len(labels)
    grid: Grid = [[section.title] + [""] * (width - 1), labels]
    for row in section.rows:
        grid.append([_blank(v) for v in map_row(row)])
    return grid
