"""
Layout Planner — fixed sheet geometry and formatting zones.

Everything lives on the first tab (sheet id 0)::

    cols  0 ........ 8   9 ....... 16
    row 0 +-----------+  +----------+
          | aggregate |  |   solo   |
    row 6 +-----------+  |          |
          |  members  |  |          |
          |    ...    |  +----------+
          +-----------

All ranges are zero-indexed and half-open.  A ``None`` bound is left out of
the API payload, which the Sheets API reads as "to the edge of the grid".
The member block has an open row end because its size depends on the data.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from albion_sheets.errors import LayoutError
from albion_sheets.row_mapper import AGGREGATE_WIDTH, MEMBER_WIDTH, SOLO_WIDTH

SHEET_ID = 0
HEADER_ROWS = 2  # title row + field-label row

AGGREGATE_START_ROW = 0
AGGREGATE_END_ROW = 6
AGGREGATE_START_COL = 0

MEMBER_START_ROW = AGGREGATE_END_ROW
MEMBER_START_COL = 0

SOLO_START_ROW = 0
SOLO_START_COL = 9

MAX_AGGREGATE_ROWS = AGGREGATE_END_ROW - AGGREGATE_START_ROW - HEADER_ROWS

_PLAIN_SHEET_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Number patterns
FAME_PATTERN = "#,##0"
RATIO_PATTERN = "0.0"
INTEGER_PATTERN = "0"

# Header band colours (Sheets API RGB floats)
AGGREGATE_COLOR = {"red": 0.788, "green": 0.855, "blue": 0.973}
MEMBER_COLOR = {"red": 0.851, "green": 0.918, "blue": 0.827}
SOLO_COLOR = {"red": 0.988, "green": 0.898, "blue": 0.804}

# Column groups relative to the section's first column: pattern -> spans
_GROUPS_8 = (
    (FAME_PATTERN, ((1, 3),)),                  # kill fame, death fame
    (RATIO_PATTERN, ((3, 4), (6, 7))),          # fame K/D, raw K/D
    (INTEGER_PATTERN, ((4, 6), (7, 8))),        # kills, deaths, kill shots
)
_GROUPS_7 = (
    (FAME_PATTERN, ((1, 3),)),
    (RATIO_PATTERN, ((3, 4), (6, 7))),
    (INTEGER_PATTERN, ((4, 6),)),
)


# ---------------------------------------------------------------------------
# Data Models
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class GridRange:
    """Half-open cell rectangle.  ``None`` means open to the grid edge."""
    start_row: Optional[int] = None
    end_row: Optional[int] = None
    start_col: Optional[int] = None
    end_col: Optional[int] = None

    def __post_init__(self):
        for lo, hi in ((self.start_row, self.end_row), (self.start_col, self.end_col)):
            if lo is not None and lo < 0:
                raise ValueError(f"Negative range bound: {self}")
            if lo is not None and hi is not None and hi <= lo:
                raise ValueError(f"Empty or inverted range: {self}")

    def to_api(self, sheet_id: int = SHEET_ID) -> dict:
        """Sheets API ``GridRange`` payload, omitting open bounds."""
        payload = {"sheetId": sheet_id}
        for key, value in (
            ("startRowIndex", self.start_row),
            ("endRowIndex", self.end_row),
            ("startColumnIndex", self.start_col),
            ("endColumnIndex", self.end_col),
        ):
            if value is not None:
                payload[key] = value
        return payload

    def to_a1(self, sheet_name: str) -> str:
        """A1 reference such as ``Sheet1!A7:H`` (open row end)."""
        if self.start_col is None or self.end_col is None:
            raise ValueError("A1 reference needs both column bounds")
        start_row = (self.start_row or 0) + 1
        first = f"{column_letter(self.start_col)}{start_row}"
        last = column_letter(self.end_col - 1)
        if self.end_row is not None:
            last += str(self.end_row)
        return f"{quote_sheet_name(sheet_name)}!{first}:{last}"

    def overlaps(self, other: "GridRange") -> bool:
        return _spans_overlap(self.start_row, self.end_row, other.start_row, other.end_row) and \
            _spans_overlap(self.start_col, self.end_col, other.start_col, other.end_col)


@dataclass(frozen=True)
class FormatZone:
    """Declarative formatting for one range: a number pattern or a colour band."""
    range: GridRange
    number_pattern: Optional[str] = None
    background: Optional[dict] = None
    horizontal_alignment: str = "CENTER"
    vertical_alignment: str = "MIDDLE"

    def to_request(self, sheet_id: int = SHEET_ID) -> dict:
        """``repeatCell`` request for this zone."""
        if self.number_pattern is not None:
            return {
                "repeatCell": {
                    "range": self.range.to_api(sheet_id),
                    "cell": {
                        "userEnteredFormat": {
                            "numberFormat": {"type": "NUMBER", "pattern": self.number_pattern},
                        },
                    },
                    "fields": "userEnteredFormat.numberFormat",
                }
            }
        return {
            "repeatCell": {
                "range": self.range.to_api(sheet_id),
                "cell": {
                    "userEnteredFormat": {
                        "backgroundColor": self.background,
                        "horizontalAlignment": self.horizontal_alignment,
                        "verticalAlignment": self.vertical_alignment,
                    },
                },
                "fields": "userEnteredFormat(backgroundColor,horizontalAlignment,verticalAlignment)",
            }
        }


@dataclass
class LayoutPlan:
    """All ranges for one report, grouped by the batch they are sent in."""
    aggregate_block: GridRange
    member_block: GridRange
    solo_block: GridRange
    merges: list[GridRange] = field(default_factory=list)
    header_zones: list[FormatZone] = field(default_factory=list)
    number_zones: list[FormatZone] = field(default_factory=list)

    def merge_requests(self, sheet_id: int = SHEET_ID) -> list[dict]:
        return [
            {"mergeCells": {"range": r.to_api(sheet_id), "mergeType": "MERGE_ALL"}}
            for r in self.merges
        ]

    def header_requests(self, sheet_id: int = SHEET_ID) -> list[dict]:
        return [z.to_request(sheet_id) for z in self.header_zones]

    def number_format_requests(self, sheet_id: int = SHEET_ID) -> list[dict]:
        return [z.to_request(sheet_id) for z in self.number_zones]


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------
def plan_layout(aggregate_rows: int, member_rows: int, solo_rows: int) -> LayoutPlan:
    """Compute every merge, colour and number-format range for a report.

    Parameters
    ----------
    aggregate_rows, member_rows, solo_rows : int
        Number of data rows in each section.  Only the aggregate and solo
        counts shape the plan; the member block is open-ended.

    Raises
    ------
    LayoutError
        If the aggregate section would spill into the member block.
    """
    if min(aggregate_rows, member_rows, solo_rows) < 0:
        raise LayoutError("Row counts must be non-negative")
    if aggregate_rows > MAX_AGGREGATE_ROWS:
        raise LayoutError(
            f"Aggregate section has {aggregate_rows} rows; "
            f"at most {MAX_AGGREGATE_ROWS} fit above the member block"
        )

    aggregate_block = GridRange(
        AGGREGATE_START_ROW, AGGREGATE_END_ROW,
        AGGREGATE_START_COL, AGGREGATE_START_COL + AGGREGATE_WIDTH,
    )
    member_block = GridRange(
        MEMBER_START_ROW, None,
        MEMBER_START_COL, MEMBER_START_COL + MEMBER_WIDTH,
    )
    solo_block = GridRange(
        SOLO_START_ROW, None,
        SOLO_START_COL, SOLO_START_COL + SOLO_WIDTH,
    )

    sections = (
        # (block, data row end, colour, column groups)
        (aggregate_block, AGGREGATE_END_ROW, AGGREGATE_COLOR, _GROUPS_8),
        (member_block, None, MEMBER_COLOR, _GROUPS_8),
        (solo_block, SOLO_START_ROW + HEADER_ROWS + solo_rows, SOLO_COLOR, _GROUPS_7),
    )

    plan = LayoutPlan(aggregate_block, member_block, solo_block)
    for block, data_end, color, groups in sections:
        top, left, right = block.start_row, block.start_col, block.end_col
        plan.merges.append(GridRange(top, top + 1, left, right))
        plan.header_zones.append(
            FormatZone(GridRange(top, top + HEADER_ROWS, left, right), background=color)
        )

        data_start = top + HEADER_ROWS
        if data_end is not None and data_end <= data_start:
            continue  # no data rows to format
        for pattern, spans in groups:
            for lo, hi in spans:
                plan.number_zones.append(FormatZone(
                    GridRange(data_start, data_end, left + lo, left + hi),
                    number_pattern=pattern,
                ))
    return plan


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def quote_sheet_name(name: str) -> str:
    """Quote a tab name for A1 notation unless it is a plain identifier."""
    if _PLAIN_SHEET_NAME.fullmatch(name):
        return name
    escaped = name.replace("'", "''")
    return f"'{escaped}'"


def column_letter(index: int) -> str:
    """Zero-based column index to A1 letters (0 -> A, 26 -> AA)."""
    if index < 0:
        raise ValueError(f"Negative column index: {index}")
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def _spans_overlap(a_lo, a_hi, b_lo, b_hi) -> bool:
    a_lo = 0 if a_lo is None else a_lo
    b_lo = 0 if b_lo is None else b_lo
    a_hi = float("inf") if a_hi is None else a_hi
    b_hi = float("inf") if b_hi is None else b_hi
    return a_lo < b_hi and b_lo < a_hi
