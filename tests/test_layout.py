"""
Tests for the Layout Planner: block geometry, merges, colour bands and
number-format zones.
"""

import itertools

import pytest

from albion_sheets.errors import LayoutError
from albion_sheets.layout import (
    FAME_PATTERN,
    INTEGER_PATTERN,
    RATIO_PATTERN,
    GridRange,
    column_letter,
    plan_layout,
)


class TestGridRange:
    def test_to_api_omits_open_bounds(self):
        r = GridRange(start_row=6, start_col=0, end_col=8)
        assert r.to_api() == {
            "sheetId": 0, "startRowIndex": 6, "startColumnIndex": 0, "endColumnIndex": 8,
        }

    def test_to_a1(self):
        assert GridRange(0, 6, 0, 8).to_a1("Sheet1") == "Sheet1!A1:H6"
        assert GridRange(6, None, 0, 8).to_a1("Sheet1") == "Sheet1!A7:H"
        assert GridRange(0, None, 9, 16).to_a1("Stats") == "Stats!J1:P"

    @pytest.mark.parametrize("name,ref", [
        ("Guild Stats", "'Guild Stats'!A1:H6"),
        ("Stats-2024", "'Stats-2024'!A1:H6"),
        ("Bob's Tab", "'Bob''s Tab'!A1:H6"),
        ("Sheet_1", "Sheet_1!A1:H6"),
    ])
    def test_to_a1_quotes_sheet_name(self, name, ref):
        assert GridRange(0, 6, 0, 8).to_a1(name) == ref

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError, match="inverted"):
            GridRange(5, 5, 0, 1)

    def test_negative_bound_rejected(self):
        with pytest.raises(ValueError, match="Negative"):
            GridRange(-1, 2, 0, 1)

    def test_overlap_with_open_end(self):
        assert GridRange(6, None, 0, 8).overlaps(GridRange(500, 501, 7, 9))
        assert not GridRange(0, 6, 0, 8).overlaps(GridRange(6, None, 0, 8))

    @pytest.mark.parametrize("index,letters", [(0, "A"), (7, "H"), (15, "P"), (25, "Z"), (26, "AA")])
    def test_column_letter(self, index, letters):
        assert column_letter(index) == letters


class TestBlocks:
    def test_fixed_geometry(self):
        plan = plan_layout(3, 5, 2)
        assert plan.aggregate_block == GridRange(0, 6, 0, 8)
        assert plan.member_block == GridRange(6, None, 0, 8)
        assert plan.solo_block == GridRange(0, None, 9, 16)

    @pytest.mark.parametrize("members", [0, 1, 250])
    def test_member_block_open_ended_at_row_6(self, members):
        plan = plan_layout(4, members, 2)
        assert plan.member_block.start_row == 6
        assert plan.member_block.end_row is None

        member_zones = [z for z in plan.number_zones if z.range.start_row == 8]
        assert member_zones
        assert all(z.range.end_row is None for z in member_zones)

    def test_aggregate_overflow_rejected(self):
        with pytest.raises(LayoutError, match="at most 4"):
            plan_layout(5, 1, 1)

    def test_negative_count_rejected(self):
        with pytest.raises(LayoutError):
            plan_layout(1, -1, 1)


class TestMerges:
    def test_one_title_row_per_section(self):
        plan = plan_layout(3, 5, 2)
        assert plan.merges == [
            GridRange(0, 1, 0, 8),
            GridRange(6, 7, 0, 8),
            GridRange(0, 1, 9, 16),
        ]

    @pytest.mark.parametrize("counts", [(0, 0, 0), (4, 1, 30), (2, 100, 0)])
    def test_merges_never_overlap(self, counts):
        plan = plan_layout(*counts)
        for a, b in itertools.combinations(plan.merges, 2):
            assert not a.overlaps(b)

    def test_merge_requests(self):
        requests = plan_layout(3, 5, 2).merge_requests()
        assert len(requests) == 3
        assert requests[1] == {
            "mergeCells": {
                "range": {
                    "sheetId": 0, "startRowIndex": 6, "endRowIndex": 7,
                    "startColumnIndex": 0, "endColumnIndex": 8,
                },
                "mergeType": "MERGE_ALL",
            }
        }


class TestHeaderZones:
    def test_title_and_label_rows(self):
        plan = plan_layout(3, 5, 2)
        assert [z.range for z in plan.header_zones] == [
            GridRange(0, 2, 0, 8),
            GridRange(6, 8, 0, 8),
            GridRange(0, 2, 9, 16),
        ]

    def test_distinct_colours_centered(self):
        plan = plan_layout(3, 5, 2)
        colours = [tuple(sorted(z.background.items())) for z in plan.header_zones]
        assert len(set(colours)) == 3

        fmt = plan.header_requests()[0]["repeatCell"]["cell"]["userEnteredFormat"]
        assert fmt["horizontalAlignment"] == "CENTER"
        assert fmt["verticalAlignment"] == "MIDDLE"


class TestNumberZones:
    def _patterns_by_col(self, zones):
        cols = {}
        for z in zones:
            for c in range(z.range.start_col, z.range.end_col):
                cols[c] = z.number_pattern
        return cols

    def test_aggregate_columns(self):
        plan = plan_layout(3, 5, 2)
        aggregate = [z for z in plan.number_zones if z.range.start_row == 2 and z.range.end_col <= 8]
        assert all(z.range.end_row == 6 for z in aggregate)
        assert self._patterns_by_col(aggregate) == {
            1: FAME_PATTERN, 2: FAME_PATTERN,
            3: RATIO_PATTERN, 6: RATIO_PATTERN,
            4: INTEGER_PATTERN, 5: INTEGER_PATTERN, 7: INTEGER_PATTERN,
        }

    def test_solo_columns_closed_span(self):
        plan = plan_layout(3, 5, 2)
        solo = [z for z in plan.number_zones if z.range.start_col >= 9]
        assert all((z.range.start_row, z.range.end_row) == (2, 4) for z in solo)
        assert self._patterns_by_col(solo) == {
            10: FAME_PATTERN, 11: FAME_PATTERN,
            12: RATIO_PATTERN, 15: RATIO_PATTERN,
            13: INTEGER_PATTERN, 14: INTEGER_PATTERN,
        }

    def test_no_solo_zones_without_rows(self):
        plan = plan_layout(3, 5, 0)
        assert not [z for z in plan.number_zones if z.range.start_col >= 9]

    def test_number_format_request(self):
        request = plan_layout(3, 5, 2).number_format_requests()[0]["repeatCell"]
        assert request["cell"]["userEnteredFormat"]["numberFormat"] == {
            "type": "NUMBER", "pattern": FAME_PATTERN,
        }
        assert request["fields"] == "userEnteredFormat.numberFormat"
