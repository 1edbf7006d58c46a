from __future__ import annotations

import pytest

from landedcost.customs.codes import normalize_code, short_code
from landedcost.customs.money import round_amount, sum_amounts


@pytest.mark.parametrize(
    "value, expected",
    [(0.5, 1), (1.5, 2), (2.5, 3), (2.4999, 2), (49586.25, 49586), (148758.75, 148759), (0, 0)],
)
def test_round_amount_is_half_up(value, expected):
    assert round_amount(value) == expected


def test_sum_amounts_skips_pending_values():
    assert sum_amounts([100, None, 250, None]) == 350
    assert sum_amounts([]) == 0


class TestNormalizeCode:
    def test_strips_punctuation_and_whitespace(self):
        assert normalize_code("8471.30 00.00") == "8471300000"
        assert normalize_code(" 8471-30/00_00 ") == "8471300000"

    def test_drops_float_suffix_from_spreadsheet_cells(self):
        assert normalize_code("8471300000.0") == "8471300000"
        assert normalize_code(8471300000.0) == "8471300000"

    def test_empty_inputs(self):
        assert normalize_code(None) == ""
        assert normalize_code("  ") == ""

    def test_short_code_is_six_digit_heading(self):
        assert short_code("8471.30.00.00") == "847130"
