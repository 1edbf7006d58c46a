from __future__ import annotations

import pytest

from landedcost.customs.models import IncotermClass
from landedcost.customs.settings import MissingSettingError, Settings
from landedcost.customs.valuation import compute_caf, convert_goods_value, incoterm_multiplier


@pytest.mark.parametrize(
    "incoterm, expected",
    [
        (IncotermClass.EX_WORKS, 675636),
        (IncotermClass.FREE_CARRIER, 688755),
        (IncotermClass.FREE_ON_BOARD, 655957),
        (IncotermClass.NON_MULTIMODAL, 655957),
    ],
)
def test_goods_value_per_incoterm(settings, incoterm, expected):
    assert convert_goods_value(1000, incoterm, 655.957, settings) == expected


def test_unsupported_incoterm_has_no_goods_value(settings):
    assert incoterm_multiplier(IncotermClass.UNSUPPORTED, settings) is None
    assert convert_goods_value(1000, IncotermClass.UNSUPPORTED, 655.957, settings) is None


def test_free_on_board_needs_no_settings():
    assert convert_goods_value(1000, IncotermClass.FREE_ON_BOARD, 655.957, Settings({})) == 655957


def test_ex_works_requires_its_multiplier():
    with pytest.raises(MissingSettingError) as excinfo:
        convert_goods_value(1000, IncotermClass.EX_WORKS, 1.0, Settings({}))
    assert excinfo.value.key == "fob_multiplier_exw"


def test_caf_is_sum_of_components():
    assert compute_caf(1_000_000, 272_300, 50_000) == 1_322_300
