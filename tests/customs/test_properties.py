from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from landedcost.customs.allocation import allocate, cumulative_rate, line_shares
from landedcost.customs.models import LineItem
from landedcost.customs.rate_tables import TariffEntry
from landedcost.customs.reconciliation import compare

ENTRY = TariffEntry(code="1", cumulative_without_tax=22.5, cumulative_with_tax=44.55)

line_items = st.lists(
    st.builds(
        LineItem,
        code=st.just("1"),
        quantity=st.integers(min_value=0, max_value=1_000),
        unit_price=st.floats(min_value=0, max_value=1e6, allow_nan=False, allow_infinity=False),
        tariff=st.just(ENTRY),
    ),
    min_size=1,
    max_size=12,
)
amounts = st.floats(min_value=0, max_value=1e9, allow_nan=False, allow_infinity=False)


@given(line_items)
def test_shares_sum_to_one_or_all_zero(lines):
    shares = line_shares(lines)
    if sum(line.line_total for line in lines) > 0:
        assert abs(sum(shares) - 1.0) < 1e-9
    else:
        assert all(share == 0.0 for share in shares)


@given(line_items, amounts)
def test_zero_line_sum_allocates_no_duty(lines, caf):
    zeroed = [LineItem(code=line.code, quantity=0, unit_price=line.unit_price, tariff=line.tariff) for line in lines]
    result = allocate(zeroed, caf, cumulative_rate(False))
    assert result.total == 0
    assert all(line.amount == 0 for line in result.lines)


@given(amounts, amounts)
def test_classification_is_symmetric(a, b):
    assert compare("amount", a, b).level is compare("amount", b, a).level
