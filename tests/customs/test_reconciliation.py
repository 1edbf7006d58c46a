from __future__ import annotations

import pytest

from landedcost.customs.models import DiscrepancyLevel, LineItem, ShipmentContext
from landedcost.customs.reconciliation import classify, compare, line_total_mismatches, percentage_difference, reconcile


def _shipment(invoice_total: float, weight_tonnes=None) -> ShipmentContext:
    return ShipmentContext.build(
        incoterm="FOB",
        transport_mode="sea",
        container_type="tc20",
        payment_mode="virement",
        invoice_total=invoice_total,
        exchange_rate=655.957,
        declared_weight_tonnes=weight_tonnes,
    )


class TestPercentageDifference:
    def test_symmetric(self):
        assert percentage_difference(100, 94) == pytest.approx(6.0)
        assert percentage_difference(94, 100) == pytest.approx(6.0)

    def test_normalized_by_larger_magnitude(self):
        assert percentage_difference(100, 105.2) == pytest.approx(5.2 / 105.2 * 100)
        assert compare("amount", 100, 105.2).level is DiscrepancyLevel.MODERATE
        assert compare("amount", 105.2, 100).level is DiscrepancyLevel.MODERATE

    def test_two_zeros_are_equal(self):
        assert percentage_difference(0, 0) == 0.0

    @pytest.mark.parametrize(
        "pct, level",
        [
            (0.0, DiscrepancyLevel.NEGLIGIBLE),
            (1.0, DiscrepancyLevel.NEGLIGIBLE),
            (1.01, DiscrepancyLevel.MODERATE),
            (5.0, DiscrepancyLevel.MODERATE),
            (5.01, DiscrepancyLevel.MATERIAL),
        ],
    )
    def test_classification_boundaries(self, pct, level):
        assert classify(pct) is level

    def test_compare_reports_signed_and_absolute_difference(self):
        finding = compare("amount", 100, 99)
        assert finding.difference == -1
        assert finding.absolute_difference == 1
        assert finding.level is DiscrepancyLevel.NEGLIGIBLE
        assert compare("amount", 100, 95).level is DiscrepancyLevel.MODERATE


class TestReconcile:
    def test_material_amount_discrepancy(self):
        report = reconcile(_shipment(100), [LineItem(code="1", quantity=2, unit_price=47)])
        assert report.amount.percentage == pytest.approx(6.0)
        assert report.amount.level is DiscrepancyLevel.MATERIAL
        assert report.amount_local.level is DiscrepancyLevel.MATERIAL
        assert report.worst_level is DiscrepancyLevel.MATERIAL
        assert report.requires_review is True
        assert report.accepted_invoice_total == 94

    def test_matching_invoice_needs_no_review(self):
        report = reconcile(_shipment(100), [LineItem(code="1", quantity=4, unit_price=25)])
        assert report.weight is None
        assert report.requires_review is False
        assert report.worst_level is DiscrepancyLevel.NEGLIGIBLE

    def test_weight_compared_in_kilograms(self):
        lines = [LineItem(code="1", quantity=1, unit_price=100, net_weight_kg=1900)]
        report = reconcile(_shipment(100, weight_tonnes=2), lines)
        assert report.weight.quantity == "weight_kg"
        assert report.weight.declared == 2000
        assert report.weight.level is DiscrepancyLevel.MODERATE
        assert report.worst_level is DiscrepancyLevel.MODERATE

    def test_reconciliation_does_not_change_lines(self):
        lines = [LineItem(code="1", quantity=1, unit_price=80)]
        reconcile(_shipment(100), lines)
        assert lines[0].line_total == 80


class TestLineTotals:
    def test_declared_line_total_mismatch(self):
        lines = [
            LineItem(code="a", quantity=3, unit_price=10, declared_total=30.005),
            LineItem(code="b", quantity=3, unit_price=10, declared_total=33),
            LineItem(code="c", quantity=3, unit_price=10),
        ]
        mismatches = line_total_mismatches(lines)
        assert [m.index for m in mismatches] == [1]
        assert mismatches[0].difference == -3
