from __future__ import annotations

import pytest

from landedcost.customs.models import (
    ContainerType,
    CostBreakdown,
    IncotermClass,
    LineItem,
    LineItemValidationError,
    PaymentMode,
    Route,
    ShipmentContext,
    ShipmentValidationError,
    TransportMode,
    Zone,
)


class TestEnumerations:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("EXW", IncotermClass.EX_WORKS),
            ("fca", IncotermClass.FREE_CARRIER),
            ("FOB", IncotermClass.FREE_ON_BOARD),
            ("CIF", IncotermClass.NON_MULTIMODAL),
            ("DDP", IncotermClass.NON_MULTIMODAL),
            ("XYZ", IncotermClass.UNSUPPORTED),
            (None, IncotermClass.UNSUPPORTED),
        ],
    )
    def test_incoterm_parse(self, raw, expected):
        assert IncotermClass.parse(raw) is expected

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("20_pieds", ContainerType.TC20),
            ("TC40", ContainerType.TC40),
            ("40_pieds_hc", ContainerType.TC40HQ),
            ("conventionnel", ContainerType.CONVENTIONAL),
            ("groupage", ContainerType.GROUPAGE),
            ("45_pieds", ContainerType.UNSUPPORTED),
        ],
    )
    def test_container_parse(self, raw, expected):
        assert ContainerType.parse(raw) is expected

    def test_transport_mode_accepts_french_spellings(self):
        assert TransportMode.parse("aérien") is TransportMode.AIR
        assert TransportMode.parse("aerien") is TransportMode.AIR
        assert TransportMode.parse("maritime") is TransportMode.SEA
        assert TransportMode.parse("rail") is TransportMode.UNSUPPORTED

    def test_route_is_case_insensitive(self):
        assert Route.parse("a") is Route.A
        assert Route.parse("B") is Route.B
        assert Route.parse("D") is Route.UNSUPPORTED

    def test_payment_mode_parse(self):
        assert PaymentMode.parse("virement") is PaymentMode.BANK_TRANSFER
        assert PaymentMode.parse("remise_documentaire") is PaymentMode.DOCUMENTARY_COLLECTION
        assert PaymentMode.parse("credit_documentaire") is PaymentMode.DOCUMENTARY_CREDIT
        assert PaymentMode.parse("cash") is PaymentMode.UNSUPPORTED

    def test_zone_defaults_to_first_zone_when_absent(self):
        assert Zone.parse(None) is Zone.ZONE_1
        assert Zone.parse("") is Zone.ZONE_1
        assert Zone.parse("zone2") is Zone.ZONE_2
        assert Zone.parse("Zone 3") is Zone.ZONE_3
        assert Zone.parse("zone9") is Zone.UNSUPPORTED
        assert Zone.UNSUPPORTED.number is None
        assert Zone.ZONE_2.number == 2


class TestLineItem:
    def test_line_total_is_quantity_times_price(self):
        line = LineItem(code="8471300000", quantity=4, unit_price=12.5, declared_total=60)
        assert line.line_total == 50.0
        assert line.declared_total == 60.0

    @pytest.mark.parametrize("field", ["quantity", "unit_price", "net_weight_kg", "declared_total"])
    def test_negative_values_rejected(self, field):
        kwargs = {"code": "1", "quantity": 1, "unit_price": 1.0, field: -1}
        with pytest.raises(LineItemValidationError):
            LineItem(**kwargs)

    def test_non_numeric_rejected(self):
        with pytest.raises(LineItemValidationError):
            LineItem(code="1", quantity="ten", unit_price=1.0)

    def test_fractional_quantity_rejected(self):
        with pytest.raises(LineItemValidationError):
            LineItem(code="1", quantity=1.5, unit_price=1.0)

    def test_validation_error_is_value_error(self):
        assert issubclass(LineItemValidationError, ValueError)


class TestShipmentContext:
    def test_build_parses_raw_values(self, shipment):
        assert shipment.incoterm is IncotermClass.FREE_ON_BOARD
        assert shipment.container_type is ContainerType.TC20
        assert shipment.payment_mode is PaymentMode.BANK_TRANSFER
        assert shipment.zone is Zone.ZONE_1
        assert shipment.currency == "EUR"

    @pytest.mark.parametrize("rate", [0, -1, "abc"])
    def test_exchange_rate_must_be_positive(self, rate):
        with pytest.raises(ShipmentValidationError):
            ShipmentContext.build(
                incoterm="FOB",
                transport_mode="sea",
                container_type="tc20",
                payment_mode="virement",
                invoice_total=1,
                exchange_rate=rate,
            )

    def test_unknown_values_become_unsupported(self):
        context = ShipmentContext.build(
            incoterm="ABC",
            transport_mode="rail",
            container_type="tank",
            payment_mode="barter",
            route="Z",
            zone="zone7",
            invoice_total=1,
            exchange_rate=1,
        )
        assert context.incoterm is IncotermClass.UNSUPPORTED
        assert context.transport_mode is TransportMode.UNSUPPORTED
        assert context.container_type is ContainerType.UNSUPPORTED
        assert context.payment_mode is PaymentMode.UNSUPPORTED
        assert context.route is Route.UNSUPPORTED
        assert context.zone is Zone.UNSUPPORTED


class TestCostBreakdown:
    def test_total_skips_pending_and_consumption_tax(self):
        breakdown = CostBreakdown(goods_value=1000, freight=None, insurance=50, rpi=10, consumption_tax=999, caf=1050)
        assert breakdown.total == 1060
        assert breakdown.statutory_levies == 10

    def test_as_dict_has_stable_key_order(self):
        keys = list(CostBreakdown().as_dict())
        assert keys[0] == "goods_value"
        assert keys[-2:] == ["statutory_levies", "total"]

    def test_cost_coefficient_needs_every_fee(self):
        assert CostBreakdown(goods_value=1000, insurance=50).cost_coefficient is None
        amounts = {name: 0 for name in CostBreakdown.__dataclass_fields__}
        complete = CostBreakdown(**{**amounts, "goods_value": 1000, "freight": 250, "consumption_tax": 999})
        assert complete.is_complete is True
        assert complete.cost_coefficient == pytest.approx(1.25)

    def test_cost_coefficient_without_goods_value(self):
        amounts = {name: 0 for name in CostBreakdown.__dataclass_fields__}
        assert CostBreakdown(**amounts).cost_coefficient is None
