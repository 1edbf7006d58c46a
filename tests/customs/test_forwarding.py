from __future__ import annotations

import pytest

from landedcost.customs.forwarding import ForwardingInputs, compute_forwarding_fee, had_bands, select_had_band
from landedcost.customs.models import ContainerType, Zone
from landedcost.customs.rate_tables import PortFeeEntry

GENERAL = PortFeeEntry(category="GENERAL", port_rate_per_tonne=1500, municipal_rate_per_tonne=200)


def _inputs(**overrides) -> ForwardingInputs:
    values = dict(
        container_type=ContainerType.TC20,
        container_count=1,
        zone=Zone.ZONE_1,
        weight_tonnes=10.0,
        caf=4_000_000,
    )
    values.update(overrides)
    return ForwardingInputs(**values)


class TestForwardingFee:
    def test_twenty_foot_zone_one(self, settings):
        quote = compute_forwarding_fee(_inputs(), settings, GENERAL)
        assert quote.intervention_subtotal == 394_750
        assert quote.funds_advance_commission == pytest.approx(7697.625)
        assert quote.had_band.index == 1
        assert quote.had_fee == pytest.approx(72_000)
        assert quote.had_fixed_fee == 45_500
        assert quote.total == 574_132
        assert quote.warnings == ()

    def test_weight_drives_port_levies(self, settings):
        items = dict(compute_forwarding_fee(_inputs(weight_tonnes=2.5), settings, GENERAL).items)
        assert items["port_levy"] == 3750
        assert items["municipal_levy"] == 500

    def test_missing_port_fee_entry_zeroes_levies(self, settings):
        quote = compute_forwarding_fee(_inputs(), settings, None)
        items = dict(quote.items)
        assert items["port_levy"] == 0
        assert items["municipal_levy"] == 0
        assert quote.intervention_subtotal == 394_750 - 17_000
        assert len(quote.warnings) == 1

    def test_zone_and_container_select_handling_charges(self, settings):
        inputs = _inputs(container_type=ContainerType.TC40, container_count=2, zone=Zone.ZONE_3)
        items = dict(compute_forwarding_fee(inputs, settings, GENERAL).items)
        assert items["delivery"] == 528_000
        assert items["lifting"] == 120_000
        assert items["container_cleaning"] == 20_000
        assert items["isps_tax"] == 58_000

    def test_non_container_shipment_has_no_handling_charges(self, settings):
        items = dict(compute_forwarding_fee(_inputs(container_type=ContainerType.GROUPAGE), settings, GENERAL).items)
        assert items["delivery"] == 0
        assert items["lifting"] == 0
        assert items["isps_tax"] == 0

    def test_unsupported_zone_has_no_quote(self, settings):
        assert compute_forwarding_fee(_inputs(zone=Zone.UNSUPPORTED), settings, GENERAL) is None


class TestHadBands:
    def test_five_contiguous_bands(self, settings):
        bands = had_bands(settings)
        assert [band.index for band in bands] == [1, 2, 3, 4, 5]
        assert bands[0].lower is None
        assert bands[-1].upper is None
        for previous, current in zip(bands, bands[1:]):
            assert previous.upper == current.lower

    @pytest.mark.parametrize(
        "caf, band",
        [
            (0, 1),
            (4_999_999, 1),
            (5_000_000, 2),
            (9_999_999, 2),
            (10_000_000, 3),
            (49_999_999, 4),
            (50_000_000, 5),
            (10**12, 5),
        ],
    )
    def test_lower_bound_is_inclusive(self, settings, caf, band):
        assert select_had_band(caf, settings).index == band
