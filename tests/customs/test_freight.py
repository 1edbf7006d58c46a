from __future__ import annotations

import pytest

from landedcost.customs.freight import CARRIAGE_ITEMS, HANDLING_ITEMS, compute_freight, freight_items
from landedcost.customs.models import ContainerType
from landedcost.customs.settings import MissingSettingError, Settings


class TestFreight:
    def test_schedule_covers_twenty_items(self, settings):
        items = freight_items(ContainerType.TC20, settings)
        assert set(items) == set(HANDLING_ITEMS) | set(CARRIAGE_ITEMS)
        assert len(items) == 20

    def test_single_twenty_foot_container(self, settings):
        quote = compute_freight(ContainerType.TC20, 1, 1.0, settings)
        assert quote.handling_per_container == 1025
        assert quote.carriage_per_container == 1698
        assert quote.per_container == 2723
        assert quote.amount == 2723

    def test_scales_with_count_and_exchange_rate(self, settings):
        quote = compute_freight(ContainerType.TC20, 3, 2.0, settings)
        assert quote.amount == 16338

    def test_zero_containers_cost_nothing(self, settings):
        assert compute_freight(ContainerType.TC20, 0, 100.0, settings).amount == 0

    @pytest.mark.parametrize("container", [ContainerType.TC40HQ, ContainerType.CONVENTIONAL, ContainerType.UNSUPPORTED])
    def test_no_schedule_for_other_containers(self, settings, container):
        assert compute_freight(container, 1, 1.0, settings) is None

    def test_missing_item_raises(self, settings):
        trimmed = {k: v for k, v in settings.items() if k != "freight_tc40_isps_security"}
        with pytest.raises(MissingSettingError) as excinfo:
            compute_freight(ContainerType.TC40, 1, 1.0, Settings(trimmed))
        assert excinfo.value.key == "freight_tc40_isps_security"
