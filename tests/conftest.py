"""Shared fixtures for the landed-cost engine tests."""

from __future__ import annotations

import json
from typing import List

import pytest

from landedcost.customs.models import LineItem, ShipmentContext
from landedcost.customs.rate_tables import ExemptionEntry, InMemoryRateTables, PortFeeEntry, TariffEntry
from landedcost.customs.settings import DEFAULT_SETTINGS_PATH, Settings

LAPTOP = TariffEntry(
    code="8471300000",
    description="Portable automatic data processing machines",
    customs_duty=5.0,
    statistical_tax=1.0,
    community_levy=0.8,
    solidarity_levy=0.5,
    other_levy=0.2,
    consumption_tax=18.0,
    cumulative_without_tax=7.5,
    cumulative_with_tax=26.85,
    short_code="847130",
)
CAR = TariffEntry(
    code="8703231900",
    description="Motor cars, used",
    customs_duty=20.0,
    statistical_tax=1.0,
    community_levy=0.8,
    solidarity_levy=0.5,
    other_levy=0.2,
    consumption_tax=18.0,
    cumulative_without_tax=22.5,
    cumulative_with_tax=44.55,
    short_code="870323",
)
RICE = TariffEntry(
    code="1006300000",
    description="Wholly milled rice",
    customs_duty=10.0,
    statistical_tax=1.0,
    community_levy=0.8,
    solidarity_levy=0.5,
    other_levy=0.2,
    rrr=0.5,
    cumulative_without_tax=12.5,
    cumulative_with_tax=12.5,
    short_code="100630",
)
SUGAR = TariffEntry(
    code="1701990000",
    description="Refined sugar",
    customs_duty=20.0,
    statistical_tax=1.0,
    community_levy=0.8,
    solidarity_levy=0.5,
    other_levy=0.2,
    consumption_tax=18.0,
    rcp=1.5,
    cumulative_without_tax=22.5,
    cumulative_with_tax=44.55,
    short_code="170199",
)


@pytest.fixture()
def settings() -> Settings:
    return Settings(json.loads(DEFAULT_SETTINGS_PATH.read_text(encoding="utf-8")))


@pytest.fixture()
def tables() -> InMemoryRateTables:
    return InMemoryRateTables(
        tariffs=[LAPTOP, CAR, RICE, SUGAR],
        exemptions=[ExemptionEntry(code="8703231900", description="Motor cars", exempt=False)],
        port_fees=[PortFeeEntry(category="GENERAL", label="General cargo", port_rate_per_tonne=1500, municipal_rate_per_tonne=200)],
    )


@pytest.fixture()
def shipment() -> ShipmentContext:
    return ShipmentContext.build(
        incoterm="FOB",
        transport_mode="maritime",
        container_type="20_pieds",
        container_count=1,
        route="A",
        payment_mode="virement",
        invoice_total=10_000,
        currency="EUR",
        exchange_rate=100,
        declared_weight_tonnes=10,
        zone="zone1",
        port_fee_category="GENERAL",
    )


@pytest.fixture()
def lines() -> List[LineItem]:
    return [
        LineItem(code="8471.30.00.00", description="Laptops", quantity=10, unit_price=500, net_weight_kg=5000),
        LineItem(code="8703231900", description="Used car", quantity=1, unit_price=5000, net_weight_kg=5000),
    ]
