from __future__ import annotations

import pytest

from landedcost.customs.insurance import compute_insurance
from landedcost.customs.models import TransportMode
from landedcost.customs.settings import Settings


@pytest.fixture()
def insurance_settings() -> Settings:
    return Settings(
        {
            "insurance_value_multiplier": 1.2,
            "ordinary_risk_rate": 0.0015,
            "ordinary_risk_minimum": 5000,
            "accessories_flat": 2500,
            "air_tax_multiplier": 0.1,
            "war_risk_rate": 0.0005,
        }
    )


class TestInsurance:
    def test_minimum_premium_applies(self, insurance_settings):
        quote = compute_insurance(1_000_000, 200_000, TransportMode.SEA, insurance_settings)
        assert quote.insured_value == 1_440_000
        assert quote.ordinary_premium == 5000
        assert quote.accessories == 2500
        assert quote.total == 7500

    def test_rate_above_minimum(self, insurance_settings):
        quote = compute_insurance(10_000_000, 0, TransportMode.SEA, insurance_settings)
        assert quote.insured_value == 12_000_000
        assert quote.ordinary_premium == 18000
        assert quote.air_tax == 0
        assert quote.total == 20500

    def test_air_adds_tax_on_ordinary_premium(self, insurance_settings):
        quote = compute_insurance(10_000_000, 0, TransportMode.AIR, insurance_settings)
        assert quote.air_tax == 1800
        assert quote.total == 22300

    def test_war_risk_is_opt_in(self, insurance_settings):
        quote = compute_insurance(10_000_000, 0, TransportMode.SEA, insurance_settings, include_war_risk=True)
        assert quote.war_risk == 6000
        assert quote.total == 26500

    def test_positive_rate_override(self, insurance_settings):
        quote = compute_insurance(
            10_000_000, 0, TransportMode.SEA, insurance_settings, ordinary_risk_rate=0.002
        )
        assert quote.ordinary_rate == 0.002
        assert quote.total == 26500

    def test_zero_override_falls_back_to_configured_rate(self, insurance_settings):
        quote = compute_insurance(10_000_000, 0, TransportMode.SEA, insurance_settings, ordinary_risk_rate=0)
        assert quote.ordinary_rate == 0.0015
        assert quote.total == 20500

    def test_as_dict_lists_every_component(self, insurance_settings):
        payload = compute_insurance(1_000_000, 200_000, TransportMode.SEA, insurance_settings).as_dict()
        assert payload["total"] == 7500
        assert set(payload) == {
            "insured_value",
            "ordinary_rate",
            "ordinary_premium",
            "accessories",
            "air_tax",
            "war_risk",
            "total",
        }
