"""Tests for the shipping generator."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from domaingen.generators.shipping import ShippingGenerator, choose_carrier
from domaingen.parsing import parse
from domaingen.quality.fixtures import ORDER_SPEC, SAMPLE_ORDER
from domaingen.rules.tables import Carrier


@pytest.fixture
def order(engine):
    order_cls = engine.generate(ORDER_SPEC, ["shipping"]).generated_type
    return order_cls(**SAMPLE_ORDER)


# ── Cost ─────────────────────────────────────────────────────────────────────

class TestShippingCost:

    def test_local_light_parcel(self, order):
        assert order.calculate_shipping_cost(1, Decimal("0.5"), "SP", "SP") == Decimal("15.00")

    def test_weight_surcharge_added(self, order):
        assert order.calculate_shipping_cost(1, Decimal("2"), "SP", "SP") == Decimal("25.00")

    def test_regional(self, order):
        assert order.calculate_shipping_cost(1, Decimal("2"), "SP", "RJ") == Decimal("28.00")

    def test_overweight(self, order):
        # remote base 27.00 + 150.00 + 20 kg over the last tier at 5.00/kg
        assert order.calculate_shipping_cost(3, Decimal("120"), "AM", "SP") == Decimal("277.00")

    def test_unknown_state_costs_most(self, order, caplog):
        with caplog.at_level(logging.WARNING, logger="domaingen.generators.shipping"):
            unknown = order.calculate_shipping_cost(1, Decimal("2"), "SP", "ZZ")
        assert unknown == Decimal("37.00")
        assert "Unknown shipping route" in caplog.text
        for dest in ("SP", "RJ", "PR", "AM", "BA"):
            assert unknown >= order.calculate_shipping_cost(1, Decimal("2"), "SP", dest)

    def test_international_flat_rate(self, order):
        assert order.calculate_shipping_cost(2, Decimal("3"), "SP", "NY", country="US") == Decimal("50.00")

    def test_result_is_rounded(self, order):
        assert order.calculate_shipping_cost(1, Decimal("100.333"), "SP", "SP").as_tuple().exponent == -2

    @pytest.mark.parametrize("items", [-1, 1.5, True])
    def test_invalid_item_count(self, order, items):
        with pytest.raises(ValueError):
            order.calculate_shipping_cost(items, Decimal("1"), "SP", "SP")

    def test_float_weight_rejected(self, order):
        with pytest.raises(TypeError):
            order.calculate_shipping_cost(1, 1.5, "SP", "SP")


# ── Delivery estimates ───────────────────────────────────────────────────────

class TestDeliveryDays:

    def test_by_zone_and_tier(self, order):
        assert order.estimate_delivery_days("SP", "SP") == 2
        assert order.estimate_delivery_days("SP", "SP", "express") == 1
        assert order.estimate_delivery_days("SP", "AM", "economy") == 12

    @pytest.mark.parametrize("dest", ["SP", "RJ", "PR", "AM", "BA", "ZZ"])
    def test_better_tier_is_never_slower(self, order, dest):
        days = [order.estimate_delivery_days("SP", dest, t) for t in ("economy", "standard", "express")]
        assert days == sorted(days, reverse=True)

    def test_unknown_tier_gets_slowest(self, order):
        assert order.estimate_delivery_days("SP", "RJ", "teleport") == 5

    def test_shipping_zone(self, order):
        assert order.shipping_zone("SP", "PR") == "adjacent"


# ── Carrier choice ───────────────────────────────────────────────────────────

class TestCarrier:

    @pytest.mark.parametrize("zone, weight, carrier", [
        ("local", "0.5", Carrier.LOCAL_COURIER),
        ("regional", "0.5", Carrier.CORREIOS_PAC_MINI),
        ("regional", "10", Carrier.CORREIOS_PAC),
        ("local", "30", Carrier.REGIONAL_FREIGHT),
        ("remote", "99.9", Carrier.REGIONAL_FREIGHT),
        ("remote", "100", Carrier.HEAVY_FREIGHT),
    ])
    def test_choose_carrier(self, rules, zone, weight, carrier):
        assert choose_carrier(zone, Decimal(weight), rules.shipping) is carrier

    def test_ties_follow_priority(self, rules):
        # local courier, PAC mini and PAC all accept a 0.5 kg local parcel
        eligible = [r.carrier for r in rules.shipping.carrier_rules if r.accepts("local", Decimal("0.5"))]
        assert len(eligible) == 3
        assert choose_carrier("local", Decimal("0.5"), rules.shipping) is rules.shipping.carrier_priority[0]

    def test_is_pure(self, rules):
        results = {choose_carrier("regional", Decimal("10"), rules.shipping) for _ in range(20)}
        assert len(results) == 1

    def test_recommend_carrier_member(self, order):
        assert order.recommend_carrier("SP", "SP", Decimal("2")) == "local_courier"
        assert order.recommend_carrier("SP", "AM", Decimal("150")) == "heavy_freight"

    def test_artifact_body_lists_carriers(self, rules):
        artifact = ShippingGenerator().generate(parse(ORDER_SPEC), rules)
        assert artifact.body["carrier_priority"][0] == "local_courier"
        assert artifact.body["service_tiers"] == ["economy", "standard", "express"]
