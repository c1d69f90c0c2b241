"""ShippingGenerator — zone-based cost, delivery estimates and carrier choice."""

from __future__ import annotations

import logging
from decimal import Decimal

from domaingen.generators.base import Artifact, PatternGenerator, method
from domaingen.models.descriptor import TypeDescriptor
from domaingen.money import round_money, to_decimal
from domaingen.rules.tables import Carrier, RuleTables, ShippingZoneTable, normalize_jurisdiction

logger = logging.getLogger(__name__)


def resolve_zone(table: ShippingZoneTable, origin: str, dest: str) -> str:
    """Zone for a state pair; unknown states get the highest-cost zone."""
    zone, known = table.resolve_zone(origin, dest)
    if not known:
        logger.warning(
            "Unknown shipping route %r -> %r in table %s; using zone '%s'",
            origin, dest, table.version, zone,
        )
    return zone


def choose_carrier(zone: str, weight_kg: object, table: ShippingZoneTable) -> Carrier:
    """Pure carrier decision over (zone, weight).

    Among eligible carriers the one earliest in ``carrier_priority`` wins.
    With no eligible carrier, the lowest-priority carrier is returned.
    """
    weight = to_decimal(weight_kg, "weight_kg")
    eligible = {rule.carrier for rule in table.carrier_rules if rule.accepts(zone, weight)}
    for carrier in table.carrier_priority:
        if carrier in eligible:
            return carrier
    return table.carrier_priority[-1]


def shipping_cost(
    table: ShippingZoneTable,
    items_count: int,
    weight_kg: object,
    origin: str,
    dest: str,
    country: str,
) -> Decimal:
    if isinstance(items_count, bool) or not isinstance(items_count, int) or items_count < 0:
        raise ValueError(f"items_count must be a non-negative integer, got {items_count!r}")
    weight = to_decimal(weight_kg, "weight_kg")
    if normalize_jurisdiction(country) != table.home_country:
        return round_money(table.international_rate)

    zone = resolve_zone(table, origin, dest)
    base = table.zones[zone].base_rate
    total = base + table.weight_surcharge(weight) + table.handling_fee_per_item * items_count
    return round_money(total)


class ShippingGenerator(PatternGenerator):
    """Generate shipping calculations bound to one zone table."""

    @property
    def name(self) -> str:
        return "shipping"

    @property
    def description(self) -> str:
        return "Shipping cost, delivery-day estimates and carrier recommendation by Brazilian zone"

    def generate(self, descriptor: TypeDescriptor, rules: RuleTables) -> Artifact:
        table = rules.shipping
        slowest_tier = table.service_tiers[0]

        def shipping_zone(self, origin: str, dest: str) -> str:
            """Zone name for the route between two states."""
            return resolve_zone(table, origin, dest)

        def calculate_shipping_cost(self, items_count: int, weight_kg, origin: str, dest: str, country: str = "BR") -> Decimal:
            """Zone base rate plus weight-tier surcharge and handling, rounded once."""
            return shipping_cost(table, items_count, weight_kg, origin, dest, country)

        def estimate_delivery_days(self, origin: str, dest: str, service_tier: str = "standard") -> int:
            """Business days for the route; unknown tiers get the slowest estimate."""
            zone = resolve_zone(table, origin, dest)
            days = table.zones[zone].delivery_days
            tier = service_tier.lower()
            if tier not in days:
                logger.warning("Unknown service tier %r; using '%s'", service_tier, slowest_tier)
                tier = slowest_tier
            return days[tier]

        def recommend_carrier(self, origin: str, dest: str, weight_kg) -> str:
            """Carrier identifier for the route's zone and parcel weight."""
            zone = resolve_zone(table, origin, dest)
            return choose_carrier(zone, weight_kg, table).value

        members = [
            method(shipping_zone),
            method(calculate_shipping_cost),
            method(estimate_delivery_days),
            method(recommend_carrier),
        ]
        body = {
            "table_version": table.version,
            "zones": {
                name: {
                    "base_rate": str(zone.base_rate),
                    "delivery_days": dict(zone.delivery_days),
                }
                for name, zone in sorted(table.zones.items())
            },
            "weight_tiers": [
                {"max_kg": str(t.max_kg), "surcharge": str(t.surcharge)} for t in table.weight_tiers
            ],
            "service_tiers": list(table.service_tiers),
            "carrier_priority": [c.value for c in table.carrier_priority],
            "international_rate": str(table.international_rate),
        }
        return self._artifact(descriptor, members, body=body)
