"""Rule table models — read-only configuration consumed by the generators.

A :class:`RuleTables` instance is versioned and validated as a whole, and its
mappings are read-only views.  It is never updated in place: callers build a
new instance and swap it in.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from domaingen.models.frozen import ReadOnlyMap, freeze
from domaingen.models.validation import RuleKind

logger = logging.getLogger(__name__)


def normalize_jurisdiction(code: str) -> str:
    """Uppercase, strip accents and collapse whitespace.

    ``normalize_jurisdiction(" São  Paulo ")`` returns ``"SAO PAULO"``.
    """
    decomposed = unicodedata.normalize("NFKD", code or "")
    ascii_only = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(ascii_only.upper().split())


def _check_rate(value: Decimal) -> Decimal:
    if value < 0 or value > 1:
        raise ValueError(f"rate {value} must be a fraction between 0 and 1")
    return value


# ---------------------------------------------------------------------------
# Tax
# ---------------------------------------------------------------------------

class TaxRuleTable(BaseModel):
    """Tax rates as fractions (0.18 == 18%)."""

    model_config = ConfigDict(frozen=True)

    version: str = "seed"
    icms_rates: ReadOnlyMap[str, Decimal] = Field(default_factory=dict, validate_default=True)
    """State (UF) code -> ICMS rate."""

    default_icms_rate: Decimal
    pis_rate: Decimal
    cofins_rate: Decimal
    iss_rates: ReadOnlyMap[str, Decimal] = Field(default_factory=dict, validate_default=True)
    """City name or alias -> ISS rate."""

    default_iss_rate: Decimal

    @field_validator("default_icms_rate", "pis_rate", "cofins_rate", "default_iss_rate")
    @classmethod
    def _rate_in_range(cls, v: Decimal) -> Decimal:
        return _check_rate(v)

    @field_validator("icms_rates", "iss_rates")
    @classmethod
    def _normalize_keys(cls, v: Mapping[str, Decimal]) -> Mapping[str, Decimal]:
        return freeze({normalize_jurisdiction(k): _check_rate(r) for k, r in v.items()})

    def icms_rate(self, state: str) -> tuple[Decimal, bool]:
        """Return ``(rate, known)`` for *state*; unknown states get the default."""
        rate = self.icms_rates.get(normalize_jurisdiction(state))
        if rate is None:
            return self.default_icms_rate, False
        return rate, True

    def iss_rate(self, city: str) -> tuple[Decimal, bool]:
        """Return ``(rate, known)`` for *city*; unknown cities get the default."""
        rate = self.iss_rates.get(normalize_jurisdiction(city))
        if rate is None:
            return self.default_iss_rate, False
        return rate, True


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------

class Carrier(str, Enum):
    """Fixed set of carriers a shipping artifact can recommend."""

    LOCAL_COURIER = "local_courier"
    CORREIOS_PAC_MINI = "correios_pac_mini"
    CORREIOS_PAC = "correios_pac"
    REGIONAL_FREIGHT = "regional_freight"
    HEAVY_FREIGHT = "heavy_freight"


class ShippingZone(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_rate: Decimal
    delivery_days: ReadOnlyMap[str, int]
    """Service tier -> business days."""


class WeightTier(BaseModel):
    """Surcharge for parcels up to ``max_kg`` (inclusive)."""

    model_config = ConfigDict(frozen=True)

    max_kg: Decimal
    surcharge: Decimal


class CarrierRule(BaseModel):
    """Eligibility of one carrier: weight in ``[min_kg, max_kg)`` and zone."""

    model_config = ConfigDict(frozen=True)

    carrier: Carrier
    zones: tuple[str, ...] = ()
    """Eligible zones.  Empty means every zone."""

    min_kg: Decimal = Decimal("0")
    max_kg: Decimal | None = None

    def accepts(self, zone: str, weight_kg: Decimal) -> bool:
        if self.zones and zone not in self.zones:
            return False
        if weight_kg < self.min_kg:
            return False
        return self.max_kg is None or weight_kg < self.max_kg


class ShippingZoneTable(BaseModel):
    """Regional zones, weight tiers and carrier eligibility."""

    model_config = ConfigDict(frozen=True)

    version: str = "seed"
    regions: ReadOnlyMap[str, tuple[str, ...]]
    """Region name -> member state codes."""

    zones: ReadOnlyMap[str, ShippingZone]
    local_zone: str = "local"
    regional_zone: str = "regional"
    adjacent_zone: str = "adjacent"
    distant_zone: str = "remote"
    fallback_zone: str = "national"
    adjacent_regions: tuple[tuple[str, str], ...] = ()
    distant_regions: tuple[tuple[str, str], ...] = ()
    weight_tiers: tuple[WeightTier, ...]
    overweight_rate_per_kg: Decimal
    """Per-kg charge above the heaviest tier."""

    handling_fee_per_item: Decimal = Decimal("0")
    international_rate: Decimal
    home_country: str = "BR"
    service_tiers: tuple[str, ...] = ("economy", "standard", "express")
    """Ordered from slowest to fastest."""

    carrier_priority: tuple[Carrier, ...]
    carrier_rules: tuple[CarrierRule, ...]

    @field_validator("regions")
    @classmethod
    def _normalize_states(cls, v: Mapping[str, tuple[str, ...]]) -> Mapping[str, tuple[str, ...]]:
        return freeze({region: tuple(normalize_jurisdiction(s) for s in states) for region, states in v.items()})

    @model_validator(mode="after")
    def _check_consistency(self) -> ShippingZoneTable:
        for name in (
            self.local_zone,
            self.regional_zone,
            self.adjacent_zone,
            self.distant_zone,
            self.fallback_zone,
        ):
            if name not in self.zones:
                raise ValueError(f"zone '{name}' is referenced but not defined")

        for name, zone in self.zones.items():
            previous: int | None = None
            for tier in self.service_tiers:
                if tier not in zone.delivery_days:
                    raise ValueError(f"zone '{name}' has no delivery days for tier '{tier}'")
                days = zone.delivery_days[tier]
                if previous is not None and days > previous:
                    raise ValueError(
                        f"zone '{name}': tier '{tier}' is slower than the tier below it"
                    )
                previous = days

        limits = [t.max_kg for t in self.weight_tiers]
        if not limits or limits != sorted(limits) or len(set(limits)) != len(limits):
            raise ValueError("weight tiers must be non-empty and strictly ascending")

        for rule in self.carrier_rules:
            if rule.carrier not in self.carrier_priority:
                raise ValueError(f"carrier '{rule.carrier.value}' missing from carrier_priority")
        return self

    def region_of(self, state: str) -> str | None:
        code = normalize_jurisdiction(state)
        for region, states in self.regions.items():
            if code in states:
                return region
        return None

    def most_conservative_zone(self) -> str:
        """Name of the zone with the highest base rate."""
        return max(self.zones, key=lambda name: self.zones[name].base_rate)

    def resolve_zone(self, origin: str, dest: str) -> tuple[str, bool]:
        """Return ``(zone_name, known)`` for a state pair.

        Unknown states resolve to the most conservative zone.
        """
        origin_region = self.region_of(origin)
        dest_region = self.region_of(dest)
        if origin_region is None or dest_region is None:
            return self.most_conservative_zone(), False

        if normalize_jurisdiction(origin) == normalize_jurisdiction(dest):
            return self.local_zone, True
        if origin_region == dest_region:
            return self.regional_zone, True
        pair = (origin_region, dest_region)
        reverse = (dest_region, origin_region)
        if pair in self.adjacent_regions or reverse in self.adjacent_regions:
            return self.adjacent_zone, True
        if pair in self.distant_regions or reverse in self.distant_regions:
            return self.distant_zone, True
        return self.fallback_zone, True

    def weight_surcharge(self, weight_kg: Decimal) -> Decimal:
        for tier in self.weight_tiers:
            if weight_kg <= tier.max_kg:
                return tier.surcharge
        heaviest = self.weight_tiers[-1]
        return heaviest.surcharge + (weight_kg - heaviest.max_kg) * self.overweight_rate_per_kg


# ---------------------------------------------------------------------------
# State transitions
# ---------------------------------------------------------------------------

class TransitionTopology(BaseModel):
    """Defaults used when an enum spec does not declare its own graph."""

    model_config = ConfigDict(frozen=True)

    version: str = "seed"
    final_states: tuple[str, ...] = ()
    """Variant names treated as final unless the spec says otherwise."""

    cancellation_sinks: tuple[str, ...] = ("Cancelled",)
    refund_sinks: tuple[str, ...] = ("Refunded",)


# ---------------------------------------------------------------------------
# Validation rule resolution
# ---------------------------------------------------------------------------

class NamePattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: str
    kind: RuleKind

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid pattern {v!r}: {exc}") from exc
        return v


class ValidationRuleMap(BaseModel):
    """Ordered field-name patterns; the first full match wins."""

    model_config = ConfigDict(frozen=True)

    version: str = "seed"
    patterns: tuple[NamePattern, ...] = ()
    region_codes: tuple[str, ...] = ()
    default_country: str = "BR"

    def match(self, field_name: str) -> RuleKind | None:
        for entry in self.patterns:
            if re.fullmatch(entry.pattern, field_name):
                return entry.kind
        return None


class RuleTables(BaseModel):
    """All rule tables, versioned and swapped as one unit."""

    model_config = ConfigDict(frozen=True)

    version: str = "seed"
    tax: TaxRuleTable
    shipping: ShippingZoneTable
    transitions: TransitionTopology
    validation: ValidationRuleMap
