"""Embedded default rule tables — no external files required.

Brazilian rates and zones used when no rule-table file is configured.
Real deployments supply their own tables through ``load_rule_tables``.
"""

from __future__ import annotations

import copy
from decimal import Decimal
from typing import Any

SEED_VERSION = "2026.1-seed"

# ICMS internal rates by state (UF)
ICMS_RATES: dict[str, Decimal] = {
    "SP": Decimal("0.18"),  # São Paulo
    "RJ": Decimal("0.20"),  # Rio de Janeiro
    "MG": Decimal("0.18"),  # Minas Gerais
    "RS": Decimal("0.17"),  # Rio Grande do Sul
    "PR": Decimal("0.19"),  # Paraná
    "SC": Decimal("0.17"),  # Santa Catarina
    "BA": Decimal("0.19"),  # Bahia
    "PE": Decimal("0.18"),  # Pernambuco
    "CE": Decimal("0.19"),  # Ceará
    "DF": Decimal("0.18"),  # Distrito Federal
    "GO": Decimal("0.17"),  # Goiás
    "MT": Decimal("0.17"),  # Mato Grosso
    "MS": Decimal("0.17"),  # Mato Grosso do Sul
    "ES": Decimal("0.17"),  # Espírito Santo
    "PA": Decimal("0.19"),  # Pará
    "AM": Decimal("0.20"),  # Amazonas
    "MA": Decimal("0.19"),  # Maranhão
    "PI": Decimal("0.19"),  # Piauí
    "RN": Decimal("0.18"),  # Rio Grande do Norte
    "PB": Decimal("0.18"),  # Paraíba
    "AL": Decimal("0.19"),  # Alagoas
    "SE": Decimal("0.19"),  # Sergipe
    "TO": Decimal("0.18"),  # Tocantins
    "RO": Decimal("0.175"),  # Rondônia
    "RR": Decimal("0.17"),  # Roraima
    "AC": Decimal("0.17"),  # Acre
    "AP": Decimal("0.18"),  # Amapá
}
DEFAULT_ICMS_RATE = Decimal("0.17")

# Federal contributions, non-cumulative regime
PIS_RATE = Decimal("0.0165")
COFINS_RATE = Decimal("0.076")

# ISS by municipality (names and common aliases)
ISS_RATES: dict[str, Decimal] = {
    "SAO PAULO": Decimal("0.05"),
    "SP": Decimal("0.05"),
    "RIO DE JANEIRO": Decimal("0.05"),
    "RJ": Decimal("0.05"),
    "BELO HORIZONTE": Decimal("0.03"),
    "BH": Decimal("0.03"),
    "CURITIBA": Decimal("0.02"),
}
DEFAULT_ISS_RATE = Decimal("0.03")

# Macro-regions used for shipping zones
REGIONS: dict[str, tuple[str, ...]] = {
    "southeast": ("SP", "RJ", "MG", "ES"),
    "south": ("PR", "SC", "RS"),
    "northeast": ("BA", "SE", "AL", "PE", "PB", "RN", "CE", "PI", "MA"),
    "north": ("AC", "AP", "AM", "PA", "RO", "RR", "TO"),
    "center_west": ("GO", "MT", "MS", "DF"),
}

ADJACENT_REGIONS: tuple[tuple[str, str], ...] = (
    ("southeast", "south"),
    ("southeast", "center_west"),
    ("southeast", "northeast"),
    ("center_west", "north"),
    ("center_west", "south"),
)

DISTANT_REGIONS: tuple[tuple[str, str], ...] = (
    ("southeast", "north"),
    ("south", "north"),
    ("south", "northeast"),
)

# Zone -> base rate (BRL) and delivery days per service tier
SHIPPING_ZONES: dict[str, dict[str, Any]] = {
    "local": {
        "base_rate": Decimal("15.00"),
        "delivery_days": {"economy": 3, "standard": 2, "express": 1},
    },
    "regional": {
        "base_rate": Decimal("18.00"),
        "delivery_days": {"economy": 5, "standard": 3, "express": 2},
    },
    "adjacent": {
        "base_rate": Decimal("22.50"),
        "delivery_days": {"economy": 8, "standard": 5, "express": 3},
    },
    "national": {
        "base_rate": Decimal("24.00"),
        "delivery_days": {"economy": 10, "standard": 6, "express": 3},
    },
    "remote": {
        "base_rate": Decimal("27.00"),
        "delivery_days": {"economy": 12, "standard": 8, "express": 4},
    },
}

WEIGHT_TIERS: tuple[dict[str, Decimal], ...] = (
    {"max_kg": Decimal("1"), "surcharge": Decimal("0.00")},
    {"max_kg": Decimal("5"), "surcharge": Decimal("10.00")},
    {"max_kg": Decimal("30"), "surcharge": Decimal("40.00")},
    {"max_kg": Decimal("100"), "surcharge": Decimal("150.00")},
)
OVERWEIGHT_RATE_PER_KG = Decimal("5.00")
HANDLING_FEE_PER_ITEM = Decimal("0.00")
INTERNATIONAL_RATE = Decimal("50.00")

# Earlier carriers win ties
CARRIER_PRIORITY: tuple[str, ...] = (
    "local_courier",
    "correios_pac_mini",
    "correios_pac",
    "regional_freight",
    "heavy_freight",
)

CARRIER_RULES: tuple[dict[str, Any], ...] = (
    {"carrier": "local_courier", "zones": ("local",), "max_kg": Decimal("30")},
    {"carrier": "correios_pac_mini", "max_kg": Decimal("1")},
    {"carrier": "correios_pac", "max_kg": Decimal("30")},
    {"carrier": "regional_freight", "min_kg": Decimal("30"), "max_kg": Decimal("100")},
    {"carrier": "heavy_freight", "min_kg": Decimal("100")},
)

# Status names that are final unless a spec overrides them
FINAL_STATES: tuple[str, ...] = (
    "Delivered",
    "Cancelled",
    "Refunded",
    "Failed",
    "Expired",
    "Disputed",
    "Deleted",
    "Returned",
)
CANCELLATION_SINKS: tuple[str, ...] = ("Cancelled", "Canceled")
REFUND_SINKS: tuple[str, ...] = ("Refunded",)

# Field-name patterns in priority order (first full match wins)
VALIDATION_PATTERNS: tuple[tuple[str, str], ...] = (
    (r"(?:[a-z0-9]+_)*email(?:_address)?", "email"),
    (r"(?:[a-z0-9]+_)*(?:phone|telefone|celular|mobile)(?:_number)?", "phone"),
    (r"(?:[a-z0-9]+_)*(?:cpf|cnpj|tax_id|document_number)", "national_tax_id"),
    (r"(?:[a-z0-9]+_)*(?:cep|postal_code|zip_code|zipcode)", "postal_code"),
    (r"(?:[a-z0-9]+_)*(?:state|uf|region_code)", "region_code"),
)

BRAZILIAN_STATES: tuple[str, ...] = tuple(ICMS_RATES)


def seed_tables() -> dict[str, Any]:
    """Return a fresh copy of the seed data in the shape accepted by ``RuleTables``."""
    return copy.deepcopy({
        "version": SEED_VERSION,
        "tax": {
            "version": SEED_VERSION,
            "icms_rates": dict(ICMS_RATES),
            "default_icms_rate": DEFAULT_ICMS_RATE,
            "pis_rate": PIS_RATE,
            "cofins_rate": COFINS_RATE,
            "iss_rates": dict(ISS_RATES),
            "default_iss_rate": DEFAULT_ISS_RATE,
        },
        "shipping": {
            "version": SEED_VERSION,
            "regions": dict(REGIONS),
            "zones": dict(SHIPPING_ZONES),
            "adjacent_regions": ADJACENT_REGIONS,
            "distant_regions": DISTANT_REGIONS,
            "weight_tiers": WEIGHT_TIERS,
            "overweight_rate_per_kg": OVERWEIGHT_RATE_PER_KG,
            "handling_fee_per_item": HANDLING_FEE_PER_ITEM,
            "international_rate": INTERNATIONAL_RATE,
            "carrier_priority": CARRIER_PRIORITY,
            "carrier_rules": CARRIER_RULES,
        },
        "transitions": {
            "version": SEED_VERSION,
            "final_states": FINAL_STATES,
            "cancellation_sinks": CANCELLATION_SINKS,
            "refund_sinks": REFUND_SINKS,
        },
        "validation": {
            "version": SEED_VERSION,
            "patterns": [{"pattern": p, "kind": k} for p, k in VALIDATION_PATTERNS],
            "region_codes": BRAZILIAN_STATES,
            "default_country": "BR",
        },
    })
