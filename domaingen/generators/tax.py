"""TaxGenerator — Brazilian ICMS, PIS, COFINS and ISS computation.

Individual levies are exact Decimals.  Totals are rounded to the minor unit
once, after summing, so rounding error never compounds across levies.
Unknown jurisdictions fall back to the table default and log a warning.
"""

from __future__ import annotations

import hashlib
import logging
from decimal import Decimal

from pydantic import BaseModel

from domaingen.checks.brazil import nfe_check_digit
from domaingen.config import NFE_KEY_LENGTH
from domaingen.generators.base import Artifact, PatternGenerator, method
from domaingen.models.descriptor import TypeDescriptor
from domaingen.money import round_money, to_decimal
from domaingen.rules.tables import RuleTables, TaxRuleTable

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


class TaxBreakdown(BaseModel):
    """Levies for one subtotal.  Only ``total`` is rounded."""

    subtotal: Decimal
    icms: Decimal = _ZERO
    iss: Decimal = _ZERO
    pis: Decimal = _ZERO
    cofins: Decimal = _ZERO
    total: Decimal = _ZERO
    state: str = ""
    city: str = ""
    is_service: bool = False
    table_version: str = ""


def identity_fields(descriptor: TypeDescriptor) -> list[str]:
    """Fields feeding the NFe key: ``nfe_fields``, else ids, else everything."""
    declared = descriptor.attribute("nfe_fields")
    if declared:
        return list(declared)
    ids = [n for n in descriptor.field_names if n == "id" or n.endswith("_id")]
    return ids or descriptor.field_names


def derive_nfe_key(type_name: str, values: list[tuple[str, object]]) -> str:
    """Deterministic 44-digit key: 43 digits from a digest plus a check digit."""
    canonical = "|".join([type_name] + [f"{k}={'' if v is None else v}" for k, v in values])
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    body = str(int(digest, 16)).zfill(NFE_KEY_LENGTH - 1)[-(NFE_KEY_LENGTH - 1):]
    return f"{body}{nfe_check_digit(body)}"


def _icms(table: TaxRuleTable, amount: Decimal, state: str) -> Decimal:
    rate, known = table.icms_rate(state)
    if not known:
        logger.warning(
            "No ICMS rate for state %r in tax table %s; using default %s",
            state, table.version, rate,
        )
    return amount * rate


def _iss(table: TaxRuleTable, amount: Decimal, city: str) -> Decimal:
    rate, known = table.iss_rate(city)
    if not known:
        logger.warning(
            "No ISS rate for city %r in tax table %s; using default %s",
            city, table.version, rate,
        )
    return amount * rate


def compute_breakdown(
    table: TaxRuleTable,
    subtotal: object,
    state: str,
    is_service: bool = False,
    city: str | None = None,
) -> TaxBreakdown:
    """ICMS for goods or ISS for services, plus PIS and COFINS."""
    amount = to_decimal(subtotal, "subtotal")
    city = city if city is not None else state
    icms = _ZERO if is_service else _icms(table, amount, state)
    iss = _iss(table, amount, city) if is_service else _ZERO
    pis = amount * table.pis_rate
    cofins = amount * table.cofins_rate
    return TaxBreakdown(
        subtotal=amount,
        icms=icms,
        iss=iss,
        pis=pis,
        cofins=cofins,
        total=round_money(icms + iss + pis + cofins),
        state=state,
        city=city,
        is_service=is_service,
        table_version=table.version,
    )


class TaxGenerator(PatternGenerator):
    """Generate Brazilian tax calculations bound to one tax table."""

    @property
    def name(self) -> str:
        return "tax"

    @property
    def description(self) -> str:
        return "Brazilian tax levies (ICMS, PIS, COFINS, ISS) and NFe key derivation"

    def generate(self, descriptor: TypeDescriptor, rules: RuleTables) -> Artifact:
        table = rules.tax
        type_name = descriptor.name
        nfe_fields = identity_fields(descriptor)

        def calculate_icms(self, subtotal, state: str) -> Decimal:
            """ICMS on *subtotal* at the rate for *state* (unrounded)."""
            return _icms(table, to_decimal(subtotal, "subtotal"), state)

        def calculate_pis(self, subtotal) -> Decimal:
            """PIS on *subtotal* (unrounded)."""
            return to_decimal(subtotal, "subtotal") * table.pis_rate

        def calculate_cofins(self, subtotal) -> Decimal:
            """COFINS on *subtotal* (unrounded)."""
            return to_decimal(subtotal, "subtotal") * table.cofins_rate

        def calculate_iss(self, subtotal, city: str, is_service: bool = True) -> Decimal:
            """ISS on *subtotal* for *city*; zero unless the sale is a service."""
            amount = to_decimal(subtotal, "subtotal")
            if not is_service:
                return _ZERO
            return _iss(table, amount, city)

        def calculate_total_tax(self, subtotal, state: str, is_service: bool = False, city: str | None = None) -> Decimal:
            """Sum of applicable levies, rounded once to the minor unit."""
            return compute_breakdown(table, subtotal, state, is_service, city).total

        def tax_breakdown(self, subtotal, state: str, is_service: bool = False, city: str | None = None) -> TaxBreakdown:
            """Every levy for *subtotal* plus the rounded total."""
            return compute_breakdown(table, subtotal, state, is_service, city)

        def generate_nfe_key(self) -> str:
            """44-digit fiscal document key derived from this entity's identity fields."""
            values = [(f, getattr(self, f, None)) for f in nfe_fields]
            if all(v is None for _, v in values):
                raise ValueError(
                    f"{type_name}: identity fields {', '.join(nfe_fields)} are all empty"
                )
            return derive_nfe_key(type_name, values)

        members = [
            method(calculate_icms),
            method(calculate_pis),
            method(calculate_cofins),
            method(calculate_iss),
            method(calculate_total_tax),
            method(tax_breakdown),
            method(generate_nfe_key),
        ]
        body = {
            "table_version": table.version,
            "icms_rates": {k: str(v) for k, v in sorted(table.icms_rates.items())},
            "default_icms_rate": str(table.default_icms_rate),
            "pis_rate": str(table.pis_rate),
            "cofins_rate": str(table.cofins_rate),
            "iss_rates": {k: str(v) for k, v in sorted(table.iss_rates.items())},
            "default_iss_rate": str(table.default_iss_rate),
            "nfe_fields": nfe_fields,
        }
        return self._artifact(descriptor, members, body=body)
