"""Hand-written equivalents of generated members, used as benchmark baselines.

Each baseline is written the way a developer would code the behaviour
directly for one type, against the seed rule tables.
"""

from __future__ import annotations

import enum
from decimal import ROUND_HALF_UP, Decimal

from domaingen.checks.brazil import is_valid_cpf
from domaingen.checks.formats import is_valid_email

_CENT = Decimal("0.01")


class HandOrderStatus(enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    def can_transition_to(self, target: HandOrderStatus) -> bool:
        return target in _HAND_EDGES[self]

    def is_final_status(self) -> bool:
        return not _HAND_EDGES[self]


_HAND_EDGES: dict[HandOrderStatus, frozenset[HandOrderStatus]] = {
    HandOrderStatus.PENDING: frozenset({HandOrderStatus.PAID, HandOrderStatus.CANCELLED}),
    HandOrderStatus.PAID: frozenset({HandOrderStatus.SHIPPED, HandOrderStatus.REFUNDED}),
    HandOrderStatus.SHIPPED: frozenset({HandOrderStatus.DELIVERED}),
    HandOrderStatus.DELIVERED: frozenset(),
    HandOrderStatus.CANCELLED: frozenset(),
    HandOrderStatus.REFUNDED: frozenset(),
}

_ICMS = {"SP": Decimal("0.18"), "RJ": Decimal("0.20"), "MG": Decimal("0.18")}
_PIS = Decimal("0.0165")
_COFINS = Decimal("0.076")


def hand_total_tax(subtotal: Decimal, state: str) -> Decimal:
    icms = subtotal * _ICMS.get(state.upper(), Decimal("0.17"))
    return (icms + subtotal * _PIS + subtotal * _COFINS).quantize(_CENT, rounding=ROUND_HALF_UP)


def hand_shipping_cost(weight_kg: Decimal, origin: str, dest: str) -> Decimal:
    base = Decimal("15.00") if origin == dest else Decimal("24.00")
    surcharge = Decimal("0") if weight_kg <= 1 else Decimal("10.00")
    return (base + surcharge).quantize(_CENT, rounding=ROUND_HALF_UP)


def hand_validate_customer(email: str, cpf: str) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not is_valid_email(email):
        errors["email"] = "email must be a valid email address"
    if not is_valid_cpf(cpf):
        errors["cpf"] = "cpf must be a valid national tax id"
    return errors


def hand_cache_key(product: str, entity_id: str) -> str:
    return f"{product}:order:{entity_id}"


def hand_parse_order_number(text: str) -> tuple[str, str] | None:
    prefix, sep, payload = text.partition("-")
    if not sep or prefix != "PED" or len(payload) != 16:
        return None
    return prefix, payload


def hand_net_amount(amount: Decimal, fee_percentage: Decimal) -> Decimal:
    return (amount - amount * fee_percentage / 100).quantize(_CENT, rounding=ROUND_HALF_UP)
