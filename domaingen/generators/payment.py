"""PaymentGenerator — payment lifecycle, PIX and boleto helpers for payment structs.

A payment struct declares an ``amount`` field and usually ``id``, ``status``
and ``created_at``.  The generated members cover:

* status moves (``mark_processing`` and friends) over the fixed lifecycle
  ``pending -> processing -> completed -> refunded``, with ``failed``
  reachable from any open status,
* amount checks, fees and an idempotency key,
* PIX key validation and the EMV "BR Code" QR payload,
* boleto check digits and boleto data,
* tax exemptions applied on top of the bound tax table.

Every member is a pure computation except those reading the injected clock.
"""

from __future__ import annotations

import hashlib
import logging
import re
import unicodedata
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domaingen.checks import brazil
from domaingen.checks.formats import is_valid_email
from domaingen.config import (
    DEFAULT_BOLETO_BANK,
    DEFAULT_BOLETO_DUE_DAYS,
    DEFAULT_MERCHANT_CITY,
    DEFAULT_PAYMENT_EXPIRY_MINUTES,
    PAYMENT_MAX_AMOUNT,
    PAYMENT_MIN_AMOUNT,
    PIX_CURRENCY,
    PIX_GUI,
    PIX_MAX_EMAIL_LENGTH,
)
from domaingen.errors import InvalidPaymentTransition, SpecError
from domaingen.generators.base import Artifact, Capability, PatternGenerator, constant, method, static
from domaingen.generators.identifier import Clock, utc_now
from domaingen.generators.tax import TaxBreakdown, compute_breakdown
from domaingen.models.descriptor import TypeDescriptor
from domaingen.money import round_money, to_decimal
from domaingen.rules.tables import RuleTables

logger = logging.getLogger(__name__)

PAYMENT_STATES = ("pending", "processing", "completed", "failed", "refunded")

# target status -> statuses it may be entered from
PAYMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    "processing": frozenset({"pending"}),
    "completed": frozenset({"pending", "processing"}),
    "failed": frozenset({"pending", "processing", "failed"}),
    "refunded": frozenset({"completed"}),
}

_EVP_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)
_TXID_RE = re.compile(r"[A-Za-z0-9]{1,25}")
_BRL_RE = re.compile(r"(-)?\s*(?:R\$)?\s*([0-9]{1,3}(?:\.[0-9]{3})+|[0-9]+)(?:,([0-9]{1,2}))?")

_MAX_MERCHANT_NAME = 25
_MAX_MERCHANT_CITY = 15
_BOLETO_WEIGHTS = (2, 3, 4, 5, 6, 7, 8, 9)


class PixKeyType(str, Enum):
    """Kinds of key a PIX account can be addressed by."""

    CPF = "cpf"
    CNPJ = "cnpj"
    EMAIL = "email"
    PHONE = "phone"
    RANDOM = "random"


class TaxType(str, Enum):
    ICMS = "icms"
    ISS = "iss"
    PIS = "pis"
    COFINS = "cofins"


class TaxExemption(BaseModel):
    """Fractional relief on one levy; ``rate`` 1 removes it entirely."""

    model_config = ConfigDict(frozen=True)

    tax_type: TaxType
    rate: Decimal = Field(ge=0, le=1)
    reason: str = ""

    @field_validator("rate", mode="before")
    @classmethod
    def _no_floats(cls, value: Any) -> Decimal:
        return to_decimal(value, "rate")


class BoletoData(BaseModel):
    """Fields printed on a boleto bancário."""

    model_config = ConfigDict(frozen=True)

    bank_code: str
    our_number: str
    check_digit: str
    document_number: str
    due_date: date
    amount: Decimal
    instructions: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def crc16_ccitt(data: str) -> int:
    """CRC-16/CCITT-FALSE (poly 0x1021, init 0xFFFF) as used by BR Code."""
    crc = 0xFFFF
    for byte in data.encode("utf-8"):
        crc ^= byte << 8
        for _ in range(8):
            crc = ((crc << 1) ^ 0x1021) if crc & 0x8000 else crc << 1
            crc &= 0xFFFF
    return crc


def _emv(tag: str, value: str) -> str:
    return f"{tag}{len(value):02d}{value}"


def _ascii_upper(text: str, limit: int) -> str:
    plain = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return plain.upper()[:limit]


def pix_payload(
    key: str,
    merchant_name: str,
    merchant_city: str,
    amount: Decimal | None = None,
    txid: str = "***",
) -> str:
    """EMV BR Code payload for a PIX charge, CRC included."""
    account = _emv("00", PIX_GUI) + _emv("01", key)
    fields = [
        _emv("00", "01"),
        _emv("01", "12"),
        _emv("26", account),
        _emv("52", "0000"),
        _emv("53", PIX_CURRENCY),
    ]
    if amount is not None:
        fields.append(_emv("54", f"{round_money(amount):.2f}"))
    fields += [
        _emv("58", "BR"),
        _emv("59", _ascii_upper(merchant_name, _MAX_MERCHANT_NAME)),
        _emv("60", _ascii_upper(merchant_city, _MAX_MERCHANT_CITY)),
        _emv("62", _emv("05", txid)),
    ]
    body = "".join(fields) + "6304"
    return f"{body}{crc16_ccitt(body):04X}"


def pix_key_error(key: Any, key_type: Any) -> str | None:
    """Why *key* is not a valid PIX key of *key_type*, or None."""
    try:
        kind = PixKeyType(key_type)
    except ValueError:
        return f"unknown PIX key type {key_type!r}"
    if not isinstance(key, str) or not key.strip():
        return "PIX key is required"
    if kind is PixKeyType.CPF:
        ok = brazil.is_valid_cpf(key)
    elif kind is PixKeyType.CNPJ:
        ok = brazil.is_valid_cnpj(key)
    elif kind is PixKeyType.EMAIL:
        ok = len(key) <= PIX_MAX_EMAIL_LENGTH and is_valid_email(key)
    elif kind is PixKeyType.PHONE:
        digits = brazil.digits_only(key)
        local = digits[2:] if len(digits) == 13 else digits
        ok = len(local) == 11 and brazil.is_valid_phone(key)
    else:
        ok = bool(_EVP_RE.fullmatch(key))
    return None if ok else f"invalid {kind.value} PIX key"


def boleto_check_digit(code: str) -> str:
    """Mod-11 check digit, weights 2..9 cycling from the right; 0 for remainders 0 and 1."""
    digits = brazil.digits_only(code)
    if not digits:
        raise ValueError(f"boleto code has no digits: {code!r}")
    total = sum(int(d) * _BOLETO_WEIGHTS[i % len(_BOLETO_WEIGHTS)] for i, d in enumerate(reversed(digits)))
    remainder = total % 11
    return "0" if remainder < 2 else str(11 - remainder)


def format_brl(amount: Any) -> str:
    """``R$ 1.234,56`` rendering of an amount, rounded to centavos."""
    value = round_money(to_decimal(amount, "amount", allow_negative=True))
    units, cents = f"{abs(value):.2f}".split(".")
    grouped = f"{int(units):,}".replace(",", ".")
    sign = "-" if value < 0 else ""
    return f"{sign}R$ {grouped},{cents}"


def parse_brl(text: str) -> Decimal:
    """Inverse of :func:`format_brl`.  Raises ValueError for anything else."""
    match = _BRL_RE.fullmatch(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise ValueError(f"not a BRL amount: {text!r}")
    sign, units, cents = match.groups()
    value = Decimal(f"{units.replace('.', '')}.{(cents or '0').ljust(2, '0')}")
    return -value if sign else value


def amount_error(value: Any) -> str | None:
    """Why *value* is not an acceptable payment amount, or None."""
    if value is None:
        return "amount is required"
    try:
        amount = to_decimal(value, "amount", allow_negative=True)
    except (TypeError, ValueError) as exc:
        return str(exc)
    if amount <= 0:
        return "amount must be positive"
    if amount < PAYMENT_MIN_AMOUNT:
        return f"amount is below the minimum of {PAYMENT_MIN_AMOUNT}"
    if amount > PAYMENT_MAX_AMOUNT:
        return f"amount exceeds the maximum of {PAYMENT_MAX_AMOUNT}"
    return None


def status_text(value: Any) -> str:
    """Lifecycle name of a status value; an unset status counts as pending."""
    if value is None:
        return "pending"
    if hasattr(value, "to_str"):
        return value.to_str()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class PaymentGenerator(PatternGenerator):
    """Generate payment lifecycle, PIX and boleto members for structs with an ``amount``."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    @property
    def name(self) -> str:
        return "payment"

    @property
    def description(self) -> str:
        return "Payment status moves, fees, idempotency keys, PIX keys and QR payloads, boletos, tax exemptions"

    def supports(self, descriptor: TypeDescriptor) -> bool:
        return super().supports(descriptor) and descriptor.get_field("amount") is not None

    def generate(self, descriptor: TypeDescriptor, rules: RuleTables) -> Artifact:
        if descriptor.get_field("amount") is None:
            raise SpecError("payments require an 'amount' field", descriptor.name)

        clock = self._clock
        table = rules.tax
        type_name = descriptor.name
        fields = set(descriptor.field_names)
        expiry_window = descriptor.attribute("payment_expiry_minutes", DEFAULT_PAYMENT_EXPIRY_MINUTES)
        due_days = descriptor.attribute("boleto_due_days", DEFAULT_BOLETO_DUE_DAYS)
        bank_code = descriptor.attribute("boleto_bank", DEFAULT_BOLETO_BANK)
        merchant_name = descriptor.attribute("merchant_name", type_name)
        merchant_city = descriptor.attribute("merchant_city", DEFAULT_MERCHANT_CITY)

        def _amount(self) -> Decimal:
            return to_decimal(self.amount, "amount")

        def _move(self, target: str, **stamps: Any) -> None:
            current = status_text(getattr(self, "status", None))
            if current not in PAYMENT_TRANSITIONS[target]:
                raise InvalidPaymentTransition(type_name, current, target)
            old = getattr(self, "status", None)
            self.status = type(old).parse(target) if hasattr(old, "parse") else target
            now = clock()
            for name, value in dict(stamps, updated_at=now).items():
                if name in fields:
                    setattr(self, name, now if value is None else value)

        def mark_processing(self) -> None:
            """Move a pending payment to processing."""
            _move(self, "processing")

        def mark_completed(self) -> None:
            """Complete a pending or processing payment."""
            _move(self, "completed", completed_at=None)
            logger.info("%s %s completed (%s)", type_name, getattr(self, "id", None), self.amount)

        def mark_failed(self, reason: str) -> None:
            """Fail any payment that is not completed or refunded, recording *reason*."""
            _move(self, "failed", failed_at=None, failure_reason=reason)
            logger.warning("%s %s failed: %s", type_name, getattr(self, "id", None), reason)

        def can_refund(self) -> bool:
            """Only completed payments can be refunded."""
            return status_text(getattr(self, "status", None)) == "completed"

        def mark_refunded(self) -> None:
            """Refund a completed payment."""
            _move(self, "refunded")
            logger.info("%s %s refunded (%s)", type_name, getattr(self, "id", None), self.amount)

        def total_amount(self) -> Decimal:
            """Amount plus the ``tax`` field when declared, rounded once."""
            tax = getattr(self, "tax", None) if "tax" in fields else None
            extra = to_decimal(tax, "tax") if tax is not None else Decimal("0")
            return round_money(_amount(self) + extra)

        def net_amount(self, fee_percentage) -> Decimal:
            """Amount left after a percentage fee, rounded once."""
            fee = to_decimal(fee_percentage, "fee_percentage")
            if fee > 100:
                raise ValueError(f"fee_percentage must not exceed 100, got {fee}")
            amount = _amount(self)
            return round_money(amount - amount * fee / 100)

        def idempotency_key(self) -> str:
            """``pay_<sha256>`` over type, id, amount and creation time."""
            created = getattr(self, "created_at", None)
            parts = [
                type_name,
                str(getattr(self, "id", "")),
                str(_amount(self)),
                created.isoformat() if created is not None else "",
            ]
            return "pay_" + hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()

        def validate_amount(self) -> str | None:
            """Failure message when the amount is missing or outside PIX limits, else None."""
            return amount_error(self.amount)

        def is_expired(self, expiry_minutes: int | None = None) -> bool:
            """True for a pending payment older than the expiry window."""
            created = getattr(self, "created_at", None)
            if created is None or status_text(getattr(self, "status", None)) != "pending":
                return False
            window = expiry_minutes if expiry_minutes is not None else expiry_window
            return clock() - created > timedelta(minutes=window)

        def validate_pix_key(key: str, key_type: str) -> str | None:
            """Failure message for a PIX key of *key_type*, or None when valid."""
            return pix_key_error(key, key_type)

        def generate_qr_payload(self, pix_key: str | None = None, txid: str | None = None) -> str:
            """EMV BR Code payload for this payment, CRC-16 included.

            *pix_key* defaults to the ``pix_key`` field.  *txid* defaults to the
            alphanumeric characters of ``id`` (at most 25), else ``***``.
            """
            key = pix_key or getattr(self, "pix_key", None)
            if not key:
                raise ValueError(f"{type_name}: a PIX key is required for a QR payload")
            if txid is None:
                txid = re.sub(r"[^A-Za-z0-9]", "", str(getattr(self, "id", "") or ""))[:25] or "***"
            elif not _TXID_RE.fullmatch(txid):
                raise ValueError(f"txid must be 1-25 letters or digits, got {txid!r}")
            return pix_payload(key, merchant_name, merchant_city, _amount(self), txid)

        def calculate_boleto_dv(code: str) -> str:
            """Boleto mod-11 verification digit for *code*."""
            return boleto_check_digit(code)

        def generate_boleto(self, instructions: Iterable[str] = ()) -> BoletoData:
            """Boleto for this payment, due a fixed number of days from today."""
            error = amount_error(self.amount)
            if error is not None:
                raise ValueError(f"{type_name}: {error}")
            document = str(getattr(self, "id", "") or "")
            seed = hashlib.sha256(f"{type_name}|{document}".encode("utf-8")).hexdigest()
            our_number = str(int(seed, 16) % 10 ** 13).zfill(13)
            return BoletoData(
                bank_code=bank_code,
                our_number=our_number,
                check_digit=boleto_check_digit(bank_code + our_number),
                document_number=document,
                due_date=clock().date() + timedelta(days=due_days),
                amount=round_money(_amount(self)),
                instructions=tuple(instructions),
            )

        def apply_tax_exemptions(
            self,
            exemptions: Iterable[TaxExemption],
            state: str,
            is_service: bool = False,
            city: str | None = None,
        ) -> TaxBreakdown:
            """Tax breakdown of the amount with each exemption reducing its levy."""
            breakdown = compute_breakdown(table, _amount(self), state, is_service, city)
            levies = {t.value: getattr(breakdown, t.value) for t in TaxType}
            for exemption in exemptions:
                levies[exemption.tax_type.value] *= 1 - exemption.rate
                logger.debug(
                    "%s exemption on %s at %s: %s",
                    type_name, exemption.tax_type.value, exemption.rate, exemption.reason,
                )
            return breakdown.model_copy(update=dict(levies, total=round_money(sum(levies.values()))))

        def format_brl_amount(amount) -> str:
            """Render an amount as ``R$ 1.234,56``."""
            return format_brl(amount)

        def parse_brl_amount(text: str) -> Decimal:
            """Parse ``R$ 1.234,56`` back to a Decimal; raises ValueError otherwise."""
            return parse_brl(text)

        members = [
            constant("PAYMENT_STATES", PAYMENT_STATES, "Payment lifecycle statuses."),
            method(mark_processing),
            method(mark_completed),
            method(mark_failed),
            method(can_refund),
            method(mark_refunded),
            method(total_amount),
            method(net_amount),
            method(idempotency_key),
            method(validate_amount),
            method(is_expired),
            static(validate_pix_key),
            method(generate_qr_payload),
            static(calculate_boleto_dv),
            method(generate_boleto),
            method(apply_tax_exemptions),
            static(format_brl_amount),
            static(parse_brl_amount),
        ]
        body = {
            "states": list(PAYMENT_STATES),
            "transitions": {k: sorted(v) for k, v in sorted(PAYMENT_TRANSITIONS.items())},
            "amount_limits": [str(PAYMENT_MIN_AMOUNT), str(PAYMENT_MAX_AMOUNT)],
            "expiry_minutes": expiry_window,
            "boleto": {"bank_code": bank_code, "due_days": due_days},
            "merchant": {"name": merchant_name, "city": merchant_city},
            "tax_table_version": table.version,
        }
        return self._artifact(descriptor, members, dependencies={Capability.COMPUTE, Capability.CLOCK}, body=body)
