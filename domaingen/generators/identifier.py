"""IdentifierGenerator — prefixed identifiers, SKUs, barcodes and short codes.

Identifier layout::

    PREFIX-TTTTTTTTTTEEEEEC

``T`` is the creation time in milliseconds as 10 Crockford base32 characters,
``E`` is base32 entropy filling the configured length, and ``C`` is an
optional Luhn mod-32 check character over the payload.  ``parse_identifier``
inverts the layout exactly and returns None for anything else.

SKUs (``SKU-<category>-<YYMM><5 digits>``) and EAN-13 barcodes carry their
inputs in the payload and are parsed by the same entry point.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Callable

from pydantic import BaseModel, ConfigDict

from domaingen.checks.brazil import ean13_check_digit
from domaingen.config import (
    DEFAULT_IDENTIFIER_LENGTH,
    IDENTIFIER_ALPHABET,
    IDENTIFIER_PREFIXES,
    IDENTIFIER_SEPARATOR,
    IDENTIFIER_TIMESTAMP_WIDTH,
    MAX_PREFIX_LENGTH,
    SHORT_CODE_ALPHABET,
)
from domaingen.generators.base import Artifact, Capability, PatternGenerator, static
from domaingen.models.descriptor import TypeDescriptor
from domaingen.naming import snake_case
from domaingen.rules.tables import RuleTables

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Entropy = Callable[[], int]

_BASE = len(IDENTIFIER_ALPHABET)
_INDEX = {c: i for i, c in enumerate(IDENTIFIER_ALPHABET)}
_PREFIX_RE = re.compile(r"[A-Z][A-Z0-9]*")
_CATEGORY_RE = re.compile(r"[a-z0-9]+(?:_[a-z0-9]+)*")
_SKU_TAIL_RE = re.compile(r"([0-9]{2})([0-9]{2})([0-9]{5})")
_BARCODE_RE = re.compile(r"[0-9]{13}")

SKU_PREFIX = IDENTIFIER_PREFIXES["sku"]
MIN_SHORT_CODE = 4
MAX_SHORT_CODE = 32


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def uuid_entropy() -> int:
    return uuid.uuid4().int


class IdentifierSpec(BaseModel):
    """Identifier shape for one type.

    ``total_length`` counts every character after the separator: the
    payload plus the check character when ``checksum`` is on.
    """

    model_config = ConfigDict(frozen=True)

    prefix: str
    total_length: int = DEFAULT_IDENTIFIER_LENGTH
    checksum: bool = True

    @property
    def payload_length(self) -> int:
        return self.total_length - (1 if self.checksum else 0)

    @property
    def entropy_length(self) -> int:
        return self.payload_length - IDENTIFIER_TIMESTAMP_WIDTH


class IdentifierComponents(BaseModel):
    """Everything recoverable from a well-formed identifier."""

    model_config = ConfigDict(frozen=True)

    kind: str
    """``identifier``, ``sku`` or ``barcode``."""

    prefix: str
    payload: str
    timestamp_ms: int | None = None
    entropy: str | None = None
    checksum: str | None = None
    category: str | None = None
    year_month: str | None = None
    sequence: int | None = None
    country_code: str | None = None
    manufacturer_code: str | None = None
    product_code: str | None = None

    @property
    def issued_at(self) -> datetime | None:
        if self.timestamp_ms is None:
            return None
        return datetime.fromtimestamp(self.timestamp_ms / 1000, tz=timezone.utc)


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------

def encode_base32(value: int, width: int) -> str:
    """Fixed-width Crockford base32; values wider than *width* are truncated."""
    chars = []
    for _ in range(width):
        value, digit = divmod(value, _BASE)
        chars.append(IDENTIFIER_ALPHABET[digit])
    return "".join(reversed(chars))


def decode_base32(text: str) -> int:
    value = 0
    for c in text:
        value = value * _BASE + _INDEX[c]
    return value


def luhn_check_char(payload: str) -> str:
    """Luhn mod-N check character over *payload* (N = alphabet size)."""
    total = 0
    factor = 2
    for c in reversed(payload):
        addend = factor * _INDEX[c]
        addend = addend // _BASE + addend % _BASE
        total += addend
        factor = 1 if factor == 2 else 2
    return IDENTIFIER_ALPHABET[(_BASE - total % _BASE) % _BASE]


def default_prefix(descriptor: TypeDescriptor) -> str:
    """``identifier_prefix`` attribute, else a known domain prefix, else initials."""
    declared = descriptor.attribute("identifier_prefix")
    if declared:
        return declared
    known = IDENTIFIER_PREFIXES.get(snake_case(descriptor.name))
    if known:
        return known
    letters = re.sub(r"[^A-Za-z0-9]", "", descriptor.name).upper().lstrip("0123456789")
    return letters[:3] or "ID"


def identifier_spec(descriptor: TypeDescriptor) -> IdentifierSpec:
    return IdentifierSpec(
        prefix=default_prefix(descriptor),
        total_length=descriptor.attribute("identifier_length", DEFAULT_IDENTIFIER_LENGTH),
        checksum=descriptor.attribute("identifier_checksum", True),
    )


def _check_prefix(prefix: str) -> str:
    if not isinstance(prefix, str) or not _PREFIX_RE.fullmatch(prefix) or len(prefix) > MAX_PREFIX_LENGTH:
        raise ValueError(
            f"Invalid identifier prefix {prefix!r}: expected 1-{MAX_PREFIX_LENGTH} "
            "uppercase letters/digits starting with a letter"
        )
    return prefix


def _digits(value: object, width: int, name: str) -> str:
    text = str(value).strip()
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        text = text.zfill(width)
    if not re.fullmatch(r"[0-9]{%d}" % width, text):
        raise ValueError(f"{name} must be {width} digits, got {value!r}")
    return text


# ---------------------------------------------------------------------------
# Scheme
# ---------------------------------------------------------------------------

class IdentifierScheme:
    """Generation and parsing for one :class:`IdentifierSpec`.

    Parameters
    ----------
    spec:
        Identifier shape.
    clock:
        Returns the current time as an aware datetime.
    entropy:
        Returns a fresh random non-negative integer (at least 64 bits).
    """

    def __init__(self, spec: IdentifierSpec, clock: Clock = utc_now, entropy: Entropy = uuid_entropy) -> None:
        self.spec = spec
        self._clock = clock
        self._entropy = entropy

    def _now_ms(self) -> int:
        return round(self._clock().timestamp() * 1000)

    def generate_identifier(self, prefix: str | None = None) -> str:
        prefix = _check_prefix(prefix if prefix is not None else self.spec.prefix)
        width = self.spec.entropy_length
        payload = (
            encode_base32(self._now_ms(), IDENTIFIER_TIMESTAMP_WIDTH)
            + encode_base32(self._entropy(), width)
        )
        if self.spec.checksum:
            payload += luhn_check_char(payload)
        return f"{prefix}{IDENTIFIER_SEPARATOR}{payload}"

    def generate_sku(self, category: str) -> str:
        slug = str(category).strip().lower()
        if not _CATEGORY_RE.fullmatch(slug):
            raise ValueError(
                f"Invalid SKU category {category!r}: use letters, digits and single underscores"
            )
        stamp = self._clock().strftime("%y%m")
        sequence = self._entropy() % 100000
        return f"{SKU_PREFIX}{IDENTIFIER_SEPARATOR}{slug}{IDENTIFIER_SEPARATOR}{stamp}{sequence:05d}"

    def generate_barcode(self, country_code: str, manufacturer_code: str) -> str:
        country = _digits(country_code, 3, "country_code")
        manufacturer = _digits(manufacturer_code, 4, "manufacturer_code")
        product = f"{self._entropy() % 100000:05d}"
        body = f"{country}{manufacturer}{product}"
        return f"{body}{ean13_check_digit(body)}"

    def generate_short_code(self, length: int = 8) -> str:
        if isinstance(length, bool) or not isinstance(length, int) or not MIN_SHORT_CODE <= length <= MAX_SHORT_CODE:
            raise ValueError(f"Short code length must be between {MIN_SHORT_CODE} and {MAX_SHORT_CODE}")
        value = self._entropy()
        chars = []
        for _ in range(length):
            value, digit = divmod(value, len(SHORT_CODE_ALPHABET))
            if value == 0:
                value = self._entropy()
            chars.append(SHORT_CODE_ALPHABET[digit])
        return "".join(chars)

    # -- parsing -------------------------------------------------------------

    def _parse_sku(self, parts: list[str]) -> IdentifierComponents | None:
        _, category, tail = parts
        match = _SKU_TAIL_RE.fullmatch(tail)
        if not _CATEGORY_RE.fullmatch(category) or match is None:
            return None
        year, month, sequence = match.groups()
        if not 1 <= int(month) <= 12:
            return None
        return IdentifierComponents(
            kind="sku",
            prefix=SKU_PREFIX,
            payload=f"{category}{IDENTIFIER_SEPARATOR}{tail}",
            category=category,
            year_month=f"{year}{month}",
            sequence=int(sequence),
        )

    def _parse_barcode(self, text: str) -> IdentifierComponents | None:
        if int(text[-1]) != ean13_check_digit(text[:-1]):
            return None
        return IdentifierComponents(
            kind="barcode",
            prefix=text[:3],
            payload=text,
            checksum=text[-1],
            country_code=text[:3],
            manufacturer_code=text[3:7],
            product_code=text[7:12],
        )

    def _parse_generic(self, prefix: str, payload: str) -> IdentifierComponents | None:
        if not _PREFIX_RE.fullmatch(prefix) or len(prefix) > MAX_PREFIX_LENGTH:
            return None
        if len(payload) != self.spec.total_length or any(c not in _INDEX for c in payload):
            return None
        check = None
        if self.spec.checksum:
            payload, check = payload[:-1], payload[-1]
            if luhn_check_char(payload) != check:
                return None
        return IdentifierComponents(
            kind="identifier",
            prefix=prefix,
            payload=payload,
            timestamp_ms=decode_base32(payload[:IDENTIFIER_TIMESTAMP_WIDTH]),
            entropy=payload[IDENTIFIER_TIMESTAMP_WIDTH:],
            checksum=check,
        )

    def parse_identifier(self, text: object) -> IdentifierComponents | None:
        if not isinstance(text, str):
            return None
        if _BARCODE_RE.fullmatch(text):
            return self._parse_barcode(text)
        parts = text.split(IDENTIFIER_SEPARATOR)
        if len(parts) == 3 and parts[0] == SKU_PREFIX:
            return self._parse_sku(parts)
        if len(parts) == 2:
            return self._parse_generic(*parts)
        return None

    def is_valid_identifier(self, text: object, expected_prefix: str) -> bool:
        components = self.parse_identifier(text)
        return components is not None and components.prefix == expected_prefix


class IdentifierGenerator(PatternGenerator):
    """Generate identifier factories and parsers for a struct.

    ``clock`` and ``entropy`` are injectable so generated code can be made
    deterministic under test.
    """

    def __init__(self, clock: Clock = utc_now, entropy: Entropy = uuid_entropy) -> None:
        self._clock = clock
        self._entropy = entropy

    @property
    def name(self) -> str:
        return "identifier"

    @property
    def description(self) -> str:
        return "Prefixed identifiers with check characters, SKUs, EAN-13 barcodes and short codes"

    def scheme_for(self, descriptor: TypeDescriptor) -> IdentifierScheme:
        return IdentifierScheme(identifier_spec(descriptor), self._clock, self._entropy)

    def generate(self, descriptor: TypeDescriptor, rules: RuleTables) -> Artifact:
        scheme = self.scheme_for(descriptor)
        spec = scheme.spec

        def generate_identifier(prefix: str | None = None) -> str:
            """New identifier; *prefix* defaults to this type's prefix."""
            return scheme.generate_identifier(prefix)

        def generate_order_number() -> str:
            """Order number (``PED-...``)."""
            return scheme.generate_identifier(IDENTIFIER_PREFIXES["order"])

        def generate_invoice_number() -> str:
            """Invoice number (``NF-...``)."""
            return scheme.generate_identifier(IDENTIFIER_PREFIXES["invoice"])

        def generate_tracking_code() -> str:
            """Tracking code (``BR-...``)."""
            return scheme.generate_identifier(IDENTIFIER_PREFIXES["tracking"])

        def generate_customer_code() -> str:
            """Customer code (``CLI-...``)."""
            return scheme.generate_identifier(IDENTIFIER_PREFIXES["customer"])

        def generate_transaction_id() -> str:
            """Transaction id (``TXN-...``)."""
            return scheme.generate_identifier(IDENTIFIER_PREFIXES["transaction"])

        def generate_sku(category: str) -> str:
            """Product SKU ``SKU-<category>-<YYMM><5 digits>``."""
            return scheme.generate_sku(category)

        def generate_barcode(country_code: str, manufacturer_code: str) -> str:
            """EAN-13 barcode from a 3-digit country and 4-digit manufacturer code."""
            return scheme.generate_barcode(country_code, manufacturer_code)

        def generate_short_code(length: int = 8) -> str:
            """Random lowercase code for URLs, without ambiguous characters."""
            return scheme.generate_short_code(length)

        def parse_identifier(text) -> IdentifierComponents | None:
            """Components of a well-formed identifier, SKU or barcode; None otherwise."""
            return scheme.parse_identifier(text)

        def is_valid_identifier(text, expected_prefix: str) -> bool:
            """True iff *text* parses and carries *expected_prefix*."""
            return scheme.is_valid_identifier(text, expected_prefix)

        members = [
            static(generate_identifier),
            static(generate_order_number),
            static(generate_invoice_number),
            static(generate_tracking_code),
            static(generate_customer_code),
            static(generate_transaction_id),
            static(generate_sku),
            static(generate_barcode),
            static(generate_short_code),
            static(parse_identifier),
            static(is_valid_identifier),
        ]
        body = {
            "prefix": spec.prefix,
            "total_length": spec.total_length,
            "checksum": spec.checksum,
            "timestamp_width": IDENTIFIER_TIMESTAMP_WIDTH,
            "alphabet": IDENTIFIER_ALPHABET,
            "wrappers": {k: v for k, v in sorted(IDENTIFIER_PREFIXES.items())},
        }
        return self._artifact(
            descriptor,
            members,
            dependencies={Capability.COMPUTE, Capability.CLOCK, Capability.ENTROPY},
            body=body,
        )
