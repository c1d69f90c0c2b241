"""Global configuration: constants and defaults."""

from decimal import ROUND_HALF_UP, Decimal

# Currency minor unit (BRL centavos).  Monetary results are quantized once.
MINOR_UNIT = Decimal("0.01")
ROUNDING = ROUND_HALF_UP

# Default country for validation and shipping when a spec does not name one
DEFAULT_COUNTRY = "BR"

# Identifier scheme
IDENTIFIER_SEPARATOR = "-"
IDENTIFIER_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"  # Crockford base32
IDENTIFIER_TIMESTAMP_WIDTH = 10
DEFAULT_IDENTIFIER_LENGTH = 16
MIN_IDENTIFIER_LENGTH = 12
MAX_IDENTIFIER_LENGTH = 32
MAX_PREFIX_LENGTH = 8

# Fixed prefixes for the named identifier wrappers
IDENTIFIER_PREFIXES: dict[str, str] = {
    "order": "PED",
    "invoice": "NF",
    "tracking": "BR",
    "customer": "CLI",
    "transaction": "TXN",
    "sku": "SKU",
}

# Short codes for URLs (no ambiguous characters)
SHORT_CODE_ALPHABET = "abcdefghijkmnpqrstuvwxyz23456789"

# NFe access key layout: 43 body digits plus one mod-11 check digit
NFE_KEY_LENGTH = 44

# Domain-model defaults
DEFAULT_CACHE_TTL = 3600
DEFAULT_PRODUCT = "default"

# Quality pipeline
DEFAULT_BENCH_TOLERANCE = 0.05
DEFAULT_BENCH_ITERATIONS = 2000

# Payments
PAYMENT_MIN_AMOUNT = Decimal("0.01")
PAYMENT_MAX_AMOUNT = Decimal("1000000.00")
DEFAULT_PAYMENT_EXPIRY_MINUTES = 30
DEFAULT_BOLETO_DUE_DAYS = 3
DEFAULT_BOLETO_BANK = "341"
PIX_GUI = "BR.GOV.BCB.PIX"
PIX_CURRENCY = "986"  # ISO 4217 numeric code for BRL
PIX_MAX_EMAIL_LENGTH = 77
DEFAULT_MERCHANT_CITY = "SAO PAULO"
