"""Reference specs and sample records used by the quality pipeline and tests."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

ORDER_STATUS_SPEC: dict[str, Any] = {
    "name": "OrderStatus",
    "kind": "enum",
    "variants": [
        "Pending",
        "Paid",
        "Shipped",
        {"name": "Delivered", "final": True},
        {"name": "Cancelled", "final": True},
        {"name": "Refunded", "final": True},
    ],
    "attributes": {
        "transitions": {
            "Pending": ["Paid", "Cancelled"],
            "Paid": ["Shipped", "Refunded"],
            "Shipped": ["Delivered"],
        },
    },
}

PAYMENT_STATUS_SPEC: dict[str, Any] = {
    "name": "PaymentStatus",
    "kind": "enum",
    "variants": ["Pending", "Processing", "Approved", "Cancelled", "Refunded"],
    "attributes": {"final_states": ["Approved", "Cancelled", "Refunded"]},
}

ORDER_SPEC: dict[str, Any] = {
    "name": "Order",
    "kind": "struct",
    "fields": [
        {"name": "id", "type": "str", "attributes": {"required": True}},
        {"name": "customer_email", "type": "str"},
        {"name": "customer_phone", "type": "str"},
        {"name": "customer_cpf", "type": "str"},
        {"name": "shipping_cep", "type": "str"},
        {"name": "shipping_state", "type": "str"},
        {"name": "subtotal", "type": "Decimal"},
    ],
    "attributes": {
        "table_name": "orders",
        "cache_ttl": 600,
        "identifier_prefix": "PED",
        "nfe_fields": ["id"],
    },
}

CUSTOMER_SPEC: dict[str, Any] = {
    "name": "Customer",
    "kind": "struct",
    "fields": [
        {"name": "id", "type": "str"},
        {"name": "name", "type": "str", "attributes": {"required": True}},
        {"name": "email", "type": "str", "attributes": {"required": True}},
        {"name": "phone", "type": "str"},
        {"name": "cpf", "type": "str"},
        {"name": "cep", "type": "str"},
        {"name": "state", "type": "str"},
    ],
}

PAYMENT_SPEC: dict[str, Any] = {
    "name": "Payment",
    "kind": "struct",
    "fields": [
        {"name": "id", "type": "str", "attributes": {"required": True}},
        {"name": "amount", "type": "Decimal", "attributes": {"required": True}},
        {"name": "tax", "type": "Decimal"},
        {"name": "status", "type": "str"},
        {"name": "pix_key", "type": "str"},
        {"name": "payer_email", "type": "str"},
        {"name": "created_at", "type": "datetime"},
        {"name": "updated_at", "type": "datetime"},
        {"name": "completed_at", "type": "datetime"},
        {"name": "failed_at", "type": "datetime"},
        {"name": "failure_reason", "type": "str"},
    ],
    "attributes": {
        "table_name": "payments",
        "identifier_prefix": "TXN",
        "merchant_name": "Loja Exemplo",
        "merchant_city": "São Paulo",
    },
}

FIXTURES: dict[str, dict[str, Any]] = {
    "OrderStatus": ORDER_STATUS_SPEC,
    "PaymentStatus": PAYMENT_STATUS_SPEC,
    "Order": ORDER_SPEC,
    "Customer": CUSTOMER_SPEC,
    "Payment": PAYMENT_SPEC,
}

# Which fixture exercises each built-in generator in isolation
GENERATOR_FIXTURES: dict[str, str] = {
    "state_machine": "OrderStatus",
    "validation": "Customer",
    "tax": "Order",
    "shipping": "Order",
    "identifier": "Order",
    "payment": "Payment",
    "domain_model": "Order",
}

VALID_CUSTOMER: dict[str, Any] = {
    "id": "c-1",
    "name": "Maria Silva",
    "email": "maria@example.com.br",
    "phone": "(11) 98765-4321",
    "cpf": "529.982.247-25",
    "cep": "01310-100",
    "state": "SP",
}

INVALID_CUSTOMER: dict[str, Any] = {
    "id": "c-2",
    "name": "",
    "email": "not-an-email",
    "phone": "123",
    "cpf": "111.111.111-11",
    "cep": "0131",
    "state": "XX",
}

SAMPLE_ORDER: dict[str, Any] = {
    "id": "o-1001",
    "customer_email": "buyer@example.com",
    "customer_phone": "11987654321",
    "customer_cpf": "52998224725",
    "shipping_cep": "01310100",
    "shipping_state": "SP",
}

SAMPLE_PAYMENT: dict[str, Any] = {
    "id": "pay-0001",
    "amount": Decimal("150.00"),
    "tax": Decimal("27.00"),
    "status": "pending",
    "pix_key": "maria@example.com.br",
    "payer_email": "maria@example.com.br",
    "created_at": datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
}
