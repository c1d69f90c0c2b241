"""Tests for artifact ordering, generated types and canonical output."""

from __future__ import annotations

import enum
import json

import pytest

from domaingen.emission import CodeEmitter
from domaingen.emission.emitter import GENERATED_MODULE, GeneratedStruct
from domaingen.engine import GeneratorEngine
from domaingen.generators.registry import default_registry
from domaingen.parsing import parse
from domaingen.quality.fixtures import ORDER_SPEC, ORDER_STATUS_SPEC, SAMPLE_ORDER
from domaingen.rules.seed_data import seed_tables


@pytest.fixture
def order_code(engine):
    return engine.generate(ORDER_SPEC)


# ── Determinism ──────────────────────────────────────────────────────────────

class TestDeterminism:

    def test_same_input_same_output(self):
        first = GeneratorEngine().generate(ORDER_SPEC)
        second = GeneratorEngine().generate(ORDER_SPEC)
        assert first.to_json() == second.to_json()
        assert first.render_stub() == second.render_stub()
        assert first.fingerprint == second.fingerprint

    def test_request_order_does_not_matter(self, engine):
        forward = engine.generate(ORDER_SPEC, ["tax", "domain_model", "shipping"])
        backward = engine.generate(ORDER_SPEC, ["shipping", "domain_model", "tax"])
        assert forward.generators == ["tax", "shipping", "domain_model"]
        assert forward.fingerprint == backward.fingerprint

    def test_rule_tables_change_fingerprint(self, engine):
        before = engine.generate(ORDER_SPEC, ["tax"]).fingerprint
        data = seed_tables()
        data["tax"]["pis_rate"] = "0.0200"
        engine.swap_rules(data)
        assert engine.generate(ORDER_SPEC, ["tax"]).fingerprint != before

    def test_fingerprint_is_sha256_hex(self, order_code):
        assert len(order_code.fingerprint) == 64
        int(order_code.fingerprint, 16)


# ── Canonical JSON ───────────────────────────────────────────────────────────

class TestJson:

    def test_structure(self, order_code):
        data = json.loads(order_code.to_json())
        assert data["type"]["name"] == "Order"
        assert data["type"]["kind"] == "struct"
        assert data["generators"] == ["validation", "tax", "shipping", "identifier", "domain_model"]
        assert [a["generator"] for a in data["artifacts"]] == data["generators"]

    def test_symbols_sorted_within_artifact(self, order_code):
        for artifact in order_code.to_dict()["artifacts"]:
            names = [s["name"] for s in artifact["symbols"]]
            assert names == sorted(names)

    def test_keys_sorted(self, order_code):
        text = order_code.to_json()
        assert text == json.dumps(json.loads(text), sort_keys=True, indent=2)


# ── Generated types ──────────────────────────────────────────────────────────

class TestGeneratedStruct:

    def test_fields_default_to_none(self, order_code):
        order = order_code.generated_type(id="o-1")
        assert order.id == "o-1"
        assert order.subtotal is None

    def test_unknown_field(self, order_code):
        with pytest.raises(TypeError, match="no field"):
            order_code.generated_type(id="o-1", discount=3)

    def test_equality_and_repr(self, order_code):
        cls = order_code.generated_type
        assert cls(**SAMPLE_ORDER) == cls(**SAMPLE_ORDER)
        assert cls(id="a") != cls(id="b")
        assert repr(cls(id="a")).startswith("Order(id='a', customer_email=None")

    def test_type_identity(self, order_code):
        cls = order_code.generated_type
        assert issubclass(cls, GeneratedStruct)
        assert cls.__module__ == GENERATED_MODULE
        assert cls.calculate_total_tax.__qualname__ == "Order.calculate_total_tax"
        assert cls.calculate_total_tax.__doc__

    def test_enum(self, engine):
        status = engine.generate(ORDER_STATUS_SPEC).generated_type
        assert issubclass(status, enum.Enum)
        assert [m.name for m in status] == ["Pending", "Paid", "Shipped", "Delivered", "Cancelled", "Refunded"]
        assert status.Pending.value == "Pending"
        assert status.parse.__qualname__ == "OrderStatus.parse"


# ── Stubs ────────────────────────────────────────────────────────────────────

class TestStub:

    def test_struct_stub(self, order_code):
        stub = order_code.render_stub()
        lines = stub.splitlines()
        assert lines[0] == "class Order(GeneratedStruct):"
        assert "    id: str | None" in lines
        assert "    # domain_model (level 1)" in lines
        assert "    TABLE_NAME = 'orders'" in lines
        assert any(line.startswith("    def calculate_shipping_cost(self, items_count") for line in lines)
        assert stub.index("# tax (level 0)") < stub.index("# shipping (level 0)")

    def test_enum_stub(self, engine):
        stub = engine.generate(ORDER_STATUS_SPEC).render_stub()
        assert stub.startswith("class OrderStatus(enum.Enum):\n    Pending = 'Pending'\n")
        assert "    @classmethod\n    def parse(" in stub

    def test_static_members_marked(self, order_code):
        assert "    @staticmethod\n    def generate_order_number() -> str: ..." in order_code.render_stub()


# ── Ordering ─────────────────────────────────────────────────────────────────

def test_unregistered_artifacts_sort_last(rules):
    registry = default_registry()
    descriptor = parse(ORDER_SPEC)
    tax = registry.get("tax").generate(descriptor, rules)
    validation = registry.get("validation").generate(descriptor, rules)
    stray = tax.model_copy(update={"generator": "aaa_custom", "members": ()})
    ordered = CodeEmitter(registry).order([stray, tax, validation])
    assert [a.generator for a in ordered] == ["validation", "tax", "aaa_custom"]
