"""Tests for GeneratorEngine selection, rule swapping and batch generation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from domaingen.engine import GeneratorEngine
from domaingen.errors import RuleTableError, SpecError, UnknownGenerator
from domaingen.parsing import parse
from domaingen.quality.fixtures import CUSTOMER_SPEC, ORDER_SPEC, ORDER_STATUS_SPEC, SAMPLE_ORDER
from domaingen.rules.loader import build_rule_tables, save_rule_tables
from domaingen.rules.seed_data import seed_tables


def _tables_with_sp_icms(rate: str, version: str = "2026.2"):
    data = seed_tables()
    data["version"] = version
    data["tax"]["icms_rates"]["SP"] = Decimal(rate)
    return data


# ── Selection ────────────────────────────────────────────────────────────────

class TestSelection:

    def test_all_applicable_for_struct(self, engine):
        names = [g.name for g in engine.select(parse(ORDER_SPEC))]
        assert names == ["validation", "tax", "shipping", "identifier", "domain_model"]

    def test_all_applicable_for_enum(self, engine):
        assert [g.name for g in engine.select(parse(ORDER_STATUS_SPEC))] == ["state_machine"]

    def test_derive_attribute(self, engine):
        spec = dict(ORDER_SPEC, attributes={"derive": ["shipping", "tax"]})
        assert engine.generate(spec).generators == ["tax", "shipping"]

    def test_explicit_list_wins_over_derive(self, engine):
        spec = dict(ORDER_SPEC, attributes={"derive": ["shipping"]})
        assert engine.generate(spec, ["tax"]).generators == ["tax"]

    def test_empty_list_selects_nothing(self, engine):
        code = engine.generate(ORDER_SPEC, [])
        assert code.generators == []
        assert code.generated_type(id="x").id == "x"

    def test_unknown_generator(self, engine):
        with pytest.raises(UnknownGenerator, match="Available: state_machine"):
            engine.generate(ORDER_SPEC, ["tax", "loyalty"])

    def test_kind_mismatch(self, engine):
        with pytest.raises(SpecError, match="state_machine"):
            engine.generate(ORDER_SPEC, ["state_machine"])
        with pytest.raises(SpecError, match="tax"):
            engine.generate(ORDER_STATUS_SPEC, ["tax"])


# ── Rule tables ──────────────────────────────────────────────────────────────

class TestRuleTables:

    def test_swap_returns_previous(self, engine):
        original = engine.rules
        previous = engine.swap_rules(_tables_with_sp_icms("0.20"))
        assert previous is original
        assert engine.rules.version == "2026.2"

    def test_swap_affects_later_runs_only(self, engine):
        before = engine.generate(ORDER_SPEC, ["tax"]).generated_type(**SAMPLE_ORDER)
        engine.swap_rules(build_rule_tables(_tables_with_sp_icms("0.20")))
        after = engine.generate(ORDER_SPEC, ["tax"]).generated_type(**SAMPLE_ORDER)
        assert before.calculate_icms(Decimal("100"), "SP") == Decimal("18")
        assert after.calculate_icms(Decimal("100"), "SP") == Decimal("20")

    def test_invalid_swap_keeps_tables(self, engine):
        original = engine.rules
        with pytest.raises(RuleTableError):
            engine.swap_rules({"version": "broken"})
        assert engine.rules is original

    def test_rules_path_from_config(self, tmp_path):
        path = save_rule_tables(build_rule_tables(_tables_with_sp_icms("0.19", "file")), tmp_path / "rules.json")
        engine = GeneratorEngine(config={"DOMAINGEN_RULES_PATH": str(path)})
        assert engine.rules.version == "file"
        order = engine.generate(ORDER_SPEC, ["tax"]).generated_type(id="o-1")
        assert order.calculate_icms(Decimal("100"), "SP") == Decimal("19")


# ── Batch generation ─────────────────────────────────────────────────────────

class TestGenerateMany:

    def test_results_follow_input_order(self, engine):
        specs = [ORDER_SPEC, ORDER_STATUS_SPEC, CUSTOMER_SPEC] * 3
        results = engine.generate_many(specs, max_workers=4)
        assert [r.descriptor.name for r in results] == ["Order", "OrderStatus", "Customer"] * 3

    def test_matches_sequential_generation(self, engine):
        parallel = engine.generate_many([ORDER_SPEC, CUSTOMER_SPEC])
        assert [c.fingerprint for c in parallel] == [
            engine.generate(ORDER_SPEC).fingerprint,
            engine.generate(CUSTOMER_SPEC).fingerprint,
        ]

    def test_error_propagates(self, engine):
        with pytest.raises(SpecError):
            engine.generate_many([ORDER_SPEC, {"name": "bad name", "kind": "struct"}])

    def test_accepts_descriptors(self, engine):
        (code,) = engine.generate_many([parse(ORDER_STATUS_SPEC)])
        assert code.generators == ["state_machine"]
