"""Tests for the validation generator."""

from __future__ import annotations

import pytest

from domaingen.errors import SpecError
from domaingen.generators.validation import ValidationGenerator
from domaingen.models.validation import RuleKind, RuleSource
from domaingen.quality.fixtures import CUSTOMER_SPEC, INVALID_CUSTOMER, VALID_CUSTOMER


@pytest.fixture
def customer_cls(engine):
    return engine.generate(CUSTOMER_SPEC, ["validation"]).generated_type


def _spec(*fields):
    return {"name": "Contact", "kind": "struct", "fields": list(fields)}


# ── Whole-entity validation ──────────────────────────────────────────────────

class TestValidate:

    def test_valid_customer(self, customer_cls):
        errors = customer_cls(**VALID_CUSTOMER).validate()
        assert errors.is_valid
        assert len(errors) == 0

    def test_collects_every_failure_in_field_order(self, customer_cls):
        errors = customer_cls(**INVALID_CUSTOMER).validate()
        assert list(errors.errors) == ["name", "email", "phone", "cpf", "cep", "state"]
        assert errors.errors["name"] == "name is required"
        assert errors.errors["email"] == "email must be a valid email address"
        assert errors.errors["cpf"] == "cpf must be a valid national tax id"

    def test_missing_optional_fields_pass(self, customer_cls):
        errors = customer_cls(name="Ana", email="ana@example.com").validate()
        assert errors.is_valid

    def test_missing_required_field(self, customer_cls):
        errors = customer_cls(name="Ana").validate()
        assert errors.messages == ["email is required"]

    def test_cnpj_accepted_for_tax_id(self, customer_cls):
        data = dict(VALID_CUSTOMER, cpf="11.222.333/0001-81")
        assert customer_cls(**data).validate().is_valid

    def test_region_code_is_case_insensitive(self, customer_cls):
        assert customer_cls(**dict(VALID_CUSTOMER, state="rj")).validate().is_valid


# ── Single fields and diagnostics ────────────────────────────────────────────

class TestValidateField:

    def test_single_field(self, customer_cls):
        customer = customer_cls(**INVALID_CUSTOMER)
        assert customer.validate_field("phone") == "phone must be a valid phone number"
        assert customer.validate_field("id") is None

    def test_unknown_field(self, customer_cls):
        with pytest.raises(KeyError):
            customer_cls(**VALID_CUSTOMER).validate_field("nickname")

    def test_context_empty_before_evaluation(self, customer_cls):
        context = customer_cls(**VALID_CUSTOMER).validation_context()
        assert context.type_name == "Customer"
        assert context.checks == {}

    def test_context_accumulates_single_fields(self, customer_cls):
        customer = customer_cls(**INVALID_CUSTOMER)
        customer.validate_field("email")
        customer.validate_field("cep")
        context = customer.validation_context()
        assert list(context.checks) == ["email", "cep"]
        assert [c.field_name for c in context.failed()] == ["email", "cep"]

    def test_validate_replaces_context(self, customer_cls):
        customer = customer_cls(**VALID_CUSTOMER)
        customer.validate_field("email")
        customer.validate()
        context = customer.validation_context()
        assert list(context.checks) == [f["name"] for f in CUSTOMER_SPEC["fields"]]
        assert context.checks["cpf"].rule_kind is RuleKind.NATIONAL_TAX_ID
        assert context.checks["id"].rule_kind is None

    def test_context_is_a_copy(self, customer_cls):
        customer = customer_cls(**INVALID_CUSTOMER)
        customer.validate()
        customer.validation_context().checks.clear()
        assert len(customer.validation_context().failed()) == 6


# ── Rule resolution ──────────────────────────────────────────────────────────

class TestRuleResolution:

    def test_rules_by_name_pattern(self, customer_cls):
        rules = {r.field_name: r for r in customer_cls.validation_rules()}
        assert set(rules) == {"name", "email", "phone", "cpf", "cep", "state"}
        assert rules["name"].kind is RuleKind.REQUIRED
        assert rules["email"].required is True
        assert rules["phone"].source is RuleSource.PATTERN
        assert rules["cep"].kind is RuleKind.POSTAL_CODE

    def test_attribute_overrides_pattern(self, engine):
        cls = engine.generate(
            _spec({"name": "backup_email", "type": "str", "attributes": {"validate": "none"}},
                  {"name": "document", "type": "str", "attributes": {"validate": "national_tax_id"}}),
            ["validation"],
        ).generated_type
        rules = cls.validation_rules()
        assert [(r.field_name, r.kind, r.source) for r in rules] == [
            ("document", RuleKind.NATIONAL_TAX_ID, RuleSource.ATTRIBUTE),
        ]
        assert cls(backup_email="nope", document="123").validate().messages == [
            "document must be a valid national tax id",
        ]

    def test_unknown_country_passes(self, engine):
        cls = engine.generate(
            _spec({"name": "phone", "type": "str", "attributes": {"country": "DE"}},
                  {"name": "state", "type": "str", "attributes": {"country": "DE"}}),
            ["validation"],
        ).generated_type
        assert cls(phone="123", state="Bayern").validate().is_valid

    def test_type_level_country(self, engine):
        spec = _spec({"name": "zip_code", "type": "str"})
        spec["attributes"] = {"country": "US"}
        cls = engine.generate(spec, ["validation"]).generated_type
        assert cls(zip_code="94103-1234").validate().is_valid
        assert not cls(zip_code="01310-100").validate().is_valid

    def test_custom_predicate(self, engine):
        engine.registry.register(ValidationGenerator(predicates={"upper": str.isupper}))
        cls = engine.generate(
            _spec({"name": "code", "type": "str", "attributes": {"validate": "custom:upper"}}),
            ["validation"],
        ).generated_type
        assert cls(code="ABC").validate().is_valid
        assert cls(code="abc").validate().messages == ["code failed check 'upper'"]

    def test_raising_predicate_is_a_failure(self, engine):
        engine.registry.register(ValidationGenerator(predicates={"prefixed": lambda v: v.startswith("x")}))
        cls = engine.generate(
            _spec(
                {"name": "code", "type": "str", "attributes": {"validate": "custom:prefixed"}},
                {"name": "email", "type": "str", "attributes": {"validate": "email"}},
            ),
            ["validation"],
        ).generated_type
        record = cls(code=42, email="bad")
        assert record.validate().messages == [
            "code failed check 'prefixed'",
            "email must be a valid email address",
        ]
        assert record.validate_field("code") == "code failed check 'prefixed'"

    def test_unknown_predicate(self, engine):
        with pytest.raises(SpecError, match="Contact.code"):
            engine.generate(
                _spec({"name": "code", "type": "str", "attributes": {"validate": "custom:upper"}}),
                ["validation"],
            )

    def test_static_checks_exposed(self, customer_cls):
        assert customer_cls.is_valid_cpf("52998224725")
        assert customer_cls.is_valid_cep("01310-100")
        assert not customer_cls.is_valid_email("a@b")
        assert not customer_cls.is_valid_email("ana@example.com\n")

    def test_format_helpers_exposed(self, customer_cls):
        assert customer_cls.format_cpf("52998224725") == "529.982.247-25"
        assert customer_cls.format_cnpj("11222333000181") == "11.222.333/0001-81"
        assert customer_cls.format_cep("01310100") == "01310-100"
        assert customer_cls.format_phone("11987654321") == "(11) 9 8765-4321"
