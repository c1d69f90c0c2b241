"""Tests for the spec parser and the type descriptor model."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from domaingen.errors import SpecError
from domaingen.models.descriptor import TypeDescriptor, TypeKind
from domaingen.parsing import load_spec, parse


# ── parse: structure ─────────────────────────────────────────────────────────

class TestParseStructure:

    def test_struct_with_bare_and_mapped_fields(self):
        d = parse({
            "name": "Order",
            "fields": ["id", {"name": "subtotal", "type": "Decimal"}],
        })
        assert d.kind is TypeKind.STRUCT
        assert d.field_names == ["id", "subtotal"]
        assert d.get_field("subtotal").declared_type == "Decimal"
        assert d.get_field("id").declared_type == "str"

    def test_enum_variant_flags(self):
        d = parse({
            "name": "OrderStatus",
            "kind": "enum",
            "variants": ["Pending", {"name": "Delivered", "final": True, "refundable": False}],
        })
        assert d.kind is TypeKind.ENUM
        assert d.variant_names == ["Pending", "Delivered"]
        assert d.get_variant("Pending").is_final is None
        assert d.get_variant("Delivered").is_final is True
        assert d.get_variant("Delivered").refundable is False

    def test_kind_is_case_insensitive(self):
        assert parse({"name": "S", "kind": "ENUM", "variants": ["A"]}).kind is TypeKind.ENUM

    def test_descriptor_passes_through(self):
        d = parse({"name": "Order", "fields": ["id"]})
        assert parse(d) is d

    def test_descriptor_is_immutable(self):
        d = parse({"name": "Order", "fields": ["id"]})
        with pytest.raises(ValidationError):
            d.name = "Other"
        assert isinstance(d.fields, tuple)

    def test_attributes_are_read_only(self):
        raw = {
            "name": "Order",
            "fields": [{"name": "id", "attributes": {"required": True}}],
            "attributes": {"nfe_fields": ["id"], "graphql": {"type": "Order"}},
        }
        d = parse(raw)
        with pytest.raises(TypeError):
            d.attributes["cache_ttl"] = 0
        with pytest.raises(TypeError):
            d.attribute("graphql")["type"] = "Other"
        with pytest.raises(TypeError):
            d.get_field("id").attributes["required"] = False
        assert d.attribute("nfe_fields") == ("id",)
        raw["attributes"]["nfe_fields"].append("customer_id")
        assert d.attribute("nfe_fields") == ("id",)

    def test_read_only_attributes_dump_as_plain_data(self):
        d = parse({"name": "Order", "fields": ["id"], "attributes": {"nfe_fields": ["id"]}})
        assert d.model_dump()["attributes"] == {"nfe_fields": ["id"]}
        assert json.loads(d.model_dump_json())["attributes"] == {"nfe_fields": ["id"]}

    def test_unknown_attributes_are_retained(self):
        d = parse({
            "name": "Order",
            "fields": [{"name": "id", "attributes": {"graphql": "ID!"}}],
            "attributes": {"graphql_type": "Order", "cache_ttl": 60},
        })
        assert d.attribute("graphql_type") == "Order"
        assert d.attribute("cache_ttl") == 60
        assert d.get_field("id").attributes == {"graphql": "ID!"}


# ── parse: errors ────────────────────────────────────────────────────────────

class TestParseErrors:

    def test_non_mapping_spec(self):
        with pytest.raises(SpecError):
            parse(["Order"])

    def test_invalid_type_name(self):
        with pytest.raises(SpecError, match="invalid type name"):
            parse({"name": "not valid"})

    def test_unknown_kind(self):
        with pytest.raises(SpecError, match=r"Order\.kind"):
            parse({"name": "Order", "kind": "union"})

    def test_duplicate_field_names(self):
        with pytest.raises(SpecError, match=r"Order\.id: duplicate field"):
            parse({"name": "Order", "fields": ["id", "id"]})

    def test_duplicate_variant_names(self):
        with pytest.raises(SpecError, match="duplicate variant"):
            parse({"name": "S", "kind": "enum", "variants": ["A", "A"]})

    def test_enum_requires_variants(self):
        with pytest.raises(SpecError, match="at least one variant"):
            parse({"name": "S", "kind": "enum"})

    def test_struct_rejects_variants(self):
        with pytest.raises(SpecError, match="cannot declare variants"):
            parse({"name": "Order", "variants": ["A"]})

    @pytest.mark.parametrize("ttl", [-1, "60", 1.5, True])
    def test_cache_ttl_must_be_non_negative_int(self, ttl):
        with pytest.raises(SpecError, match=r"Order\.cache_ttl"):
            parse({"name": "Order", "fields": ["id"], "attributes": {"cache_ttl": ttl}})

    def test_cache_ttl_zero_is_allowed(self):
        d = parse({"name": "Order", "fields": ["id"], "attributes": {"cache_ttl": 0}})
        assert d.attribute("cache_ttl") == 0

    @pytest.mark.parametrize("prefix", ["ped", "1AB", "TOOLONGPREFIX", ""])
    def test_identifier_prefix_shape(self, prefix):
        with pytest.raises(SpecError, match="identifier_prefix"):
            parse({"name": "Order", "attributes": {"identifier_prefix": prefix}})

    @pytest.mark.parametrize("length", [11, 33])
    def test_identifier_length_range(self, length):
        with pytest.raises(SpecError, match="identifier_length"):
            parse({"name": "Order", "attributes": {"identifier_length": length}})

    def test_transitions_shape(self):
        with pytest.raises(SpecError, match="transitions"):
            parse({
                "name": "S",
                "kind": "enum",
                "variants": ["A", "B"],
                "attributes": {"transitions": {"A": "B"}},
            })

    def test_nfe_fields_must_be_declared(self):
        with pytest.raises(SpecError, match="undeclared field 'number'"):
            parse({"name": "Invoice", "fields": ["id"], "attributes": {"nfe_fields": ["number"]}})

    def test_unknown_validate_rule(self):
        with pytest.raises(SpecError, match=r"Customer\.email\.validate"):
            parse({
                "name": "Customer",
                "fields": [{"name": "email", "attributes": {"validate": "mail"}}],
            })

    def test_custom_validate_needs_predicate(self):
        with pytest.raises(SpecError, match="must name a predicate"):
            parse({
                "name": "Customer",
                "fields": [{"name": "code", "attributes": {"validate": "custom:"}}],
            })

    def test_variant_flag_must_be_bool(self):
        with pytest.raises(SpecError, match=r"S\.A\.final"):
            parse({"name": "S", "kind": "enum", "variants": [{"name": "A", "final": "yes"}]})


# ── load_spec ────────────────────────────────────────────────────────────────

class TestLoadSpec:

    def test_load_from_json_file(self, tmp_path):
        path = tmp_path / "order.json"
        path.write_text(json.dumps({"name": "Order", "fields": ["id"]}), encoding="utf-8")
        d = load_spec(path)
        assert isinstance(d, TypeDescriptor)
        assert d.name == "Order"

    def test_invalid_json_is_a_spec_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SpecError, match="invalid JSON"):
            load_spec(path)
