"""Spec Parser — turns a raw structural description into a TypeDescriptor.

Usage::

    from domaingen.parsing import parse

    descriptor = parse({
        "name": "OrderStatus",
        "kind": "enum",
        "variants": ["Pending", {"name": "Delivered", "final": True}],
    })

Recognised attributes are shape-checked; anything else is kept verbatim so
later generators can consume it.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable

from domaingen.config import MAX_IDENTIFIER_LENGTH, MAX_PREFIX_LENGTH, MIN_IDENTIFIER_LENGTH
from domaingen.errors import SpecError
from domaingen.models.descriptor import (
    FieldDescriptor,
    TypeDescriptor,
    TypeKind,
    VariantDescriptor,
)
from domaingen.models.validation import RuleKind
from domaingen.naming import is_identifier

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"[A-Z][A-Z0-9]*")
_COUNTRY_RE = re.compile(r"[A-Z]{2}")

_VALIDATE_DISABLED = ("none", "skip")
_CUSTOM_PREFIX = "custom:"


# ---------------------------------------------------------------------------
# Attribute shape checks
# ---------------------------------------------------------------------------

def _check_non_empty_str(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return "must be a non-empty string"
    return None


def _check_non_negative_int(value: Any) -> str | None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return "must be a non-negative integer"
    return None


def _check_bool(value: Any) -> str | None:
    if not isinstance(value, bool):
        return "must be a boolean"
    return None


def _check_str_list(value: Any) -> str | None:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        return "must be a list of strings"
    return None


def _check_transitions(value: Any) -> str | None:
    if not isinstance(value, Mapping):
        return "must be a mapping of variant name to list of target names"
    for source, targets in value.items():
        if not isinstance(source, str):
            return "keys must be variant names"
        if _check_str_list(targets) is not None:
            return f"targets of '{source}' must be a list of variant names"
    return None


def _check_prefix(value: Any) -> str | None:
    if not isinstance(value, str) or not _PREFIX_RE.fullmatch(value) or len(value) > MAX_PREFIX_LENGTH:
        return f"must be 1-{MAX_PREFIX_LENGTH} uppercase letters/digits starting with a letter"
    return None


def _check_identifier_length(value: Any) -> str | None:
    if (
        isinstance(value, bool)
        or not isinstance(value, int)
        or not MIN_IDENTIFIER_LENGTH <= value <= MAX_IDENTIFIER_LENGTH
    ):
        return f"must be an integer between {MIN_IDENTIFIER_LENGTH} and {MAX_IDENTIFIER_LENGTH}"
    return None


def _check_country(value: Any) -> str | None:
    if not isinstance(value, str) or not _COUNTRY_RE.fullmatch(value):
        return "must be a two-letter uppercase country code"
    return None


def _check_validate(value: Any) -> str | None:
    if not isinstance(value, str):
        return "must be a rule name, 'none', or 'custom:<predicate>'"
    if value in _VALIDATE_DISABLED:
        return None
    if value.startswith(_CUSTOM_PREFIX):
        if not value[len(_CUSTOM_PREFIX):].strip():
            return "custom rule must name a predicate"
        return None
    if value not in {k.value for k in RuleKind} or value == RuleKind.CUSTOM.value:
        allowed = sorted(k.value for k in RuleKind if k is not RuleKind.CUSTOM)
        return f"unknown rule '{value}' (expected one of {', '.join(allowed)})"
    return None


_TYPE_ATTRIBUTES: dict[str, Callable[[Any], str | None]] = {
    "table_name": _check_non_empty_str,
    "cache_ttl": _check_non_negative_int,
    "transitions": _check_transitions,
    "final_states": _check_str_list,
    "identifier_prefix": _check_prefix,
    "identifier_length": _check_identifier_length,
    "identifier_checksum": _check_bool,
    "nfe_fields": _check_str_list,
    "derive": _check_str_list,
    "country": _check_country,
}

_FIELD_ATTRIBUTES: dict[str, Callable[[Any], str | None]] = {
    "validate": _check_validate,
    "required": _check_bool,
    "country": _check_country,
}

_VARIANT_FLAGS = ("final", "cancellable", "refundable")


def _check_attributes(
    attributes: Any,
    checks: dict[str, Callable[[Any], str | None]],
    owner: str,
) -> dict[str, Any]:
    if attributes is None:
        return {}
    if not isinstance(attributes, Mapping):
        raise SpecError("attributes must be a mapping", owner)
    result: dict[str, Any] = {}
    for key, value in attributes.items():
        if not isinstance(key, str):
            raise SpecError(f"attribute key {key!r} must be a string", owner)
        check = checks.get(key)
        if check is not None:
            problem = check(value)
            if problem is not None:
                raise SpecError(problem, f"{owner}.{key}")
        else:
            logger.debug("Keeping unrecognised attribute %s.%s", owner, key)
        result[key] = value
    return result


# ---------------------------------------------------------------------------
# Fields and variants
# ---------------------------------------------------------------------------

def _parse_field(raw: Any, type_name: str) -> FieldDescriptor:
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, Mapping):
        raise SpecError("each field must be a name or a mapping", type_name)

    name = raw.get("name")
    if not is_identifier(name):
        raise SpecError(f"invalid field name {name!r}", type_name)

    owner = f"{type_name}.{name}"
    declared_type = raw.get("type", raw.get("declared_type", "str"))
    if not isinstance(declared_type, str) or not declared_type:
        raise SpecError("field type must be a non-empty string", owner)

    attributes = _check_attributes(raw.get("attributes"), _FIELD_ATTRIBUTES, owner)
    return FieldDescriptor(name=name, declared_type=declared_type, attributes=attributes)


def _parse_variant(raw: Any, type_name: str) -> VariantDescriptor:
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, Mapping):
        raise SpecError("each variant must be a name or a mapping", type_name)

    name = raw.get("name")
    if not is_identifier(name):
        raise SpecError(f"invalid variant name {name!r}", type_name)

    owner = f"{type_name}.{name}"
    flags: dict[str, bool | None] = {}
    for flag in _VARIANT_FLAGS:
        value = raw.get(flag)
        if value is not None and not isinstance(value, bool):
            raise SpecError("must be a boolean", f"{owner}.{flag}")
        flags[flag] = value

    attributes = _check_attributes(raw.get("attributes"), {}, owner)
    return VariantDescriptor(
        name=name,
        is_final=flags["final"],
        cancellable=flags["cancellable"],
        refundable=flags["refundable"],
        attributes=attributes,
    )


def _ensure_unique(names: list[str], what: str, type_name: str) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise SpecError(f"duplicate {what} '{name}'", f"{type_name}.{name}")
        seen.add(name)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def parse(raw_spec: Mapping[str, Any] | TypeDescriptor) -> TypeDescriptor:
    """Validate *raw_spec* and return an immutable TypeDescriptor.

    Parameters
    ----------
    raw_spec:
        Mapping with keys ``name``, ``kind`` ('struct' or 'enum'),
        ``fields``, ``variants`` and ``attributes``.  An already parsed
        TypeDescriptor is returned unchanged.

    Raises
    ------
    SpecError
        Naming the offending type, field, variant or attribute.
    """
    if isinstance(raw_spec, TypeDescriptor):
        return raw_spec
    if not isinstance(raw_spec, Mapping):
        raise SpecError("spec must be a mapping")

    name = raw_spec.get("name")
    if not is_identifier(name):
        raise SpecError(f"invalid type name {name!r}", "name")

    kind_raw = raw_spec.get("kind", TypeKind.STRUCT.value)
    try:
        kind = TypeKind(str(kind_raw).lower())
    except ValueError:
        raise SpecError(f"unknown kind {kind_raw!r} (expected 'struct' or 'enum')", f"{name}.kind") from None

    raw_fields = raw_spec.get("fields") or []
    raw_variants = raw_spec.get("variants") or []
    if not isinstance(raw_fields, (list, tuple)):
        raise SpecError("fields must be a list", f"{name}.fields")
    if not isinstance(raw_variants, (list, tuple)):
        raise SpecError("variants must be a list", f"{name}.variants")

    fields = [_parse_field(f, name) for f in raw_fields]
    variants = [_parse_variant(v, name) for v in raw_variants]
    _ensure_unique([f.name for f in fields], "field", name)
    _ensure_unique([v.name for v in variants], "variant", name)

    if kind is TypeKind.ENUM and not variants:
        raise SpecError("enum spec must declare at least one variant", name)
    if kind is TypeKind.STRUCT and variants:
        raise SpecError("struct spec cannot declare variants", name)

    attributes = _check_attributes(raw_spec.get("attributes"), _TYPE_ATTRIBUTES, name)

    nfe_fields = attributes.get("nfe_fields")
    if nfe_fields:
        declared = {f.name for f in fields}
        for field_name in nfe_fields:
            if field_name not in declared:
                raise SpecError(f"references undeclared field '{field_name}'", f"{name}.nfe_fields")

    descriptor = TypeDescriptor(
        name=name,
        kind=kind,
        fields=tuple(fields),
        variants=tuple(variants),
        attributes=attributes,
    )
    logger.debug(
        "Parsed %s spec %s (%d fields, %d variants)",
        kind.value, name, len(fields), len(variants),
    )
    return descriptor


def load_spec(path: str | Path) -> TypeDescriptor:
    """Read a JSON spec file and parse it."""
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SpecError(f"invalid JSON: {exc}", str(p)) from exc
    return parse(raw)
