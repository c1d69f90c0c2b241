"""ValidationGenerator — per-field validation chains for struct specs.

Each field resolves to at most one :class:`ValidationRule` through an ordered
resolution table:

1. the field's ``validate`` attribute (a rule kind, ``custom:<predicate>``,
   or ``none``),
2. the first field-name pattern in the rule map that fully matches,
3. no rule.

A ``required: true`` field attribute makes missing values fail whatever rule
resolves; a required field with no other rule gets ``RuleKind.REQUIRED``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from domaingen.checks import brazil
from domaingen.checks.formats import (
    NATIONAL_TAX_ID_CHECKS,
    PHONE_CHECKS,
    POSTAL_CODE_CHECKS,
    is_valid_email,
)
from domaingen.errors import SpecError
from domaingen.generators.base import Artifact, PatternGenerator, class_method, method, static
from domaingen.models.descriptor import FieldDescriptor, TypeDescriptor
from domaingen.models.validation import (
    FieldCheck,
    RuleKind,
    RuleSource,
    ValidationContext,
    ValidationErrors,
    ValidationRule,
)
from domaingen.rules.tables import RuleTables, ValidationRuleMap

logger = logging.getLogger(__name__)

_DISABLED = ("none", "skip")
_CUSTOM_PREFIX = "custom:"

_MESSAGES: dict[RuleKind, str] = {
    RuleKind.REQUIRED: "is required",
    RuleKind.EMAIL: "must be a valid email address",
    RuleKind.PHONE: "must be a valid phone number",
    RuleKind.NATIONAL_TAX_ID: "must be a valid national tax id",
    RuleKind.POSTAL_CODE: "must be a valid postal code",
    RuleKind.REGION_CODE: "must be a valid region code",
    RuleKind.CUSTOM: "failed custom check",
}

_COUNTRY_CHECKS: dict[RuleKind, dict[str, Callable[[str], bool]]] = {
    RuleKind.PHONE: PHONE_CHECKS,
    RuleKind.NATIONAL_TAX_ID: NATIONAL_TAX_ID_CHECKS,
    RuleKind.POSTAL_CODE: POSTAL_CODE_CHECKS,
}


def resolve_rule(
    descriptor: TypeDescriptor,
    field: FieldDescriptor,
    rule_map: ValidationRuleMap,
    predicates: dict[str, Callable[[Any], bool]],
) -> ValidationRule | None:
    """Resolve the rule for one field, or None when nothing applies."""
    required = bool(field.attributes.get("required", False))
    country = field.attributes.get("country") or descriptor.attribute("country") or rule_map.default_country
    override = field.attributes.get("validate")

    kind: RuleKind | None = None
    predicate: str | None = None
    source = RuleSource.ATTRIBUTE

    if override in _DISABLED:
        kind = None
    elif isinstance(override, str) and override.startswith(_CUSTOM_PREFIX):
        predicate = override[len(_CUSTOM_PREFIX):].strip()
        if predicate not in predicates:
            raise SpecError(
                f"unknown validation predicate '{predicate}'",
                f"{descriptor.name}.{field.name}",
            )
        kind = RuleKind.CUSTOM
    elif override is not None:
        kind = RuleKind(override)
    else:
        kind = rule_map.match(field.name)
        source = RuleSource.PATTERN

    if kind is None:
        if not required:
            return None
        kind, source = RuleKind.REQUIRED, RuleSource.ATTRIBUTE

    return ValidationRule(
        kind=kind,
        field_name=field.name,
        required=required or kind is RuleKind.REQUIRED,
        predicate=predicate,
        country=country,
        source=source,
    )


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def evaluate_rule(
    rule: ValidationRule,
    value: Any,
    rule_map: ValidationRuleMap,
    predicates: dict[str, Callable[[Any], bool]],
) -> str | None:
    """Failure message for *value* under *rule*, or None when it passes.

    Absent optional values pass.  Country-specific kinds pass for countries
    with no registered algorithm.
    """
    if not _is_present(value):
        return f"{rule.field_name} {_MESSAGES[RuleKind.REQUIRED]}" if rule.required else None

    kind = rule.kind
    if kind is RuleKind.REQUIRED:
        ok = True
    elif kind is RuleKind.EMAIL:
        ok = is_valid_email(str(value))
    elif kind is RuleKind.REGION_CODE:
        ok = rule.country != rule_map.default_country or str(value).strip().upper() in rule_map.region_codes
    elif kind is RuleKind.CUSTOM:
        try:
            ok = bool(predicates[rule.predicate](value))
        except Exception:
            logger.debug("Predicate %r raised on %s", rule.predicate, rule.field_name, exc_info=True)
            ok = False
    else:
        check = _COUNTRY_CHECKS[kind].get(rule.country)
        ok = check is None or check(str(value))

    if ok:
        return None
    if kind is RuleKind.CUSTOM:
        return f"{rule.field_name} failed check '{rule.predicate}'"
    return f"{rule.field_name} {_MESSAGES[kind]}"


class ValidationGenerator(PatternGenerator):
    """Generate validation chains for struct fields.

    Parameters
    ----------
    predicates:
        Named callables usable through ``validate: "custom:<name>"`` field
        attributes.  Each receives the field value and returns a bool.
    """

    def __init__(self, predicates: dict[str, Callable[[Any], bool]] | None = None) -> None:
        self._predicates: dict[str, Callable[[Any], bool]] = dict(predicates or {})

    @property
    def name(self) -> str:
        return "validation"

    @property
    def description(self) -> str:
        return "Field validation chains: email, phone, CPF/CNPJ, CEP, region codes, custom predicates"

    @property
    def predicates(self) -> dict[str, Callable[[Any], bool]]:
        return dict(self._predicates)

    def resolve_rules(self, descriptor: TypeDescriptor, rules: RuleTables) -> dict[str, ValidationRule | None]:
        """Field name to resolved rule, in declaration order."""
        return {
            f.name: resolve_rule(descriptor, f, rules.validation, self._predicates)
            for f in descriptor.fields
        }

    def generate(self, descriptor: TypeDescriptor, rules: RuleTables) -> Artifact:
        rule_map = rules.validation
        predicates = dict(self._predicates)
        resolved = self.resolve_rules(descriptor, rules)
        type_name = descriptor.name

        def _check(self, field_name: str) -> FieldCheck:
            if field_name not in resolved:
                raise KeyError(f"{type_name} has no field '{field_name}'")
            rule = resolved[field_name]
            value = getattr(self, field_name, None)
            if rule is None:
                return FieldCheck(field_name=field_name, value_present=_is_present(value))
            message = evaluate_rule(rule, value, rule_map, predicates)
            return FieldCheck(
                field_name=field_name,
                rule_kind=rule.kind,
                source=rule.source,
                value_present=_is_present(value),
                passed=message is None,
                message=message or "",
            )

        def _record(self, checks: list[FieldCheck], replace: bool) -> None:
            context = None if replace else getattr(self, "_validation_context", None)
            if context is None:
                context = ValidationContext(type_name=type_name)
            for check in checks:
                context.checks[check.field_name] = check
            self._validation_context = context

        def validate_field(self, name: str) -> str | None:
            """Validate one field in isolation; returns the failure message or None.

            Fields without a resolvable rule always pass.  Raises KeyError for
            an undeclared field.
            """
            check = _check(self, name)
            _record(self, [check], replace=False)
            return check.message if not check.passed else None

        def validate(self) -> ValidationErrors:
            """Evaluate every field and collect all failures in field order."""
            checks = [_check(self, f) for f in resolved]
            _record(self, checks, replace=True)
            errors = ValidationErrors(type_name=type_name)
            for check in checks:
                if not check.passed:
                    errors.add(check.field_name, check.message)
            if errors.errors:
                logger.debug("%s failed validation on %s", type_name, ", ".join(errors.errors))
            return errors

        def validation_context(self) -> ValidationContext:
            """Field-indexed view of the last evaluation (empty before any)."""
            context = getattr(self, "_validation_context", None)
            if context is None:
                return ValidationContext(type_name=type_name)
            return context.model_copy(deep=True)

        def validation_rules(cls) -> tuple[ValidationRule, ...]:
            """Resolved rules for every field that has one, in field order."""
            return tuple(r for r in resolved.values() if r is not None)

        members = [
            method(validate_field),
            method(validate),
            method(validation_context),
            class_method(validation_rules),
            static(is_valid_email),
            static(brazil.is_valid_cpf),
            static(brazil.is_valid_cnpj),
            static(brazil.is_valid_cep),
            static(brazil.is_valid_phone),
            static(brazil.format_cpf),
            static(brazil.format_cnpj),
            static(brazil.format_cep),
            static(brazil.format_phone),
        ]
        body = {
            "rule_map_version": rule_map.version,
            "rules": [
                {
                    "field": name,
                    "kind": rule.kind.value if rule else None,
                    "source": rule.source.value if rule else None,
                    "required": rule.required if rule else False,
                    "country": rule.country if rule else None,
                    "predicate": rule.predicate if rule else None,
                }
                for name, rule in resolved.items()
            ],
        }
        logger.debug(
            "Resolved %d validation rules for %s",
            sum(1 for r in resolved.values() if r is not None), type_name,
        )
        return self._artifact(descriptor, members, body=body)
