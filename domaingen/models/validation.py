"""Validation value types: rules, per-field checks, and the error accumulator."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RuleKind(str, Enum):
    """Kinds of field validation rule."""

    REQUIRED = "required"
    EMAIL = "email"
    PHONE = "phone"
    NATIONAL_TAX_ID = "national_tax_id"
    POSTAL_CODE = "postal_code"
    REGION_CODE = "region_code"
    CUSTOM = "custom"


class RuleSource(str, Enum):
    """Where a resolved rule came from, in priority order."""

    ATTRIBUTE = "attribute"
    PATTERN = "pattern"


class ValidationRule(BaseModel):
    """A resolved validation rule for one field."""

    model_config = ConfigDict(frozen=True)

    kind: RuleKind
    field_name: str
    required: bool = False
    """Reject missing values.  Always true for ``RuleKind.REQUIRED``."""

    predicate: str | None = None
    """Name of the custom predicate for ``RuleKind.CUSTOM``."""

    country: str = "BR"
    source: RuleSource = RuleSource.PATTERN


class FieldCheck(BaseModel):
    """Outcome of evaluating one field during the last validation pass."""

    field_name: str
    rule_kind: RuleKind | None = None
    source: RuleSource | None = None
    value_present: bool = False
    passed: bool = True
    message: str = ""


class ValidationErrors(BaseModel):
    """Accumulator of every failing field, in declaration order.

    Empty when the entity is valid.
    """

    type_name: str = ""
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> list[str]:
        return list(self.errors.values())

    def add(self, field_name: str, message: str) -> None:
        self.errors[field_name] = message

    def __len__(self) -> int:
        return len(self.errors)


class ValidationContext(BaseModel):
    """Field-indexed view of the last evaluation, for diagnostics."""

    type_name: str = ""
    checks: dict[str, FieldCheck] = Field(default_factory=dict)

    def failed(self) -> list[FieldCheck]:
        return [c for c in self.checks.values() if not c.passed]
