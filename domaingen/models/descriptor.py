"""TypeDescriptor — the validated structural description of one domain type.

Descriptors are immutable once parsed, attributes included.  Sequences are
stored as tuples so field and variant order is preserved exactly as declared.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domaingen.models.frozen import ReadOnlyMap


class TypeKind(str, Enum):
    """Kinds of type a spec can describe."""

    STRUCT = "struct"
    ENUM = "enum"


class FieldDescriptor(BaseModel):
    """A single named field of a struct spec."""

    model_config = ConfigDict(frozen=True)

    name: str
    declared_type: str = "str"
    """Type as written in the source spec, e.g. 'String', 'Option<String>'."""

    attributes: ReadOnlyMap[str, Any] = Field(default_factory=dict, validate_default=True)


class VariantDescriptor(BaseModel):
    """A single enum variant.  ``None`` flags mean "not declared"."""

    model_config = ConfigDict(frozen=True)

    name: str
    is_final: bool | None = None
    cancellable: bool | None = None
    refundable: bool | None = None
    attributes: ReadOnlyMap[str, Any] = Field(default_factory=dict, validate_default=True)


class TypeDescriptor(BaseModel):
    """Parsed, validated description of a struct or enum."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: TypeKind
    fields: tuple[FieldDescriptor, ...] = ()
    variants: tuple[VariantDescriptor, ...] = ()
    attributes: ReadOnlyMap[str, Any] = Field(default_factory=dict, validate_default=True)
    """Type-level attributes.  Unknown keys are kept verbatim."""

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def variant_names(self) -> list[str]:
        return [v.name for v in self.variants]

    def get_field(self, name: str) -> FieldDescriptor | None:
        """Return the field called *name*, or None."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def get_variant(self, name: str) -> VariantDescriptor | None:
        """Return the variant called *name*, or None."""
        for v in self.variants:
            if v.name == name:
                return v
        return None

    def attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)
