"""Structural type descriptions and value types consumed by the generators."""

from domaingen.models.descriptor import (
    FieldDescriptor,
    TypeDescriptor,
    TypeKind,
    VariantDescriptor,
)
from domaingen.models.graph import TransitionGraph
from domaingen.models.validation import (
    FieldCheck,
    RuleKind,
    RuleSource,
    ValidationContext,
    ValidationErrors,
    ValidationRule,
)

__all__ = [
    "FieldCheck",
    "FieldDescriptor",
    "RuleKind",
    "RuleSource",
    "TransitionGraph",
    "TypeDescriptor",
    "TypeKind",
    "ValidationContext",
    "ValidationErrors",
    "ValidationRule",
    "VariantDescriptor",
]
