"""domaingen — build-time generator for recurring domain patterns."""

__version__ = "1.0.0"

from domaingen.composition.validator import CompositionValidator
from domaingen.config_manager import ConfigManager
from domaingen.emission.emitter import CodeEmitter, GeneratedCode, GeneratedStruct
from domaingen.engine import GeneratorEngine
from domaingen.errors import (
    AmbiguousTerminalState,
    CodegenError,
    InvalidPaymentTransition,
    LayeringViolation,
    RuleTableError,
    SpecError,
    SymbolConflict,
    UnknownGenerator,
    UnknownVariant,
)
from domaingen.generators.base import Artifact, Capability, PatternGenerator
from domaingen.generators.registry import GeneratorRegistry, default_registry
from domaingen.models.descriptor import FieldDescriptor, TypeDescriptor, TypeKind, VariantDescriptor
from domaingen.models.validation import ValidationContext, ValidationErrors, ValidationRule
from domaingen.parsing.parser import load_spec, parse
from domaingen.quality.pipeline import QualityPipeline, QualityReport
from domaingen.rules.loader import default_rule_tables, load_rule_tables
from domaingen.rules.tables import RuleTables

__all__ = [
    "__version__",
    # Engine
    "CodeEmitter",
    "CompositionValidator",
    "GeneratedCode",
    "GeneratedStruct",
    "GeneratorEngine",
    "GeneratorRegistry",
    "default_registry",
    # Input
    "FieldDescriptor",
    "TypeDescriptor",
    "TypeKind",
    "VariantDescriptor",
    "load_spec",
    "parse",
    # Generators
    "Artifact",
    "Capability",
    "PatternGenerator",
    # Rule tables
    "RuleTables",
    "default_rule_tables",
    "load_rule_tables",
    # Validation values
    "ValidationContext",
    "ValidationErrors",
    "ValidationRule",
    # Errors
    "AmbiguousTerminalState",
    "CodegenError",
    "InvalidPaymentTransition",
    "LayeringViolation",
    "RuleTableError",
    "SpecError",
    "SymbolConflict",
    "UnknownGenerator",
    "UnknownVariant",
    # Tooling
    "ConfigManager",
    "QualityPipeline",
    "QualityReport",
]
