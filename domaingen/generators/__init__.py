"""Pattern generators and the registry that orders them."""

from domaingen.generators.base import (
    CAPABILITY_LEVELS,
    Artifact,
    Capability,
    GeneratedMember,
    MemberKind,
    PatternGenerator,
)
from domaingen.generators.domain_model import AuditLogEntry, DomainModelGenerator
from domaingen.generators.identifier import IdentifierComponents, IdentifierGenerator, IdentifierSpec
from domaingen.generators.payment import BoletoData, PaymentGenerator, PixKeyType, TaxExemption
from domaingen.generators.registry import GeneratorRegistry, default_registry
from domaingen.generators.shipping import ShippingGenerator, choose_carrier
from domaingen.generators.state_machine import StateMachineGenerator, resolve_graph
from domaingen.generators.tax import TaxBreakdown, TaxGenerator
from domaingen.generators.validation import ValidationGenerator

__all__ = [
    "CAPABILITY_LEVELS",
    "Artifact",
    "AuditLogEntry",
    "BoletoData",
    "Capability",
    "DomainModelGenerator",
    "GeneratedMember",
    "GeneratorRegistry",
    "IdentifierComponents",
    "IdentifierGenerator",
    "IdentifierSpec",
    "MemberKind",
    "PatternGenerator",
    "PaymentGenerator",
    "PixKeyType",
    "ShippingGenerator",
    "StateMachineGenerator",
    "TaxBreakdown",
    "TaxExemption",
    "TaxGenerator",
    "ValidationGenerator",
    "choose_carrier",
    "default_registry",
    "resolve_graph",
]
