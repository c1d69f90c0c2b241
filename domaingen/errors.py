"""Exception taxonomy for the generator engine.

Parse- and composition-time errors abort a generation run.  Runtime
conditions inside generated code are returned as values instead.  The
exceptions are :class:`UnknownVariant`, raised by a generated ``parse``
classmethod, and :class:`InvalidPaymentTransition`, raised when a payment
is moved out of a status that forbids it.
"""

from __future__ import annotations


class CodegenError(Exception):
    """Base class for every fatal generation error."""


class SpecError(CodegenError):
    """Malformed or ambiguous input spec."""

    def __init__(self, message: str, subject: str = "") -> None:
        self.subject = subject
        if subject:
            message = f"{subject}: {message}"
        super().__init__(message)


class AmbiguousTerminalState(CodegenError):
    """A state-machine variant whose finality contradicts its edges."""

    def __init__(self, type_name: str, variant: str, reason: str) -> None:
        self.type_name = type_name
        self.variant = variant
        self.reason = reason
        super().__init__(f"{type_name}.{variant}: {reason}")


class SymbolConflict(CodegenError):
    """The same generated symbol is declared by more than one source."""

    def __init__(self, symbol: str, generators: tuple[str, ...]) -> None:
        self.symbol = symbol
        self.generators = generators
        super().__init__(
            f"Symbol '{symbol}' declared by multiple generators: {', '.join(generators)}"
        )


class LayeringViolation(CodegenError):
    """A generator reaches for a capability above its architectural level."""

    def __init__(self, generator: str, level: int, requirement: str, required_level: int) -> None:
        self.generator = generator
        self.level = level
        self.requirement = requirement
        self.required_level = required_level
        super().__init__(
            f"Generator '{generator}' (level {level}) depends on '{requirement}' "
            f"which requires level {required_level}"
        )


class UnknownGenerator(CodegenError):
    """A requested generator name is not registered."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(
            f"Unknown generator '{name}'. Available: {', '.join(available) or '(none)'}"
        )


class RuleTableError(CodegenError):
    """Rule-table data could not be loaded or failed validation."""


class UnknownVariant(ValueError):
    """Raised by a generated ``parse`` for an unrecognised status string."""

    def __init__(self, type_name: str, text: str) -> None:
        self.type_name = type_name
        self.text = text
        super().__init__(f"Invalid {type_name}: {text!r}")


class InvalidPaymentTransition(ValueError):
    """Raised by a generated ``mark_*`` method when the payment's status forbids the move."""

    def __init__(self, type_name: str, current: str, target: str) -> None:
        self.type_name = type_name
        self.current = current
        self.target = target
        super().__init__(f"{type_name}: cannot move payment from {current!r} to {target!r}")
