"""GeneratorRegistry — register, order, and look up pattern generators."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from domaingen.errors import UnknownGenerator
from domaingen.generators.base import PatternGenerator
from domaingen.models.descriptor import TypeDescriptor

logger = logging.getLogger(__name__)


class GeneratorRegistry:
    """Central registry for pattern generators.

    Registration order is significant: the emitter orders artifacts by it,
    whatever order a request names generators in.
    """

    def __init__(self) -> None:
        self._generators: dict[str, PatternGenerator] = {}

    def register(self, generator: PatternGenerator) -> None:
        """Add a generator.  Re-registering a name replaces it in place."""
        if generator.name in self._generators:
            logger.info("Replacing generator: %s", generator.name)
        else:
            logger.info("Registered generator: %s (level %d)", generator.name, generator.level)
        self._generators[generator.name] = generator

    def auto_discover(self) -> None:
        """Load all built-in generators in their canonical order."""
        from domaingen.generators.domain_model import DomainModelGenerator
        from domaingen.generators.identifier import IdentifierGenerator
        from domaingen.generators.payment import PaymentGenerator
        from domaingen.generators.shipping import ShippingGenerator
        from domaingen.generators.state_machine import StateMachineGenerator
        from domaingen.generators.tax import TaxGenerator
        from domaingen.generators.validation import ValidationGenerator

        for generator_cls in [
            StateMachineGenerator,
            ValidationGenerator,
            TaxGenerator,
            ShippingGenerator,
            IdentifierGenerator,
            PaymentGenerator,
            DomainModelGenerator,
        ]:
            self.register(generator_cls())

    def get(self, name: str) -> PatternGenerator:
        """Return the generator called *name*.

        Raises UnknownGenerator if it is not registered.
        """
        generator = self._generators.get(name)
        if generator is None:
            raise UnknownGenerator(name, self.names())
        return generator

    def names(self) -> list[str]:
        return list(self._generators)

    def list_generators(self) -> list[PatternGenerator]:
        """Return all registered generators in registration order."""
        return list(self._generators.values())

    def resolve(self, names: Iterable[str]) -> list[PatternGenerator]:
        """Return the named generators in registration order, deduplicated."""
        wanted = {self.get(n).name for n in names}
        return [g for g in self._generators.values() if g.name in wanted]

    def applicable(self, descriptor: TypeDescriptor) -> list[PatternGenerator]:
        """Every registered generator that supports the descriptor's kind."""
        return [g for g in self._generators.values() if g.supports(descriptor)]

    def __contains__(self, name: object) -> bool:
        return name in self._generators

    def __len__(self) -> int:
        return len(self._generators)


def default_registry() -> GeneratorRegistry:
    """A fresh registry with every built-in generator."""
    registry = GeneratorRegistry()
    registry.auto_discover()
    return registry
