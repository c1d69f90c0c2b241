"""CompositionValidator — global consistency checks across one type's artifacts.

Usage::

    from domaingen.composition import CompositionValidator

    symbols = CompositionValidator(registry).validate(descriptor, artifacts)

Two checks run, symbols first:

* every generated symbol is declared exactly once, and never shadows a
  declared field or variant name;
* no artifact depends on a capability above its generator's level, and no
  generator requires a generator of a higher level.

Both checks are order-independent: the same inputs always report the same
error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from domaingen.errors import LayeringViolation, SymbolConflict
from domaingen.generators.base import CAPABILITY_LEVELS, Artifact, PatternGenerator
from domaingen.generators.registry import GeneratorRegistry
from domaingen.models.descriptor import TypeDescriptor

logger = logging.getLogger(__name__)

TYPE_SOURCE = "<type>"


class CompositionValidator:
    """Check symbol disjointness and layering for one type's artifacts."""

    def __init__(self, registry: GeneratorRegistry | None = None) -> None:
        self.registry = registry

    def check_symbols(self, descriptor: TypeDescriptor, artifacts: Iterable[Artifact]) -> dict[str, str]:
        """Return the symbol table (symbol to generator name).

        Raises
        ------
        SymbolConflict
            For the lexicographically first symbol with more than one
            source, naming every source in sorted order.
        """
        sources: dict[str, set[str]] = {}
        for name in descriptor.field_names + descriptor.variant_names:
            sources.setdefault(name, set()).add(TYPE_SOURCE)
        for artifact in artifacts:
            for symbol in artifact.declared_symbols:
                sources.setdefault(symbol, set()).add(artifact.generator)

        conflicts = sorted(s for s, owners in sources.items() if len(owners) > 1)
        if conflicts:
            symbol = conflicts[0]
            raise SymbolConflict(symbol, tuple(sorted(sources[symbol])))

        return {
            symbol: next(iter(owners))
            for symbol, owners in sorted(sources.items())
            if TYPE_SOURCE not in owners
        }

    def check_layering(
        self,
        artifacts: Iterable[Artifact],
        generators: Iterable[PatternGenerator] = (),
    ) -> None:
        """Raise LayeringViolation for the first offence in name order."""
        for artifact in sorted(artifacts, key=lambda a: a.generator):
            for dependency in sorted(artifact.dependencies, key=lambda d: d.value):
                required = CAPABILITY_LEVELS[dependency]
                if required > artifact.level:
                    raise LayeringViolation(artifact.generator, artifact.level, dependency.value, required)

        for generator in sorted(generators, key=lambda g: g.name):
            for name in sorted(generator.requires):
                if self.registry is None or name not in self.registry:
                    logger.debug("Skipping level check for unregistered requirement %s", name)
                    continue
                required = self.registry.get(name).level
                if required > generator.level:
                    raise LayeringViolation(generator.name, generator.level, name, required)

    def validate(
        self,
        descriptor: TypeDescriptor,
        artifacts: list[Artifact],
        generators: Iterable[PatternGenerator] = (),
    ) -> dict[str, str]:
        """Run every composition check; return the symbol table."""
        symbols = self.check_symbols(descriptor, artifacts)
        self.check_layering(artifacts, generators)
        logger.debug(
            "Composition of %s passed: %d artifacts, %d symbols",
            descriptor.name, len(artifacts), len(symbols),
        )
        return symbols
