"""GeneratorEngine — parse, dispatch, compose and emit.

Usage::

    from domaingen import GeneratorEngine

    engine = GeneratorEngine()
    code = engine.generate({
        "name": "OrderStatus",
        "kind": "enum",
        "variants": ["Pending", "Paid", "Shipped", "Delivered", "Cancelled", "Refunded"],
    })
    OrderStatus = code.generated_type

Rule tables are held as one immutable reference.  Each run reads that
reference once, so :meth:`GeneratorEngine.swap_rules` never affects a run in
progress.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from domaingen.composition.validator import CompositionValidator
from domaingen.config_manager import get_int
from domaingen.emission.emitter import CodeEmitter, GeneratedCode
from domaingen.errors import SpecError
from domaingen.generators.base import PatternGenerator
from domaingen.generators.domain_model import DomainModelGenerator
from domaingen.generators.registry import GeneratorRegistry, default_registry
from domaingen.models.descriptor import TypeDescriptor
from domaingen.parsing.parser import parse
from domaingen.rules.loader import build_rule_tables, default_rule_tables, load_rule_tables
from domaingen.rules.tables import RuleTables

logger = logging.getLogger(__name__)


class GeneratorEngine:
    """Facade over the full generation pipeline.

    Parameters
    ----------
    rules:
        Rule tables to generate against.  Defaults to the file named by
        ``DOMAINGEN_RULES_PATH`` in *config*, else the seed tables.
    registry:
        Generators to dispatch to.  Defaults to every built-in generator.
    config:
        Flat settings as returned by ``ConfigManager.load_config``.
    """

    def __init__(
        self,
        rules: RuleTables | None = None,
        registry: GeneratorRegistry | None = None,
        config: Mapping[str, str] | None = None,
    ) -> None:
        self.config: dict[str, str] = dict(config or {})
        if rules is None:
            rules_path = self.config.get("DOMAINGEN_RULES_PATH")
            rules = load_rule_tables(rules_path) if rules_path else default_rule_tables()
        if registry is None:
            registry = default_registry()
            if "DOMAINGEN_CACHE_TTL" in self.config:
                registry.register(
                    DomainModelGenerator(cache_ttl=get_int(self.config, "DOMAINGEN_CACHE_TTL"))
                )
        self.registry = registry
        self.composition = CompositionValidator(registry)
        self.emitter = CodeEmitter(registry)
        self._rules = rules
        self._lock = threading.Lock()

    @property
    def rules(self) -> RuleTables:
        return self._rules

    def swap_rules(self, tables: RuleTables | Mapping[str, Any]) -> RuleTables:
        """Replace the rule tables as one unit; returns the previous tables."""
        new = tables if isinstance(tables, RuleTables) else build_rule_tables(dict(tables))
        with self._lock:
            previous, self._rules = self._rules, new
        logger.info("Swapped rule tables %s -> %s", previous.version, new.version)
        return previous

    def select(self, descriptor: TypeDescriptor, generators: Iterable[str] | None = None) -> list[PatternGenerator]:
        """Generators for *descriptor*: explicit list, else ``derive``, else all applicable.

        Named generators pull in the generators they require.  Raises
        UnknownGenerator for unregistered names and SpecError when a named
        generator does not support the type's kind.
        """
        names = list(generators) if generators is not None else descriptor.attribute("derive")
        if names is None:
            return self.registry.applicable(descriptor)

        wanted: list[str] = []
        pending = list(names)
        while pending:
            name = pending.pop(0)
            if name in wanted:
                continue
            wanted.append(name)
            pending.extend(self.registry.get(name).requires)

        selected = self.registry.resolve(wanted)
        for generator in selected:
            if not generator.supports(descriptor):
                raise SpecError(
                    f"generator '{generator.name}' does not support this {descriptor.kind.value} type",
                    descriptor.name,
                )
        return selected

    def generate(self, raw_spec: Mapping[str, Any] | TypeDescriptor, generators: Iterable[str] | None = None) -> GeneratedCode:
        """Run the whole pipeline for one type.

        Any CodegenError aborts the run; nothing is emitted.
        """
        descriptor = parse(raw_spec)
        rules = self._rules
        selected = self.select(descriptor, generators)
        logger.info(
            "Generating %s with [%s] (rules %s)",
            descriptor.name, ", ".join(g.name for g in selected), rules.version,
        )
        artifacts = [g.generate(descriptor, rules) for g in selected]
        self.composition.validate(descriptor, artifacts, selected)
        return self.emitter.emit(descriptor, artifacts)

    def generate_many(
        self,
        raw_specs: Iterable[Mapping[str, Any] | TypeDescriptor],
        max_workers: int | None = None,
    ) -> list[GeneratedCode]:
        """Generate independent types in parallel; results follow input order."""
        specs = list(raw_specs)
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(self.generate, specs))
