"""StateMachineGenerator — status transition logic for enum specs.

The transition graph comes from the spec's ``transitions`` attribute when
present.  Otherwise the default topology applies: non-final variants form a
chain in declaration order ending at the first non-sink final variant, and
every non-final variant may move to the cancellation and refund sinks.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from domaingen.errors import AmbiguousTerminalState, SpecError, UnknownVariant
from domaingen.generators.base import (
    Artifact,
    PatternGenerator,
    class_method,
    method,
)
from domaingen.models.descriptor import TypeDescriptor, TypeKind, VariantDescriptor
from domaingen.models.graph import TransitionGraph
from domaingen.naming import snake_case
from domaingen.rules.tables import RuleTables, TransitionTopology

logger = logging.getLogger(__name__)


def _is_final(variant: VariantDescriptor, descriptor: TypeDescriptor, topology: TransitionTopology) -> bool:
    if variant.is_final is not None:
        return variant.is_final
    declared = descriptor.attribute("final_states")
    if declared is not None:
        return variant.name in declared
    return variant.name in topology.final_states


def _first_present(candidates: tuple[str, ...], names: list[str]) -> str | None:
    for candidate in candidates:
        if candidate in names:
            return candidate
    return None


def _explicit_edges(descriptor: TypeDescriptor) -> dict[str, list[str]]:
    names = descriptor.variant_names
    subject = f"{descriptor.name}.transitions"
    edges: dict[str, list[str]] = {n: [] for n in names}
    for source, targets in descriptor.attribute("transitions").items():
        if source not in edges:
            raise SpecError(f"unknown source variant '{source}'", subject)
        for target in targets:
            if target not in edges:
                raise SpecError(f"unknown target variant '{target}' from '{source}'", subject)
            if target not in edges[source]:
                edges[source].append(target)
    return edges


def _default_edges(
    descriptor: TypeDescriptor,
    finals: dict[str, bool],
    cancel_sink: str | None,
    refund_sink: str | None,
) -> dict[str, list[str]]:
    names = descriptor.variant_names
    edges: dict[str, list[str]] = {n: [] for n in names}
    non_final = [n for n in names if not finals[n]]
    completion = next(
        (n for n in names if finals[n] and n not in (cancel_sink, refund_sink)),
        None,
    )

    for i, name in enumerate(non_final):
        variant = descriptor.get_variant(name)
        following = non_final[i + 1] if i + 1 < len(non_final) else completion
        if following is not None:
            edges[name].append(following)
        if cancel_sink and cancel_sink != name and variant.cancellable is not False:
            if cancel_sink not in edges[name]:
                edges[name].append(cancel_sink)
        if refund_sink and refund_sink != name and variant.refundable is not False:
            if refund_sink not in edges[name]:
                edges[name].append(refund_sink)
    return edges


def resolve_graph(descriptor: TypeDescriptor, topology: TransitionTopology) -> TransitionGraph:
    """Resolve and check the transition graph for an enum descriptor.

    Raises
    ------
    SpecError
        If explicit transitions name undeclared variants.
    AmbiguousTerminalState
        If a variant has no edges but is not final, or is final but has
        edges.
    """
    names = descriptor.variant_names
    finals = {v.name: _is_final(v, descriptor, topology) for v in descriptor.variants}
    cancel_sink = _first_present(topology.cancellation_sinks, names)
    refund_sink = _first_present(topology.refund_sinks, names)

    if descriptor.attribute("transitions") is not None:
        edges = _explicit_edges(descriptor)
    else:
        edges = _default_edges(descriptor, finals, cancel_sink, refund_sink)

    for name in names:
        if finals[name] and edges[name]:
            raise AmbiguousTerminalState(
                descriptor.name, name, "declared final but has outgoing transitions"
            )
        if not finals[name] and not edges[name]:
            raise AmbiguousTerminalState(
                descriptor.name, name, "has no outgoing transitions and is not marked final"
            )

    return TransitionGraph(
        nodes=tuple(names),
        edges={n: tuple(edges[n]) for n in names},
        terminal=frozenset(n for n in names if finals[n]),
        cancellation_sink=cancel_sink,
        refund_sink=refund_sink,
    )


class StateMachineGenerator(PatternGenerator):
    """Generate transition checks and string conversion for status enums."""

    @property
    def name(self) -> str:
        return "state_machine"

    @property
    def description(self) -> str:
        return "Status state machine: transitions, finality, cancel/refund checks, string round trip"

    @property
    def supported_kinds(self) -> frozenset[TypeKind]:
        return frozenset({TypeKind.ENUM})

    def generate(self, descriptor: TypeDescriptor, rules: RuleTables) -> Artifact:
        if descriptor.kind is not TypeKind.ENUM:
            raise SpecError("state machines can only be generated for enums", descriptor.name)

        graph = resolve_graph(descriptor, rules.transitions)
        type_name = descriptor.name

        canonical: dict[str, str] = {}
        by_canonical: dict[str, str] = {}
        for name in graph.nodes:
            text = snake_case(name)
            if text in by_canonical:
                raise SpecError(
                    f"variants '{by_canonical[text]}' and '{name}' share canonical name '{text}'",
                    type_name,
                )
            canonical[name] = text
            by_canonical[text] = name

        edge_sets = {n: frozenset(graph.outgoing(n)) for n in graph.nodes}
        cancel_sink = graph.cancellation_sink
        refund_sink = graph.refund_sink

        def _target_name(target: Any) -> str | None:
            if isinstance(target, Enum):
                return target.name
            if isinstance(target, str):
                return by_canonical.get(target, target if target in canonical else None)
            return None

        def can_transition_to(self, target) -> bool:
            """True iff the resolved graph has an edge from this status to *target*."""
            return _target_name(target) in edge_sets[self.name]

        def is_final_status(self) -> bool:
            """True iff this status has no outgoing transitions."""
            return not edge_sets[self.name]

        def can_be_cancelled(self) -> bool:
            """True iff this status is not final and can move to the cancellation sink."""
            return bool(edge_sets[self.name]) and cancel_sink in edge_sets[self.name]

        def can_be_refunded(self) -> bool:
            """True iff this status is not final and can move to the refund sink."""
            return bool(edge_sets[self.name]) and refund_sink in edge_sets[self.name]

        def allowed_transitions(self) -> tuple:
            """Statuses reachable in one step, in declaration order."""
            return tuple(type(self)[n] for n in graph.outgoing(self.name))

        def to_str(self) -> str:
            """Canonical snake_case name of this status."""
            return canonical[self.name]

        def parse(cls, text):
            """Status for a canonical name (case-sensitive).

            Raises UnknownVariant for unrecognised input.
            """
            name = by_canonical.get(text) if isinstance(text, str) else None
            if name is None:
                raise UnknownVariant(type_name, str(text))
            return cls[name]

        def try_parse(cls, text):
            """Like ``parse`` but returns None for unrecognised input."""
            name = by_canonical.get(text) if isinstance(text, str) else None
            return cls[name] if name is not None else None

        members = [
            method(can_transition_to),
            method(is_final_status),
            method(can_be_cancelled),
            method(can_be_refunded),
            method(allowed_transitions),
            method(to_str),
            class_method(parse),
            class_method(try_parse),
        ]

        source = "explicit" if descriptor.attribute("transitions") is not None else "default"
        body = {
            "graph_source": source,
            "topology_version": rules.transitions.version,
            "variants": [
                {"name": n, "canonical": canonical[n], "final": n in graph.terminal}
                for n in graph.nodes
            ],
            "edges": {n: list(graph.outgoing(n)) for n in graph.nodes},
            "cancellation_sink": cancel_sink,
            "refund_sink": refund_sink,
        }
        logger.debug(
            "Resolved %s transition graph for %s: %d edges",
            source, type_name, len(graph.edge_list()),
        )
        return self._artifact(descriptor, members, body=body)
