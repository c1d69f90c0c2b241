"""Tests for the state-machine generator and transition-graph resolution."""

from __future__ import annotations

import pytest

from domaingen.errors import AmbiguousTerminalState, SpecError, UnknownVariant
from domaingen.generators.state_machine import StateMachineGenerator, resolve_graph
from domaingen.parsing import parse
from domaingen.quality.fixtures import ORDER_STATUS_SPEC, PAYMENT_STATUS_SPEC


@pytest.fixture
def order_status(engine):
    return engine.generate(ORDER_STATUS_SPEC).generated_type


def _enum(*variants, **attributes):
    return parse({"name": "Status", "kind": "enum", "variants": list(variants), "attributes": attributes})


# ── Order status scenario ────────────────────────────────────────────────────

class TestOrderStatusScenario:

    def test_generated_type_is_an_enum(self, order_status):
        assert [s.name for s in order_status] == [
            "Pending", "Paid", "Shipped", "Delivered", "Cancelled", "Refunded",
        ]
        assert order_status.Pending.value == "Pending"

    def test_cancellation(self, order_status):
        assert order_status.Pending.can_be_cancelled() is True
        assert order_status.Shipped.can_be_cancelled() is False
        assert order_status.Cancelled.can_be_cancelled() is False

    def test_refund(self, order_status):
        assert order_status.Paid.can_be_refunded() is True
        assert order_status.Pending.can_be_refunded() is False
        assert order_status.Refunded.can_be_refunded() is False

    def test_finality(self, order_status):
        assert order_status.Delivered.is_final_status() is True
        assert order_status.Pending.is_final_status() is False

    def test_finality_matches_edges(self, order_status):
        for status in order_status:
            assert status.is_final_status() == (len(status.allowed_transitions()) == 0)

    def test_transitions_follow_declared_edges(self, order_status):
        edges = ORDER_STATUS_SPEC["attributes"]["transitions"]
        for source in order_status:
            for target in order_status:
                expected = target.name in edges.get(source.name, [])
                assert source.can_transition_to(target) is expected

    def test_transition_target_forms(self, order_status):
        assert order_status.Pending.can_transition_to("paid")
        assert order_status.Pending.can_transition_to("Paid")
        assert not order_status.Pending.can_transition_to("shipped")
        assert not order_status.Pending.can_transition_to("unknown")
        assert not order_status.Pending.can_transition_to(42)

    def test_allowed_transitions_in_declaration_order(self, order_status):
        assert order_status.Pending.allowed_transitions() == (order_status.Paid, order_status.Cancelled)


# ── String round trip ────────────────────────────────────────────────────────

class TestStringRoundTrip:

    def test_to_str_is_snake_case(self, order_status):
        assert order_status.Pending.to_str() == "pending"

    def test_round_trip_every_variant(self, order_status):
        for status in order_status:
            assert order_status.parse(status.to_str()) is status

    def test_parse_is_case_sensitive(self, order_status):
        with pytest.raises(UnknownVariant, match="Invalid OrderStatus: 'Pending'"):
            order_status.parse("Pending")

    def test_unknown_variant_is_a_value_error(self, order_status):
        with pytest.raises(ValueError):
            order_status.parse("lost")

    def test_try_parse(self, order_status):
        assert order_status.try_parse("paid") is order_status.Paid
        assert order_status.try_parse("lost") is None
        assert order_status.try_parse(None) is None

    def test_multi_word_variant(self, engine):
        spec = {
            "name": "DeliveryStatus",
            "kind": "enum",
            "variants": ["OutForDelivery", {"name": "Delivered", "final": True}],
        }
        status = engine.generate(spec).generated_type
        assert status.OutForDelivery.to_str() == "out_for_delivery"
        assert status.parse("out_for_delivery") is status.OutForDelivery


# ── Default topology ─────────────────────────────────────────────────────────

class TestDefaultTopology:

    def test_linear_chain_with_sinks(self, rules):
        graph = resolve_graph(parse(PAYMENT_STATUS_SPEC), rules.transitions)
        assert graph.outgoing("Pending") == ("Processing", "Cancelled", "Refunded")
        assert graph.outgoing("Processing") == ("Approved", "Cancelled", "Refunded")
        assert graph.terminal == frozenset({"Approved", "Cancelled", "Refunded"})
        assert graph.cancellation_sink == "Cancelled"
        assert graph.refund_sink == "Refunded"
        with pytest.raises(TypeError):
            graph.edges["Approved"] = ("Pending",)

    def test_finality_from_topology_names(self, rules):
        graph = resolve_graph(_enum("Pending", "Delivered", "Cancelled"), rules.transitions)
        assert graph.outgoing("Pending") == ("Delivered", "Cancelled")
        assert graph.terminal == frozenset({"Delivered", "Cancelled"})

    def test_variant_can_opt_out_of_cancellation(self, rules):
        descriptor = _enum(
            "Pending",
            {"name": "Shipped", "cancellable": False},
            "Delivered",
            "Cancelled",
        )
        graph = resolve_graph(descriptor, rules.transitions)
        assert graph.outgoing("Pending") == ("Shipped", "Cancelled")
        assert graph.outgoing("Shipped") == ("Delivered",)

    def test_explicit_final_flag_overrides_topology(self, rules):
        descriptor = _enum("Open", {"name": "Delivered", "final": False}, {"name": "Closed", "final": True})
        graph = resolve_graph(descriptor, rules.transitions)
        assert graph.edge_list() == [("Open", "Delivered"), ("Delivered", "Closed")]

    def test_body_records_graph_source(self, rules):
        artifact = StateMachineGenerator().generate(parse(PAYMENT_STATUS_SPEC), rules)
        assert artifact.body["graph_source"] == "default"
        assert artifact.body["edges"]["Approved"] == []


# ── Generation-time errors ───────────────────────────────────────────────────

class TestTopologyErrors:

    def test_non_final_without_edges(self, rules):
        descriptor = _enum("A", "B", transitions={"A": ["B"]})
        with pytest.raises(AmbiguousTerminalState) as exc:
            resolve_graph(descriptor, rules.transitions)
        assert exc.value.variant == "B"

    def test_final_with_edges(self, rules):
        descriptor = _enum(
            {"name": "Done", "final": True},
            "Start",
            transitions={"Start": ["Done"], "Done": ["Start"]},
        )
        with pytest.raises(AmbiguousTerminalState, match="Status.Done"):
            resolve_graph(descriptor, rules.transitions)

    def test_default_chain_without_any_final(self, rules):
        with pytest.raises(AmbiguousTerminalState):
            resolve_graph(_enum("A", "B"), rules.transitions)

    def test_unknown_target(self, rules):
        descriptor = _enum("A", {"name": "B", "final": True}, transitions={"A": ["C"]})
        with pytest.raises(SpecError, match="unknown target variant 'C'"):
            resolve_graph(descriptor, rules.transitions)

    def test_canonical_collision(self, rules):
        descriptor = _enum({"name": "HTTPError", "final": True}, {"name": "HttpError", "final": True})
        with pytest.raises(SpecError, match="share canonical name 'http_error'"):
            StateMachineGenerator().generate(descriptor, rules)

    def test_structs_are_rejected(self, rules):
        generator = StateMachineGenerator()
        descriptor = parse({"name": "Order", "fields": ["id"]})
        assert not generator.supports(descriptor)
        with pytest.raises(SpecError):
            generator.generate(descriptor, rules)
