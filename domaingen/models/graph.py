"""TransitionGraph — resolved state-machine topology for one enum."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from domaingen.models.frozen import ReadOnlyMap


class TransitionGraph(BaseModel):
    """Nodes are variant names; terminal nodes have no outgoing edges."""

    model_config = ConfigDict(frozen=True)

    nodes: tuple[str, ...]
    edges: ReadOnlyMap[str, tuple[str, ...]]
    terminal: frozenset[str] = frozenset()
    cancellation_sink: str | None = None
    refund_sink: str | None = None

    def outgoing(self, node: str) -> tuple[str, ...]:
        return self.edges.get(node, ())

    def has_edge(self, source: str, target: str) -> bool:
        return target in self.outgoing(source)

    def edge_list(self) -> list[tuple[str, str]]:
        """All edges in declaration order."""
        return [(s, t) for s in self.nodes for t in self.outgoing(s)]
