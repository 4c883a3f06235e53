"""In-memory editing surface for one flow.

``FlowEditor`` owns the nodes and edges of a single editing session and
is the only place node ids are minted.  Id generation is injected so the
editor (and tests) decide the scheme; the default yields ``service-1``,
``route-2`` and so on.  Every ``connect`` is gated by ``validate_edge``,
and deleting a node deletes the edges attached to it.

The editor is a single-writer object: it does no locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel

from deckflow.catalog import default_attributes
from deckflow.exceptions import IdGenerationError, NodeNotFoundError
from deckflow.graph.schema import Edge, FlowNode, Graph, NodeKind, build_node
from deckflow.validation.connection import ValidationResult, validate_edge

log = logging.getLogger(__name__)

IdGenerator = Callable[[NodeKind], str]


class CounterIdGenerator:
    """Yields ``"<kind>-<n>"`` with one counter shared across kinds."""

    __slots__ = ("_next", "_start")

    def __init__(self, start: int = 1) -> None:
        self._start = start
        self._next = start

    def __call__(self, kind: NodeKind) -> str:
        node_id = f"{kind}-{self._next}"
        self._next += 1
        return node_id

    def reset(self) -> None:
        self._next = self._start


def _as_dict(attributes: BaseModel | Mapping[str, Any] | None) -> dict[str, Any]:
    if attributes is None:
        return {}
    if isinstance(attributes, BaseModel):
        return attributes.model_dump(exclude_none=True)
    return dict(attributes)


class FlowEditor:
    """Mutable owner of a flow's nodes and edges."""

    def __init__(
        self,
        id_generator: IdGenerator | None = None,
        graph: Graph | None = None,
    ) -> None:
        self._id_generator: IdGenerator = id_generator or CounterIdGenerator()
        self._nodes: list[FlowNode] = []
        self._edges: list[Edge] = []
        if graph is not None:
            self.load(graph)

    # ── snapshots ────────────────────────────────────

    @property
    def graph(self) -> Graph:
        """Immutable snapshot of the current flow."""
        return Graph(nodes=list(self._nodes), edges=list(self._edges))

    @property
    def nodes(self) -> list[FlowNode]:
        return list(self._nodes)

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges)

    def get_node(self, node_id: str) -> FlowNode:
        for node in self._nodes:
            if node.id == node_id:
                return node
        raise NodeNotFoundError(node_id)

    def _find(self, node_id: str) -> FlowNode | None:
        return next((n for n in self._nodes if n.id == node_id), None)

    def _next_id(self, kind: NodeKind) -> str:
        # A generator of distinct ids finds a free one within len(taken) + 1 calls
        taken = {n.id for n in self._nodes}
        attempts = len(taken) + 1
        for _ in range(attempts):
            node_id = self._id_generator(kind)
            if node_id not in taken:
                return node_id
        raise IdGenerationError(kind, attempts)

    # ── nodes ────────────────────────────────────────

    def add_node(
        self,
        kind: NodeKind | str,
        attributes: BaseModel | Mapping[str, Any] | None = None,
        *,
        with_defaults: bool = True,
        plugin_name: str | None = None,
    ) -> FlowNode:
        """Place a new node; *attributes* override the kind's defaults."""
        kind = NodeKind(kind)
        attrs = default_attributes(kind, plugin_name) if with_defaults else {}
        attrs.update(_as_dict(attributes))
        node = build_node(kind, self._next_id(kind), attrs)
        self._nodes.append(node)
        log.debug("Added %s node %r", kind, node.id)
        return node

    def update_node(self, node_id: str, attributes: BaseModel | Mapping[str, Any]) -> FlowNode:
        """Merge *attributes* into a node's attributes; kind and id are kept."""
        current = self.get_node(node_id)
        merged = current.attributes.model_dump(exclude_none=True)
        merged.update(_as_dict(attributes))
        updated = build_node(current.kind, node_id, merged)
        self._nodes = [updated if n.id == node_id else n for n in self._nodes]
        return updated

    def delete_node(self, node_id: str) -> None:
        """Remove a node and every edge touching it."""
        self.get_node(node_id)
        self._nodes = [n for n in self._nodes if n.id != node_id]
        before = len(self._edges)
        self._edges = [e for e in self._edges if e.source != node_id and e.target != node_id]
        log.debug("Deleted node %r and %d edge(s)", node_id, before - len(self._edges))

    # ── edges ────────────────────────────────────────

    def connect(
        self,
        source_id: str,
        target_id: str,
        source_anchor: str | None = None,
        target_anchor: str | None = None,
    ) -> ValidationResult:
        """Add an edge if ``validate_edge`` allows it; return the decision."""
        result = validate_edge(
            self._find(source_id), self._find(target_id), self._edges, self._nodes,
        )
        if not result.valid:
            log.debug("Refused connection %s -> %s: %s", source_id, target_id, result.code)
            return result

        self._edges.append(Edge(
            source=source_id,
            target=target_id,
            source_anchor=source_anchor,
            target_anchor=target_anchor,
        ))
        return result

    def disconnect(self, edge_id: str) -> bool:
        """Remove an edge by id; returns False if no such edge."""
        before = len(self._edges)
        self._edges = [e for e in self._edges if e.id != edge_id]
        return len(self._edges) != before

    # ── whole flow ───────────────────────────────────

    def clear(self) -> None:
        self._nodes = []
        self._edges = []
        reset = getattr(self._id_generator, "reset", None)
        if callable(reset):
            reset()

    def load(self, graph: Graph) -> None:
        """Replace the current flow with *graph*."""
        self._nodes = list(graph.nodes)
        self._edges = list(graph.edges)
