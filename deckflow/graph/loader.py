"""Saved flow → typed ``Graph``.

This is the boundary where the editor's loosely typed flow document
becomes a ``Graph``.  Two node shapes are accepted:

- editor shape: ``{"id", "data": {"type", "label", "config"}}``
- native shape: ``{"id", "kind", "attributes"}``

and edges may name their anchors ``sourceHandle``/``targetHandle`` or
``source_anchor``/``target_anchor``.

Attribute keys the node kind does not define are dropped with a
warning.  Unknown kinds, self-loops, duplicate node ids and attribute
values of the wrong type raise ``FlowLoadError``.  A repeated
(source, target) pair keeps its first edge only.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from deckflow.exceptions import FlowLoadError, UnknownNodeKindError
from deckflow.graph.schema import Edge, FlowNode, Graph, NodeKind, attributes_model, build_node

log = logging.getLogger(__name__)


def _split_node(raw: Any, position: int) -> tuple[str, Any, dict[str, Any]]:
    if not isinstance(raw, Mapping):
        raise FlowLoadError(f"node #{position} is not a mapping")
    node_id = raw.get("id")
    if not isinstance(node_id, str) or not node_id:
        raise FlowLoadError(f"node #{position} has no id")

    data = raw.get("data")
    if isinstance(data, Mapping):
        kind = data.get("type", raw.get("type"))
        attributes = data.get("config") or {}
    else:
        kind = raw.get("kind", raw.get("type"))
        attributes = raw.get("attributes") or {}

    if not isinstance(attributes, Mapping):
        raise FlowLoadError(f"node {node_id!r} attributes are not a mapping")
    return node_id, kind, dict(attributes)


def load_node(raw: Any, position: int = 0) -> FlowNode:
    node_id, kind, attributes = _split_node(raw, position)
    try:
        node_kind = NodeKind(kind)
    except ValueError:
        raise UnknownNodeKindError(kind, node_id) from None

    known = attributes_model(node_kind).model_fields
    dropped = sorted(k for k in attributes if k not in known)
    if dropped:
        log.warning("Dropping unsupported %s attribute(s) on node %r: %s",
                    node_kind, node_id, ", ".join(dropped))
    kept = {k: v for k, v in attributes.items() if k in known and v is not None}

    try:
        return build_node(node_kind, node_id, kept)
    except ValidationError as exc:
        raise FlowLoadError(f"node {node_id!r}: {exc}") from exc


def load_edge(raw: Any, position: int = 0) -> Edge:
    if not isinstance(raw, Mapping):
        raise FlowLoadError(f"edge #{position} is not a mapping")
    try:
        return Edge(
            source=raw.get("source"),
            target=raw.get("target"),
            source_anchor=raw.get("source_anchor", raw.get("sourceHandle")),
            target_anchor=raw.get("target_anchor", raw.get("targetHandle")),
        )
    except ValidationError as exc:
        raise FlowLoadError(f"edge #{position}: {exc}") from exc


def load_flow(data: Mapping[str, Any]) -> Graph:
    """Build a ``Graph`` from a saved flow mapping."""
    if not isinstance(data, Mapping):
        raise FlowLoadError("flow document is not a mapping")

    nodes = [load_node(raw, i) for i, raw in enumerate(data.get("nodes") or [])]

    edges: list[Edge] = []
    seen: set[tuple[str, str]] = set()
    for i, raw in enumerate(data.get("edges") or []):
        edge = load_edge(raw, i)
        pair = (edge.source, edge.target)
        if pair in seen:
            log.warning("Dropping duplicate connection %s -> %s", edge.source, edge.target)
            continue
        seen.add(pair)
        edges.append(edge)

    try:
        graph = Graph(nodes=nodes, edges=edges)
    except ValidationError as exc:
        raise FlowLoadError(str(exc)) from exc
    log.debug("Loaded flow with %d node(s) and %d edge(s)", graph.node_count, graph.edge_count)
    return graph


def load_flow_file(path: Path | str) -> Graph:
    """Read a saved flow from a ``.json``, ``.yaml`` or ``.yml`` file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FlowLoadError(f"cannot read {path}: {exc.strerror or exc}") from exc

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise FlowLoadError(f"{path.name} is not well-formed: {exc}") from exc
    return load_flow(data)


def flow_to_dict(graph: Graph) -> dict[str, Any]:
    """Native-shape mapping of *graph*; ``load_flow`` reads it back."""
    return {
        "nodes": [
            {
                "id": node.id,
                "kind": node.kind,
                "attributes": node.attributes.model_dump(mode="json", exclude_none=True),
            }
            for node in graph.nodes
        ],
        "edges": [edge.model_dump(mode="json", exclude_none=True) for edge in graph.edges],
    }
