"""Lowering: flow nodes → decK document entries.

Each node kind lowers independently.  Edges are consulted only to
resolve references, through an id index built once per call:

- service  → one ``ServiceEntry``
- route    → one ``RouteEntry``, referencing the service it forwards to
- plugin   → one global ``PluginEntry`` when it has no outgoing edges,
  otherwise one scoped entry per outgoing edge (fan-out)
- consumer → one ``ConsumerEntry``
- upstream → one ``UpstreamEntry``
- target / certificate / sni → nothing

Entries follow input node order within each section.
"""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass

from deckflow.compiler.document import (
    ConfigDocument,
    ConsumerEntry,
    PluginEntry,
    RouteEntry,
    ServiceEntry,
    UpstreamEntry,
)
from deckflow.config import DeckflowSettings
from deckflow.graph.schema import (
    LOWERED_KINDS,
    ConsumerNode,
    Edge,
    FlowNode,
    NodeKind,
    PluginNode,
    RouteNode,
    ServiceNode,
    UpstreamNode,
)
from deckflow.sanitize import validate_identifier

log = logging.getLogger(__name__)


@dataclass(slots=True)
class FlowIndex:
    """Per-call lookup tables over one flow."""
    nodes: dict[str, FlowNode]
    outgoing: dict[str, list[Edge]]

    @classmethod
    def build(cls, nodes: Sequence[FlowNode], edges: Sequence[Edge]) -> FlowIndex:
        outgoing: dict[str, list[Edge]] = defaultdict(list)
        for edge in edges:
            outgoing[edge.source].append(edge)
        return cls(nodes={n.id: n for n in nodes}, outgoing=dict(outgoing))

    def edges_from(self, node_id: str) -> list[Edge]:
        return self.outgoing.get(node_id, [])

    def kind_of(self, node_id: str) -> NodeKind | None:
        node = self.nodes.get(node_id)
        return NodeKind(node.kind) if node is not None else None


# ── Per-kind lowering ────────────────────────────────


def lower_service(node: ServiceNode, settings: DeckflowSettings) -> ServiceEntry:
    attrs = node.attributes
    name = validate_identifier(
        attrs.name or node.id, "Service name", settings.identifier_max_length,
    )
    return ServiceEntry(
        name=name,
        protocol=attrs.protocol or settings.default_protocol,
        host=attrs.host or settings.placeholder_host,
        port=attrs.port or settings.default_service_port,
        path=attrs.path or None,
        retries=attrs.retries,
        connect_timeout=attrs.connect_timeout,
        write_timeout=attrs.write_timeout,
        read_timeout=attrs.read_timeout,
    )


def _route_service_ref(node: RouteNode, index: FlowIndex, settings: DeckflowSettings) -> str | None:
    edges = index.edges_from(node.id)
    if not edges:
        return None
    edge = next(
        (e for e in edges if index.kind_of(e.target) == NodeKind.SERVICE),
        edges[0],
    )
    if settings.route_reference == "name":
        target = index.nodes.get(edge.target)
        if target is not None:
            return target.display_name
    return edge.target


def lower_route(node: RouteNode, index: FlowIndex, settings: DeckflowSettings) -> RouteEntry:
    attrs = node.attributes
    name = validate_identifier(
        attrs.name or node.id, "Route name", settings.identifier_max_length,
    )
    paths = [p for p in attrs.paths if p.strip()] if attrs.paths else None
    return RouteEntry(
        name=name,
        service=_route_service_ref(node, index, settings),
        protocols=attrs.protocols or None,
        methods=attrs.methods or None,
        paths=paths or None,
        hosts=attrs.hosts or None,
        strip_path=attrs.strip_path,
        preserve_host=attrs.preserve_host,
    )


def _plugin_scope(target: FlowNode) -> dict[str, str]:
    if target.kind == NodeKind.SERVICE:
        return {"service": target.attributes.name or target.id}
    if target.kind == NodeKind.ROUTE:
        return {"route": target.attributes.name or target.id}
    if target.kind == NodeKind.CONSUMER:
        return {"consumer": target.attributes.username or target.id}
    log.debug("Plugin wired to %s node %r; emitting unscoped instance", target.kind, target.id)
    return {}


def lower_plugin(node: PluginNode, index: FlowIndex, settings: DeckflowSettings) -> list[PluginEntry]:
    """One entry per outgoing edge, or a single global entry with none."""
    attrs = node.attributes
    name = attrs.name or settings.default_plugin_name
    enabled = True if attrs.enabled is None else attrs.enabled
    config = attrs.config or None

    edges = index.edges_from(node.id)
    if not edges:
        return [PluginEntry(name=name, enabled=enabled, config=copy.deepcopy(config))]

    entries: list[PluginEntry] = []
    for edge in edges:
        target = index.nodes.get(edge.target)
        if target is None:
            log.debug("Skipping dangling edge %r from plugin %r", edge.id, node.id)
            continue
        entries.append(PluginEntry(
            name=name,
            enabled=enabled,
            config=copy.deepcopy(config),
            **_plugin_scope(target),
        ))
    return entries


def lower_consumer(node: ConsumerNode) -> ConsumerEntry:
    attrs = node.attributes
    username = attrs.username or None
    custom_id = attrs.custom_id or None
    if username is None and custom_id is None:
        username = node.id
    return ConsumerEntry(username=username, custom_id=custom_id)


def lower_upstream(node: UpstreamNode) -> UpstreamEntry:
    attrs = node.attributes
    return UpstreamEntry(
        name=attrs.name or node.id,
        algorithm=attrs.algorithm or None,
        slots=attrs.slots,
        hash_on=attrs.hash_on or None,
        hash_fallback=attrs.hash_fallback or None,
    )


# ── Whole flow ───────────────────────────────────────


def lower_graph(
    nodes: Sequence[FlowNode],
    edges: Sequence[Edge],
    settings: DeckflowSettings,
) -> ConfigDocument:
    """Lower every node; does not validate the flow first."""
    index = FlowIndex.build(nodes, edges)

    services: list[ServiceEntry] = []
    routes: list[RouteEntry] = []
    plugins: list[PluginEntry] = []
    consumers: list[ConsumerEntry] = []
    upstreams: list[UpstreamEntry] = []

    for node in nodes:
        if node.kind not in LOWERED_KINDS:
            log.debug("Node %r of kind %s is not lowered", node.id, node.kind)
            continue
        if isinstance(node, ServiceNode):
            services.append(lower_service(node, settings))
        elif isinstance(node, RouteNode):
            routes.append(lower_route(node, index, settings))
        elif isinstance(node, PluginNode):
            plugins.extend(lower_plugin(node, index, settings))
        elif isinstance(node, ConsumerNode):
            consumers.append(lower_consumer(node))
        elif isinstance(node, UpstreamNode):
            upstreams.append(lower_upstream(node))

    log.debug(
        "Lowered %d node(s): %d service(s), %d route(s), %d plugin instance(s), "
        "%d consumer(s), %d upstream(s)",
        len(nodes), len(services), len(routes), len(plugins), len(consumers), len(upstreams),
    )
    return ConfigDocument(
        format_version=settings.format_version,
        services=services,
        routes=routes,
        plugins=plugins,
        consumers=consumers,
        upstreams=upstreams,
    )
