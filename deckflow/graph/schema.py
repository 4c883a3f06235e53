"""Pydantic v2 schema for flow graphs.

A flow is the editor's in-memory picture of a Kong configuration under
construction: typed nodes placed on a canvas and directed edges between
them.  Each node kind is its own model with a strongly typed attribute
set, and ``FlowNode`` is the union discriminated on ``kind``.  Attribute
models forbid unknown keys; the saved-flow loader drops those at the
boundary so nothing untyped reaches the compiler.

Nodes and edges are frozen.  Changing a node's attributes means building
a new node with the same id; changing its kind means deleting it and
creating another.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

# ── Enumerations ─────────────────────────────────────


class NodeKind(StrEnum):
    """Closed set of node kinds the editor can place."""
    SERVICE = "service"
    ROUTE = "route"
    PLUGIN = "plugin"
    CONSUMER = "consumer"
    UPSTREAM = "upstream"
    # Modelled but not lowered into the document
    TARGET = "target"
    CERTIFICATE = "certificate"
    SNI = "sni"


LOWERED_KINDS: frozenset[NodeKind] = frozenset({
    NodeKind.SERVICE,
    NodeKind.ROUTE,
    NodeKind.PLUGIN,
    NodeKind.CONSUMER,
    NodeKind.UPSTREAM,
})


# ── Attribute models ─────────────────────────────────


class _Attributes(BaseModel):
    model_config = {"extra": "forbid", "frozen": True}


class ServiceAttributes(_Attributes):
    """An upstream API the gateway proxies to."""
    name: str | None = None
    protocol: str | None = None
    host: str | None = None
    port: int | None = None
    path: str | None = None
    retries: int | None = None
    connect_timeout: int | None = None
    write_timeout: int | None = None
    read_timeout: int | None = None


class RouteAttributes(_Attributes):
    """Request-matching rules that forward to a service."""
    name: str | None = None
    protocols: list[str] | None = None
    methods: list[str] | None = None
    paths: list[str] | None = None
    hosts: list[str] | None = None
    strip_path: bool | None = None
    preserve_host: bool | None = None


class PluginAttributes(_Attributes):
    """A plugin instance; ``config`` is the plugin's own open schema."""
    name: str | None = None
    enabled: bool | None = None
    config: dict[str, Any] | None = None


class ConsumerAttributes(_Attributes):
    username: str | None = None
    custom_id: str | None = None


class UpstreamAttributes(_Attributes):
    """A load-balancing virtual host."""
    name: str | None = None
    algorithm: str | None = None
    slots: int | None = None
    hash_on: str | None = None
    hash_fallback: str | None = None


class TargetAttributes(_Attributes):
    target: str | None = None
    weight: int | None = None


class CertificateAttributes(_Attributes):
    cert: str | None = None
    key: str | None = None


class SniAttributes(_Attributes):
    name: str | None = None


# ── Node models ──────────────────────────────────────


class _NodeBase(BaseModel):
    id: str = Field(min_length=1, description="Stable id assigned by the editor")

    model_config = {"frozen": True}

    @property
    def display_name(self) -> str:
        """Configured name, falling back to the node id."""
        name = getattr(self.attributes, "name", None)  # type: ignore[attr-defined]
        return name or self.id


class ServiceNode(_NodeBase):
    kind: Literal["service"] = "service"
    attributes: ServiceAttributes = Field(default_factory=ServiceAttributes)


class RouteNode(_NodeBase):
    kind: Literal["route"] = "route"
    attributes: RouteAttributes = Field(default_factory=RouteAttributes)


class PluginNode(_NodeBase):
    kind: Literal["plugin"] = "plugin"
    attributes: PluginAttributes = Field(default_factory=PluginAttributes)


class ConsumerNode(_NodeBase):
    kind: Literal["consumer"] = "consumer"
    attributes: ConsumerAttributes = Field(default_factory=ConsumerAttributes)


class UpstreamNode(_NodeBase):
    kind: Literal["upstream"] = "upstream"
    attributes: UpstreamAttributes = Field(default_factory=UpstreamAttributes)


class TargetNode(_NodeBase):
    kind: Literal["target"] = "target"
    attributes: TargetAttributes = Field(default_factory=TargetAttributes)


class CertificateNode(_NodeBase):
    kind: Literal["certificate"] = "certificate"
    attributes: CertificateAttributes = Field(default_factory=CertificateAttributes)


class SniNode(_NodeBase):
    kind: Literal["sni"] = "sni"
    attributes: SniAttributes = Field(default_factory=SniAttributes)


FlowNode = Annotated[
    Union[
        ServiceNode,
        RouteNode,
        PluginNode,
        ConsumerNode,
        UpstreamNode,
        TargetNode,
        CertificateNode,
        SniNode,
    ],
    Field(discriminator="kind"),
]

NODE_TYPES: dict[NodeKind, type[_NodeBase]] = {
    NodeKind.SERVICE: ServiceNode,
    NodeKind.ROUTE: RouteNode,
    NodeKind.PLUGIN: PluginNode,
    NodeKind.CONSUMER: ConsumerNode,
    NodeKind.UPSTREAM: UpstreamNode,
    NodeKind.TARGET: TargetNode,
    NodeKind.CERTIFICATE: CertificateNode,
    NodeKind.SNI: SniNode,
}

_NODE_ADAPTER: TypeAdapter[FlowNode] = TypeAdapter(FlowNode)


def attributes_model(kind: NodeKind | str) -> type[_Attributes]:
    """Return the attribute model class for a node kind."""
    node_cls = NODE_TYPES[NodeKind(kind)]
    return node_cls.model_fields["attributes"].annotation  # type: ignore[return-value]


def build_node(
    kind: NodeKind | str,
    node_id: str,
    attributes: BaseModel | dict[str, Any] | None = None,
) -> FlowNode:
    """Construct the node variant for *kind*.

    Raises ``ValueError`` for a kind outside ``NodeKind`` and pydantic's
    ``ValidationError`` for attributes that do not fit the kind.
    """
    if isinstance(attributes, BaseModel):
        attributes = attributes.model_dump(exclude_none=True)
    return _NODE_ADAPTER.validate_python({
        "kind": NodeKind(kind).value,
        "id": node_id,
        "attributes": attributes or {},
    })


# ── Edge model ───────────────────────────────────────


def edge_id(
    source: str,
    target: str,
    source_anchor: str | None = None,
    target_anchor: str | None = None,
) -> str:
    """Deterministic edge id; structurally identical connections collide."""
    return f"{source}-{source_anchor or 'default'}-{target}-{target_anchor or 'default'}"


class Edge(BaseModel):
    """A directed connection between two nodes.

    Anchors identify which visual handle was used; they carry no meaning
    for lowering.
    """
    id: str = Field(default="", description="Derived from endpoints and anchors when omitted")
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    source_anchor: str | None = None
    target_anchor: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _derive_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id"):
            data = dict(data)
            data["id"] = edge_id(
                str(data.get("source", "")),
                str(data.get("target", "")),
                data.get("source_anchor"),
                data.get("target_anchor"),
            )
        return data

    @model_validator(mode="after")
    def _no_self_loop(self) -> Edge:
        if self.source == self.target:
            raise ValueError(f"edge {self.id!r} connects node {self.source!r} to itself")
        return self


# ── Graph ────────────────────────────────────────────


class Graph(BaseModel):
    """Ordered nodes and edges of one flow."""
    nodes: list[FlowNode] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("nodes")
    @classmethod
    def _unique_node_ids(cls, nodes: list[FlowNode]) -> list[FlowNode]:
        seen: set[str] = set()
        for node in nodes:
            if node.id in seen:
                raise ValueError(f"duplicate node id {node.id!r}")
            seen.add(node.id)
        return nodes

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def node_index(self) -> dict[str, FlowNode]:
        return {node.id: node for node in self.nodes}

    def get_node(self, node_id: str) -> FlowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def outgoing(self, node_id: str) -> list[Edge]:
        """Edges leaving *node_id*, in graph order."""
        return [e for e in self.edges if e.source == node_id]

    def nodes_of_kind(self, kind: NodeKind) -> list[FlowNode]:
        return [n for n in self.nodes if n.kind == kind]
