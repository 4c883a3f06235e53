"""Flow graph model and saved-flow loader."""
from __future__ import annotations

from deckflow.graph.schema import (
    LOWERED_KINDS,
    CertificateNode,
    ConsumerNode,
    Edge,
    FlowNode,
    Graph,
    NodeKind,
    PluginNode,
    RouteNode,
    ServiceNode,
    SniNode,
    TargetNode,
    UpstreamNode,
    build_node,
    edge_id,
)
from deckflow.graph.loader import flow_to_dict, load_flow, load_flow_file

__all__ = [
    "LOWERED_KINDS",
    "CertificateNode",
    "ConsumerNode",
    "Edge",
    "FlowNode",
    "Graph",
    "NodeKind",
    "PluginNode",
    "RouteNode",
    "ServiceNode",
    "SniNode",
    "TargetNode",
    "UpstreamNode",
    "build_node",
    "edge_id",
    "flow_to_dict",
    "load_flow",
    "load_flow_file",
]
