"""Connection validation: decide whether a proposed edge may be added.

Runs on every attempted connection in the editor, before the edge
exists.  Only structural problems block a connection:

- either endpoint is missing
- the edge would connect a node to itself
- an edge with the same (source, target) pair already exists

Kind pairings outside Kong's relationship table are allowed.  They are
logged and reported as warnings so the user is never blocked mid-edit;
hard requirements (a route needs a service) are enforced when the whole
graph is validated before compilation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from deckflow.graph.schema import Edge, FlowNode, NodeKind

log = logging.getLogger(__name__)


class ConnectionIssue(StrEnum):
    """Structural reasons an edge is refused."""
    INVALID_NODES = "invalid_nodes"
    SELF_CONNECTION = "self_connection"
    DUPLICATE_CONNECTION = "duplicate_connection"


@dataclass(slots=True)
class ValidationResult:
    """Outcome of an edge or graph check.

    Attributes:
        valid: Whether the check passed.
        errors: Blocking, human-readable messages in discovery order.
        warnings: Non-blocking notes.
        code: Structural issue code for a refused edge.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    code: ConnectionIssue | None = None

    @classmethod
    def success(cls, warnings: list[str] | None = None) -> ValidationResult:
        return cls(valid=True, warnings=list(warnings or []))

    @classmethod
    def failure(cls, *errors: str, code: ConnectionIssue | None = None) -> ValidationResult:
        return cls(valid=False, errors=list(errors), code=code)

    @classmethod
    def from_errors(cls, errors: list[str]) -> ValidationResult:
        return cls(valid=not errors, errors=list(errors))


# ── Kong relationship table ──────────────────────────


@dataclass(slots=True, frozen=True)
class Relationship:
    targets: tuple[NodeKind, ...]
    description: str


KONG_RELATIONSHIPS: dict[NodeKind, Relationship] = {
    NodeKind.ROUTE: Relationship(
        (NodeKind.SERVICE,),
        "Routes match incoming requests and forward them to a Service",
    ),
    NodeKind.SERVICE: Relationship(
        (NodeKind.UPSTREAM,),
        "Services represent upstream APIs. Can optionally point to an Upstream for load balancing",
    ),
    NodeKind.PLUGIN: Relationship(
        (NodeKind.SERVICE, NodeKind.ROUTE, NodeKind.CONSUMER),
        "Plugins can be scoped to Services, Routes, or Consumers",
    ),
    NodeKind.UPSTREAM: Relationship(
        (NodeKind.TARGET,),
        "Upstreams contain Targets for load balancing",
    ),
    NodeKind.CONSUMER: Relationship((), "Consumers represent API users/applications"),
    NodeKind.TARGET: Relationship((), "Targets are backend service instances within an Upstream"),
    NodeKind.CERTIFICATE: Relationship((), "Certificates for TLS/SSL"),
    NodeKind.SNI: Relationship((NodeKind.CERTIFICATE,), "SNI entities connect to Certificates"),
}

_CONNECTION_LABELS: dict[tuple[NodeKind, NodeKind], str] = {
    (NodeKind.ROUTE, NodeKind.SERVICE): "forwards to",
    (NodeKind.PLUGIN, NodeKind.SERVICE): "applies to",
    (NodeKind.PLUGIN, NodeKind.ROUTE): "applies to",
    (NodeKind.PLUGIN, NodeKind.CONSUMER): "applies to",
    (NodeKind.SERVICE, NodeKind.UPSTREAM): "load balances via",
    (NodeKind.UPSTREAM, NodeKind.TARGET): "includes",
    (NodeKind.SNI, NodeKind.CERTIFICATE): "uses",
}


def connection_label(source_kind: NodeKind | str, target_kind: NodeKind | str) -> str:
    """Edge caption for a kind pairing."""
    return _CONNECTION_LABELS.get((NodeKind(source_kind), NodeKind(target_kind)), "connects to")


def recommended_targets(source_kind: NodeKind | str) -> list[NodeKind]:
    rel = KONG_RELATIONSHIPS.get(NodeKind(source_kind))
    return list(rel.targets) if rel else []


def relationship_description(source_kind: NodeKind | str) -> str:
    rel = KONG_RELATIONSHIPS.get(NodeKind(source_kind))
    return rel.description if rel else ""


def is_standard_pairing(source_kind: NodeKind | str, target_kind: NodeKind | str) -> bool:
    """True unless Kong lists targets for *source_kind* and *target_kind* is not one."""
    targets = recommended_targets(source_kind)
    return not targets or NodeKind(target_kind) in targets


def connection_exists(edges: Iterable[Edge], source: str, target: str) -> bool:
    """True if any edge already joins *source* to *target*, whatever its anchors."""
    return any(e.source == source and e.target == target for e in edges)


# ── Validator ────────────────────────────────────────


def validate_edge(
    source: FlowNode | None,
    target: FlowNode | None,
    existing_edges: Iterable[Edge] = (),
    all_nodes: Sequence[FlowNode] = (),
) -> ValidationResult:
    """Decide whether an edge from *source* to *target* may be created.

    *all_nodes* is accepted for parity with the editor's call site; the
    structural checks only need the two endpoints and the existing edges.
    """
    if source is None or target is None:
        return ValidationResult.failure("Invalid nodes", code=ConnectionIssue.INVALID_NODES)

    if source.id == target.id:
        return ValidationResult.failure(
            "Cannot connect a node to itself",
            code=ConnectionIssue.SELF_CONNECTION,
        )

    if connection_exists(existing_edges, source.id, target.id):
        return ValidationResult.failure(
            "This connection already exists",
            code=ConnectionIssue.DUPLICATE_CONNECTION,
        )

    warnings: list[str] = []
    if not is_standard_pairing(source.kind, target.kind):
        note = f"{source.kind} → {target.kind} is not a standard Kong relationship"
        log.info("Allowing non-standard connection %s -> %s: %s", source.id, target.id, note)
        warnings.append(note)

    return ValidationResult.success(warnings)
