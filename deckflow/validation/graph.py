"""Whole-graph validation, run before a flow is compiled.

Every node is checked against the rules for its kind and all violations
are collected, so the editor can show the complete list at once.  An
empty flow short-circuits with a single message.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence

from deckflow.config import DeckflowSettings, get_settings
from deckflow.graph.schema import (
    ConsumerNode,
    Edge,
    FlowNode,
    NodeKind,
    RouteNode,
    ServiceNode,
)
from deckflow.sanitize import identifier_problem
from deckflow.validation.connection import ValidationResult

log = logging.getLogger(__name__)

EMPTY_FLOW_MESSAGE = "Flow is empty. Add at least one node."


def _check_route(
    node: RouteNode,
    outgoing: dict[str, list[Edge]],
    index: dict[str, FlowNode],
    settings: DeckflowSettings,
) -> list[str]:
    errors: list[str] = []
    has_service = any(
        (target := index.get(edge.target)) is not None and target.kind == NodeKind.SERVICE
        for edge in outgoing.get(node.id, [])
    )
    if not has_service:
        errors.append(f"Route '{node.display_name}' must be connected to a Service.")

    name = node.attributes.name or node.id
    problem = identifier_problem(name, settings.identifier_max_length)
    if problem:
        errors.append(f"Route '{name}' has an invalid name: {problem}")
    return errors


def _check_service(node: ServiceNode, settings: DeckflowSettings) -> list[str]:
    attrs = node.attributes
    errors: list[str] = []
    if not attrs.name:
        errors.append(f"Service '{node.id}' is missing a name.")
    if not attrs.host:
        errors.append(f"Service '{node.display_name}' is missing a host.")

    if attrs.name:
        problem = identifier_problem(attrs.name, settings.identifier_max_length)
        if problem:
            errors.append(f"Service '{attrs.name}' has an invalid name: {problem}")
    return errors


def _check_consumer(node: ConsumerNode) -> list[str]:
    attrs = node.attributes
    if not attrs.username and not attrs.custom_id:
        return [f"Consumer '{node.id}' must have either username or custom_id."]
    return []


def validate_graph(
    nodes: Sequence[FlowNode],
    edges: Sequence[Edge],
    *,
    settings: DeckflowSettings | None = None,
) -> ValidationResult:
    """Check every node of a flow; ``valid`` is true only with zero errors."""
    settings = settings or get_settings()

    if not nodes:
        return ValidationResult.failure(EMPTY_FLOW_MESSAGE)

    index = {node.id: node for node in nodes}
    outgoing: dict[str, list[Edge]] = defaultdict(list)
    for edge in edges:
        outgoing[edge.source].append(edge)

    errors: list[str] = []
    for node in nodes:
        if isinstance(node, RouteNode):
            errors.extend(_check_route(node, outgoing, index, settings))
        elif isinstance(node, ServiceNode):
            errors.extend(_check_service(node, settings))
        elif isinstance(node, ConsumerNode):
            errors.extend(_check_consumer(node))

    if errors:
        log.debug("Flow validation found %d error(s) across %d node(s)", len(errors), len(nodes))
    return ValidationResult.from_errors(errors)
