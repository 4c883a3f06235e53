"""Edge-level and graph-level validation for flows."""
from __future__ import annotations

from deckflow.validation.connection import (
    KONG_RELATIONSHIPS,
    ConnectionIssue,
    ValidationResult,
    connection_exists,
    connection_label,
    recommended_targets,
    relationship_description,
    validate_edge,
)
from deckflow.validation.graph import EMPTY_FLOW_MESSAGE, validate_graph

__all__ = [
    "EMPTY_FLOW_MESSAGE",
    "KONG_RELATIONSHIPS",
    "ConnectionIssue",
    "ValidationResult",
    "connection_exists",
    "connection_label",
    "recommended_targets",
    "relationship_description",
    "validate_edge",
    "validate_graph",
]
