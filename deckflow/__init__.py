"""deckflow — compile visual gateway flows into decK configuration.

Public API:
    - validate_edge     — gate a proposed connection before it is added
    - validate_graph    — check a whole flow before compilation
    - compile_graph     — lower a validated flow into a ConfigDocument
    - serialize         — render a ConfigDocument as decK YAML or JSON
    - generate          — validate, compile and serialize in one call
    - load_flow         — saved flow mapping → Graph
    - FlowEditor        — in-memory editing surface for one flow
    - DeckflowError     — base exception for blanket catch
"""

from __future__ import annotations

from deckflow.graph import Edge, FlowNode, Graph, NodeKind, build_node, load_flow, load_flow_file
from deckflow.validation import ValidationResult, validate_edge, validate_graph
from deckflow.compiler import ConfigDocument, GenerationResult, compile_graph, generate, serialize
from deckflow.graph.editor import CounterIdGenerator, FlowEditor
from deckflow.exceptions import (
    DeckflowError,
    FlowLoadError,
    IdentifierError,
    IdGenerationError,
    InvalidGraphError,
    NodeNotFoundError,
    UnknownNodeKindError,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigDocument",
    "CounterIdGenerator",
    "DeckflowError",
    "Edge",
    "FlowEditor",
    "FlowLoadError",
    "FlowNode",
    "GenerationResult",
    "Graph",
    "IdGenerationError",
    "IdentifierError",
    "InvalidGraphError",
    "NodeKind",
    "NodeNotFoundError",
    "UnknownNodeKindError",
    "ValidationResult",
    "build_node",
    "compile_graph",
    "generate",
    "load_flow",
    "load_flow_file",
    "serialize",
    "validate_edge",
    "validate_graph",
]
