"""Public compiler entry points.

``compile_graph`` refuses a flow that fails ``validate_graph``; callers
are expected to validate first and show the errors.  ``generate`` is the
one-shot path used by the preview and export actions: it validates,
compiles and serializes, and returns errors as data instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from deckflow.compiler.document import ConfigDocument
from deckflow.compiler.lower import lower_graph
from deckflow.compiler.serialize import OutputFormat, serialize
from deckflow.config import DeckflowSettings, get_settings
from deckflow.exceptions import InvalidGraphError
from deckflow.graph.schema import Edge, FlowNode, Graph
from deckflow.validation.graph import validate_graph

log = logging.getLogger(__name__)


def compile_graph(
    nodes: Sequence[FlowNode],
    edges: Sequence[Edge],
    *,
    settings: DeckflowSettings | None = None,
) -> ConfigDocument:
    """Lower a validated flow into a ``ConfigDocument``.

    Raises
    ------
    InvalidGraphError
        If the flow does not pass ``validate_graph``.
    IdentifierError
        If a service or route name is not a safe identifier.
    """
    settings = settings or get_settings()
    result = validate_graph(nodes, edges, settings=settings)
    if not result.valid:
        raise InvalidGraphError(result.errors)
    return lower_graph(nodes, edges, settings)


def compile_flow(graph: Graph, *, settings: DeckflowSettings | None = None) -> ConfigDocument:
    return compile_graph(graph.nodes, graph.edges, settings=settings)


@dataclass(slots=True)
class GenerationResult:
    """Outcome of a validate → compile → serialize run.

    Attributes:
        valid: Whether the flow passed validation.
        errors: Validation errors; empty when valid.
        document: The compiled document, or None when invalid.
        content: Serialized document text, or "" when invalid.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)
    document: ConfigDocument | None = None
    content: str = ""


def generate(
    nodes: Sequence[FlowNode],
    edges: Sequence[Edge],
    output_format: OutputFormat | str = OutputFormat.YAML,
    *,
    settings: DeckflowSettings | None = None,
) -> GenerationResult:
    settings = settings or get_settings()
    result = validate_graph(nodes, edges, settings=settings)
    if not result.valid:
        log.info("Flow not generated: %d validation error(s)", len(result.errors))
        return GenerationResult(valid=False, errors=result.errors)

    document = lower_graph(nodes, edges, settings)
    return GenerationResult(
        valid=True,
        document=document,
        content=serialize(document, output_format),
    )
