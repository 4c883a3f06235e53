"""Flow → decK configuration compiler.

Public API:
    - compile_graph     — lower a validated flow into a ConfigDocument
    - compile_flow      — compile_graph over a Graph
    - generate          — validate, compile and serialize in one call
    - serialize         — render a ConfigDocument as YAML or JSON
    - ConfigDocument    — the compiled document
    - GenerationResult  — outcome of generate()
"""

from __future__ import annotations

from deckflow.compiler.compiler import GenerationResult, compile_flow, compile_graph, generate
from deckflow.compiler.document import (
    SECTION_ORDER,
    ConfigDocument,
    ConsumerEntry,
    PluginEntry,
    RouteEntry,
    ServiceEntry,
    UpstreamEntry,
)
from deckflow.compiler.serialize import OutputFormat, serialize

__all__ = [
    "SECTION_ORDER",
    "ConfigDocument",
    "ConsumerEntry",
    "GenerationResult",
    "OutputFormat",
    "PluginEntry",
    "RouteEntry",
    "ServiceEntry",
    "UpstreamEntry",
    "compile_flow",
    "compile_graph",
    "generate",
    "serialize",
]
