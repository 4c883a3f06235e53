"""Exception hierarchy for flow loading, editing and compilation.

Expected, user-facing outcomes (an illegal edge, a route with no service)
are returned as ``ValidationResult`` data and never raised.  The classes
here cover the exceptional paths: compiling a graph that failed
validation, a reference name outside the identifier alphabet, a saved
flow that cannot be turned into a typed graph.

All exceptions inherit from ``DeckflowError`` to enable blanket
``except DeckflowError`` handling at the presentation boundary.
"""

from __future__ import annotations


class DeckflowError(Exception):
    """Base exception for all deckflow failures."""

    __slots__ = ()


class InvalidGraphError(DeckflowError):
    """Raised when ``compile_graph`` is called on a graph that failed validation.

    Attributes
    ----------
    errors : list[str]
        The complete list of graph validation errors.
    """

    __slots__ = ("errors",)

    def __init__(self, errors: list[str]) -> None:
        n = len(errors)
        summary = f"{n} validation error{'s' if n != 1 else ''}"
        detail = "; ".join(errors)
        super().__init__(f"Cannot compile an invalid flow ({summary}): {detail}")
        self.errors = list(errors)


class IdentifierError(DeckflowError, ValueError):
    """Raised when a name used as a cross-reference is not a safe identifier.

    Attributes
    ----------
    field_name : str
        Human-readable field label, e.g. ``"Service name"``.
    value : object
        The rejected value.
    reason : str
        Why the value was rejected.
    """

    __slots__ = ("field_name", "reason", "value")

    def __init__(self, field_name: str, value: object, reason: str) -> None:
        super().__init__(f"{field_name} {reason}")
        self.field_name = field_name
        self.value = value
        self.reason = reason


class FlowLoadError(DeckflowError):
    """Raised when a saved flow cannot be turned into a typed graph."""

    __slots__ = ("detail",)

    def __init__(self, detail: str) -> None:
        super().__init__(f"Cannot load flow: {detail}")
        self.detail = detail


class UnknownNodeKindError(FlowLoadError):
    """Raised when a saved node carries a kind outside the closed enumeration."""

    __slots__ = ("kind",)

    def __init__(self, kind: object, node_id: str = "") -> None:
        where = f" on node {node_id!r}" if node_id else ""
        super().__init__(f"unknown node kind {kind!r}{where}")
        self.kind = kind


class NodeNotFoundError(DeckflowError, KeyError):
    """Raised when the editor is asked for a node id it does not hold."""

    __slots__ = ("node_id",)

    def __init__(self, node_id: str) -> None:
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"No node with id {self.node_id!r} in flow"


class IdGenerationError(DeckflowError):
    """Raised when the editor's id generator yields no unused id.

    Attributes
    ----------
    kind : str
        Kind of the node being added.
    attempts : int
        Number of ids drawn, all already in use.
    """

    __slots__ = ("attempts", "kind")

    def __init__(self, kind: str, attempts: int) -> None:
        super().__init__(
            f"Id generator returned no unused id for a new {kind} node after {attempts} attempts"
        )
        self.kind = kind
        self.attempts = attempts
