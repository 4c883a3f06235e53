"""String hygiene for generated documents.

Two paths with different failure modes:

- ``sanitize_value`` neutralizes free-form values so a stray character in
  a form field can never alter the structure of the emitted YAML.  It
  never fails.
- ``validate_identifier`` guards names that other entries refer to.  It
  rejects instead of rewriting, because a silently altered name would
  silently break every reference to it.
"""

from __future__ import annotations

import re
from typing import Any

from deckflow.exceptions import IdentifierError

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_TEMPLATE_CHARS = re.compile(r"[`${}]")
_LEADING_MARKER = re.compile(r"^\s*[-!&*>|]")
_IDENTIFIER = re.compile(r"[A-Za-z0-9._-]+")

IDENTIFIER_MAX_LENGTH = 255


def sanitize_string(value: str) -> str:
    value = _CONTROL_CHARS.sub("", value)
    value = _TEMPLATE_CHARS.sub("", value)
    value = _LEADING_MARKER.sub("", value, count=1)
    return value.strip()


def sanitize_value(value: Any) -> Any:
    """Recursively sanitize strings (mapping keys included) in *value*.

    Non-string scalars pass through unchanged.
    """
    if isinstance(value, str):
        return sanitize_string(value)
    if isinstance(value, (list, tuple)):
        return [sanitize_value(item) for item in value]
    if isinstance(value, dict):
        return {
            (sanitize_string(k) if isinstance(k, str) else k): sanitize_value(v)
            for k, v in value.items()
        }
    return value


def identifier_problem(value: Any, max_length: int = IDENTIFIER_MAX_LENGTH) -> str | None:
    """Describe why *value* is not a safe identifier, or ``None`` if it is."""
    if not isinstance(value, str) or not value:
        return "must be a non-empty string"
    if not _IDENTIFIER.fullmatch(value):
        return (
            "contains invalid characters. Only alphanumeric, hyphens, "
            "underscores, and dots allowed."
        )
    if value.startswith("-"):
        # A leading hyphen is stripped by sanitize_string on output
        return "must not start with a hyphen"
    if len(value) > max_length:
        return f"is too long (max {max_length} characters)"
    return None


def validate_identifier(
    value: Any,
    field_name: str,
    max_length: int = IDENTIFIER_MAX_LENGTH,
) -> str:
    """Return *value* unchanged if it is a safe identifier.

    Raises
    ------
    IdentifierError
        If *value* is empty, not a string, too long, starts with a hyphen,
        or contains characters outside ``[A-Za-z0-9._-]``.
    """
    problem = identifier_problem(value, max_length)
    if problem is not None:
        raise IdentifierError(field_name, value, problem)
    return value
