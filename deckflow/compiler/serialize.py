"""Render a ``ConfigDocument`` as decK YAML (or JSON).

Output is canonical: ``_format_version`` first, then the present
sections in fixed order, 2-space indentation with indented block
sequences, no line wrapping and no anchors or aliases.  Every string key
and value is sanitized before rendering.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

import yaml

from deckflow.compiler.document import ConfigDocument
from deckflow.sanitize import sanitize_value


class OutputFormat(StrEnum):
    YAML = "yaml"
    JSON = "json"


class _DeckDumper(yaml.SafeDumper):
    """SafeDumper that inlines repeated structures and indents list items."""

    def ignore_aliases(self, data: Any) -> bool:
        return True

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


def to_yaml(data: dict[str, Any]) -> str:
    return yaml.dump(
        data,
        Dumper=_DeckDumper,
        default_flow_style=False,
        sort_keys=False,
        indent=2,
        width=float("inf"),
        allow_unicode=True,
    )


def to_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def serialize(document: ConfigDocument, output_format: OutputFormat | str = OutputFormat.YAML) -> str:
    """Serialize *document* to text; deterministic for equal documents."""
    data = sanitize_value(document.to_dict())
    if OutputFormat(output_format) == OutputFormat.JSON:
        return to_json(data)
    return to_yaml(data)
