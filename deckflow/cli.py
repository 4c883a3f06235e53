"""CLI for validating and compiling saved flows.

Usage:
    python -m deckflow validate flow.json
    python -m deckflow compile flow.json -o kong.yaml
    python -m deckflow compile flow.yaml --format json
    python -m deckflow compile flow.json --route-reference name
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from deckflow.compiler import OutputFormat, generate
from deckflow.config import DeckflowSettings, get_settings
from deckflow.exceptions import DeckflowError
from deckflow.graph.loader import load_flow_file
from deckflow.graph.schema import Graph
from deckflow.validation.graph import validate_graph


def _settings(args: argparse.Namespace) -> DeckflowSettings:
    settings = get_settings()
    if getattr(args, "route_reference", None):
        settings = settings.model_copy(update={"route_reference": args.route_reference})
    return settings


def _load(path_arg: str) -> Graph:
    flow_path = Path(path_arg)
    if not flow_path.exists():
        print(f"ERROR: Flow file not found: {flow_path}", file=sys.stderr)
        sys.exit(1)
    try:
        return load_flow_file(flow_path)
    except DeckflowError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)


def _report_errors(errors: list[str]) -> None:
    print(f"Flow is invalid ({len(errors)} error{'s' if len(errors) != 1 else ''}):", file=sys.stderr)
    for message in errors:
        print(f"  - {message}", file=sys.stderr)


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a saved flow and list every problem."""
    graph = _load(args.flow_file)
    result = validate_graph(graph.nodes, graph.edges, settings=_settings(args))
    if not result.valid:
        _report_errors(result.errors)
        sys.exit(1)
    print(f"Flow is valid ({graph.node_count} nodes, {graph.edge_count} edges)")


def cmd_compile(args: argparse.Namespace) -> None:
    """Compile a saved flow into a decK document."""
    graph = _load(args.flow_file)
    try:
        result = generate(graph.nodes, graph.edges, args.format, settings=_settings(args))
    except DeckflowError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    if not result.valid:
        _report_errors(result.errors)
        sys.exit(1)

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(result.content, encoding="utf-8")
        doc = result.document
        print(f"Wrote {output_path} ({doc.entry_count} entries: {', '.join(doc.sections())})")
    else:
        sys.stdout.write(result.content)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="deckflow",
        description="Validate and compile visual gateway flows into decK configuration",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    # validate
    p_validate = sub.add_parser("validate", help="Validate a saved flow")
    p_validate.add_argument("flow_file", help="Path to a .json/.yaml saved flow")
    p_validate.set_defaults(func=cmd_validate)

    # compile
    p_compile = sub.add_parser("compile", help="Compile a saved flow to decK configuration")
    p_compile.add_argument("flow_file", help="Path to a .json/.yaml saved flow")
    p_compile.add_argument("-o", "--output", help="Output path (stdout if omitted)")
    p_compile.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.YAML.value,
        help="Output format (default: yaml)",
    )
    p_compile.add_argument(
        "--route-reference",
        choices=["id", "name"],
        help="Reference a route's service by node id or configured name",
    )
    p_compile.set_defaults(func=cmd_compile)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else get_settings().log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
