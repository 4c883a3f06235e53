"""Tests for deckflow.compiler — lowering flows into ConfigDocument entries."""

from __future__ import annotations

import pytest

from deckflow.compiler import ConfigDocument, compile_flow, compile_graph, generate
from deckflow.compiler.lower import FlowIndex, lower_graph
from deckflow.config import DeckflowSettings
from deckflow.exceptions import IdentifierError, InvalidGraphError
from deckflow.graph.schema import LOWERED_KINDS, Edge, Graph, NodeKind, build_node


def _plugin_flow(*targets: str) -> tuple[list, list]:
    nodes = [
        build_node("plugin", "p1", {"name": "cors"}),
        build_node("service", "s1", {"name": "backend", "host": "h"}),
        build_node("route", "r1", {"name": "r1"}),
        build_node("consumer", "c1", {"username": "alice"}),
    ]
    edges = [Edge(source="r1", target="s1")]
    edges.extend(Edge(source="p1", target=t) for t in targets)
    return nodes, edges


class TestMinimalFlow:
    """A service and a route lower to the smallest useful document."""

    def test_compile_minimal(self, minimal_flow: Graph) -> None:
        doc = compile_flow(minimal_flow)
        assert doc.to_dict() == {
            "_format_version": "3.0",
            "services": [
                {"name": "backend", "protocol": "http", "host": "api.internal", "port": 8080},
            ],
            "routes": [{"name": "r1", "service": "s1", "paths": ["/v1"]}],
        }

    def test_sections_and_counts(self, minimal_flow: Graph) -> None:
        doc = compile_flow(minimal_flow)
        assert doc.sections() == ["services", "routes"]
        assert doc.entry_count == 2
        assert doc.plugins is None


class TestServiceLowering:
    def test_all_fields_round_trip(self, settings: DeckflowSettings) -> None:
        node = build_node("service", "s1", {
            "name": "orders",
            "protocol": "https",
            "host": "orders.internal",
            "port": 8443,
            "path": "/api",
            "retries": 3,
            "connect_timeout": 1000,
            "write_timeout": 2000,
            "read_timeout": 3000,
        })
        doc = lower_graph([node], [], settings)
        assert doc.to_dict()["services"] == [{
            "name": "orders",
            "protocol": "https",
            "host": "orders.internal",
            "port": 8443,
            "path": "/api",
            "retries": 3,
            "connect_timeout": 1000,
            "write_timeout": 2000,
            "read_timeout": 3000,
        }]

    def test_defaults_fill_missing_fields(self, settings: DeckflowSettings) -> None:
        doc = lower_graph([build_node("service", "s1")], [], settings)
        assert doc.to_dict()["services"] == [
            {"name": "s1", "protocol": "http", "host": "example.com", "port": 80},
        ]

    def test_defaults_from_settings(self) -> None:
        settings = DeckflowSettings(
            placeholder_host="upstream.local", default_service_port=9000, default_protocol="grpc",
        )
        service = lower_graph([build_node("service", "s1")], [], settings).services[0]
        assert (service.host, service.port, service.protocol) == ("upstream.local", 9000, "grpc")

    def test_empty_path_omitted(self, settings: DeckflowSettings) -> None:
        node = build_node("service", "s1", {"name": "a", "host": "h", "path": ""})
        assert "path" not in lower_graph([node], [], settings).to_dict()["services"][0]

    def test_unsafe_name_raises(self, settings: DeckflowSettings) -> None:
        node = build_node("service", "s1", {"name": "bad name", "host": "h"})
        with pytest.raises(IdentifierError, match="Service name"):
            lower_graph([node], [], settings)


class TestRouteLowering:
    def test_blank_paths_dropped(self, settings: DeckflowSettings) -> None:
        node = build_node("route", "r1", {"paths": ["/a", "", "  ", "/b"]})
        assert lower_graph([node], [], settings).routes[0].paths == ["/a", "/b"]

    def test_all_blank_paths_omitted(self, settings: DeckflowSettings) -> None:
        node = build_node("route", "r1", {"paths": ["", " "]})
        assert "paths" not in lower_graph([node], [], settings).to_dict()["routes"][0]

    def test_empty_lists_omitted(self, settings: DeckflowSettings) -> None:
        node = build_node("route", "r1", {"methods": [], "hosts": [], "protocols": []})
        assert lower_graph([node], [], settings).to_dict()["routes"] == [{"name": "r1"}]

    def test_booleans_kept_when_false(self, settings: DeckflowSettings) -> None:
        node = build_node("route", "r1", {"strip_path": False, "preserve_host": False})
        entry = lower_graph([node], [], settings).to_dict()["routes"][0]
        assert entry["strip_path"] is False
        assert entry["preserve_host"] is False

    def test_name_falls_back_to_id(self, settings: DeckflowSettings) -> None:
        assert lower_graph([build_node("route", "r1")], [], settings).routes[0].name == "r1"

    def test_prefers_service_edge(self, settings: DeckflowSettings) -> None:
        nodes = [
            build_node("route", "r1"),
            build_node("upstream", "u1"),
            build_node("service", "s1", {"name": "backend", "host": "h"}),
        ]
        edges = [Edge(source="r1", target="u1"), Edge(source="r1", target="s1")]
        assert lower_graph(nodes, edges, settings).routes[0].service == "s1"

    def test_falls_back_to_first_edge(self, settings: DeckflowSettings) -> None:
        nodes = [build_node("route", "r1"), build_node("upstream", "u1")]
        edges = [Edge(source="r1", target="u1")]
        assert lower_graph(nodes, edges, settings).routes[0].service == "u1"

    def test_no_edges_no_service(self, settings: DeckflowSettings) -> None:
        entry = lower_graph([build_node("route", "r1")], [], settings).to_dict()["routes"][0]
        assert "service" not in entry

    def test_reference_by_name(self, minimal_flow: Graph) -> None:
        doc = compile_flow(minimal_flow, settings=DeckflowSettings(route_reference="name"))
        assert doc.routes[0].service == "backend"

    def test_reference_by_name_from_environment(self, minimal_flow: Graph, monkeypatch) -> None:
        monkeypatch.setenv("DECKFLOW_ROUTE_REFERENCE", "name")
        assert compile_flow(minimal_flow, settings=DeckflowSettings()).routes[0].service == "backend"


class TestPluginLowering:
    """Global plugins, scoped plugins and fan-out."""

    def test_global_plugin(self, settings: DeckflowSettings) -> None:
        doc = lower_graph([build_node("plugin", "p1", {"name": "cors"})], [], settings)
        assert doc.to_dict()["plugins"] == [{"name": "cors", "enabled": True}]
        assert doc.plugins[0].is_global

    def test_fan_out_to_service_and_route(self, settings: DeckflowSettings) -> None:
        nodes, edges = _plugin_flow("s1", "r1")
        plugins = lower_graph(nodes, edges, settings).to_dict()["plugins"]
        assert plugins == [
            {"name": "cors", "enabled": True, "service": "backend"},
            {"name": "cors", "enabled": True, "route": "r1"},
        ]

    def test_consumer_scope_uses_username(self, settings: DeckflowSettings) -> None:
        nodes, edges = _plugin_flow("c1")
        assert lower_graph(nodes, edges, settings).plugins[0].consumer == "alice"

    def test_scope_falls_back_to_ids(self, settings: DeckflowSettings) -> None:
        nodes = [
            build_node("plugin", "p1", {"name": "cors"}),
            build_node("service", "s1"),
            build_node("consumer", "c1", {"custom_id": "42"}),
        ]
        edges = [Edge(source="p1", target="s1"), Edge(source="p1", target="c1")]
        plugins = lower_graph(nodes, edges, settings).plugins
        assert plugins[0].service == "s1"
        assert plugins[1].consumer == "c1"

    def test_unscoped_instance_for_other_kinds(self, settings: DeckflowSettings) -> None:
        nodes = [build_node("plugin", "p1", {"name": "cors"}), build_node("upstream", "u1")]
        plugins = lower_graph(nodes, [Edge(source="p1", target="u1")], settings).plugins
        assert len(plugins) == 1
        assert plugins[0].is_global

    def test_dangling_edge_skipped(self, settings: DeckflowSettings) -> None:
        nodes = [build_node("plugin", "p1", {"name": "cors"})]
        doc = lower_graph(nodes, [Edge(source="p1", target="missing")], settings)
        assert doc.plugins is None

    def test_default_name_and_enabled(self, settings: DeckflowSettings) -> None:
        plugin = lower_graph([build_node("plugin", "p1")], [], settings).plugins[0]
        assert plugin.name == "rate-limiting"
        assert plugin.enabled is True

    def test_disabled_plugin_kept_disabled(self, settings: DeckflowSettings) -> None:
        node = build_node("plugin", "p1", {"name": "cors", "enabled": False})
        assert lower_graph([node], [], settings).to_dict()["plugins"][0]["enabled"] is False

    def test_config_copied_per_entry(self, settings: DeckflowSettings) -> None:
        nodes, edges = _plugin_flow("s1", "r1")
        nodes[0] = build_node("plugin", "p1", {"name": "rate-limiting", "config": {"minute": 5}})
        plugins = lower_graph(nodes, edges, settings).plugins
        assert plugins[0].config == plugins[1].config == {"minute": 5}
        plugins[0].config["minute"] = 99
        assert plugins[1].config == {"minute": 5}
        assert nodes[0].attributes.config == {"minute": 5}

    def test_empty_config_omitted(self, settings: DeckflowSettings) -> None:
        node = build_node("plugin", "p1", {"name": "cors", "config": {}})
        assert "config" not in lower_graph([node], [], settings).to_dict()["plugins"][0]


class TestConsumerAndUpstream:
    def test_consumer_fields(self, settings: DeckflowSettings) -> None:
        node = build_node("consumer", "c1", {"username": "alice", "custom_id": "42"})
        assert lower_graph([node], [], settings).to_dict()["consumers"] == [
            {"username": "alice", "custom_id": "42"},
        ]

    def test_consumer_falls_back_to_id(self, settings: DeckflowSettings) -> None:
        doc = lower_graph([build_node("consumer", "c1")], [], settings)
        assert doc.to_dict()["consumers"] == [{"username": "c1"}]

    def test_upstream(self, settings: DeckflowSettings) -> None:
        node = build_node("upstream", "u1", {
            "name": "pool", "algorithm": "least-connections", "slots": 100,
            "hash_on": "none", "hash_fallback": "none",
        })
        assert lower_graph([node], [], settings).to_dict()["upstreams"] == [{
            "name": "pool", "algorithm": "least-connections", "slots": 100,
            "hash_on": "none", "hash_fallback": "none",
        }]

    def test_upstream_name_falls_back_to_id(self, settings: DeckflowSettings) -> None:
        assert lower_graph([build_node("upstream", "u1")], [], settings).upstreams[0].name == "u1"

    def test_extension_kinds_not_lowered(self, settings: DeckflowSettings) -> None:
        nodes = [
            build_node("target", "t1", {"target": "10.0.0.1:80"}),
            build_node("certificate", "cert1"),
            build_node("sni", "sni1", {"name": "example.com"}),
        ]
        doc = lower_graph(nodes, [], settings)
        assert doc.to_dict() == {"_format_version": "3.0"}
        assert doc.entry_count == 0


class TestOrdering:
    def test_entries_follow_node_order(self, settings: DeckflowSettings) -> None:
        nodes = [
            build_node("service", "s2", {"name": "b", "host": "h"}),
            build_node("service", "s1", {"name": "a", "host": "h"}),
        ]
        assert [s.name for s in lower_graph(nodes, [], settings).services] == ["b", "a"]

    def test_flow_index(self) -> None:
        nodes = [build_node("route", "r1"), build_node("service", "s1")]
        index = FlowIndex.build(nodes, [Edge(source="r1", target="s1")])
        assert [e.target for e in index.edges_from("r1")] == ["s1"]
        assert index.edges_from("s1") == []
        assert index.kind_of("s1") == "service"
        assert index.kind_of("nope") is None


class TestCompileGraph:
    def test_empty_flow_refused(self) -> None:
        with pytest.raises(InvalidGraphError) as exc_info:
            compile_graph([], [])
        assert exc_info.value.errors == ["Flow is empty. Add at least one node."]

    def test_invalid_flow_refused(self) -> None:
        with pytest.raises(InvalidGraphError) as exc_info:
            compile_graph([build_node("route", "r1")], [])
        assert exc_info.value.errors == ["Route 'r1' must be connected to a Service."]

    def test_error_message_lists_errors(self) -> None:
        with pytest.raises(InvalidGraphError, match="must be connected"):
            compile_graph([build_node("route", "r1")], [])

    def test_does_not_mutate_inputs(self, minimal_flow: Graph) -> None:
        before = minimal_flow.model_dump()
        compile_flow(minimal_flow)
        assert minimal_flow.model_dump() == before

    def test_format_version_from_settings(self, minimal_flow: Graph) -> None:
        doc = compile_flow(minimal_flow, settings=DeckflowSettings(format_version="1.1"))
        assert doc.to_dict()["_format_version"] == "1.1"

    def test_returns_config_document(self, minimal_flow: Graph) -> None:
        assert isinstance(compile_flow(minimal_flow), ConfigDocument)


class TestGenerate:
    def test_valid_flow(self, minimal_flow: Graph) -> None:
        result = generate(minimal_flow.nodes, minimal_flow.edges)
        assert result.valid
        assert result.errors == []
        assert result.document is not None
        assert result.content.startswith("_format_version: '3.0'\n")

    def test_invalid_flow_returns_errors(self) -> None:
        result = generate([build_node("route", "r1")], [])
        assert not result.valid
        assert result.errors == ["Route 'r1' must be connected to a Service."]
        assert result.document is None
        assert result.content == ""

    def test_json_output(self, minimal_flow: Graph) -> None:
        result = generate(minimal_flow.nodes, minimal_flow.edges, "json")
        assert result.content.startswith("{\n")
        assert '"_format_version": "3.0"' in result.content


class TestLoweredKinds:
    def test_lowered_kinds(self) -> None:
        assert LOWERED_KINDS == {"service", "route", "plugin", "consumer", "upstream"}

    @pytest.mark.parametrize("kind", sorted(set(NodeKind) - LOWERED_KINDS))
    def test_other_kinds_produce_no_entries(self, kind: NodeKind, settings: DeckflowSettings) -> None:
        doc = lower_graph([build_node(kind, "x1"), build_node("upstream", "u1")], [], settings)
        assert doc.entry_count == 1
        assert doc.sections() == ["upstreams"]
