"""Shared test fixtures for deckflow."""

from __future__ import annotations

import pytest

from deckflow.config import DeckflowSettings, get_settings
from deckflow.graph.schema import Edge, Graph, build_node


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep environment overrides and the settings cache out of tests."""
    for name in ("DECKFLOW_ROUTE_REFERENCE", "DECKFLOW_FORMAT_VERSION", "DECKFLOW_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> DeckflowSettings:
    return DeckflowSettings()


@pytest.fixture
def minimal_flow() -> Graph:
    """A service and a route forwarding to it."""
    return Graph(
        nodes=[
            build_node("service", "s1", {"name": "backend", "host": "api.internal", "port": 8080}),
            build_node("route", "r1", {"name": "r1", "paths": ["/v1"]}),
        ],
        edges=[Edge(source="r1", target="s1")],
    )


@pytest.fixture
def saved_flow() -> dict:
    """A flow in the editor's saved shape."""
    return {
        "id": "flow-1",
        "name": "Orders API",
        "nodes": [
            {
                "id": "service-1",
                "type": "service",
                "position": {"x": 100, "y": 100},
                "data": {
                    "label": "Service service-1",
                    "type": "service",
                    "config": {"name": "orders", "host": "orders.internal", "port": 8080},
                },
            },
            {
                "id": "route-2",
                "type": "route",
                "position": {"x": 0, "y": 100},
                "data": {
                    "label": "Route route-2",
                    "type": "route",
                    "config": {"name": "orders-route", "paths": ["/orders"], "methods": ["GET"]},
                },
            },
            {
                "id": "plugin-3",
                "type": "plugin",
                "position": {"x": 100, "y": 0},
                "data": {
                    "label": "Plugin plugin-3",
                    "type": "plugin",
                    "config": {"name": "key-auth", "enabled": True, "config": {"key_names": ["apikey"]}},
                },
            },
        ],
        "edges": [
            {
                "id": "route-2-right-service-1-left",
                "source": "route-2",
                "target": "service-1",
                "sourceHandle": "right",
                "targetHandle": "left",
            },
            {"id": "plugin-3-default-service-1-default", "source": "plugin-3", "target": "service-1"},
        ],
    }
