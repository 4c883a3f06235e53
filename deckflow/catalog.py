"""Default attributes for newly placed nodes and common plugin configs.

The editor seeds a fresh node from ``NODE_DEFAULTS`` so that the
property form starts from Kong's own defaults.  A plugin node created
with a known plugin name additionally receives that plugin's entry from
``PLUGIN_CONFIGS`` as its ``config`` block.
"""

from __future__ import annotations

import copy
from typing import Any

from deckflow.graph.schema import NodeKind

NODE_DEFAULTS: dict[NodeKind, dict[str, Any]] = {
    NodeKind.SERVICE: {
        "name": "",
        "protocol": "http",
        "host": "",
        "port": 80,
        "path": "",
        "retries": 5,
        "connect_timeout": 60000,
        "write_timeout": 60000,
        "read_timeout": 60000,
    },
    NodeKind.ROUTE: {
        "name": "",
        "protocols": ["http", "https"],
        "methods": [],
        "hosts": [],
        "paths": [],
        "strip_path": True,
        "preserve_host": False,
    },
    NodeKind.PLUGIN: {
        "name": "rate-limiting",
        "enabled": True,
        "config": {},
    },
    NodeKind.CONSUMER: {
        "username": "",
        "custom_id": "",
    },
    NodeKind.UPSTREAM: {
        "name": "",
        "algorithm": "round-robin",
        "slots": 10000,
    },
    NodeKind.TARGET: {
        "target": "",
        "weight": 100,
    },
    NodeKind.CERTIFICATE: {
        "cert": "",
        "key": "",
    },
    NodeKind.SNI: {
        "name": "",
    },
}


# (plugin name, palette category, default config)
_PLUGINS: list[tuple[str, str, dict[str, Any]]] = [
    # Traffic control
    ("rate-limiting", "Traffic Control", {"minute": 5, "hour": 100, "policy": "local"}),
    ("response-ratelimiting", "Traffic Control", {"limits": {"video": {"minute": 10}}}),
    ("request-size-limiting", "Traffic Control", {"allowed_payload_size": 128}),
    # Authentication
    ("key-auth", "Authentication", {"key_names": ["apikey"], "hide_credentials": False}),
    ("basic-auth", "Authentication", {"hide_credentials": False}),
    ("jwt", "Authentication", {"uri_param_names": ["jwt"], "claims_to_verify": ["exp"]}),
    ("oauth2", "Authentication", {
        "scopes": ["email", "profile"],
        "mandatory_scope": False,
        "enable_authorization_code": True,
    }),
    ("hmac-auth", "Authentication", {"hide_credentials": False, "clock_skew": 300}),
    # Security
    ("acl", "Security", {"allow": [], "deny": []}),
    ("ip-restriction", "Security", {"allow": [], "deny": []}),
    ("bot-detection", "Security", {"allow": [], "deny": []}),
    ("cors", "Security", {
        "origins": ["*"],
        "methods": ["GET", "POST", "PUT", "PATCH", "DELETE"],
        "headers": ["Accept", "Content-Type", "Authorization"],
        "exposed_headers": [],
        "credentials": True,
        "max_age": 3600,
    }),
    # Transformations
    ("request-transformer", "Transformations", {
        "add": {"headers": [], "querystring": [], "body": []},
        "remove": {"headers": [], "querystring": [], "body": []},
        "replace": {"headers": [], "querystring": [], "body": []},
    }),
    ("response-transformer", "Transformations", {
        "add": {"headers": [], "json": []},
        "remove": {"headers": [], "json": []},
        "replace": {"headers": [], "json": []},
    }),
    ("correlation-id", "Transformations", {
        "header_name": "X-Correlation-ID",
        "generator": "uuid",
        "echo_downstream": False,
    }),
    # Logging
    ("file-log", "Logging", {"path": "/tmp/file.log"}),
    ("http-log", "Logging", {
        "http_endpoint": "http://localhost:8080/logs",
        "method": "POST",
        "timeout": 10000,
        "keepalive": 60000,
    }),
    ("tcp-log", "Logging", {"host": "127.0.0.1", "port": 9999, "timeout": 10000, "keepalive": 60000}),
    ("udp-log", "Logging", {"host": "127.0.0.1", "port": 9999, "timeout": 10000}),
    ("syslog", "Logging", {"facility": "user", "severity": "info"}),
    # Analytics
    ("prometheus", "Analytics", {}),
    ("zipkin", "Analytics", {"http_endpoint": "http://localhost:9411/api/v2/spans", "sample_ratio": 0.001}),
    ("datadog", "Analytics", {"host": "localhost", "port": 8125}),
    ("statsd", "Analytics", {"host": "localhost", "port": 8125}),
    # Serverless
    ("aws-lambda", "Serverless", {"aws_region": "us-east-1", "function_name": ""}),
    ("pre-function", "Serverless", {"access": []}),
    ("post-function", "Serverless", {"access": []}),
    # Caching
    ("proxy-cache", "Caching", {
        "response_code": [200, 301, 404],
        "request_method": ["GET", "HEAD"],
        "content_type": ["text/plain", "application/json"],
        "cache_ttl": 300,
        "strategy": "memory",
    }),
    # Misc
    ("request-termination", "Misc", {"status_code": 503, "message": "Service temporarily unavailable"}),
]

PLUGIN_CONFIGS: dict[str, dict[str, Any]] = {name: cfg for name, _, cfg in _PLUGINS}
PLUGIN_CATEGORIES: dict[str, str] = {name: category for name, category, _ in _PLUGINS}


def default_attributes(kind: NodeKind | str, plugin_name: str | None = None) -> dict[str, Any]:
    """Return a fresh copy of the default attributes for *kind*.

    For plugins, *plugin_name* selects the name and its catalog config.
    """
    kind = NodeKind(kind)
    attrs = copy.deepcopy(NODE_DEFAULTS[kind])
    if kind == NodeKind.PLUGIN:
        name = plugin_name or attrs["name"]
        attrs["name"] = name
        attrs["config"] = copy.deepcopy(PLUGIN_CONFIGS.get(name, {}))
    return attrs


def plugins_in_category(category: str) -> list[str]:
    """Plugin names in a palette category, in catalog order."""
    return [name for name, cat, _ in _PLUGINS if cat == category]
