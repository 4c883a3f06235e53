"""Pydantic v2 schema for the generated decK document.

Field order on each entry model is the key order in the emitted YAML.
Optional fields default to ``None`` and are dropped on dump, and an
empty section is normalised to ``None`` so a document never carries a
present-but-empty list.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

SECTION_ORDER: tuple[str, ...] = ("services", "routes", "plugins", "consumers", "upstreams")


# ── Entries ──────────────────────────────────────────


class ServiceEntry(BaseModel):
    name: str
    protocol: str
    host: str
    port: int
    path: str | None = None
    retries: int | None = None
    connect_timeout: int | None = None
    write_timeout: int | None = None
    read_timeout: int | None = None


class RouteEntry(BaseModel):
    name: str
    service: str | None = Field(default=None, description="Reference to the forwarded-to service")
    protocols: list[str] | None = None
    methods: list[str] | None = None
    paths: list[str] | None = None
    hosts: list[str] | None = None
    strip_path: bool | None = None
    preserve_host: bool | None = None


class PluginEntry(BaseModel):
    """One plugin instance; at most one scope field is set.

    With no scope field the instance is global.
    """
    name: str
    enabled: bool = True
    config: dict[str, Any] | None = None
    service: str | None = None
    route: str | None = None
    consumer: str | None = None

    @property
    def is_global(self) -> bool:
        return self.service is None and self.route is None and self.consumer is None


class ConsumerEntry(BaseModel):
    username: str | None = None
    custom_id: str | None = None


class UpstreamEntry(BaseModel):
    name: str
    algorithm: str | None = None
    slots: int | None = None
    hash_on: str | None = None
    hash_fallback: str | None = None


# ── Top-level document ───────────────────────────────


class ConfigDocument(BaseModel):
    """Root schema for a decK declarative configuration."""
    format_version: str = Field(default="3.0", alias="_format_version")
    services: list[ServiceEntry] | None = None
    routes: list[RouteEntry] | None = None
    plugins: list[PluginEntry] | None = None
    consumers: list[ConsumerEntry] | None = None
    upstreams: list[UpstreamEntry] | None = None

    model_config = {"populate_by_name": True}

    @field_validator(*SECTION_ORDER)
    @classmethod
    def _omit_empty(cls, entries: list[Any] | None) -> list[Any] | None:
        return entries or None

    @property
    def entry_count(self) -> int:
        return sum(len(getattr(self, section) or []) for section in SECTION_ORDER)

    def sections(self) -> list[str]:
        """Names of the sections present, in emission order."""
        return [s for s in SECTION_ORDER if getattr(self, s)]

    def to_dict(self) -> dict[str, Any]:
        """Plain data in emission order, with absent fields and sections dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
