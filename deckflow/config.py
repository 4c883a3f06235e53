"""Environment-driven settings for flow compilation."""

from __future__ import annotations

import functools
import logging
from typing import Literal

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class DeckflowSettings(BaseSettings):
    """Defaults applied while lowering a flow into a decK document."""

    format_version: str = "3.0"
    default_plugin_name: str = "rate-limiting"
    placeholder_host: str = "example.com"
    default_service_port: int = 80
    default_protocol: str = "http"

    # How a route names its service: the target node id or its configured name
    route_reference: Literal["id", "name"] = "id"

    identifier_max_length: int = 255
    log_level: str = "WARNING"

    model_config = {"env_prefix": "DECKFLOW_", "env_file": ".env", "extra": "ignore"}


@functools.lru_cache(maxsize=1)
def get_settings() -> DeckflowSettings:
    """Return the process-wide settings, read from the environment once."""
    settings = DeckflowSettings()
    logger.debug(
        "deckflow settings: format_version=%s, route_reference=%s",
        settings.format_version, settings.route_reference,
    )
    return settings
