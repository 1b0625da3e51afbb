"""Bootstrap logic that loads settings and wires the viewer services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from .config import AppConfig, load_config
from .services.aggregator import ContentAggregator
from .services.question_sets import QuestionSetResolver
from .services.telemetry import TelemetryEmitter
from .services.transport import ContentServiceClient, RequestContext
from .services.view_session import AssetViewSession

LOGGER = logging.getLogger(__name__)


class BootstrapError(RuntimeError):
    """Raised when initialization cannot be completed."""


@dataclass
class ViewerServices:
    """The shared, stateless collaborators behind every view."""

    config: AppConfig
    client: ContentServiceClient
    aggregator: ContentAggregator
    resolver: QuestionSetResolver
    telemetry: TelemetryEmitter

    def new_session(self, *, context: Optional[RequestContext] = None) -> AssetViewSession:
        """Return a fresh view state; nothing is shared between views but the services."""

        return AssetViewSession(
            aggregator=self.aggregator,
            resolver=self.resolver,
            telemetry=self.telemetry,
            context=context,
        )


def build_services(
    config: AppConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ViewerServices:
    client = ContentServiceClient(config, transport=transport)
    endpoints = config.endpoints
    LOGGER.debug("Content service at %s", config.api_root)
    return ViewerServices(
        config=config,
        client=client,
        aggregator=ContentAggregator(client, endpoints),
        resolver=QuestionSetResolver(client, endpoints),
        telemetry=TelemetryEmitter(
            client,
            endpoints,
            max_attempts=config.telemetry_max_attempts,
            backoff_seconds=config.telemetry_backoff_seconds,
        ),
    )


def initialize_app(config_path: Path | None = None) -> AppConfig:
    """Load configuration and make sure the log directory exists."""

    try:
        config = load_config(config_path)
    except (OSError, ValueError) as error:
        raise BootstrapError(f"Could not load configuration: {error}") from error

    try:
        config.log_root.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise BootstrapError(f"Log directory {config.log_root} is unusable: {error}") from error

    LOGGER.debug("Bootstrap completed for %s", config.api_root)
    return config


__all__ = ["BootstrapError", "ViewerServices", "build_services", "initialize_app"]
