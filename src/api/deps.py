import logging
import os
from functools import lru_cache
from pathlib import Path

import httpx
from fastapi import Depends

from src.adapters.entitlement_stub import EntitlementStubAdapter
from src.adapters.interval_timer import ThreadingIntervalTimer
from src.adapters.telemetry import HttpTelemetrySink, LoggingTelemetrySink
from src.api.sessions import TrackingSessionRegistry
from src.components import ad_placement, engagement, tracking
from src.components.ad_placement import PlacementRules
from src.components.engagement import ScoringConfig
from src.components.tracking import TelemetrySinkPort, TrackingConfig
from src.rules.loader import load_rules
from src.rules.models import Rules

logger = logging.getLogger(__name__)


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.rules_path = Path(os.environ.get("RULES_PATH", str(self.base_dir / "rules.yaml")))
        self.environment = os.environ.get("APP_ENV", "development")
        # Override telemetry.endpoint / telemetry.base_url from rules when set
        self.telemetry_endpoint = os.environ.get("TELEMETRY_ENDPOINT")
        self.telemetry_base_url = os.environ.get("TELEMETRY_BASE_URL")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def load_app_rules(rules_path: Path) -> Rules:
    return load_rules(rules_path)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_app_rules(settings.rules_path)


# --- Component Configs ---
def get_placement_rules(rules: Rules = Depends(get_rules)) -> PlacementRules:
    return ad_placement.load_config_from_rules(rules.model_dump())


def get_scoring_config(rules: Rules = Depends(get_rules)) -> ScoringConfig:
    return engagement.load_config_from_rules(rules.model_dump())


def get_tracking_config(rules: Rules = Depends(get_rules)) -> TrackingConfig:
    return tracking.load_config_from_rules(rules.model_dump())


# --- Adapters ---
@lru_cache
def get_entitlement_adapter() -> EntitlementStubAdapter:
    return EntitlementStubAdapter()


def resolve_telemetry_url(settings: Settings, rules: Rules) -> str:
    """
    Absolute URL telemetry is posted to.

    A relative endpoint is resolved against the base URL, the way a browser
    resolves it against the page.

    Raises:
        ValueError: If the endpoint is relative and no base URL is configured
    """
    endpoint = httpx.URL(settings.telemetry_endpoint or rules.telemetry.endpoint)
    if endpoint.is_absolute_url:
        return str(endpoint)

    base_url = settings.telemetry_base_url or rules.telemetry.base_url
    if not base_url:
        raise ValueError(
            f"Telemetry endpoint {endpoint} is relative; set telemetry.base_url "
            "or TELEMETRY_BASE_URL"
        )
    return str(httpx.URL(base_url).join(endpoint))


def build_telemetry_sink(settings: Settings, rules: Rules) -> TelemetrySinkPort:
    """Production posts to the telemetry endpoint; other environments only log."""
    if not settings.is_production:
        return LoggingTelemetrySink(level=logging.DEBUG)

    endpoint = resolve_telemetry_url(settings, rules)
    logger.info("Telemetry endpoint: %s", endpoint)
    return HttpTelemetrySink(
        endpoint,
        timeout_seconds=rules.telemetry.timeout_seconds,
        max_queue_size=rules.telemetry.max_queue_size,
    )


# --- Tracking Sessions ---
_registry: TrackingSessionRegistry | None = None


def init_session_registry(settings: Settings, rules: Rules) -> TrackingSessionRegistry:
    """Create the process-wide session registry (called from the app lifespan)."""
    global _registry
    dumped = rules.model_dump()
    registry = TrackingSessionRegistry(
        timer=ThreadingIntervalTimer(),
        sink=build_telemetry_sink(settings, rules),
        config=tracking.load_config_from_rules(dumped),
        scoring=engagement.load_config_from_rules(dumped),
        max_sessions=rules.sessions.max_sessions,
        idle_timeout_seconds=rules.sessions.idle_timeout_seconds,
    )
    registry.start_sweeper(rules.sessions.sweep_interval_seconds)
    _registry = registry
    return registry


def shutdown_session_registry() -> None:
    global _registry
    if _registry is not None:
        _registry.stop_sweeper()
        _registry.close_all()
        if isinstance(_registry.sink, HttpTelemetrySink):
            _registry.sink.stop()
        _registry = None


def get_session_registry(
    settings: Settings = Depends(get_settings),
) -> TrackingSessionRegistry:
    if _registry is None:
        return init_session_registry(settings, load_app_rules(settings.rules_path))
    return _registry
