from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from src.components.engagement import DEFAULT_SCORING_TABLE


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class TrackingRules(BaseModel):
    enabled: bool = True
    scroll_throttle_ms: int = Field(1000, ge=0)
    tick_interval_seconds: float = Field(1.0, gt=0)
    scroll_milestones: list[int] = Field(default_factory=lambda: [25, 50, 75, 90])
    link_label_max_chars: int = Field(50, ge=1)
    title_max_chars: int = Field(100, ge=1)
    slow_component_load_ms: int = 1000
    slow_api_call_ms: int = 2000
    slow_image_load_ms: int = 3000
    max_events: int | None = Field(None, ge=1)  # None keeps every event
    send_telemetry: bool = True
    initially_visible: bool = True

    @field_validator("scroll_milestones")
    @classmethod
    def milestones_are_percentages(cls, value: list[int]) -> list[int]:
        if any(m <= 0 or m > 100 for m in value):
            raise ValueError("scroll milestones must be within 1-100")
        return sorted(set(value))


class MetricWeight(BaseModel):
    cap: float = Field(gt=0)
    weight: float = Field(ge=0, le=1)


class EngagementThresholds(BaseModel):
    medium: int = Field(34, ge=0, le=100)
    high: int = Field(67, ge=0, le=100)

    @model_validator(mode="after")
    def ordered(self) -> "EngagementThresholds":
        if self.medium > self.high:
            raise ValueError("medium threshold must not exceed high threshold")
        return self


class EngagementRules(BaseModel):
    metrics: dict[str, MetricWeight] = Field(
        default_factory=lambda: {
            name: MetricWeight(cap=cap, weight=weight)
            for name, (cap, weight) in DEFAULT_SCORING_TABLE.items()
        }
    )
    thresholds: EngagementThresholds = Field(default_factory=EngagementThresholds)

    @field_validator("metrics")
    @classmethod
    def known_metrics(cls, value: dict[str, MetricWeight]) -> dict[str, MetricWeight]:
        unknown = set(value) - set(DEFAULT_SCORING_TABLE)
        if unknown:
            raise ValueError(f"unknown engagement metrics: {sorted(unknown)}")
        total = sum(m.weight for m in value.values())
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"engagement weights must sum to 1.0, got {total:.6f}")
        return value


class AdPlacementRules(BaseModel):
    enabled: bool = True
    default_strategy: Literal["aggressive", "balanced", "minimal"] = "balanced"
    min_ads_per_page: int = Field(1, ge=0)
    max_ads_per_page: int = Field(8, ge=1)
    max_inline_ads: int = Field(3, ge=0)
    min_paragraph_chars: int = Field(100, ge=0)
    ad_free_entitlements: list[str] = Field(default_factory=lambda: ["premium", "subscriber"])


class TelemetryRules(BaseModel):
    endpoint: str = "/api/analytics/track"
    # Origin a relative endpoint resolves against; required in production
    base_url: str | None = None
    timeout_seconds: float = Field(5.0, gt=0)
    max_queue_size: int = Field(1000, ge=1)

    @field_validator("base_url")
    @classmethod
    def base_url_is_http(cls, value: str | None) -> str | None:
        if value is not None and not value.startswith(("http://", "https://")):
            raise ValueError("telemetry base_url must be an http(s) URL")
        return value


class SessionRules(BaseModel):
    max_sessions: int = Field(10_000, ge=1)
    idle_timeout_seconds: float = Field(1800.0, gt=0)
    sweep_interval_seconds: float = Field(60.0, gt=0)


class Rules(BaseModel):
    project: ProjectRules
    tracking: TrackingRules = Field(default_factory=TrackingRules)
    engagement: EngagementRules = Field(default_factory=EngagementRules)
    ad_placement: AdPlacementRules = Field(default_factory=AdPlacementRules)
    telemetry: TelemetryRules = Field(default_factory=TelemetryRules)
    sessions: SessionRules = Field(default_factory=SessionRules)
