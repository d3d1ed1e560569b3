from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fleet_metrics.core.config import settings
from fleet_metrics.domain.models import MetricKind, RankMetric


class TimelineQuery(BaseModel):
    entity_ids: list[str] = Field(
        default_factory=list, description="Entity ids to chart; may be empty"
    )
    hours: int = Field(
        settings.timeline_default_hours,
        ge=settings.query_min_hours,
        le=settings.query_max_hours,
        description="Look-back window in hours",
    )
    metric_kinds: list[MetricKind] = Field(
        default_factory=lambda: [MetricKind(k) for k in settings.timeline_default_metric_kinds],
        description="Subset of cpu, memory, disk, network",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("entity_ids")
    @classmethod
    def _dedupe_ids(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @field_validator("metric_kinds")
    @classmethod
    def _canonical_kinds(cls, value: list[MetricKind]) -> list[MetricKind]:
        return MetricKind.ordered(value)


class RankingQuery(BaseModel):
    entity_ids: list[str] = Field(default_factory=list)
    metric: RankMetric = Field(RankMetric.CPU, description="Rank by cpu or memory")
    limit: int = Field(
        settings.ranking_default_limit, ge=1, le=settings.engine_max_rank_limit
    )
    hours: int = Field(
        settings.ranking_default_hours,
        ge=settings.query_min_hours,
        le=settings.query_max_hours,
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("entity_ids")
    @classmethod
    def _dedupe_ids(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


class TimeRange(BaseModel):
    start: datetime
    end: datetime
    hours: int


class EntityTimeline(BaseModel):
    entity_id: str
    display_name: str
    data_points: list[dict[str, Any]]


class TimelineResponse(BaseModel):
    metrics: list[EntityTimeline]
    time_range: TimeRange
    truncated: bool = False


class ProcessRank(BaseModel):
    entity_id: str
    label: str
    process_name: str
    avg_cpu_percent: float | None
    avg_memory_mb: float | None
    peak_memory_mb: float | None
    avg_num_procs: int | None


class RankingResponse(BaseModel):
    metric: RankMetric
    time_range_hours: int
    processes: list[ProcessRank]
