"""Entry point for timeline and ranking queries.

Validates the request, resolves display names, fans out one fetch + rate
pipeline per metric kind and joins them before merging. A failure in any
pipeline (or the deadline passing) fails the whole query; there is no partial
result.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Mapping, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from fleet_metrics.core.config import EngineConfig, settings
from fleet_metrics.core.errors import InvalidQuery, QueryError, QueryTimeout
from fleet_metrics.core.logger import get_logger
from fleet_metrics.core.metrics import (
    QUERY_FAILURES,
    QUERY_LATENCY,
    QUERY_REQUESTS,
    TIMELINE_TRUNCATIONS,
)
from fleet_metrics.domain.fields import output_names
from fleet_metrics.domain.models import Entity, MetricKind, RatePoint
from fleet_metrics.domain.schemas import (
    EntityTimeline,
    ProcessRank,
    RankingQuery,
    RankingResponse,
    TimelineQuery,
    TimelineResponse,
    TimeRange,
)
from fleet_metrics.infrastructure.clickhouse.directory import ServerDirectory
from fleet_metrics.metrics.ranking import rank_processes
from fleet_metrics.metrics.rates import compute_rate_points
from fleet_metrics.metrics.timeline import merge_timelines
from fleet_metrics.services.sample_reader import SampleReader
from fleet_metrics.utils.concurrency import gather_or_cancel, run_blocking

logger = get_logger("query_service")

Q = TypeVar("Q", bound=BaseModel)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce(model: Type[Q], query: Q | Mapping[str, Any]) -> Q:
    if isinstance(query, model):
        return query
    try:
        return model.model_validate(query)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise InvalidQuery(first.get("msg", str(exc)), field=field) from exc


class MetricsQueryService:
    def __init__(
        self,
        reader: SampleReader,
        directory: ServerDirectory,
        engine: EngineConfig | None = None,
        timeout_seconds: float | None = None,
        now: Callable[[], datetime] = utcnow,
    ):
        self.reader = reader
        self.directory = directory
        self.engine = engine or settings.engine_config()
        self.timeout_seconds = (
            settings.query_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.now = now

    async def _with_deadline(self, coro):
        try:
            return await asyncio.wait_for(coro, self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise QueryTimeout(
                f"query exceeded {self.timeout_seconds}s deadline"
            ) from exc

    async def _resolve_entities(self, entity_ids: Sequence[str]) -> List[Entity]:
        resolved = await run_blocking(self.directory.resolve, entity_ids)
        return [Entity(e, resolved.get(e, e)) for e in entity_ids]

    async def _rate_pipeline(
        self, entity_ids: Sequence[str], kind: MetricKind, since: datetime
    ) -> List[RatePoint]:
        samples = await self.reader.fetch(entity_ids, kind, since)
        return compute_rate_points(kind, samples, self.engine)

    async def _collect_timeline(
        self, entity_ids: Sequence[str], kinds: Sequence[MetricKind], since: datetime
    ):
        entities = await self._resolve_entities(entity_ids)
        points_by_kind = await gather_or_cancel(
            {kind: self._rate_pipeline(entity_ids, kind, since) for kind in kinds}
        )
        return entities, points_by_kind

    async def timeline(
        self, query: TimelineQuery | Mapping[str, Any]
    ) -> TimelineResponse:
        QUERY_REQUESTS.labels(query="timeline").inc()
        started = time.perf_counter()
        try:
            q = _coerce(TimelineQuery, query)
            end = self.now()
            start = end - timedelta(hours=q.hours)
            time_range = TimeRange(start=start, end=end, hours=q.hours)
            if not q.entity_ids or not q.metric_kinds:
                return TimelineResponse(metrics=[], time_range=time_range)

            entities, points_by_kind = await self._with_deadline(
                self._collect_timeline(q.entity_ids, q.metric_kinds, start)
            )
            merged = merge_timelines(
                q.entity_ids, points_by_kind, output_names(q.metric_kinds), self.engine
            )
            if merged.truncated:
                TIMELINE_TRUNCATIONS.inc()
                logger.warning(
                    "timeline_truncated",
                    extra={
                        "max_points": self.engine.timeline_max_points,
                        "entity_count": len(q.entity_ids),
                    },
                )
            logger.info(
                "timeline_query_completed",
                extra={
                    "entity_count": len(q.entity_ids),
                    "metric_kinds": [k.value for k in q.metric_kinds],
                    "hours": q.hours,
                    "points": merged.length,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            return TimelineResponse(
                metrics=[
                    EntityTimeline(
                        entity_id=entity.entity_id,
                        display_name=entity.display_name,
                        data_points=merged.series[entity.entity_id],
                    )
                    for entity in entities
                ],
                time_range=time_range,
                truncated=merged.truncated,
            )
        except QueryError as exc:
            QUERY_FAILURES.labels(query="timeline", error=type(exc).__name__).inc()
            raise
        finally:
            QUERY_LATENCY.labels(query="timeline").observe(time.perf_counter() - started)

    async def _collect_processes(self, entity_ids: Sequence[str], since: datetime):
        entities = await self._resolve_entities(entity_ids)
        samples = await self.reader.fetch_process_samples(entity_ids, since)
        return entities, samples

    async def top_processes(
        self, query: RankingQuery | Mapping[str, Any]
    ) -> RankingResponse:
        QUERY_REQUESTS.labels(query="ranking").inc()
        started = time.perf_counter()
        try:
            q = _coerce(RankingQuery, query)
            if not q.entity_ids:
                return RankingResponse(
                    metric=q.metric, time_range_hours=q.hours, processes=[]
                )
            since = self.now() - timedelta(hours=q.hours)
            entities, samples = await self._with_deadline(
                self._collect_processes(q.entity_ids, since)
            )
            labels = {e.entity_id: e.display_name for e in entities}
            rows = rank_processes(samples, q.metric, q.limit, labels, self.engine)
            logger.info(
                "ranking_query_completed",
                extra={
                    "entity_count": len(q.entity_ids),
                    "metric": q.metric.value,
                    "samples": len(samples),
                    "returned": len(rows),
                },
            )
            return RankingResponse(
                metric=q.metric,
                time_range_hours=q.hours,
                processes=[ProcessRank(**asdict(row)) for row in rows],
            )
        except QueryError as exc:
            QUERY_FAILURES.labels(query="ranking", error=type(exc).__name__).inc()
            raise
        finally:
            QUERY_LATENCY.labels(query="ranking").observe(time.perf_counter() - started)
