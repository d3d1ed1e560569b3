"""Aligns per-kind rate points of many entities onto one shared time grid.

The grid is the union of every timestamp any requested entity reported for
any requested kind, newest first. Each entity gets one row per grid timestamp
so charts line up; rows with nothing recorded carry ``None`` for every
metric. The cost is payload size: an entity sampled rarely still carries a
row for each timestamp its neighbours reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

from fleet_metrics.core.config import EngineConfig
from fleet_metrics.domain.models import MetricKind, RatePoint
from fleet_metrics.metrics.bucketing import from_epoch

DataPoint = Dict[str, Any]


@dataclass(frozen=True)
class MergedTimeline:
    series: Dict[str, List[DataPoint]]
    truncated: bool = False

    @property
    def length(self) -> int:
        return len(next(iter(self.series.values()), []))


def merge_timelines(
    entity_ids: Sequence[str],
    points_by_kind: Mapping[MetricKind, Sequence[RatePoint]],
    metric_names: Sequence[str],
    config: EngineConfig,
) -> MergedTimeline:
    recorded: Dict[str, Dict[int, Dict[str, float]]] = {e: {} for e in entity_ids}
    grid: set[int] = set()
    for kind in MetricKind.ordered(points_by_kind):
        for point in points_by_kind[kind]:
            per_entity = recorded.get(point.entity_id)
            if per_entity is None:
                continue
            grid.add(point.timestamp)
            per_entity.setdefault(point.timestamp, {}).update(point.values)

    timestamps = sorted(grid, reverse=True)
    truncated = False
    ceiling = config.timeline_max_points
    if ceiling and len(timestamps) > ceiling:
        # Newest first, so the cut drops the oldest part of the window.
        timestamps = timestamps[:ceiling]
        truncated = True

    series: Dict[str, List[DataPoint]] = {}
    for entity_id in entity_ids:
        per_entity = recorded[entity_id]
        rows: List[DataPoint] = []
        for ts in timestamps:
            values = per_entity.get(ts, {})
            row: DataPoint = {"timestamp": from_epoch(ts)}
            for name in metric_names:
                row[name] = values.get(name)
            rows.append(row)
        series[entity_id] = rows
    return MergedTimeline(series=series, truncated=truncated)
