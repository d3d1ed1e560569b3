"""Top-K process ranking.

Process snapshots are walked per ``(entity, process)`` in timestamp order with
a last-seen map. Each consecutive pair yields a CPU rate of
``cpu_delta / max(floor, time_delta) * 100``; a negative delta means the
process restarted and the pair is skipped. Memory and process counts are
gauges and are averaged directly. NULL readings are left out: a sample without
a CPU counter closes no pair, and one without memory or a process count does
not enter those averages.

Ranking by CPU only considers samples that closed a valid pair, so a process
never seen twice in a row is absent from the result. Ranking by memory looks
at every sample and keeps every process, with a null CPU average where none
could be computed. The two modes disagree on which processes exist; that
matches the behaviour callers already depend on and is kept as is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from statistics import fmean
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from fleet_metrics.core.config import EngineConfig
from fleet_metrics.domain.models import ProcessRankRow, ProcessSample, RankMetric
from fleet_metrics.metrics.bucketing import epoch_seconds

MB = 1024 * 1024

PartitionKey = Tuple[str, str]


@dataclass
class _Partition:
    cpu_rates: List[float] = field(default_factory=list)
    # Samples that closed a valid CPU pair.
    paired_memory: List[float] = field(default_factory=list)
    paired_procs: List[float] = field(default_factory=list)
    # Every sample in the window.
    memory: List[float] = field(default_factory=list)
    procs: List[float] = field(default_factory=list)


def _round_count(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _append_known(values: List[float], value: Optional[float]):
    if value is not None:
        values.append(value)


def _accumulate(
    samples: Iterable[ProcessSample], config: EngineConfig
) -> Dict[PartitionKey, _Partition]:
    ordered = sorted(
        samples, key=lambda s: (s.entity_id, s.process_name, epoch_seconds(s.timestamp))
    )
    partitions: Dict[PartitionKey, _Partition] = {}
    last_seen: Dict[PartitionKey, ProcessSample] = {}
    for sample in ordered:
        key = (sample.entity_id, sample.process_name)
        part = partitions.setdefault(key, _Partition())
        _append_known(part.memory, sample.memory_bytes)
        _append_known(part.procs, sample.num_procs)

        prev = last_seen.get(key)
        last_seen[key] = sample
        if prev is None:
            continue
        if sample.cpu_seconds_total is None or prev.cpu_seconds_total is None:
            continue
        cpu_delta = sample.cpu_seconds_total - prev.cpu_seconds_total
        if cpu_delta < 0:
            continue
        time_delta = max(
            config.cpu_rate_floor_seconds,
            epoch_seconds(sample.timestamp) - epoch_seconds(prev.timestamp),
        )
        part.cpu_rates.append(cpu_delta / time_delta * 100)
        _append_known(part.paired_memory, sample.memory_bytes)
        _append_known(part.paired_procs, sample.num_procs)
    return partitions


def _row(
    key: PartitionKey,
    label: str,
    avg_cpu: Optional[float],
    memory: List[float],
    procs: List[float],
    precision: int,
) -> ProcessRankRow:
    entity_id, process_name = key
    return ProcessRankRow(
        entity_id=entity_id,
        label=label,
        process_name=process_name,
        avg_cpu_percent=None if avg_cpu is None else round(avg_cpu, precision),
        avg_memory_mb=round(fmean(memory) / MB, precision) if memory else None,
        peak_memory_mb=round(max(memory) / MB, precision) if memory else None,
        avg_num_procs=_round_count(fmean(procs)) if procs else None,
    )


def rank_processes(
    samples: Iterable[ProcessSample],
    metric: RankMetric,
    limit: int,
    labels: Mapping[str, str],
    config: EngineConfig,
) -> List[ProcessRankRow]:
    """Top ``limit`` processes across entities by average CPU or memory.

    Ties on the ranked value are broken by process name, then entity id,
    both ascending.
    """
    limit = max(0, min(limit, config.max_rank_limit))
    precision = config.rate_precision
    rows: List[ProcessRankRow] = []
    for key, part in _accumulate(samples, config).items():
        label = labels.get(key[0], key[0])
        avg_cpu = fmean(part.cpu_rates) if part.cpu_rates else None
        if metric is RankMetric.CPU:
            if avg_cpu is None:
                continue
            rows.append(
                _row(key, label, avg_cpu, part.paired_memory, part.paired_procs, precision)
            )
        else:
            rows.append(_row(key, label, avg_cpu, part.memory, part.procs, precision))

    if metric is RankMetric.CPU:
        rows.sort(key=lambda r: (-r.avg_cpu_percent, r.process_name, r.entity_id))
    else:
        rows.sort(
            key=lambda r: (
                r.avg_memory_mb is None,
                -(r.avg_memory_mb or 0.0),
                r.process_name,
                r.entity_id,
            )
        )
    return rows[:limit]
