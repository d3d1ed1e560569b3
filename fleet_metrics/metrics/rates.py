"""Counter-to-rate conversion.

Samples are folded into fixed buckets, then consecutive buckets of the same
entity are compared. A pair only yields a rate when

* ``min_pair_seconds <= time_delta <= max_pair_seconds``,
* no relevant counter went backwards (a reset after an agent or host
  restart), and
* the normalizer (core count) is positive.

Pairs failing any check produce no point at all: not a zero, not a clamped
value. Callers see a gap, which is the intended outcome.

Memory and disk are gauges and need no pairing; one point per bucket whose
total is positive. A gauge bucket whose available value is negative or larger
than its total is dropped as well, so usage always lies within 0..100.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Mapping, Optional

from fleet_metrics.core.config import EngineConfig
from fleet_metrics.core.logger import get_logger
from fleet_metrics.core.metrics import RATE_PAIRS_REJECTED
from fleet_metrics.domain.fields import (
    CPU_BUSY_COUNTERS,
    CPU_CORES,
    DISK_AVAILABLE,
    DISK_TOTAL,
    KIND_FIELDS,
    MEMORY_AVAILABLE,
    MEMORY_TOTAL,
    NETWORK_OPTIONAL_COUNTERS,
    NETWORK_RX_BYTES,
    NETWORK_TX_BYTES,
)
from fleet_metrics.domain.models import Bucket, MetricKind, RatePoint, RawSample
from fleet_metrics.metrics.bucketing import bucketize

logger = get_logger("metrics.rates")

MB = 1024 * 1024
GB = 1024 * 1024 * 1024
BITS_PER_BYTE = 8
MEGABIT = 1_000_000

REJECT_TIME_DELTA = "time_delta"
REJECT_COUNTER_RESET = "counter_reset"
REJECT_NORMALIZER = "normalizer"
REJECT_MISSING_FIELD = "missing_field"
REJECT_INVALID_GAUGE = "invalid_gauge"

PairRate = Callable[[Bucket, Bucket, int, EngineConfig], Optional[Dict[str, float]]]


def _reject(kind: MetricKind, reason: str, bucket: Bucket) -> None:
    RATE_PAIRS_REJECTED.labels(metric_kind=kind.value, reason=reason).inc()
    logger.debug(
        "rate_point_skipped",
        extra={
            "metric_kind": kind.value,
            "reason": reason,
            "entity_id": bucket.entity_id,
            "bucket": bucket.timestamp,
        },
    )


def _deltas(
    prev: Mapping[str, float], cur: Mapping[str, float], names: Iterable[str]
) -> Optional[List[float]]:
    deltas = []
    for name in names:
        if name not in prev or name not in cur:
            return None
        deltas.append(cur[name] - prev[name])
    return deltas


def time_delta_valid(time_delta: int, config: EngineConfig) -> bool:
    return config.min_pair_seconds <= time_delta <= config.max_pair_seconds


def _cpu_usage(
    prev: Bucket, cur: Bucket, time_delta: int, config: EngineConfig
) -> Optional[Dict[str, float]]:
    deltas = _deltas(prev.fields, cur.fields, CPU_BUSY_COUNTERS)
    if deltas is None:
        _reject(MetricKind.CPU, REJECT_MISSING_FIELD, cur)
        return None
    if any(d < 0 for d in deltas):
        _reject(MetricKind.CPU, REJECT_COUNTER_RESET, cur)
        return None
    cores = cur.fields.get(CPU_CORES, prev.fields.get(CPU_CORES, 0.0))
    if cores <= 0:
        _reject(MetricKind.CPU, REJECT_NORMALIZER, cur)
        return None
    percent = sum(deltas) / cores / time_delta * 100
    return {"cpu_usage_percent": round(min(100.0, percent), config.rate_precision)}


def _network_throughput(
    prev: Bucket, cur: Bucket, time_delta: int, config: EngineConfig
) -> Optional[Dict[str, float]]:
    deltas = _deltas(prev.fields, cur.fields, (NETWORK_RX_BYTES, NETWORK_TX_BYTES))
    if deltas is None:
        _reject(MetricKind.NETWORK, REJECT_MISSING_FIELD, cur)
        return None
    rx_delta, tx_delta = deltas
    # Both directions must be valid for either to be reported.
    if rx_delta < 0 or tx_delta < 0:
        _reject(MetricKind.NETWORK, REJECT_COUNTER_RESET, cur)
        return None

    def mbps(byte_delta: float) -> float:
        return round(
            byte_delta / time_delta * BITS_PER_BYTE / MEGABIT,
            config.throughput_precision,
        )

    values = {
        "network_download_mbps": mbps(rx_delta),
        "network_upload_mbps": mbps(tx_delta),
    }
    for column, name in NETWORK_OPTIONAL_COUNTERS:
        optional = _deltas(prev.fields, cur.fields, (column,))
        if optional is None or optional[0] < 0:
            continue
        values[name] = round(optional[0] / time_delta, config.rate_precision)
    return values


def _walk_pairs(
    kind: MetricKind,
    buckets_by_entity: Mapping[str, List[Bucket]],
    config: EngineConfig,
    rate: PairRate,
) -> List[RatePoint]:
    points: List[RatePoint] = []
    last_seen: Dict[str, Bucket] = {}
    for entity_id, buckets in buckets_by_entity.items():
        for bucket in buckets:
            prev = last_seen.get(entity_id)
            last_seen[entity_id] = bucket
            if prev is None:
                continue
            time_delta = bucket.timestamp - prev.timestamp
            if not time_delta_valid(time_delta, config):
                _reject(kind, REJECT_TIME_DELTA, bucket)
                continue
            values = rate(prev, bucket, time_delta, config)
            if values is not None:
                points.append(RatePoint(entity_id, bucket.timestamp, values))
    return points


def _usage_points(
    kind: MetricKind,
    buckets_by_entity: Mapping[str, List[Bucket]],
    total_field: str,
    available_field: str,
    prefix: str,
    unit: str,
    divisor: int,
    precision: int,
) -> List[RatePoint]:
    points: List[RatePoint] = []
    for entity_id, buckets in buckets_by_entity.items():
        for bucket in buckets:
            total = bucket.fields.get(total_field)
            available = bucket.fields.get(available_field)
            if total is None or available is None:
                _reject(kind, REJECT_MISSING_FIELD, bucket)
                continue
            if total <= 0:
                _reject(kind, REJECT_NORMALIZER, bucket)
                continue
            if available < 0 or available > total:
                _reject(kind, REJECT_INVALID_GAUGE, bucket)
                continue
            used = total - available
            values = {
                f"{prefix}_usage_percent": round(used / total * 100, precision),
                f"{prefix}_used_{unit}": round(used / divisor, precision),
                f"{prefix}_total_{unit}": round(total / divisor, precision),
            }
            points.append(RatePoint(entity_id, bucket.timestamp, values))
    return points


def compute_rate_points(
    kind: MetricKind, samples: Iterable[RawSample], config: EngineConfig
) -> List[RatePoint]:
    """Turn the ordered samples of one metric kind into sparse rate points."""
    fields = KIND_FIELDS[kind]
    buckets = bucketize(samples, fields.counters, fields.gauges, config.bucket_seconds)
    if kind is MetricKind.CPU:
        return _walk_pairs(kind, buckets, config, _cpu_usage)
    if kind is MetricKind.NETWORK:
        return _walk_pairs(kind, buckets, config, _network_throughput)
    if kind is MetricKind.MEMORY:
        return _usage_points(
            kind, buckets, MEMORY_TOTAL, MEMORY_AVAILABLE, "memory", "mb", MB,
            config.rate_precision,
        )
    if kind is MetricKind.DISK:
        return _usage_points(
            kind, buckets, DISK_TOTAL, DISK_AVAILABLE, "disk", "gb", GB,
            config.rate_precision,
        )
    raise ValueError(f"Unknown metric kind: {kind}")
