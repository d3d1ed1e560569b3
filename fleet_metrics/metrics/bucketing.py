from collections import defaultdict
from datetime import datetime, timezone
from math import floor
from typing import Dict, Iterable, List, Sequence

from fleet_metrics.domain.models import Bucket, RawSample


def bucket_start(timestamp_seconds: float, granularity_seconds: int) -> int:
    return int(floor(timestamp_seconds / granularity_seconds) * granularity_seconds)


def epoch_seconds(ts: datetime) -> float:
    # The store hands back naive datetimes in UTC.
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.timestamp()


def from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def bucketize(
    samples: Iterable[RawSample],
    counters: Sequence[str],
    gauges: Sequence[str],
    granularity_seconds: int,
) -> Dict[str, List[Bucket]]:
    """Fold raw samples into aligned buckets, per entity.

    Counters keep the largest value seen in the bucket (closest to the
    end-of-bucket cumulative value), gauges the mean. A field no sample in the
    bucket carried is left out; a bucket with no samples does not exist.
    Entities keep their first-seen order; buckets are ascending.
    """
    # entity -> bucket start -> field -> values
    grouped: Dict[str, Dict[int, Dict[str, List[float]]]] = {}
    for sample in samples:
        start = bucket_start(epoch_seconds(sample.timestamp), granularity_seconds)
        per_entity = grouped.setdefault(sample.entity_id, {})
        values = per_entity.setdefault(start, defaultdict(list))
        for name in counters:
            value = sample.fields.get(name)
            if value is not None:
                values[name].append(float(value))
        for name in gauges:
            value = sample.fields.get(name)
            if value is not None:
                values[name].append(float(value))

    gauge_set = set(gauges)
    result: Dict[str, List[Bucket]] = {}
    for entity_id, per_entity in grouped.items():
        buckets = []
        for start in sorted(per_entity):
            fields = {}
            for name, values in per_entity[start].items():
                if name in gauge_set:
                    fields[name] = sum(values) / len(values)
                else:
                    fields[name] = max(values)
            buckets.append(Bucket(entity_id=entity_id, timestamp=start, fields=fields))
        result[entity_id] = buckets
    return result
