from datetime import datetime, timezone

from fleet_metrics.domain.models import MetricKind, RawSample
from fleet_metrics.metrics.bucketing import (
    bucket_start,
    bucketize,
    epoch_seconds,
    from_epoch,
)

from tests.helpers.samples import T0_EPOCH, at


def test_bucket_start_alignment():
    assert bucket_start(0, 60) == 0
    assert bucket_start(59.9, 60) == 0
    assert bucket_start(60, 60) == 60
    assert bucket_start(125, 60) == 120


def test_naive_timestamps_are_utc():
    naive = datetime(2026, 1, 1, 12, 0)
    aware = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert epoch_seconds(naive) == epoch_seconds(aware)
    assert from_epoch(int(epoch_seconds(aware))) == aware


def test_counters_keep_max_and_gauges_mean():
    samples = [
        RawSample("a", MetricKind.CPU, at(0), {"cpu_user_seconds": 100, "cpu_cores": 2}),
        RawSample("a", MetricKind.CPU, at(30), {"cpu_user_seconds": 130, "cpu_cores": 4}),
    ]
    buckets = bucketize(samples, ["cpu_user_seconds"], ["cpu_cores"], 60)

    assert list(buckets) == ["a"]
    [bucket] = buckets["a"]
    assert bucket.timestamp == T0_EPOCH
    assert bucket.fields == {"cpu_user_seconds": 130.0, "cpu_cores": 3.0}


def test_missing_fields_are_left_out():
    samples = [RawSample("a", MetricKind.CPU, at(0), {"cpu_user_seconds": 1})]
    [bucket] = bucketize(samples, ["cpu_user_seconds", "cpu_system_seconds"], [], 60)["a"]
    assert "cpu_system_seconds" not in bucket.fields


def test_buckets_ascending_and_entities_in_first_seen_order():
    samples = [
        RawSample("b", MetricKind.CPU, at(120), {"x": 3}),
        RawSample("a", MetricKind.CPU, at(60), {"x": 2}),
        RawSample("b", MetricKind.CPU, at(0), {"x": 1}),
    ]
    buckets = bucketize(samples, ["x"], [], 60)

    assert list(buckets) == ["b", "a"]
    assert [b.timestamp for b in buckets["b"]] == [T0_EPOCH, T0_EPOCH + 120]
    # empty intervals produce no bucket
    assert len(buckets["a"]) == 1
