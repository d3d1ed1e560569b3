import pytest

from fleet_metrics.core.config import EngineConfig
from fleet_metrics.domain.models import MetricKind
from fleet_metrics.metrics.rates import compute_rate_points, time_delta_valid

from tests.helpers.samples import T0_EPOCH


def _cpu_pair(cpu_sample, dt, prev_user=100, cur_user=160, cores=2):
    return [
        cpu_sample("srv-1", 0, prev_user, cores=cores),
        cpu_sample("srv-1", dt, cur_user, cores=cores),
    ]


def test_cpu_worked_example(cpu_sample, engine):
    """60 busy seconds over 60s on 2 cores is half the machine."""
    points = compute_rate_points(MetricKind.CPU, _cpu_pair(cpu_sample, 60), engine)

    assert len(points) == 1
    assert points[0].entity_id == "srv-1"
    assert points[0].timestamp == T0_EPOCH + 60
    assert points[0].values == {"cpu_usage_percent": 50.0}


def test_cpu_sums_all_busy_counters(cpu_sample, engine):
    samples = [
        cpu_sample("srv-1", 0, 10, system=10, iowait=10, steal=10, cores=4),
        cpu_sample("srv-1", 60, 40, system=40, iowait=40, steal=40, cores=4),
    ]
    [point] = compute_rate_points(MetricKind.CPU, samples, engine)
    # 120 busy seconds / 4 cores / 60s
    assert point.values["cpu_usage_percent"] == 50.0


def test_cpu_capped_at_100(cpu_sample, engine):
    samples = _cpu_pair(cpu_sample, 60, prev_user=0, cur_user=1000)
    [point] = compute_rate_points(MetricKind.CPU, samples, engine)
    assert point.values["cpu_usage_percent"] == 100.0


@pytest.mark.parametrize(
    "dt, expected",
    [(29, False), (30, True), (60, True), (120, True), (121, False)],
)
def test_time_delta_window_boundaries(dt, expected, raw_engine):
    assert time_delta_valid(dt, raw_engine) is expected


@pytest.mark.parametrize("dt, produces", [(29, 0), (30, 1), (120, 1), (121, 0)])
def test_pair_spacing_boundaries(cpu_sample, raw_engine, dt, produces):
    points = compute_rate_points(MetricKind.CPU, _cpu_pair(cpu_sample, dt), raw_engine)
    assert len(points) == produces


def test_counter_reset_yields_no_point(cpu_sample, engine):
    samples = _cpu_pair(cpu_sample, 60, prev_user=500, cur_user=100)
    assert compute_rate_points(MetricKind.CPU, samples, engine) == []


def test_reset_pair_does_not_affect_following_pair(cpu_sample, engine):
    samples = [
        cpu_sample("srv-1", 0, 500),
        cpu_sample("srv-1", 60, 100),
        cpu_sample("srv-1", 120, 160),
    ]
    points = compute_rate_points(MetricKind.CPU, samples, engine)
    assert [p.timestamp for p in points] == [T0_EPOCH + 120]
    assert points[0].values["cpu_usage_percent"] == 50.0


@pytest.mark.parametrize("cores", [0, -1, None])
def test_non_positive_or_missing_cores_yields_no_point(cpu_sample, engine, cores):
    samples = _cpu_pair(cpu_sample, 60, cores=cores)
    assert compute_rate_points(MetricKind.CPU, samples, engine) == []


def test_gap_in_reporting_leaves_gap(cpu_sample, engine):
    samples = [
        cpu_sample("srv-1", 0, 100),
        cpu_sample("srv-1", 60, 160),
        # agent silent for 4 minutes
        cpu_sample("srv-1", 300, 400),
        cpu_sample("srv-1", 360, 460),
    ]
    points = compute_rate_points(MetricKind.CPU, samples, engine)
    assert [p.timestamp - T0_EPOCH for p in points] == [60, 360]


def test_single_sample_produces_nothing(cpu_sample, engine):
    assert compute_rate_points(MetricKind.CPU, [cpu_sample("a", 0, 1)], engine) == []


def test_entities_never_pair_with_each_other(cpu_sample, engine):
    samples = [cpu_sample("a", 0, 100), cpu_sample("b", 60, 160)]
    assert compute_rate_points(MetricKind.CPU, samples, engine) == []


def test_samples_in_one_bucket_collapse(cpu_sample, engine):
    samples = [
        cpu_sample("a", 0, 100),
        cpu_sample("a", 20, 110),
        cpu_sample("a", 60, 170),
    ]
    [point] = compute_rate_points(MetricKind.CPU, samples, engine)
    # max(100, 110) pairs with 170 over one bucket width
    assert point.values["cpu_usage_percent"] == 50.0


def test_network_worked_example(network_sample, engine):
    samples = [
        network_sample("srv-1", 0, rx=1_000_000, tx=500_000),
        network_sample("srv-1", 60, rx=2_000_000, tx=500_000),
    ]
    [point] = compute_rate_points(MetricKind.NETWORK, samples, engine)
    assert point.values["network_download_mbps"] == 0.133
    assert point.values["network_upload_mbps"] == 0.0


def test_network_reset_in_one_direction_drops_both(network_sample, engine):
    samples = [
        network_sample("srv-1", 0, rx=1_000_000, tx=900_000),
        network_sample("srv-1", 60, rx=2_000_000, tx=100),
    ]
    assert compute_rate_points(MetricKind.NETWORK, samples, engine) == []


def test_network_optional_rates(network_sample, engine):
    samples = [
        network_sample(
            "srv-1",
            0,
            rx=0,
            tx=0,
            network_receive_packets_total=600,
            network_transmit_errs_total=50,
        ),
        network_sample(
            "srv-1",
            60,
            rx=0,
            tx=0,
            network_receive_packets_total=1200,
            network_transmit_errs_total=10,
        ),
    ]
    [point] = compute_rate_points(MetricKind.NETWORK, samples, engine)
    assert point.values["network_rx_packets_per_sec"] == 10.0
    # reset on an optional counter drops only that value
    assert "network_tx_errors_per_sec" not in point.values
    assert "network_rx_drops_per_sec" not in point.values


def test_memory_usage_worked_example(gauge_sample, engine):
    samples = [gauge_sample("srv-1", MetricKind.MEMORY, 0, 10e9, 4e9)]
    [point] = compute_rate_points(MetricKind.MEMORY, samples, engine)
    assert point.timestamp == T0_EPOCH
    assert point.values == {
        "memory_usage_percent": 60.0,
        "memory_used_mb": 5722.05,
        "memory_total_mb": 9536.74,
    }


def test_disk_usage_worked_example(gauge_sample, engine):
    samples = [gauge_sample("srv-1", MetricKind.DISK, 0, 10e9, 4e9)]
    [point] = compute_rate_points(MetricKind.DISK, samples, engine)
    assert point.values == {
        "disk_usage_percent": 60.0,
        "disk_used_gb": 5.59,
        "disk_total_gb": 9.31,
    }


@pytest.mark.parametrize(
    "total, available", [(0, 0), (-5, 0), (100, -1), (100, 101)]
)
def test_invalid_gauges_yield_no_point(gauge_sample, engine, total, available):
    samples = [gauge_sample("srv-1", MetricKind.DISK, 0, total, available)]
    assert compute_rate_points(MetricKind.DISK, samples, engine) == []


def test_gauges_need_no_pair(gauge_sample, engine):
    samples = [
        gauge_sample("srv-1", MetricKind.MEMORY, 0, 100, 50),
        gauge_sample("srv-1", MetricKind.MEMORY, 600, 100, 25),
    ]
    points = compute_rate_points(MetricKind.MEMORY, samples, engine)
    assert [p.values["memory_usage_percent"] for p in points] == [50.0, 75.0]


def test_precision_is_configurable(cpu_sample):
    config = EngineConfig(rate_precision=0)
    samples = [cpu_sample("a", 0, 0, cores=3), cpu_sample("a", 60, 100, cores=3)]
    [point] = compute_rate_points(MetricKind.CPU, samples, config)
    assert point.values["cpu_usage_percent"] == 56.0


def test_empty_input(engine):
    for kind in MetricKind:
        assert compute_rate_points(kind, [], engine) == []
