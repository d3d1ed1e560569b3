import pytest

from fleet_metrics.core.config import EngineConfig
from fleet_metrics.domain.models import MetricKind, ProcessSample, RawSample

from tests.helpers.samples import at


@pytest.fixture
def engine() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def raw_engine() -> EngineConfig:
    """One-second buckets so pair spacing equals sample spacing."""
    return EngineConfig(bucket_seconds=1)


@pytest.fixture
def cpu_sample():
    def _make(entity_id, seconds, user, system=0.0, iowait=0.0, steal=0.0, cores=2):
        fields = {
            "cpu_user_seconds": user,
            "cpu_system_seconds": system,
            "cpu_iowait_seconds": iowait,
            "cpu_steal_seconds": steal,
        }
        if cores is not None:
            fields["cpu_cores"] = cores
        return RawSample(entity_id, MetricKind.CPU, at(seconds), fields)

    return _make


@pytest.fixture
def network_sample():
    def _make(entity_id, seconds, rx, tx, **extra):
        fields = {
            "network_receive_bytes_total": rx,
            "network_transmit_bytes_total": tx,
        }
        fields.update(extra)
        return RawSample(entity_id, MetricKind.NETWORK, at(seconds), fields)

    return _make


@pytest.fixture
def gauge_sample():
    def _make(entity_id, kind, seconds, total, available):
        prefix = "memory" if kind is MetricKind.MEMORY else "disk"
        fields = {
            f"{prefix}_total_bytes": total,
            f"{prefix}_available_bytes": available,
        }
        return RawSample(entity_id, kind, at(seconds), fields)

    return _make


@pytest.fixture
def process_sample():
    def _make(entity_id, name, seconds, cpu, memory_mb=100, procs=1):
        return ProcessSample(
            entity_id=entity_id,
            timestamp=at(seconds),
            process_name=name,
            cpu_seconds_total=cpu,
            memory_bytes=None if memory_mb is None else memory_mb * 1024 * 1024,
            num_procs=procs,
        )

    return _make
