"""Store columns per metric kind and the role each one plays.

Counters only grow while the collecting agent runs and are reduced by ``max``
inside a bucket; gauges are point-in-time values reduced by the mean.
"""

from dataclasses import dataclass

from fleet_metrics.domain.models import MetricKind

CPU_BUSY_COUNTERS = (
    "cpu_user_seconds",
    "cpu_system_seconds",
    "cpu_iowait_seconds",
    "cpu_steal_seconds",
)
CPU_CORES = "cpu_cores"

MEMORY_TOTAL = "memory_total_bytes"
MEMORY_AVAILABLE = "memory_available_bytes"
DISK_TOTAL = "disk_total_bytes"
DISK_AVAILABLE = "disk_available_bytes"

NETWORK_RX_BYTES = "network_receive_bytes_total"
NETWORK_TX_BYTES = "network_transmit_bytes_total"

# (counter column, output metric) pairs reported when present and not reset.
NETWORK_OPTIONAL_COUNTERS = (
    ("network_receive_packets_total", "network_rx_packets_per_sec"),
    ("network_transmit_packets_total", "network_tx_packets_per_sec"),
    ("network_receive_errs_total", "network_rx_errors_per_sec"),
    ("network_transmit_errs_total", "network_tx_errors_per_sec"),
    ("network_receive_drop_total", "network_rx_drops_per_sec"),
    ("network_transmit_drop_total", "network_tx_drops_per_sec"),
)


@dataclass(frozen=True)
class KindFields:
    counters: tuple[str, ...]
    gauges: tuple[str, ...]
    outputs: tuple[str, ...]

    @property
    def columns(self) -> tuple[str, ...]:
        return self.counters + self.gauges


KIND_FIELDS: dict[MetricKind, KindFields] = {
    MetricKind.CPU: KindFields(
        counters=CPU_BUSY_COUNTERS,
        gauges=(CPU_CORES,),
        outputs=("cpu_usage_percent",),
    ),
    MetricKind.MEMORY: KindFields(
        counters=(),
        gauges=(MEMORY_TOTAL, MEMORY_AVAILABLE),
        outputs=("memory_usage_percent", "memory_used_mb", "memory_total_mb"),
    ),
    MetricKind.DISK: KindFields(
        counters=(),
        gauges=(DISK_TOTAL, DISK_AVAILABLE),
        outputs=("disk_usage_percent", "disk_used_gb", "disk_total_gb"),
    ),
    MetricKind.NETWORK: KindFields(
        counters=(NETWORK_RX_BYTES, NETWORK_TX_BYTES)
        + tuple(column for column, _ in NETWORK_OPTIONAL_COUNTERS),
        gauges=(),
        outputs=("network_download_mbps", "network_upload_mbps")
        + tuple(name for _, name in NETWORK_OPTIONAL_COUNTERS),
    ),
}


def output_names(kinds) -> list[str]:
    """Output metric names for ``kinds`` in a stable order."""
    names: list[str] = []
    for kind in MetricKind.ordered(kinds):
        names.extend(KIND_FIELDS[kind].outputs)
    return names
