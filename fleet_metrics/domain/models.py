"""In-memory records flowing through one query.

Created from store reads, held for a single request, then discarded.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping


class MetricKind(str, Enum):
    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"
    NETWORK = "network"

    @classmethod
    def ordered(cls, kinds) -> list["MetricKind"]:
        """Deduplicate ``kinds`` and return them in canonical order."""
        wanted = {cls(k) for k in kinds}
        return [k for k in cls if k in wanted]


class RankMetric(str, Enum):
    CPU = "cpu"
    MEMORY = "memory"


@dataclass(frozen=True)
class Entity:
    entity_id: str
    display_name: str


@dataclass(frozen=True)
class RawSample:
    entity_id: str
    metric_kind: MetricKind
    timestamp: datetime
    fields: Mapping[str, float]


@dataclass(frozen=True)
class Bucket:
    """Samples of one entity/kind folded into an aligned interval.

    ``timestamp`` is the bucket start in epoch seconds.
    """

    entity_id: str
    timestamp: int
    fields: Mapping[str, float]


@dataclass(frozen=True)
class RatePoint:
    entity_id: str
    timestamp: int
    values: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ProcessSample:
    entity_id: str
    timestamp: datetime
    process_name: str
    # NULL store columns stay None; ranking skips them instead of reading zero.
    cpu_seconds_total: float | None
    memory_bytes: float | None
    num_procs: float | None


@dataclass(frozen=True)
class ProcessRankRow:
    entity_id: str
    label: str
    process_name: str
    avg_cpu_percent: float | None
    avg_memory_mb: float | None
    peak_memory_mb: float | None
    avg_num_procs: int | None
