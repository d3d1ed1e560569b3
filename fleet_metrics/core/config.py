from dataclasses import dataclass

from pydantic import Field

from shared.config import BaseServiceConfig


@dataclass(frozen=True)
class EngineConfig:
    """Immutable tunables handed to the rate, timeline and ranking code.

    Built once per query from ``Settings`` so the computation is a pure
    function of (config, samples).
    """

    bucket_seconds: int = 60
    min_pair_seconds: int = 30
    max_pair_seconds: int = 120
    rate_precision: int = 2
    throughput_precision: int = 3
    cpu_rate_floor_seconds: int = 1
    timeline_max_points: int = 1000  # 0 disables the ceiling
    max_rank_limit: int = 50


class Settings(BaseServiceConfig):
    # Engine
    engine_bucket_seconds: int = 60
    engine_min_pair_seconds: int = 30
    engine_max_pair_seconds: int = 120
    engine_rate_precision: int = 2
    engine_throughput_precision: int = 3
    engine_cpu_rate_floor_seconds: int = 1
    engine_timeline_max_points: int = 1000
    engine_max_rank_limit: int = Field(50, ge=1, le=50)

    # Query bounds / defaults
    query_min_hours: int = 1
    query_max_hours: int = 168  # 7 days
    timeline_default_hours: int = 24
    timeline_default_metric_kinds: list[str] = ["cpu", "memory", "disk"]
    ranking_default_hours: int = 1
    ranking_default_limit: int = 10
    query_timeout_seconds: float = 30.0

    # HTTP
    http_host: str = "0.0.0.0"
    http_port: int = 8000

    # Store access
    store_fetch_retries: int = 3
    store_retry_base_delay: float = 0.2
    store_retry_after_seconds: int = 5  # hint returned with 503s

    service_name: str = "fleet-metrics"
    app_environment: str = "production"

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            bucket_seconds=self.engine_bucket_seconds,
            min_pair_seconds=self.engine_min_pair_seconds,
            max_pair_seconds=self.engine_max_pair_seconds,
            rate_precision=self.engine_rate_precision,
            throughput_precision=self.engine_throughput_precision,
            cpu_rate_floor_seconds=self.engine_cpu_rate_floor_seconds,
            timeline_max_points=self.engine_timeline_max_points,
            max_rank_limit=self.engine_max_rank_limit,
        )


settings = Settings()
