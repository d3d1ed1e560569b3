from fastapi import Request

from fleet_metrics.infrastructure.clickhouse.client import SampleStore
from fleet_metrics.services.query_service import MetricsQueryService


def get_store(request: Request) -> SampleStore:
    return request.app.state.store  # type: ignore[return-value]


def get_query_service(request: Request) -> MetricsQueryService:
    return request.app.state.query_service  # type: ignore[return-value]
