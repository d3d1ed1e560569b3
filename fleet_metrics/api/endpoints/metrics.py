from fastapi import APIRouter, Depends

from fleet_metrics.api.dependencies import get_query_service
from fleet_metrics.domain.schemas import TimelineQuery, TimelineResponse
from fleet_metrics.services.query_service import MetricsQueryService

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.post(
    "/timeline",
    response_model=TimelineResponse,
    summary="Utilization timeline for a set of servers",
    response_description="One aligned, newest-first series per server",
)
async def timeline(
    query: TimelineQuery, svc: MetricsQueryService = Depends(get_query_service)
):
    return await svc.timeline(query)
