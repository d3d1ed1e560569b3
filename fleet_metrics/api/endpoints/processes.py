from fastapi import APIRouter, Depends

from fleet_metrics.api.dependencies import get_query_service
from fleet_metrics.domain.schemas import RankingQuery, RankingResponse
from fleet_metrics.services.query_service import MetricsQueryService

router = APIRouter(prefix="/processes", tags=["processes"])


@router.post(
    "/top",
    response_model=RankingResponse,
    summary="Top processes by average CPU or memory",
)
async def top_processes(
    query: RankingQuery, svc: MetricsQueryService = Depends(get_query_service)
):
    return await svc.top_processes(query)
