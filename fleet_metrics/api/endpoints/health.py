from fastapi import APIRouter, Depends, Response

from fleet_metrics.api.dependencies import get_store
from fleet_metrics.core.errors import StoreUnavailable
from fleet_metrics.infrastructure.clickhouse.client import SampleStore
from fleet_metrics.utils.concurrency import run_blocking

router = APIRouter()


@router.get("/healthz")
async def healthz(store: SampleStore = Depends(get_store)):
    try:
        ok = await run_blocking(store.ping)
    except StoreUnavailable as e:
        return Response(status_code=503, content=str(e))
    if not ok:
        return Response(status_code=503, content="unexpected ping result")
    return {"status": "ok", "store": "reachable"}
