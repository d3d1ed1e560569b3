from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from fleet_metrics import __version__
from fleet_metrics.api.endpoints import health
from fleet_metrics.api.router import api_router
from fleet_metrics.core.config import settings
from fleet_metrics.core.errors import InvalidQuery, StoreUnavailable
from fleet_metrics.core.logger import get_logger
from fleet_metrics.infrastructure.clickhouse.client import SampleStore
from fleet_metrics.infrastructure.clickhouse.directory import ServerDirectory
from fleet_metrics.services.query_service import MetricsQueryService
from fleet_metrics.services.sample_reader import SampleReader
from fleet_metrics.startup import initialize_application
from shared.constants import Environment

logger = get_logger("fleet_metrics.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    initialize_application()
    app.state.store = SampleStore()
    app.state.query_service = MetricsQueryService(
        reader=SampleReader(app.state.store),
        directory=ServerDirectory(),
    )
    logger.info("query_service_started")
    try:
        yield
    finally:
        logger.info("query_service_stopping")


_docs = Environment.exposes_docs(settings.app_environment)

app = FastAPI(
    title="Fleet Metrics Query API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if _docs else None,
    redoc_url=None,
    openapi_url="/openapi.json" if _docs else None,
)
app.include_router(health.router)
app.include_router(api_router)


@app.exception_handler(InvalidQuery)
async def invalid_query_handler(request: Request, exc: InvalidQuery):
    return JSONResponse(
        status_code=422, content={"detail": str(exc), "field": exc.field}
    )


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.warning(
        "query_store_unavailable",
        extra={"path": request.url.path, "error": str(exc)},
    )
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "retryable": exc.retryable},
        headers={"Retry-After": str(settings.store_retry_after_seconds)},
    )


@app.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
