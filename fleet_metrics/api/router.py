from fastapi import APIRouter

from .endpoints import metrics, processes

api_router = APIRouter(prefix="/v1")
api_router.include_router(metrics.router)
api_router.include_router(processes.router)
