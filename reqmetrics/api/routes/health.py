from fastapi import APIRouter, HTTPException, Request

from ... import __version__
from ...config import settings
from ...observability.exposition import metrics_endpoint

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """health check endpoint"""
    return {
        "status": "ok",
        "service": settings.service_name,
        "version": __version__,
    }


@router.get("/metrics")
async def metrics(request: Request):
    """prometheus metrics endpoint"""
    if not settings.enable_metrics:
        raise HTTPException(status_code=404, detail="metrics disabled")
    return metrics_endpoint(request.app.state.metrics_registry)
