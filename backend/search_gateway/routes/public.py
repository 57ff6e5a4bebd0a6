# /search_gateway/routes/public.py

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest
from datetime import datetime, timezone

from search_gateway.config.settings import settings
from search_gateway.utils.dependencies import verify_metrics_access
from search_gateway.services.cache_service import cache_service

# Unauthenticated endpoints: service info, health probes and metrics.

router = APIRouter()

@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Storefront Search Gateway",
        "version": "1.0.0",
        "status": "operational",
        "environment": settings.environment
    }

@router.get("/health", summary="Basic Health Check")
async def health_check():
    """Basic health check for load balancers."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc)}

@router.get("/health/ready", summary="Readiness Probe")
async def readiness_check():
    """Readiness probe; the mapping store must be reachable."""
    try:
        await cache_service.redis.ping()
        return {"status": "ready"}
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Service not ready: {e}")

@router.get("/metrics", tags=["Monitoring"])
async def metrics(request: Request, _: bool = Depends(verify_metrics_access)):
    """Prometheus metrics endpoint, protected when an API key is configured."""
    return PlainTextResponse(generate_latest(), media_type="text/plain")
