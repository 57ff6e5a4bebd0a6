# /search_gateway/main.py

import os
import time
import httpx
import uvicorn
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from redis.exceptions import RedisError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from search_gateway.config.settings import settings
from search_gateway.utils.circuit_breaker import CircuitOpenError
from search_gateway.utils.errors import SearchGatewayError
from search_gateway.utils.lifecycle import lifespan
from search_gateway.utils.metrics import response_time_histogram
from search_gateway.utils.rate_limiter import limiter
from search_gateway.routes import public, search

log = structlog.get_logger(__name__)

app = FastAPI(
    title="Storefront Search Gateway",
    version="1.0.0",
    description="Translates storefront search requests into catalog search backend calls",
    lifespan=lifespan,
    openapi_url=f"/api/{settings.api_version}/openapi.json" if settings.environment != "production" else None,
    docs_url=f"/api/{settings.api_version}/docs" if settings.environment != "production" else None,
    redoc_url=None,
)

# --- Rate Limiting ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Error Handling ---

def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "code": code, "message": message}, status_code=status_code)

@app.exception_handler(SearchGatewayError)
async def search_gateway_error_handler(request: Request, exc: SearchGatewayError):
    return _error_response(exc.status_code, exc.code, exc.message)

@app.exception_handler(httpx.HTTPStatusError)
async def backend_status_error_handler(request: Request, exc: httpx.HTTPStatusError):
    log.error("catalog_backend.http_error", status=exc.response.status_code, path=request.url.path)
    return _error_response(502, "BACKEND_ERROR", f"Catalog backend returned HTTP {exc.response.status_code}")

@app.exception_handler(httpx.RequestError)
async def backend_transport_error_handler(request: Request, exc: httpx.RequestError):
    log.error("catalog_backend.unreachable", error=str(exc), path=request.url.path)
    return _error_response(502, "BACKEND_UNREACHABLE", "Catalog backend could not be reached")

@app.exception_handler(RedisError)
@app.exception_handler(CircuitOpenError)
async def store_error_handler(request: Request, exc: Exception):
    log.error("mapping_store.unavailable", error=str(exc), path=request.url.path)
    return _error_response(503, "STORE_UNAVAILABLE", "Query mapping store is unavailable")

# --- Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SlowAPIMiddleware)

@app.middleware("http")
async def performance_middleware(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response_time_histogram.labels(endpoint=request.url.path).observe(process_time)
    response.headers["X-Process-Time"] = str(process_time)
    return response

# --- API Routers ---
app.include_router(public.router)
app.include_router(search.router, prefix=f"/api/{settings.api_version}")

# --- Main Entry Point for Uvicorn (for local development) ---
if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "127.0.0.1")

    uvicorn.run(
        "search_gateway.main:app",
        host=host,
        port=port,
        reload=True if settings.environment == "development" else False,
        workers=settings.workers if settings.environment == "production" else 1
    )
