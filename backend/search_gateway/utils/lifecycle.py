# /search_gateway/utils/lifecycle.py

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from search_gateway.utils.logging import setup_logging
from search_gateway.services.cache_service import cache_service
from search_gateway.services.catalog_client import http_client
from search_gateway.config.settings import settings

# Startup and shutdown: logging setup, then closing the shared HTTP pool and
# the Redis connection pool on the way out.

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    setup_logging()

    logger.info(f"Search gateway starting up for account '{settings.catalog_account}'...")
    logger.info("Application startup complete. Ready to accept requests.")

    yield

    logger.info("Application shutting down...")
    await http_client.aclose()
    await cache_service.close()
