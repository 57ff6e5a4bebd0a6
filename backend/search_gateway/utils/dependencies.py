# /search_gateway/utils/dependencies.py

import secrets
from fastapi import Depends, HTTPException, Request

from search_gateway.config.settings import settings
from search_gateway.models.session import SegmentData, SessionContext
from search_gateway.services.cache_service import cache_service
from search_gateway.services.catalog_client import catalog_client_for
from search_gateway.services.search_service import SearchClients
from search_gateway.services.translation_service import translation_service

SEGMENT_HEADER = "X-Segment-Token"
LOCALE_HEADER = "X-Locale"
TENANT_LOCALE_HEADER = "X-Tenant-Locale"
ACCOUNT_HEADER = "X-Account"


def get_session_context(request: Request) -> SessionContext:
    """Builds the caller's session from the segment token and locale headers."""
    segment_token = request.headers.get(SEGMENT_HEADER)
    segment = SegmentData.from_token(segment_token)
    return SessionContext(
        account=request.headers.get(ACCOUNT_HEADER) or settings.catalog_account,
        locale=request.headers.get(LOCALE_HEADER) or (segment.culture_info if segment else None),
        tenant_locale=request.headers.get(TENANT_LOCALE_HEADER) or settings.store_default_locale,
        segment=segment,
        segment_token=segment_token,
    )


def get_search_clients(session: SessionContext = Depends(get_session_context)) -> SearchClients:
    return SearchClients(
        search=catalog_client_for(session),
        store=cache_service,
        translator=translation_service,
        session=session,
    )


async def verify_metrics_access(request: Request):
    if settings.api_key:
        provided_key = request.headers.get("X-API-KEY")
        if not (provided_key and secrets.compare_digest(provided_key, settings.api_key)):
            raise HTTPException(status_code=403, detail="Invalid or missing API key")
