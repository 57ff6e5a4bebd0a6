# /search_gateway/services/translation_service.py

import httpx
import logging
import tenacity
from typing import Dict, Optional

from search_gateway.config.settings import settings
from search_gateway.models.session import SessionContext
from search_gateway.services.catalog_client import http_client

# Translates incoming search terms into the store's default language before
# they reach the search core. A passthrough when locales already match.

logger = logging.getLogger(__name__)

TRANSLATE_QUERY = """
query Translate($args: TranslateArgs!) {
  translate(args: $args)
}
"""


class TranslationService:
    def __init__(self, service_url: Optional[str], http_client: httpx.AsyncClient):
        self.service_url = service_url
        self.http_client = http_client

    @tenacity.retry(
        retry=tenacity.retry_if_exception_type((httpx.RequestError, httpx.TimeoutException)),
        stop=tenacity.stop_after_attempt(settings.http_retry_attempts),
        wait=tenacity.wait_exponential(multiplier=0.5, min=0.5, max=5),
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def resilient_api_call(self, func, *args, **kwargs):
        return await func(*args, **kwargs)

    async def translate(self, term: str, from_locale: str, to_locale: str) -> str:
        """Translates a single term through the messages GraphQL service."""
        if not self.service_url:
            logger.debug("No translation service configured; using the term as sent.")
            return term
        variables = {
            "args": {
                "indexedByFrom": [{"from": from_locale, "messages": [{"content": term}]}],
                "to": to_locale,
            }
        }
        resp = await self.resilient_api_call(
            self.http_client.post,
            self.service_url,
            json={"query": TRANSLATE_QUERY, "variables": variables},
            headers={"Content-Type": "application/json"},
        )
        resp.raise_for_status()
        data: Dict = resp.json().get("data") or {}
        translations = data.get("translate") or []
        return translations[0] if translations else term

    async def to_store_default_language(self, term: str, session: SessionContext) -> str:
        source = session.locale
        target = session.tenant_locale or settings.store_default_locale
        if source and target and source != target:
            return await self.translate(term, source, target)
        return term


# Globally accessible instance, sharing the catalog connection pool
translation_service = TranslationService(settings.translation_service_url, http_client)
