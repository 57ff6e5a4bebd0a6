# /search_gateway/services/catalog_client.py

import httpx
import logging
import tenacity
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from search_gateway.config.settings import settings
from search_gateway.models.search import SearchArgs, SearchCrossSellingType
from search_gateway.models.session import SessionContext
from search_gateway.services.url_builder import (
    build_search_url,
    decode_uri,
    encode_uri,
    encode_uri_component,
    search_encode_uri,
)
from search_gateway.utils.inflight import InflightRegistry, inflight_key
from search_gateway.utils.metrics import backend_requests_counter

# Client for the catalog search REST API. One instance is bound to each
# request's session so the sales channel and segment token travel with every
# call; the HTTP connection pool and in-flight registry are shared.

logger = logging.getLogger(__name__)


class CatalogSearchClient:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        inflight: InflightRegistry,
        session: SessionContext,
        base_url: str = settings.catalog_url,
    ):
        self.http_client = http_client
        self.inflight = inflight
        self.session = session
        self.account = session.account
        self.base_url = base_url.rstrip("/")

    @tenacity.retry(
        retry=tenacity.retry_if_exception_type((httpx.RequestError, httpx.TimeoutException)),
        stop=tenacity.stop_after_attempt(settings.http_retry_attempts),
        wait=tenacity.wait_exponential(multiplier=0.5, min=0.5, max=5),
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def resilient_api_call(self, func, *args, **kwargs):
        return await func(*args, **kwargs)

    def _encode(self, value: str) -> str:
        return search_encode_uri(value, self.account, settings.raw_uri_accounts)

    # --- Page Types & Metadata ---

    async def page_type(self, path: str, query: str = "") -> Dict:
        page_type_path = path[1:] if path.startswith("/") else path
        page_type_query = query if not query or query.startswith("?") else f"?{query}"
        return await self._get(f"/pub/portal/pagetype/{page_type_path}{page_type_query}", metric="search-pagetype")

    async def get_field(self, field_id: int) -> Dict:
        return await self._get(f"/pub/specification/fieldGet/{field_id}", metric="catalog-get-field-by-id")

    # --- Product Lookups ---

    async def product(self, slug: str) -> List[Dict]:
        return await self._get(
            f"/pub/products/search/{self._encode(encode_uri_component(slug.lower() if slug else ''))}/p",
            metric="search-product",
        )

    async def product_by_id(self, product_id: str) -> List[Dict]:
        return await self._get(f"/pub/products/search?fq=productId:{product_id}", metric="search-productById")

    async def products_by_id(self, ids: List[str]) -> List[Dict]:
        return await self._get(self._multi_fq("productId", ids), metric="search-productById")

    async def product_by_ean(self, ean: str) -> List[Dict]:
        return await self._get(f"/pub/products/search?fq=alternateIds_Ean:{ean}", metric="search-productByEan")

    async def products_by_ean(self, eans: List[str]) -> List[Dict]:
        return await self._get(self._multi_fq("alternateIds_Ean", eans), metric="search-productByEan")

    async def product_by_reference(self, reference: str) -> List[Dict]:
        return await self._get(f"/pub/products/search?fq=alternateIds_RefId:{reference}", metric="search-productByReference")

    async def products_by_reference(self, references: List[str]) -> List[Dict]:
        return await self._get(self._multi_fq("alternateIds_RefId", references), metric="search-productByReference")

    async def product_by_sku(self, sku_ids: List[str]) -> List[Dict]:
        return await self._get(self._multi_fq("skuId", sku_ids), metric="search-productBySku")

    # --- Product Search ---

    def product_search_url(self, args: SearchArgs) -> str:
        return build_search_url(
            args,
            account=self.account,
            session_channel=self.session.sales_channel,
            raw_uri_accounts=settings.raw_uri_accounts,
        )

    async def products(self, args: SearchArgs) -> List[Dict]:
        return await self._get(self.product_search_url(args), metric="search-products")

    async def products_raw(self, args: SearchArgs) -> httpx.Response:
        return await self._get_raw(self.product_search_url(args), metric="search-products")

    async def products_quantity(self, args: SearchArgs) -> int:
        response = await self.products_raw(args)
        return parse_resources_total(response.headers.get("resources"))

    # --- Catalog Structure ---

    async def brands(self) -> List[Dict]:
        return await self._get("/pub/brand/list", metric="search-brands")

    async def brand(self, brand_id: int) -> List[Dict]:
        return await self._get(f"/pub/brand/{brand_id}", metric="search-brands")

    async def categories(self, tree_level: int) -> List[Dict]:
        return await self._get(f"/pub/category/tree/{tree_level}/", metric="search-categories")

    async def category(self, category_id: int | str) -> Dict:
        return await self._get(f"/pub/category/{category_id}", metric="search-category")

    async def category_children(self, category_id: int) -> Dict[str, str]:
        return await self._get(f"/pub/category/categories/children?id={category_id}", metric="search-category-children")

    async def facets(self, facets: str = "") -> Dict:
        path, *options = decode_uri(facets).split("?")
        option = options[0] if options else ""
        target = encode_uri(f"{path.strip()}{'?' + option if option else ''}")
        return await self._get(f"/pub/facets/search/{self._encode(target)}", metric="search-facets")

    async def cross_selling(self, product_id: str, cross_selling_type: SearchCrossSellingType) -> List[Dict]:
        return await self._get(
            f"/pub/products/crossselling/{cross_selling_type.value}/{product_id}",
            metric="search-crossSelling",
        )

    async def autocomplete(self, max_rows: int, search_term: str) -> Dict:
        term = self._encode(encode_uri_component(search_term))
        return await self._get(
            f"/buscaautocomplete?maxRows={max_rows}&productNameContains={term}",
            metric="search-autocomplete",
        )

    # --- Private Helper Methods ---

    @staticmethod
    def _multi_fq(field: str, values: List[str]) -> str:
        return "/pub/products/search?" + "&".join(f"fq={field}:{value}" for value in values)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if settings.catalog_app_key and settings.catalog_app_token:
            headers["X-VTEX-API-AppKey"] = settings.catalog_app_key
            headers["X-VTEX-API-AppToken"] = settings.catalog_app_token
        if self.session.segment_token:
            headers["X-VTEX-Segment"] = self.session.segment_token
        return headers

    async def _get(self, url: str, metric: str) -> Any:
        response = await self._get_raw(url, metric)
        return response.json()

    async def _get_raw(self, url: str, metric: str) -> httpx.Response:
        """
        GETs a catalog path, coalescing identical in-flight requests.

        The sales channel goes in as `sc`. It is appended to the path by hand
        because handing httpx a params dict would re-encode the query string
        the URL builder composed.
        """
        params: Dict[str, Any] = {}
        if self.session.sales_channel:
            params["sc"] = self.session.sales_channel
        full_url = f"{self.base_url}{url}"
        if params:
            full_url += ("&" if "?" in url else "?") + f"sc={quote(params['sc'], safe='')}"

        key = inflight_key(self.base_url, url, params, self.session.segment_token)

        async def fetch() -> httpx.Response:
            try:
                response = await self.resilient_api_call(self.http_client.get, full_url, headers=self._headers())
            except httpx.RequestError as e:
                backend_requests_counter.labels(metric=metric, status="transport_error").inc()
                logger.error(f"Catalog request {metric} failed: {e}")
                raise
            backend_requests_counter.labels(metric=metric, status=str(response.status_code)).inc()
            if response.is_error:
                logger.error(f"Catalog request {metric} returned HTTP {response.status_code} for {url}")
            response.raise_for_status()
            return response

        return await self.inflight.run(key, fetch, metric)


def parse_resources_total(resources: Optional[str]) -> int:
    """Reads the total from a `resources` header such as "0-9/120"."""
    if not resources or "/" not in resources:
        return 0
    total = resources.split("/")[1].strip()
    return int(total) if total.isdigit() else 0


# Shared transport for every request-bound client
http_client = httpx.AsyncClient(
    timeout=httpx.Timeout(settings.http_timeout, connect=settings.http_connect_timeout)
)
inflight_registry = InflightRegistry()


def catalog_client_for(session: SessionContext) -> CatalogSearchClient:
    return CatalogSearchClient(http_client, inflight_registry, session)
