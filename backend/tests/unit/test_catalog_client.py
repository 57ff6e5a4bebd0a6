# backend/tests/unit/test_catalog_client.py

import base64
import json

import httpx
import pytest

from search_gateway.models.search import SearchArgs, SearchCrossSellingType
from search_gateway.models.session import SegmentData, SessionContext
from search_gateway.services.catalog_client import CatalogSearchClient, parse_resources_total
from search_gateway.utils.inflight import InflightRegistry

BASE_URL = "http://catalog.test/proxy/catalog"


def make_client(handler, session=None):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CatalogSearchClient(
        http,
        InflightRegistry(),
        session or SessionContext(account="teststore", segment_token="seg"),
        base_url=BASE_URL,
    )


def recording_handler(requests, payload=None, status_code=200, headers=None):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json=payload if payload is not None else [], headers=headers)
    return handler


@pytest.mark.asyncio
async def test_products_uses_composed_search_url():
    requests = []
    client = make_client(recording_handler(requests, payload=[{"productId": "1"}]))

    result = await client.products(SearchArgs(query="shoes", map="c"))

    assert result == [{"productId": "1"}]
    url = requests[0].url
    assert url.path == "/proxy/catalog/pub/products/search/shoes"
    assert url.params["map"] == "c"
    assert url.params["_from"] == "0"
    assert url.params["_to"] == "9"
    assert "sc" not in url.params


@pytest.mark.asyncio
async def test_sales_channel_and_segment_travel_with_requests():
    requests = []
    session = SessionContext(account="teststore", segment=SegmentData(channel="2"), segment_token="seg-2")
    client = make_client(recording_handler(requests), session=session)

    await client.brands()

    assert requests[0].url.params["sc"] == "2"
    assert requests[0].headers["X-VTEX-Segment"] == "seg-2"


@pytest.mark.asyncio
async def test_products_quantity_reads_resources_header():
    requests = []
    client = make_client(recording_handler(requests, headers={"resources": "0-9/120"}))
    assert await client.products_quantity(SearchArgs(query="shoes")) == 120


@pytest.mark.asyncio
async def test_backend_errors_propagate():
    client = make_client(recording_handler([], payload={"error": "boom"}, status_code=500))
    with pytest.raises(httpx.HTTPStatusError):
        await client.brands()


@pytest.mark.asyncio
async def test_facets_path_is_trimmed_and_escaped():
    requests = []
    client = make_client(recording_handler(requests, payload={"Departments": []}))

    await client.facets("shoes/nike ?map=c,b")

    url = requests[0].url
    assert url.path == "/proxy/catalog/pub/facets/search/shoes/nike"
    assert url.params["map"] == "c,b"


@pytest.mark.asyncio
async def test_facets_keeps_encoded_reserved_characters_in_path():
    requests = []
    client = make_client(recording_handler(requests, payload={"Departments": []}))

    await client.facets("what%3Fnow?map=ft")

    url = requests[0].url
    assert url.path == "/proxy/catalog/pub/facets/search/what@perc@253Fnow"
    assert url.params["map"] == "ft"


@pytest.mark.asyncio
async def test_identifier_lookups():
    requests = []
    client = make_client(recording_handler(requests))

    await client.products_by_ean(["789", "790"])
    await client.product_by_reference("REF-1")
    await client.product("Blue-Shirt")

    assert requests[0].url.params.get_list("fq") == ["alternateIds_Ean:789", "alternateIds_Ean:790"]
    assert requests[1].url.params["fq"] == "alternateIds_RefId:REF-1"
    assert requests[2].url.path == "/proxy/catalog/pub/products/search/blue-shirt/p"


@pytest.mark.asyncio
async def test_page_type_and_cross_selling_paths():
    requests = []
    client = make_client(recording_handler(requests, payload={}))

    await client.page_type("/shoes/nike", "map=c,b")
    await client.cross_selling("42", SearchCrossSellingType.SIMILARS)

    assert requests[0].url.path == "/proxy/catalog/pub/portal/pagetype/shoes/nike"
    assert requests[0].url.params["map"] == "c,b"
    assert requests[1].url.path == "/proxy/catalog/pub/products/crossselling/similars/42"


def test_parse_resources_total():
    assert parse_resources_total("0-9/42") == 42
    assert parse_resources_total(None) == 0
    assert parse_resources_total("garbage") == 0


def test_segment_token_decoding():
    token = base64.urlsafe_b64encode(json.dumps({"channel": 1, "cultureInfo": "pt-BR"}).encode()).decode().rstrip("=")
    segment = SegmentData.from_token(token)
    assert segment.channel == "1"
    assert segment.culture_info == "pt-BR"
    assert SegmentData.from_token("%%%not-base64") is None
    assert SegmentData.from_token(None) is None
