# /search_gateway/routes/search.py

import structlog
from fastapi import APIRouter, Depends, Query
from typing import Dict, List, Optional

from search_gateway.models.search import (
    FacetsArgs,
    ProductArgs,
    ProductRecommendationArgs,
    ProductsByIdentifierArgs,
    SearchArgs,
    SearchMetadataArgs,
)
from search_gateway.services import search_service
from search_gateway.services.search_service import SearchClients
from search_gateway.utils.dependencies import get_search_clients

log = structlog.get_logger(__name__)

# Storefront search queries. Argument errors surface as 400, missing
# products as 404 (see the exception handlers in main.py).
router = APIRouter(
    prefix="/search",
    tags=["Search"],
)

@router.post("/facets")
async def facets(args: FacetsArgs, clients: SearchClients = Depends(get_search_clients)) -> Dict:
    """Facets for a query/map pair, in either URL dialect."""
    return await search_service.facets(clients, args)

@router.post("/products")
async def products(args: SearchArgs, clients: SearchClients = Depends(get_search_clients)) -> List[Dict]:
    return await search_service.products(clients, args)

@router.post("/product-search")
async def product_search(
    args: SearchArgs,
    include_metadata: bool = Query(default=False, alias="includeMetadata"),
    clients: SearchClients = Depends(get_search_clients),
) -> Dict:
    """Product search with translation, dialect reconciliation and optional title metadata."""
    result = await search_service.product_search(clients, args, include_metadata)
    log.info("product_search.completed", query=args.query, records=result["recordsFiltered"])
    return result

@router.post("/search-metadata")
async def search_metadata(args: SearchMetadataArgs, clients: SearchClients = Depends(get_search_clients)) -> Dict:
    return await search_service.search_metadata(clients, args)

@router.post("/product")
async def product(args: ProductArgs, clients: SearchClients = Depends(get_search_clients)) -> Dict:
    return await search_service.product(clients, args)

@router.post("/products-by-identifier")
async def products_by_identifier(
    args: ProductsByIdentifierArgs, clients: SearchClients = Depends(get_search_clients)
) -> List[Dict]:
    return await search_service.products_by_identifier(clients, args)

@router.post("/recommendations")
async def product_recommendations(
    args: ProductRecommendationArgs, clients: SearchClients = Depends(get_search_clients)
) -> List[Dict]:
    return await search_service.product_recommendations(clients, args)

@router.get("/autocomplete")
async def autocomplete(
    search_term: Optional[str] = Query(default=None, alias="searchTerm"),
    max_rows: int = Query(default=10, alias="maxRows", ge=1, le=50),
    clients: SearchClients = Depends(get_search_clients),
) -> Dict:
    return await search_service.autocomplete(clients, max_rows, search_term)
