# /search_gateway/services/search_service.py

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from search_gateway.config.settings import settings
from search_gateway.models.query import LegacyQuery
from search_gateway.models.search import (
    CompatibilityArgs,
    CrossSellingInput,
    FacetsArgs,
    FacetsBehavior,
    ProductArgs,
    ProductIdentifier,
    ProductIdentifierField,
    ProductRecommendationArgs,
    ProductsByIdentifierArgs,
    SearchArgs,
    SearchCrossSellingType,
    SearchMetadataArgs,
)
from search_gateway.models.session import SessionContext
from search_gateway.services.cache_service import CacheService
from search_gateway.services.catalog_client import CatalogSearchClient, parse_resources_total
from search_gateway.services.compatibility import to_compatibility_args
from search_gateway.services.facet_filter import filter_specification_filters
from search_gateway.services.query_format import classify_query
from search_gateway.services.translation_service import TranslationService
from search_gateway.utils.errors import NotFoundError, UnresolvedQueryError, UserInputError
from search_gateway.utils.metrics import search_stats_counter

# Query handlers behind the storefront search API. Each one validates its
# arguments, translates the term, reconciles the query dialect and then
# delegates to the catalog client.

logger = logging.getLogger(__name__)

INVALID_QUERY_CHARS = re.compile(r"[?&\[\]=]")

EMPTY_TITLE_TAG = {"titleTag": "", "metaTagDescription": ""}

CROSS_SELLING_TYPES = {
    CrossSellingInput.BUY: SearchCrossSellingType.WHO_BOUGHT_ALSO_BOUGHT,
    CrossSellingInput.VIEW: SearchCrossSellingType.WHO_SAW_ALSO_SAW,
    CrossSellingInput.SIMILARS: SearchCrossSellingType.SIMILARS,
    CrossSellingInput.VIEW_AND_BOUGHT: SearchCrossSellingType.WHO_SAW_ALSO_BOUGHT,
    CrossSellingInput.ACCESSORIES: SearchCrossSellingType.ACCESSORIES,
    CrossSellingInput.SUGGESTIONS: SearchCrossSellingType.SUGGESTIONS,
}


@dataclass
class SearchClients:
    """Collaborators of one request: catalog client, mapping store and translator."""
    search: CatalogSearchClient
    store: CacheService
    translator: TranslationService
    session: SessionContext


# --- Validation ---

def validate_query_term(query: Optional[str]):
    if query is None or INVALID_QUERY_CHARS.search(query):
        raise UserInputError(f"The query term contains invalid characters. query={query}")


def validate_results_window(to: Optional[int]):
    if to and to > settings.max_results_window:
        raise UserInputError(
            f"The maximum value allowed for the 'to' argument is {settings.max_results_window}"
        )


def has_facets_bad_args(args) -> bool:
    return not args.query or not args.map


def is_valid_product_identifier(identifier: Optional[ProductIdentifier]) -> bool:
    return identifier is not None and bool(identifier.value)


# --- Dialect reconciliation ---

async def resolve_query_args(clients: SearchClients, query: str, map_: Optional[str]) -> CompatibilityArgs:
    """
    Returns the legacy query/map pair for a translated query. Legacy input
    passes through untouched; canonical paths go through the mapping store.
    """
    classified = classify_query(query, map_)
    if isinstance(classified, LegacyQuery) or not classified.segments:
        return CompatibilityArgs(query=query, map=map_ or "")

    compat_args = await to_compatibility_args(clients.store, clients.search, classified)
    if has_facets_bad_args(compat_args):
        raise UnresolvedQueryError("No query or map provided")
    return compat_args


async def get_search_metadata(search: CatalogSearchClient, compat_args: CompatibilityArgs) -> Dict[str, str]:
    if not compat_args.query:
        return dict(EMPTY_TITLE_TAG)
    page = await search.page_type(compat_args.query, f"map={compat_args.map}" if compat_args.map else "")
    return {
        "titleTag": page.get("title") or page.get("name") or "",
        "metaTagDescription": page.get("metaTagDescription") or "",
    }


# --- Query handlers ---

async def autocomplete(clients: SearchClients, max_rows: int, search_term: Optional[str]) -> Dict:
    if not search_term:
        raise UserInputError("No search term provided")
    translated_term = await clients.translator.to_store_default_language(search_term, clients.session)
    result = await clients.search.autocomplete(max_rows, translated_term)
    return {"cacheId": search_term, "itemsReturned": result.get("itemsReturned", [])}


async def facets(clients: SearchClients, args: FacetsArgs) -> Dict:
    if not args.query:
        raise UserInputError("No query or map provided")

    translated_query = await clients.translator.to_store_default_language(args.query, clients.session)
    compat_args = await resolve_query_args(clients, translated_query, args.map)
    if has_facets_bad_args(compat_args):
        raise UserInputError("No query or map provided")

    facets_args = args.model_copy(update={"query": compat_args.query, "map": compat_args.map})
    if args.behavior == FacetsBehavior.STATIC:
        facets_args = filter_specification_filters(facets_args)

    unavailable_string = (
        f"&fq=isAvailablePerSalesChannel_{clients.session.sales_channel}:1"
        if args.hide_unavailable_items else ""
    )
    facets_result = await clients.search.facets(
        f"{facets_args.query}?map={facets_args.map}{unavailable_string}"
    )
    return {
        **facets_result,
        "queryArgs": {"query": compat_args.query, "map": compat_args.map},
    }


async def product(clients: SearchClients, args: ProductArgs) -> Dict:
    if is_valid_product_identifier(args.identifier):
        identifier = args.identifier
    elif args.slug:
        identifier = ProductIdentifier(field=ProductIdentifierField.SLUG, value=args.slug)
    else:
        raise UserInputError("No product identifier provided")

    search = clients.search
    lookups = {
        ProductIdentifierField.ID: search.product_by_id,
        ProductIdentifierField.SLUG: search.product,
        ProductIdentifierField.EAN: search.product_by_ean,
        ProductIdentifierField.REFERENCE: search.product_by_reference,
        ProductIdentifierField.SKU: lambda value: search.product_by_sku([value]),
    }
    products = await lookups[identifier.field](identifier.value)
    if products:
        return products[0]

    raise NotFoundError(
        f"No product was found with requested {identifier.field.value} {identifier.model_dump_json()}"
    )


async def products_by_identifier(clients: SearchClients, args: ProductsByIdentifierArgs) -> List[Dict]:
    search = clients.search
    lookups = {
        ProductIdentifierField.ID: search.products_by_id,
        ProductIdentifierField.EAN: search.products_by_ean,
        ProductIdentifierField.REFERENCE: search.products_by_reference,
        ProductIdentifierField.SKU: search.product_by_sku,
    }
    if args.field not in lookups:
        raise UserInputError(f"Products cannot be listed by {args.field.value}")
    if not args.values:
        raise UserInputError("No product identifier provided")

    products = await lookups[args.field](args.values)
    if products:
        return products

    raise NotFoundError(f"No products were found with requested {args.field.value}")


async def products(clients: SearchClients, args: SearchArgs) -> List[Dict]:
    validate_query_term(args.query)
    validate_results_window(args.to)
    return await clients.search.products(args)


async def product_search(clients: SearchClients, args: SearchArgs, include_metadata: bool = False) -> Dict:
    validate_query_term(args.query)
    validate_results_window(args.to)

    query = await clients.translator.to_store_default_language(args.query or "", clients.session)
    translated_args = args.model_copy(update={"query": query})

    compat = await resolve_query_args(clients, translated_args.query, translated_args.map)
    compat_args = translated_args.model_copy(update={"query": compat.query, "map": compat.map or None})

    async def empty_title_tag() -> Dict[str, str]:
        return dict(EMPTY_TITLE_TAG)

    products_raw, search_metadata_result = await asyncio.gather(
        clients.search.products_raw(compat_args),
        get_search_metadata(clients.search, compat) if include_metadata else empty_title_tag(),
    )

    if products_raw.status_code == 200:
        # Terms are unbounded, so they go to the log rather than a label
        search_stats_counter.labels(kind="term" if args.query else "browse").inc()
        logger.info(f"Product search succeeded for term '{args.query or ''}'")

    return {
        "translatedArgs": translated_args.model_dump(by_alias=True, mode="json"),
        "searchMetadata": search_metadata_result,
        "products": products_raw.json(),
        "recordsFiltered": parse_resources_total(products_raw.headers.get("resources")),
    }


async def product_recommendations(clients: SearchClients, args: ProductRecommendationArgs) -> List[Dict]:
    if args.identifier is None or args.type is None:
        raise UserInputError("Wrong input provided")
    if not is_valid_product_identifier(args.identifier):
        raise UserInputError("No product identifier provided")

    product_id = args.identifier.value
    if args.identifier.field != ProductIdentifierField.ID:
        found = await product(clients, ProductArgs(identifier=args.identifier))
        product_id = found["productId"]

    recommended = await clients.search.cross_selling(product_id, CROSS_SELLING_TYPES[args.type])
    # Each entry is really one SKU, so the product id alone is not unique
    return [
        {**item, "cacheId": f"{item.get('linkText')}-{_first_item_id(item)}"}
        for item in recommended
    ]


async def search_metadata(clients: SearchClients, args: SearchMetadataArgs) -> Dict[str, str]:
    validate_query_term(args.query)
    query = await clients.translator.to_store_default_language(args.query or "", clients.session)
    compat_args = await resolve_query_args(clients, query, args.map)
    return await get_search_metadata(clients.search, compat_args)


def _first_item_id(item: Dict) -> str:
    items = item.get("items") or []
    return (items[0].get("itemId") or "") if items else ""
