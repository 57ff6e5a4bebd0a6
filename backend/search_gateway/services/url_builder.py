# /search_gateway/services/url_builder.py

import re
from typing import Iterable, Optional
from urllib.parse import quote, unquote

from search_gateway.models.search import SearchArgs, SimulationBehavior

# Pure URL helpers for the catalog search backend. No I/O happens here.

# encodeURIComponent / encodeURI leave these unescaped (alphanumerics and
# "_.-~" are always safe for urllib's quote)
_COMPONENT_SAFE = "!*'()"
_URI_SAFE = ";,/?:@&=+$!*'()#"

# Escapes decodeURI leaves alone: ; / ? : @ & = + $ , #
_RESERVED_ESCAPE = re.compile(r"(%(?:2[346BbCcFf]|3[ABDFabdf]|40))")

# The backend cannot take these characters raw in a search path
_SEARCH_PATH_ESCAPES = {
    "%": "@perc@",
    '"': "@quo@",
    "'": "@squo@",
    ".": "@dot@",
    "(": "@lpar@",
    ")": "@rpar@",
}


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_COMPONENT_SAFE)


def encode_uri(value: str) -> str:
    return quote(value, safe=_URI_SAFE)


def decode_uri(value: str) -> str:
    """Like JS decodeURI: percent-escapes of reserved characters survive decoding."""
    parts = _RESERVED_ESCAPE.split(value)
    # split() puts the captured reserved escapes at the odd indexes
    return "".join(part if i % 2 else unquote(part) for i, part in enumerate(parts))


def search_encode_uri(value: str, account: str, raw_uri_accounts: Iterable[str] = ()) -> str:
    """Escapes characters the search backend rejects in paths, unless the account opts out."""
    if account in raw_uri_accounts:
        return value
    return "".join(_SEARCH_PATH_ESCAPES.get(char, char) for char in value)


def sanitize_search_query(query: Optional[str], account: str, raw_uri_accounts: Iterable[str] = ()) -> str:
    # Decode first so already-encoded input is not encoded twice
    return search_encode_uri(encode_uri_component(unquote(query or "").strip()), account, raw_uri_accounts)


def build_search_url(
    args: SearchArgs,
    account: str,
    session_channel: Optional[str] = None,
    raw_uri_accounts: Iterable[str] = (),
) -> str:
    """
    Builds the product search path for the catalog backend.

    Clauses are appended in a fixed order, each one prefixed with "&". The
    base path already ends in "?", so the result normally contains a "?&"
    sequence; the backend accepts that and callers rely on the exact bytes.
    """
    query = args.query or ""
    sales_channel = args.sales_channel or ""
    if args.hide_unavailable_items:
        # The session channel wins, even when it is empty
        sales_channel = session_channel or ""

    url = f"/pub/products/search/{sanitize_search_query(query, account, raw_uri_accounts)}?"
    if args.category and not query:
        url += f"&fq=C:/{args.category}/"
    for spec_filter in args.specification_filters or []:
        url += f"&fq={spec_filter}"
    if args.price_range:
        url += f"&fq=P:[{args.price_range}]"
    if args.collection:
        url += f"&fq=productClusterIds:{args.collection}"
    if sales_channel:
        url += f"&fq=isAvailablePerSalesChannel_{sales_channel}:1"
    if args.order_by:
        url += f"&O={args.order_by}"
    if args.map:
        url += f"&map={args.map}"
    if args.from_ is not None and args.from_ > -1:
        url += f"&_from={args.from_}"
    if args.to is not None and args.to > -1:
        url += f"&_to={args.to}"
    if args.simulation_behavior == SimulationBehavior.SKIP:
        url += "&simulation=false"
    return url
