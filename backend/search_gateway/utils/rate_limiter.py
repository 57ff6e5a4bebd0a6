# /search_gateway/utils/rate_limiter.py

from fastapi import Request
from slowapi import Limiter
from search_gateway.config.settings import settings

# Shared limiter instance, imported by main.py. Storefront traffic reaches us
# through a proxy, so the first X-Forwarded-For hop identifies the caller.


def client_address(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


limiter = Limiter(
    key_func=client_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"]
)
