# /search_gateway/utils/inflight.py

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional
from urllib.parse import quote

from search_gateway.utils.metrics import inflight_coalesced_counter

# Coalesces identical concurrent GETs to the catalog backend. Two requests
# share one upstream call when base URL, path, parameters and the caller's
# segment token all match.

logger = logging.getLogger(__name__)


def _serialize_value(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe="")


def serialize_params(params: Optional[Mapping[str, Any]]) -> str:
    """
    Query-string serialization with a leading "?". Keys are sorted, list
    values repeat their key, and None values are skipped. Returns "" when
    nothing is left to serialize.
    """
    pairs = []
    for key in sorted(params or {}):
        value = params[key]
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        pairs.extend(f"{quote(str(key), safe='')}={_serialize_value(v)}" for v in values if v is not None)
    return f"?{'&'.join(pairs)}" if pairs else ""


def inflight_key(base_url: str, url: str, params: Optional[Mapping[str, Any]], segment_token: Optional[str]) -> str:
    return f"{base_url}{url}{serialize_params(params)}&segmentToken={segment_token if segment_token is not None else ''}"


class InflightRegistry:
    """Shares one pending task between concurrent callers asking for the same key."""

    def __init__(self):
        self._pending: Dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        return len(self._pending)

    async def run(self, key: str, factory: Callable[[], Awaitable[Any]], metric: str = "unknown") -> Any:
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            inflight_coalesced_counter.labels(metric=metric).inc()
            logger.debug(f"Joining in-flight request for {metric}")
        # A cancelled caller must not cancel the request other callers wait on
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Future):
        if self._pending.get(key) is task:
            del self._pending[key]
        if not task.cancelled():
            # Marks the exception retrieved when every caller has gone away
            task.exception()
