# /search_gateway/models/session.py

import base64
import json
import logging
from typing import Optional
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class SegmentData(BaseModel):
    channel: Optional[str] = None
    culture_info: Optional[str] = Field(default=None, alias="cultureInfo")

    class Config:
        populate_by_name = True

    @classmethod
    def from_token(cls, token: Optional[str]) -> Optional["SegmentData"]:
        """Decodes a base64 JSON segment token. Undecodable tokens are treated as absent."""
        if not token:
            return None
        try:
            padded = token + "=" * (-len(token) % 4)
            payload = json.loads(base64.urlsafe_b64decode(padded).decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring malformed segment token: {e}")
            return None
        if not isinstance(payload, dict):
            return None
        channel = payload.get("channel")
        return cls(
            channel=str(channel) if channel not in (None, "") else None,
            culture_info=payload.get("cultureInfo"),
        )


class SessionContext(BaseModel):
    """Per-request caller context: account, locales and sales-channel segment."""
    account: str
    locale: Optional[str] = None
    tenant_locale: Optional[str] = None
    segment: Optional[SegmentData] = None
    segment_token: Optional[str] = None

    @property
    def sales_channel(self) -> str:
        return (self.segment.channel if self.segment else None) or ""
