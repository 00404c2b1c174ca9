"""
Data models shared by storage, cache and the HTTP layer.

`UrlRecord` is a pydantic model so the cache tiers can round-trip it through
JSON (`model_dump_json` / `model_validate_json`) and FastAPI can render it
directly.
"""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UrlRecord(BaseModel):
    """A persisted short link, owned by the device that created it."""

    id: int
    original_url: str
    short_code: str
    device_id: str
    clicks: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Page(BaseModel):
    """One page of a device's records, newest first."""

    data: List[UrlRecord]
    current_page: int
    per_page: int
    total: int
    last_page: int

    @classmethod
    def build(cls, items: List[UrlRecord], total: int, page: int, per_page: int) -> "Page":
        last_page = max(1, -(-total // per_page))
        return cls(data=items, current_page=page, per_page=per_page, total=total, last_page=last_page)
