"""
Storage module for the Shortener Platform (in-memory implementation).

Responsibilities:
    - Save URL records keyed by id, with a secondary index on short code
    - Enforce short-code uniqueness at insert time
    - Track click counts atomically
    - Page through a device's records, newest first

Design:
    - Reference implementation of the BaseStorage contract, used by tests and
      the default "memory" backend.
    - A single lock guards every mutation so concurrent requests (FastAPI runs
      sync routes in a thread pool) never lose a click or double-insert a code.
"""

import itertools
import threading
from typing import Dict, List, Optional

from ..exceptions import ShortCodeConflictError
from ..models import Page, UrlRecord, utcnow
from .base import BaseStorage


class Storage(BaseStorage):
    def __init__(self):
        """
        Initialize empty storage.

        Internal schema:
            self.records = {record_id: UrlRecord}
            self.codes   = {short_code: record_id}
        """
        self.records: Dict[int, UrlRecord] = {}
        self.codes: Dict[str, int] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, original_url: str, short_code: str, device_id: str) -> UrlRecord:
        with self._lock:
            if short_code in self.codes:
                raise ShortCodeConflictError(short_code)
            now = utcnow()
            record = UrlRecord(
                id=next(self._ids),
                original_url=original_url,
                short_code=short_code,
                device_id=device_id,
                clicks=0,
                created_at=now,
                updated_at=now,
            )
            self.records[record.id] = record
            self.codes[short_code] = record.id
            return record.model_copy()

    def find_by_id(self, record_id: int) -> Optional[UrlRecord]:
        record = self.records.get(record_id)
        return record.model_copy() if record else None

    def find_by_short_code(self, short_code: str) -> Optional[UrlRecord]:
        record_id = self.codes.get(short_code)
        if record_id is None:
            return None
        return self.find_by_id(record_id)

    def short_code_exists(self, short_code: str) -> bool:
        return short_code in self.codes

    def update(self, record_id: int, original_url: str) -> Optional[UrlRecord]:
        with self._lock:
            record = self.records.get(record_id)
            if record is None:
                return None
            updated = record.model_copy(update={"original_url": original_url, "updated_at": utcnow()})
            self.records[record_id] = updated
            return updated.model_copy()

    def delete(self, record_id: int) -> bool:
        with self._lock:
            record = self.records.pop(record_id, None)
            if record is None:
                return False
            self.codes.pop(record.short_code, None)
            return True

    def increment_clicks(self, short_code: str) -> bool:
        with self._lock:
            record_id = self.codes.get(short_code)
            if record_id is None:
                return False
            record = self.records[record_id]
            self.records[record_id] = record.model_copy(update={"clicks": record.clicks + 1})
            return True

    def list_by_device(
        self,
        device_id: str,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Page:
        needle = search.lower() if search else None
        with self._lock:
            matches: List[UrlRecord] = [
                r for r in self.records.values()
                if r.device_id == device_id and (needle is None or needle in r.original_url.lower())
            ]
        matches.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        start = (page - 1) * per_page
        items = [r.model_copy() for r in matches[start:start + per_page]]
        return Page.build(items, total=len(matches), page=page, per_page=per_page)

    def count_records(self) -> int:
        return len(self.records)

    def count_devices(self) -> int:
        return len({r.device_id for r in self.records.values()})

    def ping(self) -> dict:
        return {"backend": "memory"}
