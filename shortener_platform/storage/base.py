"""
Base storage interface for the Shortener Platform.

Purpose:
    Define a small, stable contract that multiple record stores
    (in-memory, PostgreSQL) implement without requiring changes to the
    manager or the HTTP layer.

Contract notes:
    - `short_code` is unique across all records. `create` raises
      ShortCodeConflictError when it is already taken; the manager's
      pre-check is only an optimisation.
    - `increment_clicks` must be atomic at the store level.
    - `device_id` is fixed at creation; `update` only touches
      `original_url` (and `updated_at`).

Testing & Coverage:
    Abstract methods are marked `# pragma: no cover` because they are
    never executed directly.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import Page, UrlRecord


class BaseStorage(ABC):
    """Abstract base class for URL record stores."""

    @abstractmethod  # pragma: no cover
    def create(self, original_url: str, short_code: str, device_id: str) -> UrlRecord:
        """
        Persist a new record with zero clicks.

        Raises:
            ShortCodeConflictError: If `short_code` is already used.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def find_by_id(self, record_id: int) -> Optional[UrlRecord]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def find_by_short_code(self, short_code: str) -> Optional[UrlRecord]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def short_code_exists(self, short_code: str) -> bool:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def update(self, record_id: int, original_url: str) -> Optional[UrlRecord]:
        """Replace the target URL; returns the fresh record or None if missing."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete(self, record_id: int) -> bool:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def increment_clicks(self, short_code: str) -> bool:
        """
        Atomically add one click.

        Returns:
            bool: False if the code does not exist.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_by_device(
        self,
        device_id: str,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Page:
        """Newest-first page of a device's records, optionally filtered by URL substring."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def count_records(self) -> int:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def count_devices(self) -> int:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def ping(self) -> dict:
        """
        Health probe.

        Returns:
            dict: backend details (e.g. server version).

        Raises:
            DataStoreError: If the backend is unreachable.
        """
        raise NotImplementedError
