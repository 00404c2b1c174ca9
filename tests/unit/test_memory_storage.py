"""
Unit tests for the in-memory Storage backend.

Covers:
    - create / find by id and code / uniqueness conflict
    - update and delete keep the code index consistent
    - atomic click increments
    - per-device listing: ordering, search and pagination
    - counters used by the health check
"""

import pytest

from shortener_platform.exceptions import ShortCodeConflictError
from shortener_platform.models import Page
from shortener_platform.storage.storage import Storage


def test_create_and_find(storage):
    record = storage.create("https://example.com", "ABCDEF", "dev-1")
    assert record.id == 1
    assert record.clicks == 0
    assert record.created_at == record.updated_at

    assert storage.find_by_id(record.id) == record
    assert storage.find_by_short_code("ABCDEF") == record
    assert storage.short_code_exists("ABCDEF") is True
    assert storage.short_code_exists("ZZZZZZ") is False


def test_ids_increase(storage):
    first = storage.create("https://a.com", "AAAAAA", "dev-1")
    second = storage.create("https://b.com", "BBBBBB", "dev-1")
    assert second.id > first.id


def test_duplicate_code_conflicts(storage):
    storage.create("https://a.com", "AAAAAA", "dev-1")
    with pytest.raises(ShortCodeConflictError) as exc:
        storage.create("https://b.com", "AAAAAA", "dev-2")
    assert exc.value.short_code == "AAAAAA"
    assert storage.count_records() == 1


def test_returned_records_are_copies(storage):
    record = storage.create("https://a.com", "AAAAAA", "dev-1")
    record.clicks = 99
    assert storage.find_by_id(record.id).clicks == 0


def test_missing_lookups_return_none(storage):
    assert storage.find_by_id(42) is None
    assert storage.find_by_short_code("NOPE22") is None
    assert storage.update(42, "https://x.com") is None
    assert storage.delete(42) is False
    assert storage.increment_clicks("NOPE22") is False


def test_update_changes_url_only(storage):
    record = storage.create("https://a.com", "AAAAAA", "dev-1")
    updated = storage.update(record.id, "https://b.com")
    assert updated.original_url == "https://b.com"
    assert updated.short_code == "AAAAAA"
    assert updated.updated_at >= record.updated_at
    assert storage.find_by_short_code("AAAAAA").original_url == "https://b.com"


def test_delete_frees_the_code(storage):
    record = storage.create("https://a.com", "AAAAAA", "dev-1")
    assert storage.delete(record.id) is True
    assert storage.find_by_short_code("AAAAAA") is None
    assert storage.short_code_exists("AAAAAA") is False
    storage.create("https://b.com", "AAAAAA", "dev-2")


def test_increment_clicks(storage):
    storage.create("https://a.com", "AAAAAA", "dev-1")
    for _ in range(3):
        assert storage.increment_clicks("AAAAAA") is True
    assert storage.find_by_short_code("AAAAAA").clicks == 3


def _seed(storage: Storage):
    storage.create("https://docs.python.org/3/", "AAAAAA", "dev-1")
    storage.create("https://example.com/one", "BBBBBB", "dev-1")
    storage.create("https://Example.com/two", "CCCCCC", "dev-1")
    storage.create("https://example.com/other", "DDDDDD", "dev-2")


def test_list_by_device_scoped_and_newest_first(storage):
    _seed(storage)
    page = storage.list_by_device("dev-1")
    assert isinstance(page, Page)
    assert [r.short_code for r in page.data] == ["CCCCCC", "BBBBBB", "AAAAAA"]
    assert page.total == 3
    assert page.last_page == 1


def test_list_by_device_search_is_case_insensitive(storage):
    _seed(storage)
    page = storage.list_by_device("dev-1", search="EXAMPLE")
    assert {r.short_code for r in page.data} == {"BBBBBB", "CCCCCC"}
    assert page.total == 2


def test_list_by_device_pagination(storage):
    _seed(storage)
    first = storage.list_by_device("dev-1", page=1, per_page=2)
    second = storage.list_by_device("dev-1", page=2, per_page=2)
    assert [r.short_code for r in first.data] == ["CCCCCC", "BBBBBB"]
    assert [r.short_code for r in second.data] == ["AAAAAA"]
    assert first.last_page == second.last_page == 2
    assert second.current_page == 2

    beyond = storage.list_by_device("dev-1", page=5, per_page=2)
    assert beyond.data == []
    assert beyond.total == 3


def test_list_for_unknown_device_is_empty(storage):
    page = storage.list_by_device("nobody")
    assert page.data == []
    assert page.total == 0
    assert page.last_page == 1


def test_counters_and_ping(storage):
    _seed(storage)
    assert storage.count_records() == 4
    assert storage.count_devices() == 2
    assert storage.ping() == {"backend": "memory"}
