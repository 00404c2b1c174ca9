import psycopg
import psycopg.rows
import pytest

from shortener_platform.exceptions import DataStoreError, ShortCodeConflictError
from shortener_platform.storage.db_storage import DBStorage


class DummyCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = conn.rowcount

    def execute(self, query, params=None):
        self.conn.executed.append((" ".join(query.split()), params))
        return True

    def fetchone(self):
        if self.conn.results:
            return self.conn.results.pop(0)
        return None

    def fetchall(self):
        return list(self.conn.many)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class DummyConnection:
    def __init__(self, results=None, rowcount=1, many=None):
        # results feed fetchone() in order; many feeds fetchall()
        self.results = list(results or [])
        self.many = many or []
        self.rowcount = rowcount
        self.autocommit = False
        self.closed = False
        self.executed = []
        self.row_factories = []

    def cursor(self, row_factory=None):
        self.row_factories.append(row_factory)
        return DummyCursor(self)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _row(**overrides):
    row = {
        "id": 1,
        "original_url": "https://example.com",
        "short_code": "ABCDEF",
        "device_id": "dev-1",
        "clicks": 0,
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def connect(monkeypatch):
    """Patch psycopg.connect to hand out the given DummyConnection."""

    def _install(conn):
        monkeypatch.setattr("psycopg.connect", lambda dsn: conn)
        return conn

    return _install


# ---------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------

def test_create_returns_record(connect):
    conn = connect(DummyConnection(results=[_row()]))
    record = DBStorage("fake").create("https://example.com", "ABCDEF", "dev-1")

    assert record.id == 1
    assert record.short_code == "ABCDEF"
    query, params = conn.executed[0]
    assert "ON CONFLICT (short_code) DO NOTHING" in query
    assert params == ("https://example.com", "ABCDEF", "dev-1")
    assert conn.autocommit is True
    assert conn.closed is True
    assert conn.row_factories == [psycopg.rows.dict_row]


def test_create_conflict(connect):
    connect(DummyConnection(results=[]))
    with pytest.raises(ShortCodeConflictError):
        DBStorage("fake").create("https://example.com", "ABCDEF", "dev-1")


def test_find_by_id_and_code(connect):
    connect(DummyConnection(results=[_row(clicks=4), _row(id=2, short_code="ZZZZZZ")]))
    storage = DBStorage("fake")
    assert storage.find_by_id(1).clicks == 4
    assert storage.find_by_short_code("ZZZZZZ").id == 2
    assert storage.find_by_short_code("NOPE22") is None


def test_short_code_exists(connect):
    connect(DummyConnection(results=[(True,), (False,)]))
    storage = DBStorage("fake")
    assert storage.short_code_exists("ABCDEF") is True
    assert storage.short_code_exists("ZZZZZZ") is False


def test_update(connect):
    conn = connect(DummyConnection(results=[_row(original_url="https://new.example.com")]))
    record = DBStorage("fake").update(1, "https://new.example.com")
    assert record.original_url == "https://new.example.com"
    query, params = conn.executed[0]
    assert query.startswith("UPDATE urls SET original_url = %s, updated_at = NOW()")
    assert params == ("https://new.example.com", 1)


def test_update_missing(connect):
    connect(DummyConnection(results=[]))
    assert DBStorage("fake").update(9, "https://x.com") is None


@pytest.mark.parametrize("rowcount,expected", [(1, True), (0, False)])
def test_delete(connect, rowcount, expected):
    connect(DummyConnection(rowcount=rowcount))
    assert DBStorage("fake").delete(1) is expected


@pytest.mark.parametrize("rowcount,expected", [(1, True), (0, False)])
def test_increment_clicks_is_single_update(connect, rowcount, expected):
    conn = connect(DummyConnection(rowcount=rowcount))
    assert DBStorage("fake").increment_clicks("ABCDEF") is expected
    assert conn.executed == [("UPDATE urls SET clicks = clicks + 1 WHERE short_code = %s", ("ABCDEF",))]


def test_list_by_device(connect):
    conn = connect(
        DummyConnection(
            results=[{"total": 3}],
            many=[_row(id=3, short_code="CCCCCC"), _row(id=2, short_code="BBBBBB")],
        )
    )
    page = DBStorage("fake").list_by_device("dev-1", page=1, per_page=2)

    assert page.total == 3
    assert page.last_page == 2
    assert [r.short_code for r in page.data] == ["CCCCCC", "BBBBBB"]
    count_query, count_params = conn.executed[0]
    list_query, list_params = conn.executed[1]
    assert count_params == ("dev-1",)
    assert "ORDER BY created_at DESC, id DESC" in list_query
    assert list_params == ("dev-1", 2, 0)


def test_list_by_device_search_escapes_wildcards(connect):
    conn = connect(DummyConnection(results=[{"total": 0}], many=[]))
    page = DBStorage("fake").list_by_device("dev-1", search="100%_off", page=3, per_page=10)

    assert page.data == []
    query, params = conn.executed[1]
    assert "original_url ILIKE %s" in query
    assert params == ("dev-1", "%100\\%\\_off%", 10, 20)


def test_counters_and_ping(connect):
    connect(DummyConnection(results=[(12,), (4,), ("PostgreSQL 16.2",)]))
    storage = DBStorage("fake")
    assert storage.count_records() == 12
    assert storage.count_devices() == 4
    assert storage.ping() == {"backend": "postgres", "version": "PostgreSQL 16.2"}


def test_connection_failure_becomes_data_store_error(monkeypatch):
    def refuse(dsn):
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr("psycopg.connect", refuse)
    storage = DBStorage("fake")
    with pytest.raises(DataStoreError, match="Database connection issue"):
        storage.find_by_short_code("ABCDEF")
    with pytest.raises(DataStoreError):
        storage.ping()
