"""Shared test fixtures."""

import csv
import hashlib
import io
from contextlib import contextmanager
from pathlib import Path

import pytest

from streamload import create_service
from streamload.config import DatasetSpec, TableSpec, TesterConfig, VerificationQuery
from streamload.dataset import DatasetFetcher
from streamload.errors import IngestionError, SQLClientError
from streamload.service import DatabaseService
from streamload.tester import DatasetIngestionTester
from streamload.upload import LoadResult, StreamingLoadClient

TABLE_DDL = "CREATE TABLE t (Year INTEGER, DayOfWeek INTEGER, Carrier TEXT)"
VERIFY_SQL = "select count(1), avg(Year), sum(DayOfWeek) from t"


def make_csv(rows: int = 10) -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Year", "DayOfWeek", "Carrier"])
    for i in range(rows):
        writer.writerow([2020 + i % 2, i % 7 + 1, f"C{i}"])
    return buf.getvalue().encode("utf-8")


class RecordingService(DatabaseService):
    """Wraps a real service and logs every statement into a shared call list."""

    def __init__(self, inner: DatabaseService, calls: list, fail_on: dict | None = None):
        self._inner = inner
        self.calls = calls
        self._fail_on = fail_on or {}

    def _check(self, sql: str) -> None:
        for prefix, message in self._fail_on.items():
            if sql.strip().upper().startswith(prefix):
                raise SQLClientError(message)

    def connect(self) -> None:
        self._inner.connect()

    def close(self) -> None:
        self._inner.close()

    @contextmanager
    def transaction(self):
        with self._inner.transaction():
            yield

    def execute(self, sql, params=None):
        self.calls.append(("sql", sql.split()[0].upper()))
        self._check(sql)
        return self._inner.execute(sql, params)

    def execute_ddl(self, sql):
        self.calls.append(("sql", sql.split()[0].upper()))
        self._check(sql)
        self._inner.execute_ddl(sql)

    def count(self, verb: str) -> int:
        return sum(1 for kind, v in self.calls if kind == "sql" and v == verb)


class FakeFetcher(DatasetFetcher):
    def __init__(self, payload: bytes, fail: Exception | None = None):
        self.payload = payload
        self.fail = fail
        self.calls = 0

    def fetch(self, url, dest, timeout):
        self.calls += 1
        if self.fail is not None:
            raise self.fail
        Path(dest).write_bytes(self.payload)


class FakeLoader(StreamingLoadClient):
    """Records uploads and inserts the CSV rows into the target table."""

    def __init__(self, service: DatabaseService, calls: list, reject: bool = False):
        self._service = service
        self.calls = calls
        self.requests = []
        self.reject = reject

    @property
    def put_count(self) -> int:
        return len(self.requests)

    def upload(self, request, timeout):
        self.calls.append(("put", request.endpoint))
        self.requests.append(request)
        if self.reject:
            raise IngestionError("streaming load rejected: HTTP 400")

        table = request.headers["insert_sql"].split()[2]
        with open(request.file_path, newline="", encoding="utf-8") as f:
            reader = csv.reader(f)
            if request.headers.get("csv_header") == "1":
                next(reader)
            rows = [tuple(r) for r in reader if r]
        with self._service.transaction():
            for row in rows:
                self._service.execute(f"INSERT INTO {table} VALUES (?, ?, ?)", row)
        return LoadResult(status_code=200, state="SUCCESS", rows=len(rows))


@pytest.fixture
def db_service(tmp_path):
    """Provide a fresh SQLite DatabaseService for each test."""
    db_path = tmp_path / "test.db"
    service = create_service(f"sqlite:///{db_path}")
    service.connect()
    yield service
    service.close()


@pytest.fixture
def csv_payload():
    return make_csv(10)


@pytest.fixture
def make_config(tmp_path, csv_payload):
    def _make(digest: str | None = None, cache_path: Path | None = None, **overrides):
        dataset = DatasetSpec(
            url="http://datasets.test/ontime.csv",
            cache_path=cache_path or tmp_path / "cache" / "ontime.csv",
            expected_digest=digest or hashlib.sha256(csv_payload).hexdigest(),
        )
        config = TesterConfig(
            dataset=dataset,
            table=TableSpec(name="t", ddl=TABLE_DDL),
            queries=(VerificationQuery(VERIFY_SQL),),
            load_endpoint="http://localhost:8001/v1/streaming_load",
        )
        return config.with_overrides(**overrides)

    return _make


@pytest.fixture
def harness(db_service, csv_payload, make_config):
    """Build a tester wired to recording fakes that share one call log."""

    def _build(digest=None, fail_on=None, reject=False, fetch_error=None, config=None):
        calls: list = []
        service = RecordingService(db_service, calls, fail_on)
        fetcher = FakeFetcher(csv_payload, fail=fetch_error)
        loader = FakeLoader(db_service, calls, reject=reject)
        out = io.StringIO()
        tester = DatasetIngestionTester(
            config or make_config(digest=digest), service, fetcher, loader, out=out
        )
        return tester, service, fetcher, loader, out

    return _build
