"""Dataset ingestion tester: create, fetch, verify, load, query, drop.

A run executes its steps strictly in order and stops at the first failure.
The table is provisioned through `provisioned_table()`, which drops it
exactly once on the way out whether or not the run succeeded. Teardown
failures are logged and kept on the report but never change the outcome.
"""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Sequence, TextIO

from streamload import dataset
from streamload.config import IngestionRequest, TesterConfig, VerificationQuery
from streamload.dataset import DatasetFetcher
from streamload.errors import (
    IntegrityError,
    QueryError,
    SchemaError,
    SQLClientError,
    StreamLoadTestError,
    TeardownError,
)
from streamload.service import DatabaseService
from streamload.types import Rows
from streamload.upload import LoadResult, StreamingLoadClient

logger = logging.getLogger(__name__)

CHECKSUM_PASSED = "dataset checksum passed"
CHECKSUM_FAILED = "current dataset is not our stateful test dataset"


@dataclass(frozen=True)
class QueryResult:
    sql: str
    rows: Rows


@dataclass
class RunReport:
    downloaded: bool = False
    load_result: LoadResult | None = None
    results: list[QueryResult] = field(default_factory=list)
    error: StreamLoadTestError | None = None
    teardown_error: TeardownError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.error is None else self.error.exit_code


def format_rows(rows: Rows) -> list[str]:
    """Render rows as tab-separated lines without a header."""
    return ["\t".join("NULL" if v is None else str(v) for v in row.values()) for row in rows]


class DatasetIngestionTester:
    def __init__(
        self,
        config: TesterConfig,
        service: DatabaseService,
        fetcher: DatasetFetcher,
        loader: StreamingLoadClient,
        out: TextIO | None = None,
    ):
        self.config = config
        self._service = service
        self._fetcher = fetcher
        self._loader = loader
        self._out = out if out is not None else sys.stdout

    def _echo(self, line: str) -> None:
        print(line, file=self._out)

    def ensure_table(self) -> None:
        table = self.config.table
        logger.info("Creating table %s", table.name)
        try:
            self._service.execute_ddl(table.ddl)
        except SQLClientError as e:
            raise SchemaError(f"cannot create table {table.name}: {e}") from e

    def ensure_dataset_cached(self) -> bool:
        return dataset.ensure_dataset_cached(
            self.config.dataset, self._fetcher, self.config.fetch_timeout
        )

    def verify_integrity(self) -> bool:
        matched = dataset.verify_integrity(self.config.dataset)
        self._echo(CHECKSUM_PASSED if matched else CHECKSUM_FAILED)
        return matched

    def ingest(self, request: IngestionRequest | None = None) -> LoadResult:
        request = request or self.config.ingestion_request()
        return self._loader.upload(request, self.config.upload_timeout)

    def verify(self, queries: Sequence[VerificationQuery] | None = None) -> list[QueryResult]:
        results = []
        for query in queries if queries is not None else self.config.queries:
            try:
                with self._service.transaction():
                    rows = self._service.execute(query.sql)
            except SQLClientError as e:
                raise QueryError(f"query failed: {query.sql}: {e}") from e
            logger.info("Query returned %d row(s): %s", len(rows), query.sql)
            for line in format_rows(rows):
                self._echo(line)
            results.append(QueryResult(query.sql, rows))
        return results

    def teardown(self) -> TeardownError | None:
        table = self.config.table
        try:
            self._service.execute_ddl(table.teardown_sql)
        except SQLClientError as e:
            error = TeardownError(f"cannot drop table {table.name}: {e}")
            logger.warning("%s", error)
            return error
        logger.info("Dropped table %s", table.name)
        return None

    @contextmanager
    def provisioned_table(self, report: RunReport | None = None) -> Iterator[None]:
        """Create the table for the enclosed block and always tear it down."""
        try:
            self.ensure_table()
            yield
        finally:
            error = self.teardown()
            if report is not None:
                report.teardown_error = error

    def run(self) -> RunReport:
        report = RunReport()
        try:
            with self.provisioned_table(report):
                report.downloaded = self.ensure_dataset_cached()
                if not self.verify_integrity():
                    raise IntegrityError(
                        f"{self.config.dataset.cache_path} does not match "
                        f"{self.config.dataset.algorithm} {self.config.dataset.expected_digest}"
                    )
                report.load_result = self.ingest()
                report.results = self.verify()
        except StreamLoadTestError as e:
            logger.error("%s: %s", type(e).__name__, e)
            report.error = e
        return report
