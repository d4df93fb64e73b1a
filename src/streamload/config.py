"""Run configuration: dataset, table, upload request and verification queries.

Everything a run needs is held in an explicit, immutable TesterConfig that
the caller builds once and passes to the tester. `TesterConfig.from_env`
layers STREAMLOAD_* environment variables and explicit overrides on top of
the ontime reference defaults.
"""

import os
import re
from dataclasses import dataclass, replace
from pathlib import Path

from streamload.schema import (
    ONTIME_TABLE,
    ONTIME_TABLE_DDL,
    ONTIME_TEMPLATE_NAME,
    ONTIME_VERIFY_SQL,
)
from streamload.types import Headers

ONTIME_URL = "https://repo.databend.rs/dataset/stateful/ontime.csv"
ONTIME_CACHE_PATH = "/tmp/ontime.csv"
ONTIME_SHA256 = "429c47cdd49b7d75eec9b9244c8b1288edd132506203e37d2d1e70e1ac1eccc7"

DEFAULT_SQL_URL = "mysql://root@127.0.0.1:3307/default"
DEFAULT_LOAD_ENDPOINT = "http://localhost:8001/v1/streaming_load"
DEFAULT_FETCH_TIMEOUT = 300.0
DEFAULT_UPLOAD_TIMEOUT = 600.0


@dataclass(frozen=True)
class DatasetSpec:
    url: str
    cache_path: Path
    expected_digest: str
    algorithm: str = "sha256"


@dataclass(frozen=True)
class TableSpec:
    name: str
    ddl: str
    teardown_sql: str = ""

    def __post_init__(self):
        if not self.teardown_sql:
            object.__setattr__(self, "teardown_sql", f"DROP TABLE IF EXISTS {self.name}")

    @classmethod
    def from_template(
        cls, template: str, name: str, template_name: str = ONTIME_TEMPLATE_NAME
    ) -> "TableSpec":
        """Build a TableSpec by renaming the template's table to `name`."""
        ddl = re.sub(rf"\b{re.escape(template_name)}\b", name, template)
        return cls(name=name, ddl=ddl)


@dataclass(frozen=True)
class IngestionRequest:
    endpoint: str
    headers: Headers
    file_path: Path

    @classmethod
    def for_table(
        cls,
        endpoint: str,
        table: str,
        file_path: str | Path,
        fmt: str = "CSV",
        csv_header: bool = True,
    ) -> "IngestionRequest":
        headers = {
            "insert_sql": f"insert into {table} format {fmt}",
            "csv_header": "1" if csv_header else "0",
        }
        return cls(endpoint=endpoint, headers=headers, file_path=Path(file_path))


@dataclass(frozen=True)
class VerificationQuery:
    sql: str


@dataclass(frozen=True)
class TesterConfig:
    dataset: DatasetSpec
    table: TableSpec
    queries: tuple[VerificationQuery, ...]
    sql_url: str = DEFAULT_SQL_URL
    sql_command: str | None = None
    load_endpoint: str = DEFAULT_LOAD_ENDPOINT
    load_user: str | None = None
    load_password: str | None = None
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT
    strict_upload: bool = True
    csv_header: bool = True
    load_format: str = "CSV"

    def ingestion_request(self) -> IngestionRequest:
        return IngestionRequest.for_table(
            self.load_endpoint,
            self.table.name,
            self.dataset.cache_path,
            fmt=self.load_format,
            csv_header=self.csv_header,
        )

    def with_overrides(self, **changes) -> "TesterConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(
        cls,
        table_name: str | None = None,
        ddl_template: str | None = None,
        queries: list[str] | None = None,
        dataset_url: str | None = None,
        cache_path: str | Path | None = None,
        digest: str | None = None,
        **overrides,
    ) -> "TesterConfig":
        """Build the config from STREAMLOAD_* variables, explicit arguments winning."""
        dataset = DatasetSpec(
            url=dataset_url or os.environ.get("STREAMLOAD_DATASET_URL", ONTIME_URL),
            cache_path=Path(
                cache_path or os.environ.get("STREAMLOAD_CACHE_PATH", ONTIME_CACHE_PATH)
            ),
            expected_digest=digest or os.environ.get("STREAMLOAD_DIGEST", ONTIME_SHA256),
        )
        name = table_name or ONTIME_TABLE
        table = TableSpec.from_template(ddl_template or ONTIME_TABLE_DDL, name)
        sqls = queries or [ONTIME_VERIFY_SQL.format(table=name)]

        config = cls(
            dataset=dataset,
            table=table,
            queries=tuple(VerificationQuery(sql) for sql in sqls),
            sql_url=os.environ.get("STREAMLOAD_SQL_URL", DEFAULT_SQL_URL),
            sql_command=os.environ.get("STREAMLOAD_SQL_COMMAND") or None,
            load_endpoint=os.environ.get("STREAMLOAD_ENDPOINT", DEFAULT_LOAD_ENDPOINT),
            load_user=os.environ.get("STREAMLOAD_USER") or None,
            load_password=os.environ.get("STREAMLOAD_PASSWORD") or None,
        )
        return config.with_overrides(**overrides)
