"""CLI entry point for the streaming load dataset test.

Usage:
    python -m scripts.streaming_load [--sql-url mysql://root@127.0.0.1:3307/default]
        [--sql-command "mysql --batch -uroot --host 127.0.0.1 -P3307"]
        [--endpoint http://localhost:8001/v1/streaming_load] [--permissive]
"""

import argparse
import logging
import sys
from pathlib import Path

from streamload import create_service
from streamload.cli_service import CommandLineDatabaseService
from streamload.config import TesterConfig
from streamload.dataset import HTTPDatasetFetcher
from streamload.errors import SchemaError, SQLClientError
from streamload.service import DatabaseService
from streamload.tester import DatasetIngestionTester
from streamload.upload import HTTPStreamingLoadClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the streaming load dataset test")
    sql = parser.add_mutually_exclusive_group()
    sql.add_argument("--sql-url", help="SQL backend URL (mysql://, postgresql://, sqlite:///)")
    sql.add_argument("--sql-command", help="External SQL client reading statements on stdin")
    parser.add_argument("--endpoint", help="Streaming load URL")
    parser.add_argument("--user", help="HTTP user for the streaming load endpoint")
    parser.add_argument("--password", help="HTTP password for the streaming load endpoint")
    parser.add_argument("--dataset-url", help="Dataset download URL")
    parser.add_argument("--cache-path", help="Local dataset cache file")
    parser.add_argument("--digest", help="Expected sha256 of the dataset")
    parser.add_argument("--table", help="Target table name")
    parser.add_argument(
        "--ddl-file", type=Path, help="CREATE TABLE template whose table is named 'ontime'"
    )
    parser.add_argument(
        "--query", action="append", help="Verification query (repeatable, run in order)"
    )
    parser.add_argument(
        "--permissive",
        action="store_true",
        help="Do not fail the run when the endpoint rejects the upload",
    )
    parser.add_argument("--fetch-timeout", type=float, help="Dataset download timeout (s)")
    parser.add_argument("--upload-timeout", type=float, help="Upload timeout (s)")
    return parser


def config_from_args(args: argparse.Namespace) -> TesterConfig:
    ddl_template = args.ddl_file.read_text(encoding="utf-8") if args.ddl_file else None
    return TesterConfig.from_env(
        table_name=args.table,
        ddl_template=ddl_template,
        queries=args.query,
        dataset_url=args.dataset_url,
        cache_path=args.cache_path,
        digest=args.digest,
        sql_url=args.sql_url,
        sql_command=args.sql_command,
        load_endpoint=args.endpoint,
        load_user=args.user,
        load_password=args.password,
        fetch_timeout=args.fetch_timeout,
        upload_timeout=args.upload_timeout,
        strict_upload=False if args.permissive else None,
    )


def service_for(config: TesterConfig) -> DatabaseService:
    if config.sql_command:
        return CommandLineDatabaseService(config.sql_command)
    return create_service(config.sql_url)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    auth = None
    if config.load_user:
        auth = (config.load_user, config.load_password or "")

    service = service_for(config)
    try:
        service.connect()
    except SQLClientError as e:
        service.close()
        error = SchemaError(f"cannot reach SQL endpoint: {e}")
        logger.error("%s", error)
        return error.exit_code

    try:
        tester = DatasetIngestionTester(
            config,
            service,
            HTTPDatasetFetcher(),
            HTTPStreamingLoadClient(auth=auth, strict=config.strict_upload),
        )
        report = tester.run()
    finally:
        service.close()

    if report.teardown_error is not None:
        logger.warning("Teardown failed: %s", report.teardown_error)
    if report.succeeded:
        logger.info("Done.")
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
