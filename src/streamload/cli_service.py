"""DatabaseService that drives an external SQL client command."""

import logging
import shlex
import subprocess
from contextlib import contextmanager
from typing import Iterator

from streamload.errors import SQLClientError
from streamload.service import DatabaseService
from streamload.types import Params, Rows

logger = logging.getLogger(__name__)


def parse_batch_output(text: str) -> Rows:
    """Parse tab-separated client output whose first line is the header."""
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []
    header = lines[0].split("\t")
    return [dict(zip(header, line.split("\t"))) for line in lines[1:]]


class CommandLineDatabaseService(DatabaseService):
    """Pipes each statement to a client process on standard input.

    `command` is a shell-style string such as
    ``mysql --batch -uroot --host 127.0.0.1 -P3307``. Every call spawns a
    fresh process; a non-zero exit status raises SQLClientError carrying
    the client's stderr.
    """

    def __init__(self, command: str, timeout: float | None = 120.0):
        self._argv = shlex.split(command)
        self._timeout = timeout
        if not self._argv:
            raise ValueError("SQL client command is empty")

    def connect(self) -> None:
        pass

    def close(self) -> None:
        pass

    @contextmanager
    def transaction(self) -> Iterator[None]:
        yield

    def _run(self, sql: str) -> str:
        logger.debug("Running %s <<< %s", self._argv[0], sql)
        try:
            proc = subprocess.run(
                self._argv,
                input=sql,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self._timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise SQLClientError(f"{self._argv[0]} failed to run: {e}") from e
        if proc.returncode != 0:
            raise SQLClientError(
                f"{self._argv[0]} exited with status {proc.returncode}: {proc.stderr.strip()}"
            )
        return proc.stdout

    def execute(self, sql: str, params: Params | None = None) -> Rows:
        if params:
            raise ValueError("CommandLineDatabaseService does not support bound parameters")
        statement = sql.rstrip().rstrip(";") + ";\n"
        return parse_batch_output(self._run(statement))

    def execute_ddl(self, sql: str) -> None:
        script = sql.strip()
        if not script.endswith(";"):
            script += ";"
        self._run(script + "\n")
