"""SQLite implementation of DatabaseService."""

import sqlite3
import threading
from contextlib import contextmanager
from queue import Empty, Queue
from typing import Iterator

from streamload.errors import SQLClientError
from streamload.service import DatabaseService
from streamload.types import Params, Rows


class SQLiteDatabaseService(DatabaseService):
    """SQLite backend using stdlib sqlite3.

    Used for local dry runs and the test suite. Thread-safe via a connection
    pool (Queue). Each transaction() call acquires a dedicated connection and
    returns it on exit.
    """

    def __init__(self, db_path: str, pool_size: int = 4):
        self._db_path = db_path
        self._pool_size = pool_size
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._local = threading.local()

    def connect(self) -> None:
        for _ in range(self._pool_size):
            try:
                conn = sqlite3.connect(self._db_path, check_same_thread=False)
                conn.execute("PRAGMA journal_mode=WAL")
            except sqlite3.Error as e:
                raise SQLClientError(f"cannot open {self._db_path}: {e}") from e
            conn.row_factory = sqlite3.Row
            self._pool.put(conn)

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break

    def _acquire(self) -> sqlite3.Connection:
        return self._pool.get(timeout=30)

    def _release(self, conn: sqlite3.Connection) -> None:
        self._pool.put(conn)

    def _get_conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        raise RuntimeError(
            "No active transaction. Wrap calls in a `with service.transaction():` block."
        )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._acquire()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            self._release(conn)

    def execute(self, sql: str, params: Params | None = None) -> Rows:
        conn = self._get_conn()
        try:
            cursor = conn.execute(sql, params or ())
        except sqlite3.Error as e:
            raise SQLClientError(str(e)) from e
        if cursor.description is None:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            conn.executescript(sql)
            conn.commit()
        except sqlite3.Error as e:
            raise SQLClientError(str(e)) from e
        finally:
            self._release(conn)
