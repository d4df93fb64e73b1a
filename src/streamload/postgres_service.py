"""PostgreSQL implementation of DatabaseService."""

import threading
from contextlib import contextmanager
from queue import Empty, Queue
from typing import Iterator

import psycopg2
import psycopg2.extras

from streamload.errors import SQLClientError
from streamload.service import DatabaseService, split_statements
from streamload.types import Params, Rows


class PostgresDatabaseService(DatabaseService):
    """PostgreSQL backend using psycopg2.

    For servers that expose the PostgreSQL wire protocol. Thread-safe via a
    connection pool (Queue).
    """

    def __init__(self, dsn: str, pool_size: int = 4):
        self._dsn = dsn
        self._pool_size = pool_size
        self._pool: Queue = Queue(maxsize=pool_size)
        self._local = threading.local()

    def connect(self) -> None:
        for _ in range(self._pool_size):
            try:
                conn = psycopg2.connect(self._dsn)
            except psycopg2.Error as e:
                raise SQLClientError(f"cannot connect: {e}") from e
            conn.autocommit = False
            self._pool.put(conn)

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break

    def _acquire(self):
        return self._pool.get(timeout=30)

    def _release(self, conn) -> None:
        self._pool.put(conn)

    def _get_conn(self):
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
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(sql, params or ())
                if cur.description is None:
                    return []
                return [dict(row) for row in cur.fetchall()]
        except psycopg2.Error as e:
            raise SQLClientError(str(e)) from e

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            with conn.cursor() as cur:
                for statement in split_statements(sql):
                    cur.execute(statement)
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise SQLClientError(str(e)) from e
        finally:
            self._release(conn)
