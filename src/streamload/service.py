"""Abstract DatabaseService interface."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from streamload.types import Params, Rows


class DatabaseService(ABC):
    """SQL client collaborator used by the tester.

    Design principles:
    - Stateless: no mutable state beyond the connection pool
    - DB-agnostic: the tester programs against this ABC, never a concrete backend
    - Backends raise SQLClientError for failed statements
    """

    @abstractmethod
    def connect(self) -> None:
        """Initialize the connection pool."""

    @abstractmethod
    def close(self) -> None:
        """Close all connections and release resources."""

    @abstractmethod
    def execute(self, sql: str, params: Params | None = None) -> Rows:
        """Execute a single SQL statement and return rows as dicts."""

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Context manager: acquires a connection for the enclosed statements."""

    @abstractmethod
    def execute_ddl(self, sql: str) -> None:
        """Execute DDL statements (CREATE TABLE, DROP TABLE, etc.)."""


def split_statements(sql: str) -> list[str]:
    """Split a script on ';' and drop empty statements."""
    return [s.strip() for s in sql.split(";") if s.strip()]
