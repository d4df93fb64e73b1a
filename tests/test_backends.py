"""Tests for the PostgreSQL and MySQL backends against fake driver connections."""

import psycopg2
import pymysql
import pymysql.cursors
import pytest

from streamload.errors import SQLClientError
from streamload.mysql_service import MySQLDatabaseService
from streamload.postgres_service import PostgresDatabaseService


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.description = None
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self._conn.statements.append(sql)
        if sql in self._conn.fail_on:
            raise self._conn.fail_on[sql]
        if sql.lower().startswith("select"):
            self.description = [("n",)]
            self._rows = [{"n": 1}]
        else:
            self.description = None
            self._rows = []

    def fetchall(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, fail_on=None, **kwargs):
        self.kwargs = kwargs
        self.fail_on = fail_on if fail_on is not None else {}
        self.statements = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.autocommit = None

    def cursor(self, **kwargs):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


@pytest.fixture
def fake_driver():
    """Collects the fake connections handed out by a patched connect()."""
    state = {"conns": [], "fail_on": {}}

    def connect(*args, **kwargs):
        conn = FakeConnection(state["fail_on"], **kwargs)
        state["conns"].append(conn)
        return conn

    state["connect"] = connect
    return state


@pytest.fixture
def pg(monkeypatch, fake_driver):
    monkeypatch.setattr(psycopg2, "connect", fake_driver["connect"])
    service = PostgresDatabaseService("postgresql://u:p@localhost/db", pool_size=1)
    service.connect()
    yield service, fake_driver
    service.close()


@pytest.fixture
def mysql(monkeypatch, fake_driver):
    monkeypatch.setattr(pymysql, "connect", fake_driver["connect"])
    service = MySQLDatabaseService("mysql://root:pw@db.local:3307/default", pool_size=1)
    service.connect()
    yield service, fake_driver
    service.close()


class TestPostgresService:
    def test_ddl_script_split_into_statements(self, pg):
        service, driver = pg
        service.execute_ddl("CREATE TABLE t (a INT);\nCREATE INDEX i ON t(a);\n")
        conn = driver["conns"][0]
        assert conn.statements == ["CREATE TABLE t (a INT)", "CREATE INDEX i ON t(a)"]
        assert conn.commits == 1

    def test_failed_ddl_rolls_back_and_wraps_error(self, pg):
        service, driver = pg
        driver["fail_on"]["DROP TABLE t"] = psycopg2.ProgrammingError("table t is in use")
        with pytest.raises(SQLClientError, match="in use"):
            service.execute_ddl("DROP TABLE t")
        conn = driver["conns"][0]
        assert conn.rollbacks == 1
        assert conn.commits == 0
        # Connection went back to the pool.
        service.execute_ddl("CREATE TABLE u (a INT)")

    def test_query_returns_dict_rows(self, pg):
        service, _ = pg
        with service.transaction():
            assert service.execute("select 1 as n") == [{"n": 1}]

    def test_query_error_wrapped_and_rolled_back(self, pg):
        service, driver = pg
        driver["fail_on"]["select bad"] = psycopg2.ProgrammingError("column bad does not exist")
        with pytest.raises(SQLClientError, match="does not exist"):
            with service.transaction():
                service.execute("select bad")
        assert driver["conns"][0].rollbacks == 1

    def test_connect_failure_wrapped(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise psycopg2.OperationalError("connection refused")

        monkeypatch.setattr(psycopg2, "connect", refuse)
        with pytest.raises(SQLClientError, match="cannot connect"):
            PostgresDatabaseService("postgresql://u:p@localhost/db").connect()

    def test_close_closes_pooled_connections(self, monkeypatch, fake_driver):
        monkeypatch.setattr(psycopg2, "connect", fake_driver["connect"])
        service = PostgresDatabaseService("postgresql://x", pool_size=2)
        service.connect()
        service.close()
        assert [c.closed for c in fake_driver["conns"]] == [True, True]


class TestMySQLService:
    def test_connect_kwargs_from_url(self, mysql):
        _, driver = mysql
        kwargs = driver["conns"][0].kwargs
        assert kwargs["host"] == "db.local"
        assert kwargs["port"] == 3307
        assert kwargs["user"] == "root"
        assert kwargs["password"] == "pw"
        assert kwargs["database"] == "default"
        assert kwargs["autocommit"] is True
        assert kwargs["cursorclass"] is pymysql.cursors.DictCursor

    def test_ddl_script_split_into_statements(self, mysql):
        service, driver = mysql
        service.execute_ddl("drop table if exists t; create table t (a int);")
        assert driver["conns"][0].statements == ["drop table if exists t", "create table t (a int)"]

    def test_failed_ddl_wraps_error_and_releases_connection(self, mysql):
        service, driver = mysql
        driver["fail_on"]["create table t"] = pymysql.err.ProgrammingError(1064, "syntax error")
        with pytest.raises(SQLClientError, match="syntax error"):
            service.execute_ddl("create table t")
        service.execute_ddl("drop table if exists t")
        assert driver["conns"][0].statements[-1] == "drop table if exists t"

    def test_query_returns_rows(self, mysql):
        service, _ = mysql
        with service.transaction():
            assert service.execute("select count(1) as n from t") == [{"n": 1}]

    def test_query_error_wrapped(self, mysql):
        service, driver = mysql
        driver["fail_on"]["select x"] = pymysql.err.OperationalError(1105, "unknown column x")
        with pytest.raises(SQLClientError, match="unknown column"):
            with service.transaction():
                service.execute("select x")

    def test_execute_requires_transaction(self, mysql):
        service, _ = mysql
        with pytest.raises(RuntimeError, match="No active transaction"):
            service.execute("select 1")

    def test_connect_failure_wrapped(self, monkeypatch):
        def refuse(**kwargs):
            raise pymysql.err.OperationalError(2003, "Can't connect")

        monkeypatch.setattr(pymysql, "connect", refuse)
        with pytest.raises(SQLClientError, match="cannot connect"):
            MySQLDatabaseService("mysql://root@127.0.0.1:3307/default").connect()
