"""Pytest configuration and shared fixtures for the tabledesk test suite."""
import re
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
import pytest
from psycopg2 import sql

from tabledesk.config import SourceConfig
from tabledesk.providers import PostgresProvider, TextFileProvider
from tabledesk.registry import SourceRegistry
from tabledesk.schema import SchemaCache


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "postgres: tests run against the scripted in-memory Postgres fake"
    )


# ============================================================================
# Text file fixtures
# ============================================================================

COUNTRIES = (
    "id:int,Name:str,ISO2:str\n"
    "1,South Africa,ZA\n"
    "2,France,FR\n"
    "3,Japan,JP\n"
)

ANOTHER = (
    "id:int,Name:str,Date:dat,Value:num,Country:lu:countries\n"
    "1,First,2024-01-31,1.5,South Africa\n"
)

CITIES = (
    "1,Cape Town,South Africa\n"
    "2,Lyon,France\n"
)


@pytest.fixture
def data_dir(tmp_path):
    """Data directory holding countries, another and cities tables."""
    (tmp_path / "countries.txt").write_text(COUNTRIES, encoding="utf-8")
    (tmp_path / "another.txt").write_text(ANOTHER, encoding="utf-8")
    (tmp_path / "cities.txt").write_text(CITIES, encoding="utf-8")
    return tmp_path


@pytest.fixture
def text_source(data_dir):
    return SourceConfig(
        id="files",
        name="Text Files",
        type="textfiles",
        config={"dataPath": str(data_dir)},
    )


@pytest.fixture
def text_provider(text_source):
    return TextFileProvider(text_source, SchemaCache())


@pytest.fixture
def registry(text_source):
    return SourceRegistry([text_source])


# ============================================================================
# Scripted Postgres fake
# ============================================================================

def render(query) -> str:
    """Render psycopg2.sql objects without a live connection."""
    if isinstance(query, str):
        return query
    if isinstance(query, sql.Composed):
        return "".join(render(part) for part in query.seq)
    if isinstance(query, sql.Identifier):
        return ".".join(f'"{s}"' for s in query.strings)
    if isinstance(query, sql.Placeholder):
        return "%s"
    if isinstance(query, sql.SQL):
        return query.string
    raise TypeError(f"Cannot render {query!r}")


def _names(column_list: str) -> List[str]:
    return re.findall(r'"([^"]+)"', column_list)


class FakeTable:
    def __init__(self, columns: List[str], rows: Optional[List[Dict[str, Any]]] = None,
                 unique: Optional[List[str]] = None):
        self.columns = columns
        self.rows = rows or []
        self.unique = unique or []

    def next_id(self) -> int:
        return max((r["id"] for r in self.rows), default=0) + 1

    def find(self, row_id) -> Optional[Dict[str, Any]]:
        return next((r for r in self.rows if str(r["id"]) == str(row_id)), None)


class FakeCursor:
    def __init__(self, db: "FakeDatabase"):
        self.db = db
        self.description = None
        self.rowcount = -1
        self._result: List[tuple] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None):
        text = " ".join(render(query).split())
        params = list(params or [])
        self.db.executed.append((text, params))
        self.description = None
        self.rowcount = -1
        self._result = []
        self.db.dispatch(self, text, params)

    def fetchone(self):
        return self._result[0] if self._result else None

    def fetchall(self):
        return list(self._result)


class FakeConnection:
    def __init__(self, db: "FakeDatabase"):
        self.db = db

    def cursor(self):
        return FakeCursor(self.db)


class FakeDatabase:
    """
    Just enough of Postgres for the provider: catalog queries, sample
    rows, CRUD by id and a pgcrypto-style users table (plain-text compare).
    """

    def __init__(self, schema: str = "public"):
        self.schema = schema
        self.tables: Dict[str, FakeTable] = {}
        self.foreign_keys: Dict[str, Dict[str, str]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.catalog_available = True
        self.executed: List[tuple] = []

    @contextmanager
    def connect(self, dsn=None):
        yield FakeConnection(self)

    def add_user(self, email: str, password: str) -> None:
        self.users[email] = {"id": len(self.users) + 1, "email": email, "password": password}

    def _table(self, name: str) -> FakeTable:
        if name not in self.tables:
            raise psycopg2.ProgrammingError(f'relation "{name}" does not exist')
        return self.tables[name]

    def dispatch(self, cur: FakeCursor, text: str, params: List[Any]) -> None:
        ref = rf'"{self.schema}"\."([^"]+)"'

        if "information_schema.tables" in text:
            if not self.catalog_available:
                raise psycopg2.OperationalError("permission denied for information_schema")
            cur._result = [(name,) for name in sorted(self.tables)] + [("app_users",)]
            return

        if "FOREIGN KEY" in text:
            if not self.catalog_available:
                raise psycopg2.OperationalError("permission denied for information_schema")
            table = params[1]
            cur._result = list(self.foreign_keys.get(table, {}).items())
            return

        if "information_schema.columns" in text:
            cur._result = [(c,) for c in self._table(params[1]).columns]
            return

        m = re.match(rf'SELECT id, email FROM {ref} WHERE email = %s', text)
        if m:
            user = self.users.get(params[0])
            if user and user["password"] == params[1]:
                cur._result = [(user["id"], user["email"])]
            return

        m = re.match(rf'INSERT INTO {ref} \(email, password_hash\)', text)
        if m:
            if params[0] not in self.users:
                self.add_user(params[0], params[1])
                cur._result = [(self.users[params[0]]["id"],)]
            return

        m = re.match(rf'SELECT \* FROM {ref} LIMIT 1', text)
        if m:
            table = self._table(m.group(1))
            cur.description = [(c,) for c in table.columns]
            if table.rows:
                cur._result = [tuple(table.rows[0].get(c) for c in table.columns)]
            return

        m = re.match(rf'SELECT (.+) FROM {ref} ORDER BY id ASC', text)
        if m:
            columns = _names(m.group(1))
            table = self._table(m.group(2))
            ordered = sorted(table.rows, key=lambda r: r["id"])
            cur._result = [tuple(r.get(c) for c in columns) for r in ordered]
            return

        m = re.match(rf'SELECT (.+) FROM {ref} WHERE id = %s', text)
        if m:
            columns = _names(m.group(1))
            row = self._table(m.group(2)).find(params[0])
            if row:
                cur._result = [tuple(row.get(c) for c in columns)]
            return

        m = re.match(rf'INSERT INTO {ref} DEFAULT VALUES', text)
        if m:
            table = self._table(m.group(1))
            row = {c: None for c in table.columns}
            row["id"] = table.next_id()
            table.rows.append(row)
            cur._result = [(row["id"],)]
            return

        m = re.match(rf'INSERT INTO {ref} \((.+?)\) VALUES', text)
        if m:
            table = self._table(m.group(1))
            values = dict(zip(_names(m.group(2)), params))
            for column in table.unique:
                if any(r.get(column) == values.get(column) for r in table.rows):
                    raise psycopg2.IntegrityError(
                        f'duplicate key value violates unique constraint "{m.group(1)}_{column}_key"'
                    )
            row = {c: None for c in table.columns}
            row.update(values)
            row["id"] = table.next_id()
            table.rows.append(row)
            cur._result = [(row["id"],)]
            return

        m = re.match(rf'UPDATE {ref} SET (.+) WHERE id = %s', text)
        if m:
            table = self._table(m.group(1))
            row = table.find(params[-1])
            cur.rowcount = 0
            if row:
                row.update(dict(zip(_names(m.group(2)), params[:-1])))
                cur.rowcount = 1
            return

        m = re.match(rf'DELETE FROM {ref} WHERE id = %s', text)
        if m:
            table = self._table(m.group(1))
            before = len(table.rows)
            table.rows = [r for r in table.rows if str(r["id"]) != str(params[0])]
            cur.rowcount = before - len(table.rows)
            return

        raise AssertionError(f"Unexpected query: {text}")


@pytest.fixture
def fake_db():
    db = FakeDatabase()
    db.tables["countries"] = FakeTable(
        ["id", "name", "iso2", "created_at"],
        [
            {"id": 1, "name": "South Africa", "iso2": "ZA", "created_at": "2024-01-01T00:00:00"},
            {"id": 2, "name": "France", "iso2": "FR", "created_at": "2024-01-01T00:00:00"},
        ],
        unique=["iso2"],
    )
    db.tables["cities"] = FakeTable(
        ["name", "id", "population", "country_id", "founded_on", "active"],
        [
            {"id": 1, "name": "Cape Town", "population": 4770000, "country_id": 1,
             "founded_on": "1652-04-06", "active": True},
        ],
    )
    db.tables["empty_things"] = FakeTable(["id", "label", "updated_at"])
    db.foreign_keys["cities"] = {"country_id": "countries"}
    db.add_user("ada@example.com", "secret-pass")
    return db


@pytest.fixture
def pg_source():
    return SourceConfig(
        id="pg",
        name="Postgres",
        type="postgres",
        config={
            "dsn": "dbname=test",
            "tables": ["countries", "cities"],
            "foreignKeys": {"cities": {"country_id": "countries"}},
        },
    )


@pytest.fixture
def pg_provider(pg_source, fake_db):
    return PostgresProvider(pg_source, SchemaCache(), connect=fake_db.connect)
