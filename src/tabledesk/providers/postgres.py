"""Remote-relational provider: tables in a PostgreSQL schema"""
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

import psycopg2
from psycopg2 import sql

from ..auth import GUEST, User, check_credentials
from ..config import SourceConfig
from ..errors import AuthError, BackendError, NotFound
from ..schema import (
    AUDIT_COLUMNS, ID_FIELD, FieldDescriptor, RowData, SchemaCache, TableData, TableInfo,
    INTEGER, TEXT, apply_lookups, display_field, infer_type, normalize_fields,
)
from ..storage import get_connection, get_connection_string
from ..utils import format_title, parse_int_id

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = 'public'
DEFAULT_USERS_TABLE = 'app_users'

TABLES_QUERY = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = %s AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

COLUMNS_QUERY = """
    SELECT column_name
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""

FOREIGN_KEYS_QUERY = """
    SELECT kcu.column_name, ccu.table_name AS foreign_table_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
      ON tc.constraint_name = kcu.constraint_name
     AND tc.table_schema = kcu.table_schema
    JOIN information_schema.constraint_column_usage ccu
      ON ccu.constraint_name = tc.constraint_name
     AND ccu.table_schema = tc.table_schema
    WHERE tc.constraint_type = 'FOREIGN KEY'
      AND tc.table_schema = %s
      AND tc.table_name = %s
"""


class PostgresProvider:
    """
    Tables of one PostgreSQL schema.

    Schema, foreign keys and the table list are cached in the shared
    SchemaCache; rows are always queried fresh.
    """
    source_type = 'postgres'

    def __init__(
        self,
        source: SourceConfig,
        cache: Optional[SchemaCache] = None,
        connect: Optional[Callable] = None,
    ):
        settings = source.config
        self.source_id = source.id
        self.source_name = source.name
        self.dsn = get_connection_string(settings)
        self.schema = settings.get('schema') or DEFAULT_SCHEMA
        self.static_tables: List[str] = settings.get('tables') or []
        self.static_foreign_keys: Dict[str, Dict[str, str]] = settings.get('foreignKeys') or {}
        self.lookups: Dict[str, Dict[str, str]] = source.lookups
        self.auth_required = bool(settings.get('authRequired', True))
        self.users_table = settings.get('usersTable') or DEFAULT_USERS_TABLE
        self.cache = cache if cache is not None else SchemaCache()
        self._connect = connect or get_connection

    @contextmanager
    def _cursor(self):
        """Cursor on a fresh connection; driver errors surface as BackendError."""
        try:
            with self._connect(self.dsn) as conn:
                with conn.cursor() as cur:
                    yield cur
        except psycopg2.Error as e:
            raise BackendError(str(e).strip() or type(e).__name__, e)

    def _table_ref(self, table: str) -> sql.Identifier:
        return sql.Identifier(self.schema, table)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def is_auth_required(self) -> bool:
        return self.auth_required

    def authenticate(self, email: str, password: str) -> User:
        if not self.auth_required:
            return GUEST
        check_credentials(email, password)

        query = sql.SQL(
            "SELECT id, email FROM {} WHERE email = %s AND password_hash = crypt(%s, password_hash)"
        ).format(self._table_ref(self.users_table))
        with self._cursor() as cur:
            cur.execute(query, (email, password))
            row = cur.fetchone()

        if row is None:
            raise AuthError('Invalid credentials')
        return User(id=str(row[0]), email=row[1])

    def register(self, email: str, password: str) -> str:
        if not self.auth_required:
            return 'Registration not required'
        check_credentials(email, password)

        query = sql.SQL(
            "INSERT INTO {} (email, password_hash) VALUES (%s, crypt(%s, gen_salt('bf'))) "
            "ON CONFLICT (email) DO NOTHING RETURNING id"
        ).format(self._table_ref(self.users_table))
        with self._cursor() as cur:
            cur.execute(query, (email, password))
            row = cur.fetchone()

        if row is None:
            raise AuthError('Email already registered')
        return 'Account created successfully'

    # ------------------------------------------------------------------
    # Schema discovery
    # ------------------------------------------------------------------

    def list_tables(self) -> List[TableInfo]:
        cached = self.cache.get_tables(self.source_id)
        if cached is not None:
            return cached

        names = self._discover_table_names()
        tables = [TableInfo(name=n, title=format_title(n)) for n in names]
        self.cache.set_tables(self.source_id, tables)
        logger.info(f"Discovered {len(tables)} tables in {self.source_name}")
        return tables

    def _discover_table_names(self) -> List[str]:
        """Catalog listing, or the configured table list when the catalog is unavailable."""
        try:
            with self._cursor() as cur:
                cur.execute(TABLES_QUERY, (self.schema,))
                names = [row[0] for row in cur.fetchall()]
        except BackendError as e:
            logger.warning(f"Could not list tables for {self.source_id}, using config: {e}")
            return list(self.static_tables)

        names = [n for n in names if n != self.users_table]
        if not names:
            logger.warning(f"No tables found in {self.source_id}, using config fallback")
            return list(self.static_tables)
        return names

    def _require_table(self, table: str) -> None:
        if table not in {t.name for t in self.list_tables()}:
            raise NotFound(f"Table not found: {table}")

    def discover_foreign_keys(self, table: str) -> Dict[str, str]:
        """Column -> referenced table for every foreign key of a table."""
        cached = self.cache.get_foreign_keys(self.source_id, table)
        if cached is not None:
            return cached

        try:
            with self._cursor() as cur:
                cur.execute(FOREIGN_KEYS_QUERY, (self.schema, table))
                foreign_keys = {column: target for column, target in cur.fetchall()}
        except BackendError as e:
            logger.warning(f"Could not fetch foreign keys for {table}, using config: {e}")
            foreign_keys = dict(self.static_foreign_keys.get(table, {}))

        logger.debug(f"Found {len(foreign_keys)} foreign keys for {table}")
        self.cache.set_foreign_keys(self.source_id, table, foreign_keys)
        return foreign_keys

    def discover_schema(self, table: str) -> List[FieldDescriptor]:
        """
        Infer field descriptors from one sample row.

        Audit columns are skipped. An empty table falls back to the catalog
        column list, typed by column name only.
        """
        cached = self.cache.get_schema(self.source_id, table)
        if cached is not None:
            return cached

        self._require_table(table)
        foreign_keys = self.discover_foreign_keys(table)

        with self._cursor() as cur:
            cur.execute(sql.SQL("SELECT * FROM {} LIMIT 1").format(self._table_ref(table)))
            columns = [d[0] for d in cur.description or []]
            sample = cur.fetchone()
            if sample is None:
                cur.execute(COLUMNS_QUERY, (self.schema, table))
                columns = [row[0] for row in cur.fetchall()]
                sample = [None] * len(columns)

        fields = [
            FieldDescriptor(name=name, type=_column_type(name, value), readonly=(name == ID_FIELD))
            for name, value in zip(columns, sample)
            if name not in AUDIT_COLUMNS
        ]
        fields = normalize_fields(apply_lookups(table, fields, foreign_keys, self.lookups))
        self.cache.set_schema(self.source_id, table, fields)
        return fields

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def _select(self, fields: List[FieldDescriptor]) -> sql.Composed:
        return sql.SQL(', ').join(sql.Identifier(f.name) for f in fields)

    def get_all(self, table: str) -> TableData:
        fields = self.discover_schema(table)
        query = sql.SQL("SELECT {} FROM {} ORDER BY id ASC").format(
            self._select(fields), self._table_ref(table)
        )
        with self._cursor() as cur:
            cur.execute(query)
            rows = [list(r) for r in cur.fetchall()]
        return TableData(name=table, title=format_title(table), fields=fields, rows=rows)

    @staticmethod
    def _check_id(fields: List[FieldDescriptor], row_id: Any) -> None:
        """An integer id column cannot hold a non-integer id, so no row matches."""
        if fields and fields[0].type == INTEGER and parse_int_id(row_id) is None:
            raise NotFound('Row not found')

    def get_one(self, table: str, row_id: Any) -> RowData:
        fields = self.discover_schema(table)
        self._check_id(fields, row_id)
        query = sql.SQL("SELECT {} FROM {} WHERE id = %s").format(
            self._select(fields), self._table_ref(table)
        )
        with self._cursor() as cur:
            cur.execute(query, (row_id,))
            row = cur.fetchone()
        if row is None:
            raise NotFound('Row not found')
        return RowData(name=table, title=format_title(table), fields=fields, row=list(row))

    def _writable(self, fields: List[FieldDescriptor], values: Dict[str, Any]) -> List[tuple]:
        """(field, value) pairs the caller may set: present in values, not readonly."""
        return [
            (f, _coerce(f, values[f.name]))
            for f in fields
            if not f.readonly and not f.is_id and f.name in values
        ]

    def insert(self, table: str, values: Dict[str, Any]) -> Any:
        """Insert a row; the database assigns the id."""
        fields = self.discover_schema(table)
        pairs = self._writable(fields, values)

        if pairs:
            query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING id").format(
                self._table_ref(table),
                sql.SQL(', ').join(sql.Identifier(f.name) for f, _ in pairs),
                sql.SQL(', ').join(sql.Placeholder() for _ in pairs),
            )
        else:
            query = sql.SQL("INSERT INTO {} DEFAULT VALUES RETURNING id").format(self._table_ref(table))

        with self._cursor() as cur:
            cur.execute(query, [v for _, v in pairs] or None)
            row = cur.fetchone()
        return row[0] if row else None

    def update(self, table: str, row_id: Any, values: Dict[str, Any]) -> None:
        fields = self.discover_schema(table)
        self._check_id(fields, row_id)
        pairs = self._writable(fields, values)
        if not pairs:
            # Nothing writable: still report a missing row
            self.get_one(table, row_id)
            return

        query = sql.SQL("UPDATE {} SET {} WHERE id = %s").format(
            self._table_ref(table),
            sql.SQL(', ').join(
                sql.SQL("{} = %s").format(sql.Identifier(f.name)) for f, _ in pairs
            ),
        )
        with self._cursor() as cur:
            cur.execute(query, [v for _, v in pairs] + [row_id])
            if cur.rowcount == 0:
                raise NotFound('Row not found')

    def delete(self, table: str, row_id: Any) -> None:
        self._check_id(self.discover_schema(table), row_id)
        query = sql.SQL("DELETE FROM {} WHERE id = %s").format(self._table_ref(table))
        with self._cursor() as cur:
            cur.execute(query, (row_id,))
            if cur.rowcount == 0:
                raise NotFound('Row not found')

    def list_lookup_values(self, target: str) -> List[Any]:
        fields = self.discover_schema(target)
        shown = display_field(fields)
        if shown is None:
            return []
        query = sql.SQL("SELECT {} FROM {} ORDER BY id ASC").format(
            sql.Identifier(shown.name), self._table_ref(target)
        )
        with self._cursor() as cur:
            cur.execute(query)
            return [row[0] for row in cur.fetchall()]


def _column_type(name: str, value: Any) -> str:
    """Inferred type; an id column without a sample value is taken as integer."""
    if name == ID_FIELD and value is None:
        return INTEGER
    return infer_type(value, name)


def _coerce(f: FieldDescriptor, value: Any) -> Any:
    """Blank strings are NULL for every non-text column."""
    if f.type != TEXT and isinstance(value, str) and not value.strip():
        return None
    return value
