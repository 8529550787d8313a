"""File-backed provider: one delimited text file per table"""
import logging
import os
from typing import Any, Dict, List, Optional

from ..auth import GUEST, User, check_credentials
from ..config import SourceConfig
from ..errors import BackendError, NotFound, ValidationError
from ..loader.delimited import DelimitedTable, read_table, write_table
from ..schema import (
    FieldDescriptor, RowData, SchemaCache, TableData, TableInfo,
    TEXT, apply_lookups, display_field, id_field,
)
from ..utils import format_title, is_safe_table_name, parse_int_id

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = './data'
DEFAULT_EXTENSION = '.txt'


class TextFileProvider:
    """
    Tables stored as delimited text files under a data directory.

    Each operation reads the whole file, works on it in memory and, for
    mutations, rewrites the whole file. Concurrent writers are not
    coordinated.
    """
    source_type = 'textfiles'

    def __init__(self, source: SourceConfig, cache: Optional[SchemaCache] = None):
        self.source_id = source.id
        self.source_name = source.name
        self.data_path = source.config.get('dataPath') or DEFAULT_DATA_PATH
        self.extension = source.config.get('extension') or DEFAULT_EXTENSION
        self.auth_required = bool(source.config.get('authRequired', False))
        self.lookups: Dict[str, Dict[str, str]] = source.lookups
        # File schemas live in the file itself and are read fresh with the rows
        self.cache = cache

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def is_auth_required(self) -> bool:
        return self.auth_required

    def authenticate(self, email: str, password: str) -> User:
        if not self.auth_required:
            return GUEST
        check_credentials(email, password)
        return User(id=email, email=email)

    def register(self, email: str, password: str) -> str:
        if not self.auth_required:
            return 'Registration not required'
        return 'Account created successfully'

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def file_path(self, table: str) -> str:
        if not is_safe_table_name(table):
            raise ValidationError(f"Invalid table name: {table!r}")
        return os.path.join(self.data_path, f"{table}{self.extension}")

    def _read(self, table: str) -> DelimitedTable:
        path = self.file_path(table)
        try:
            return read_table(path)
        except (OSError, UnicodeDecodeError) as e:
            raise BackendError(f"Failed to read {table}: {e}", e)

    def _write(self, table: str, contents: DelimitedTable) -> None:
        path = self.file_path(table)
        try:
            write_table(path, contents)
        except OSError as e:
            raise BackendError(f"Failed to write {table}: {e}", e)

    @staticmethod
    def _align_id_column(contents: DelimitedTable) -> bool:
        """
        Make a declared header start with its id column, moving row values along.

        A header with no id column gets one, and every row gets a blank
        leading value for the id step to fill.
        """
        if not contents.headers:
            return False

        position = next((i for i, h in enumerate(contents.headers) if h.is_id), None)
        if position == 0:
            return False

        if position is None:
            contents.headers.insert(0, id_field())
            for row in contents.rows:
                row.insert(0, '')
            return True

        contents.headers.insert(0, contents.headers.pop(position))
        for row in contents.rows:
            row.insert(0, row.pop(position) if position < len(row) else '')
        return True

    def ensure_ids(self, table: str, contents: Optional[DelimitedTable] = None) -> bool:
        """
        Give every row an integer id, rewriting the file if anything changed.

        A declared header is first aligned so its id column leads. Then a
        blank first field is filled in place. A non-integer first field is
        replaced when the header declares that column as the id; in a
        header-less file it means the row has no id column, so one is
        prepended. New ids continue from the largest existing id.

        Returns:
            True if the file was rewritten.
        """
        if contents is None:
            contents = self._read(table)

        changed = self._align_id_column(contents)
        declared = bool(contents.headers)

        existing = [parse_int_id(row[0]) for row in contents.rows if row]
        next_id = max([i for i in existing if i is not None], default=0) + 1

        for row in contents.rows:
            if not row:
                row.append(str(next_id))
            elif not row[0].strip() or (declared and parse_int_id(row[0]) is None):
                row[0] = str(next_id)
            elif parse_int_id(row[0]) is None:
                row.insert(0, str(next_id))
            else:
                continue
            next_id += 1
            changed = True

        if changed:
            logger.info(f"Adding missing IDs to {table} and saving")
            self._write(table, contents)
        return changed

    def _load(self, table: str) -> DelimitedTable:
        """Read a table and apply the self-healing id step."""
        contents = self._read(table)
        self.ensure_ids(table, contents)
        return contents

    def _fields(self, table: str, contents: DelimitedTable) -> List[FieldDescriptor]:
        """
        Field descriptors in file column order.

        Expects contents that went through ensure_ids, so the first column
        is the id: its declared name is kept, its type is always integer.
        """
        if contents.headers:
            fields = [
                FieldDescriptor(h.name, h.type, h.lookup_target)
                for h in contents.headers[1:]
            ]
        elif contents.rows:
            width = max(len(r) for r in contents.rows)
            fields = [FieldDescriptor(f"Column{i}", TEXT) for i in range(1, width)]
        else:
            fields = []

        head = id_field()
        if contents.headers:
            head.name = contents.headers[0].name
        return apply_lookups(table, [head] + fields, manual_lookups=self.lookups)

    @staticmethod
    def _sorted_rows(rows: List[List[str]]) -> List[List[str]]:
        return sorted(rows, key=lambda r: parse_int_id(r[0]) or 0)

    @staticmethod
    def _find(rows: List[List[str]], row_id: Any) -> int:
        target = str(row_id).strip()
        for index, row in enumerate(rows):
            if row and row[0] == target:
                return index
        return -1

    @staticmethod
    def _pad(fields: List[FieldDescriptor], row: List[str]) -> List[str]:
        """Stored row widened to one value per field."""
        return row + [''] * (len(fields) - len(row))

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def list_tables(self) -> List[TableInfo]:
        try:
            names = os.listdir(self.data_path)
        except OSError as e:
            logger.error(f"Error reading data directory {self.data_path}: {e}")
            return []

        tables = [
            TableInfo(name=n[:-len(self.extension)], title=format_title(n[:-len(self.extension)]))
            for n in names
            if n.endswith(self.extension) and not n.startswith('.')
        ]
        return sorted(tables, key=lambda t: t.title)

    def discover_schema(self, table: str) -> List[FieldDescriptor]:
        return self._fields(table, self._load(table))

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def get_all(self, table: str) -> TableData:
        contents = self._load(table)
        fields = self._fields(table, contents)
        rows = [self._pad(fields, r) for r in self._sorted_rows(contents.rows)]
        return TableData(name=table, title=format_title(table), fields=fields, rows=rows)

    def get_one(self, table: str, row_id: Any) -> RowData:
        contents = self._load(table)
        index = self._find(contents.rows, row_id)
        if index == -1:
            raise NotFound('Row not found')
        fields = self._fields(table, contents)
        return RowData(
            name=table,
            title=format_title(table),
            fields=fields,
            row=self._pad(fields, contents.rows[index]),
        )

    def insert(self, table: str, values: Dict[str, Any]) -> int:
        """Append a row; the id is always max(existing) + 1, whatever the caller sent."""
        contents = self._load(table)
        fields = self._fields(table, contents)

        existing = [parse_int_id(r[0]) for r in contents.rows if r]
        new_id = max([i for i in existing if i is not None], default=0) + 1

        row = [str(new_id)]
        for f in fields[1:]:
            row.append('' if f.readonly else _to_text(values.get(f.name)))

        contents.rows.append(row)
        self._write(table, contents)
        return new_id

    def update(self, table: str, row_id: Any, values: Dict[str, Any]) -> None:
        """Replace a row's editable fields; readonly fields keep their stored value."""
        contents = self._load(table)
        index = self._find(contents.rows, row_id)
        if index == -1:
            raise NotFound('Row not found')

        fields = self._fields(table, contents)
        current = self._pad(fields, contents.rows[index])
        contents.rows[index] = [
            current[i] if f.readonly else _to_text(values.get(f.name))
            for i, f in enumerate(fields)
        ]
        self._write(table, contents)

    def delete(self, table: str, row_id: Any) -> None:
        contents = self._load(table)
        index = self._find(contents.rows, row_id)
        if index == -1:
            raise NotFound('Row not found')
        del contents.rows[index]
        self._write(table, contents)

    def list_lookup_values(self, target: str) -> List[Any]:
        data = self.get_all(target)
        shown = display_field(data.fields)
        if shown is None:
            return []
        position = data.fields.index(shown)
        return [row[position] for row in data.rows]


def _to_text(value: Any) -> str:
    if value is None:
        return ''
    return str(value)
