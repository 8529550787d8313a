"""
Delimited text file codec for file-backed tables.

File layout:
    name:typecode[:lookupTarget],...   optional header line
    1,value,value                      data lines, id first

Quoting follows RFC 4180: fields holding a comma, quote or newline are
wrapped in double quotes and embedded quotes are doubled.
"""
import csv
import io
import os
import tempfile
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..schema.fields import FieldDescriptor, TEXT, INTEGER, NUMBER, DATE, BOOLEAN, LOOKUP

# Header typecode -> field type
TYPE_CODES: Dict[str, str] = {
    'int': INTEGER,
    'integer': INTEGER,
    'num': NUMBER,
    'number': NUMBER,
    'dat': DATE,
    'date': DATE,
    'bool': BOOLEAN,
    'boolean': BOOLEAN,
    'lu': LOOKUP,
    'lookup': LOOKUP,
    'str': TEXT,
    'string': TEXT,
    'text': TEXT,
}

# Field type -> typecode written back to the header
WRITE_CODES: Dict[str, str] = {
    INTEGER: 'int',
    NUMBER: 'num',
    DATE: 'dat',
    BOOLEAN: 'bool',
    LOOKUP: 'lu',
    TEXT: 'str',
}


@dataclass
class DelimitedTable:
    """Parsed file contents: optional declared header plus raw string rows"""
    headers: Optional[List[FieldDescriptor]] = None
    rows: List[List[str]] = field(default_factory=list)


def map_type_code(code: Optional[str]) -> str:
    """Map a header typecode to a field type; unknown or missing codes are text."""
    if not code:
        return TEXT
    return TYPE_CODES.get(code.lower(), TEXT)


def parse_header_field(raw: str) -> FieldDescriptor:
    """Parse one `name:typecode[:lookupTarget]` header entry."""
    parts = [p.strip() for p in raw.split(':')]
    name = parts[0] or 'Unknown'
    field_type = map_type_code(parts[1] if len(parts) > 1 else None)
    target = parts[2] if len(parts) > 2 and parts[2] else None

    if field_type == LOOKUP and not target:
        # A lookup without a target table has nothing to look up
        field_type = TEXT
    return FieldDescriptor(
        name=name,
        type=field_type,
        lookup_target=target if field_type == LOOKUP else None,
    )


def format_header_field(f: FieldDescriptor) -> str:
    if f.type == LOOKUP and f.lookup_target:
        return f"{f.name}:lu:{f.lookup_target}"
    return f"{f.name}:{WRITE_CODES.get(f.type, 'str')}"


def is_header_line(fields: List[str]) -> bool:
    return any(':' in f for f in fields)


def parse_text(content: str) -> DelimitedTable:
    """Parse file content into an optional header and a list of rows."""
    reader = csv.reader(io.StringIO(content), skipinitialspace=True)
    lines = []
    for record in reader:
        values = [v.strip() for v in record]
        if not any(values):
            continue
        lines.append(values)

    if not lines:
        return DelimitedTable()

    headers = None
    if is_header_line(lines[0]):
        headers = [parse_header_field(raw) for raw in lines[0]]
        lines = lines[1:]

    return DelimitedTable(headers=headers, rows=lines)


def serialize(table: DelimitedTable) -> str:
    """Render a table back to file content, quoting where needed."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
    if table.headers:
        writer.writerow([format_header_field(h) for h in table.headers])
    for row in table.rows:
        writer.writerow(['' if v is None else str(v) for v in row])
    return buffer.getvalue()


def read_table(path: str) -> DelimitedTable:
    """Read a table file; a missing file is an empty table."""
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            content = f.read()
    except FileNotFoundError:
        return DelimitedTable()
    return parse_text(content)


def write_table(path: str, table: DelimitedTable) -> None:
    """
    Rewrite the whole file.

    Content goes to a temp file in the same directory which then replaces
    the target, so readers never see a half-written file.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.tabledesk-', suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            f.write(serialize(table))
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
