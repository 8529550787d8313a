"""
Shared utility functions for tabledesk CLI commands.
"""
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List

from rich.markup import escape
from rich.table import Table

from tabledesk.cli.console import console
from tabledesk.errors import ColumnMismatchError, DataAppError
from tabledesk.schema import FieldDescriptor


def parse_assignments(pairs: Iterable[str]) -> Dict[str, str]:
    """
    Turn repeated `--set name=value` options into a dict.

    e.g., ("Name=France", "ISO2=FR") -> {"Name": "France", "ISO2": "FR"}
    """
    values = {}
    for pair in pairs:
        if '=' not in pair:
            raise ValueError(f"Expected name=value, got: {pair}")
        name, value = pair.split('=', 1)
        values[name.strip()] = value
    return values


def rows_table(title: str, fields: List[FieldDescriptor], rows: List[List[Any]]) -> Table:
    """Rich table with one column per field; lookups show their target."""
    table = Table(title=title, header_style="bold")
    for f in fields:
        name = escape(f.name)
        if f.is_id:
            header = f"[field.id]{name}[/]"
        elif f.lookup_target:
            header = f"[field.lookup]{name} → {escape(f.lookup_target)}[/]"
        elif f.readonly:
            header = f"[field.readonly]{name}[/]"
        else:
            header = name
        table.add_column(header, justify="right" if f.is_id else "left")
    for row in rows:
        table.add_row(*['' if v is None else escape(str(v)) for v in row])
    return table


@contextmanager
def reported_errors():
    """Print tabledesk errors in the error style and exit 1."""
    try:
        yield
    except ColumnMismatchError as e:
        console.print(f"[error]{escape(e.message)}[/]")
        console.print(f"Valid columns: {', '.join(e.valid_columns)}")
        sys.exit(1)
    except DataAppError as e:
        console.print(f"[error]{escape(e.message)}[/]")
        sys.exit(1)
