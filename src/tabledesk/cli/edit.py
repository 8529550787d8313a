"""
Row mutation CLI commands: add, update, delete, ensure-ids.
"""
from typing import Tuple

import click

from tabledesk.cli.console import console
from tabledesk.cli.helpers import parse_assignments, reported_errors
from tabledesk.errors import ValidationError


def _values(assignments: Tuple[str, ...]) -> dict:
    try:
        return parse_assignments(assignments)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--set')


@click.command('add')
@click.option('--source', '-s', required=True, help='Source ID')
@click.option('--table', '-t', 'table_name', required=True, help='Table name')
@click.option('--set', 'assignments', multiple=True, help='Field value as name=value (repeatable)')
@click.pass_obj
def add_command(app, source: str, table_name: str, assignments: Tuple[str, ...]):
    """Insert a row."""
    values = _values(assignments)
    with reported_errors():
        new_id = app.registry.insert_row(source, table_name, values)
    console.print(f"[success]Inserted row {new_id}[/]")


@click.command('update')
@click.option('--source', '-s', required=True, help='Source ID')
@click.option('--table', '-t', 'table_name', required=True, help='Table name')
@click.option('--id', 'row_id', required=True, help='Row ID')
@click.option('--set', 'assignments', multiple=True, help='Field value as name=value (repeatable)')
@click.pass_obj
def update_command(app, source: str, table_name: str, row_id: str, assignments: Tuple[str, ...]):
    """Update a row. Fields not given are written as blank; readonly fields are kept."""
    values = _values(assignments)
    with reported_errors():
        current = app.registry.get_row(source, table_name, row_id).as_record()
        current.update(values)
        app.registry.update_row(source, table_name, row_id, current)
    console.print(f"[success]Updated row {row_id}[/]")


@click.command('delete')
@click.option('--source', '-s', required=True, help='Source ID')
@click.option('--table', '-t', 'table_name', required=True, help='Table name')
@click.option('--id', 'row_id', required=True, help='Row ID')
@click.pass_obj
def delete_command(app, source: str, table_name: str, row_id: str):
    """Delete a row."""
    with reported_errors():
        app.registry.delete_row(source, table_name, row_id)
    console.print(f"[success]Deleted row {row_id}[/]")


@click.command('ensure-ids')
@click.option('--source', '-s', required=True, help='Source ID')
@click.option('--table', '-t', 'table_name', required=True, help='Table name')
@click.pass_obj
def ensure_ids_command(app, source: str, table_name: str):
    """Assign ids to rows of a file-backed table that lack one."""
    with reported_errors():
        provider = app.registry.provider(source)
        if not hasattr(provider, 'ensure_ids'):
            raise ValidationError(f"Source {source} does not store ids in files")
        rewritten = provider.ensure_ids(table_name)

    if rewritten:
        console.print(f"[success]Assigned missing ids in {table_name}[/]")
    else:
        console.print(f"[muted]{table_name}: every row already has an id[/]")
