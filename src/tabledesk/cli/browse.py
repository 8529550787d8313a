"""
Read-only CLI commands: sources, tables, rows and lookup values.
"""
from typing import Optional

import click
from rich.markup import escape
from rich.table import Table

from tabledesk.cli.console import console
from tabledesk.cli.helpers import reported_errors, rows_table


@click.command('sources')
@click.pass_obj
def sources_command(app):
    """List configured data sources."""
    registry = app.registry
    if not len(registry):
        console.print("[warning]No data sources enabled[/]")
        return

    table = Table(title="Data Sources")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Auth")

    for source_id, provider in registry.providers.items():
        table.add_row(
            source_id,
            provider.source_name,
            provider.source_type,
            "Required" if provider.is_auth_required() else "No",
        )
    console.print(table)


@click.command('tables')
@click.option('--source', '-s', help='Only this source')
@click.pass_obj
def tables_command(app, source: Optional[str]):
    """List tables per source."""
    with reported_errors():
        if source:
            app.registry.provider(source)
        grouped = app.registry.tables_by_source()

    for entry in grouped:
        if source and entry['sourceId'] != source:
            continue
        table = Table(title=f"{entry['sourceName']} ({entry['sourceId']})")
        table.add_column("Table", style="bold")
        table.add_column("Title")
        for t in entry['tables']:
            table.add_row(t.name, t.title)
        console.print(table)
        if entry.get('error'):
            console.print(f"[error]{escape(entry['error'])}[/]")


@click.command('show')
@click.option('--source', '-s', required=True, help='Source ID')
@click.option('--table', '-t', 'table_name', required=True, help='Table name')
@click.option('--id', 'row_id', help='Show a single row')
@click.pass_obj
def show_command(app, source: str, table_name: str, row_id: Optional[str]):
    """Show a table, or one row of it."""
    with reported_errors():
        if row_id:
            data = app.registry.get_row(source, table_name, row_id)
            console.print(rows_table(data.title, data.fields, [data.row]))
        else:
            data = app.registry.get_table(source, table_name)
            console.print(rows_table(data.title, data.fields, data.rows))
            console.print(f"[count]{len(data.rows)}[/] rows")


@click.command('lookup')
@click.option('--source', '-s', required=True, help='Source ID')
@click.option('--table', '-t', 'table_name', required=True, help='Lookup target table')
@click.pass_obj
def lookup_command(app, source: str, table_name: str):
    """List the values a lookup into TABLE can take."""
    with reported_errors():
        values = app.registry.lookup_values(source, table_name)
    for value in values:
        click.echo('' if value is None else str(value))
