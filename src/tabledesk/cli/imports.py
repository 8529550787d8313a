"""
CSV import CLI command.
"""
import click
from rich.markup import escape
from rich.table import Table

from tabledesk.cli.console import console
from tabledesk.cli.helpers import reported_errors
from tabledesk.loader.csv_import import import_csv


@click.command('import')
@click.option('--source', '-s', required=True, help='Source ID')
@click.option('--table', '-t', 'table_name', required=True, help='Target table')
@click.argument('csv_file', type=click.File('rb'))
@click.pass_obj
def import_command(app, source: str, table_name: str, csv_file):
    """Bulk import CSV_FILE (with a header row) into a table."""
    with reported_errors():
        result = import_csv(app.registry, source, table_name, csv_file.read())

    console.print(f"[success]Imported {result.imported} of {result.total} rows[/]")

    if result.errors:
        table = Table(title="Failed rows", header_style="bold")
        table.add_column("Row", justify="right")
        table.add_column("Error")
        for err in result.errors:
            table.add_row(str(err.row), escape(err.message))
        console.print(table)
