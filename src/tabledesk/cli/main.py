#!/usr/bin/env python3
"""
tabledesk CLI

Commands:
    sources      List configured data sources
    tables       List tables per source
    show         Show a table or one row
    lookup       List lookup values of a table
    add          Insert a row
    update       Update a row
    delete       Delete a row
    ensure-ids   Assign missing ids in a file-backed table
    import       Bulk import a CSV file
    sitemap      Print or save the navigation sitemap
"""
import logging
from typing import Optional

import click

from tabledesk.config import load_config
from tabledesk.registry import SourceRegistry
from tabledesk.cli.browse import sources_command, tables_command, show_command, lookup_command
from tabledesk.cli.edit import add_command, update_command, delete_command, ensure_ids_command
from tabledesk.cli.imports import import_command
from tabledesk.cli.sitemap import sitemap_command


class AppContext:
    """Lazily built registry shared by every command of one invocation"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self._registry: Optional[SourceRegistry] = None

    @property
    def registry(self) -> SourceRegistry:
        if self._registry is None:
            self._registry = SourceRegistry.from_config(load_config(self.config_path))
        return self._registry


@click.group()
@click.option('--config', '-c', 'config_path', type=click.Path(dir_okay=False), help='Path to config.json')
@click.option('--verbose', '-v', is_flag=True, help='Log at INFO level')
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool):
    """tabledesk - CRUD over text-file and Postgres data sources"""
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING)
    if ctx.obj is None:
        ctx.obj = AppContext(config_path)


cli.add_command(sources_command)
cli.add_command(tables_command)
cli.add_command(show_command)
cli.add_command(lookup_command)
cli.add_command(add_command)
cli.add_command(update_command)
cli.add_command(delete_command)
cli.add_command(ensure_ids_command)
cli.add_command(import_command)
cli.add_command(sitemap_command)


if __name__ == '__main__':
    cli()
