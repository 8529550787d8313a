"""
Sitemap CLI command.
"""
from typing import Optional

import click

from tabledesk.cli.console import console
from tabledesk.sitemap import (
    build_sitemap,
    build_flat_sitemap,
    build_grouped_sitemap,
    build_enhanced_sitemap,
    count_tables,
    save_sitemap,
    sitemap_to_json,
)


@click.command('sitemap')
@click.option('--format', 'fmt', type=click.Choice(['json', 'flat', 'grouped', 'enhanced']),
              default='json', show_default=True, help='Sitemap layout')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write to file instead of stdout')
@click.option('--refresh', is_flag=True, help='Clear cached schema first')
@click.pass_obj
def sitemap_command(app, fmt: str, output: Optional[str], refresh: bool):
    """Print or save the navigation sitemap."""
    registry = app.registry
    if refresh:
        registry.invalidate()

    if fmt == 'flat':
        sitemap = build_flat_sitemap(registry)
    elif fmt == 'grouped':
        sitemap = build_grouped_sitemap(registry)
    elif fmt == 'enhanced':
        sitemap = build_enhanced_sitemap(registry)
    else:
        sitemap = build_sitemap(registry)

    if output:
        save_sitemap(sitemap, output)
        tables = len(sitemap['tables']) if fmt == 'flat' else count_tables(sitemap)
        console.print(f"[success]Sitemap saved to {output}[/] ({tables} tables)")
    else:
        click.echo(sitemap_to_json(sitemap))
