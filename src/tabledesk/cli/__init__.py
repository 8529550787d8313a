"""
tabledesk CLI module - shared console and commands.
"""
from tabledesk.cli.console import console, custom_theme
from tabledesk.cli.helpers import parse_assignments, rows_table, reported_errors
from tabledesk.cli.main import cli

__all__ = [
    'console',
    'custom_theme',
    'parse_assignments',
    'rows_table',
    'reported_errors',
    'cli',
]
