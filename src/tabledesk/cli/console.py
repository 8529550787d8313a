"""
Rich console shared by every tabledesk command.
"""
from rich.console import Console
from rich.theme import Theme

# Message styles plus the column header styles used by rows_table
custom_theme = Theme({
    "info": "blue",
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
    "muted": "dim",
    "count": "bold blue",
    "field.id": "bold",
    "field.lookup": "cyan",
    "field.readonly": "dim",
})

console = Console(theme=custom_theme, highlight=False)
