"""Table name helpers: display titles and filesystem-safe names"""
import re
from typing import Any, Optional

_SAFE_NAME = re.compile(r'^[A-Za-z0-9_][A-Za-z0-9_\- ]*$')


def format_title(name: str) -> str:
    """
    Derive a display title from a table name.

    - Split before every capital letter (camelCase)
    - Replace underscores with spaces (snake_case)
    - Capitalise each word, lower-case the rest

    Example: format_title("saProvinces") -> "Sa Provinces"
    """
    if not name:
        return ''

    spaced = re.sub(r'([A-Z])', r' \1', name).replace('_', ' ')
    return ' '.join(word[:1].upper() + word[1:].lower() for word in spaced.split())


def is_safe_table_name(name: str) -> bool:
    """True when a table name can be used as a file stem without escaping the data directory."""
    return bool(name) and bool(_SAFE_NAME.match(name)) and '..' not in name


def parse_int_id(value: Any) -> Optional[int]:
    """Parse a row id; None when the value is blank or not an integer."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not re.match(r'^[+-]?\d+$', text):
        return None
    return int(text)
