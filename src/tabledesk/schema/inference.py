"""Heuristic field type inference from column names and sample values"""
import logging
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .fields import (
    FieldDescriptor, TEXT, INTEGER, NUMBER, DATE, BOOLEAN, LOOKUP,
)

logger = logging.getLogger(__name__)

# Column name patterns that always mean a date, whatever the value looks like
DATE_NAME_PATTERNS = [
    r'.*date.*',
    r'.*_at$',
]

ISO_DATE_PREFIX = re.compile(r'^\d{4}-\d{2}-\d{2}')


def infer_type(value: Any, column_name: str) -> str:
    """
    Infer the semantic type of a column from one sample value.

    Rules, first match wins:
        1. name contains "date" or ends in "_at"  -> date
        2. None                                   -> text
        3. bool                                   -> boolean
        4. int / float / Decimal                  -> integer if whole, else number
        5. date/datetime, or "YYYY-MM-DD..." text -> date
        6. anything else                          -> text
    """
    col_lower = column_name.lower()
    for pattern in DATE_NAME_PATTERNS:
        if re.match(pattern, col_lower):
            return DATE

    if value is None:
        return TEXT

    # bool before numbers: bool is a subclass of int
    if isinstance(value, bool):
        return BOOLEAN

    if isinstance(value, (int, float, Decimal)):
        return INTEGER if _is_whole(value) else NUMBER

    if isinstance(value, (date, datetime)):
        return DATE

    if isinstance(value, str) and _looks_like_iso_date(value):
        return DATE

    return TEXT


def _is_whole(value) -> bool:
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value.is_integer()
    return value.is_finite() and value == value.to_integral_value()


def _looks_like_iso_date(value: str) -> bool:
    if not ISO_DATE_PREFIX.match(value):
        return False
    try:
        date.fromisoformat(value[:10])
    except ValueError:
        return False
    return True


def apply_lookups(
    table_name: str,
    fields: List[FieldDescriptor],
    foreign_keys: Optional[Dict[str, str]] = None,
    manual_lookups: Optional[Dict[str, Dict[str, str]]] = None,
) -> List[FieldDescriptor]:
    """
    Reclassify columns as lookups.

    Args:
        foreign_keys: column -> referenced table, discovered for this table
        manual_lookups: table -> {column -> referenced table}, from configuration

    Manual configuration wins over a discovered foreign key. A conflict is
    not reported back to the caller, only logged.
    """
    foreign_keys = foreign_keys or {}
    configured = (manual_lookups or {}).get(table_name, {})

    for f in fields:
        if f.is_id:
            continue
        target = configured.get(f.name)
        if target:
            discovered = foreign_keys.get(f.name)
            if discovered and discovered != target:
                logger.debug(
                    f"{table_name}.{f.name}: configured lookup {target} overrides foreign key to {discovered}"
                )
            f.type = LOOKUP
            f.lookup_target = target
        elif f.name in foreign_keys:
            f.type = LOOKUP
            f.lookup_target = foreign_keys[f.name]

        if f.type == LOOKUP:
            logger.debug(f"Field {table_name}.{f.name} is a lookup to {f.lookup_target}")

    return fields
