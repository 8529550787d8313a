"""Process-wide schema cache shared by every provider of a registry"""
from typing import Dict, List, Optional, Tuple

from .fields import FieldDescriptor, TableInfo


class SchemaCache:
    """
    Memoized table lists, field descriptors and foreign-key maps.

    Entries are keyed by source id so one cache can serve every provider.
    Invalidation is wholesale: `invalidate()` drops everything.
    """

    def __init__(self):
        self._tables: Dict[str, List[TableInfo]] = {}
        self._schemas: Dict[Tuple[str, str], List[FieldDescriptor]] = {}
        self._foreign_keys: Dict[Tuple[str, str], Dict[str, str]] = {}
        self.generation = 0

    def get_tables(self, source_id: str) -> Optional[List[TableInfo]]:
        return self._tables.get(source_id)

    def set_tables(self, source_id: str, tables: List[TableInfo]) -> None:
        self._tables[source_id] = tables

    def get_schema(self, source_id: str, table: str) -> Optional[List[FieldDescriptor]]:
        return self._schemas.get((source_id, table))

    def set_schema(self, source_id: str, table: str, fields: List[FieldDescriptor]) -> None:
        self._schemas[(source_id, table)] = fields

    def get_foreign_keys(self, source_id: str, table: str) -> Optional[Dict[str, str]]:
        return self._foreign_keys.get((source_id, table))

    def set_foreign_keys(self, source_id: str, table: str, foreign_keys: Dict[str, str]) -> None:
        self._foreign_keys[(source_id, table)] = foreign_keys

    def invalidate(self) -> None:
        """Drop every cached entry."""
        self._tables.clear()
        self._schemas.clear()
        self._foreign_keys.clear()
        self.generation += 1

    def __len__(self) -> int:
        return len(self._tables) + len(self._schemas) + len(self._foreign_keys)
