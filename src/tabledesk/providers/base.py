"""Provider interface shared by every backend"""
from typing import Any, Dict, List, Protocol, runtime_checkable

from ..auth import User
from ..schema import FieldDescriptor, RowData, TableData, TableInfo


@runtime_checkable
class Provider(Protocol):
    """
    Schema discovery and CRUD against one backend.

    Implementations are plain classes that match this shape; they do not
    inherit from it. `source_id` and `source_name` identify the owning source.
    """
    source_id: str
    source_name: str
    source_type: str

    def list_tables(self) -> List[TableInfo]: ...

    def discover_schema(self, table: str) -> List[FieldDescriptor]: ...

    def get_all(self, table: str) -> TableData: ...

    def get_one(self, table: str, row_id: Any) -> RowData: ...

    def insert(self, table: str, values: Dict[str, Any]) -> Any: ...

    def update(self, table: str, row_id: Any, values: Dict[str, Any]) -> None: ...

    def delete(self, table: str, row_id: Any) -> None: ...

    def list_lookup_values(self, target: str) -> List[Any]: ...

    def is_auth_required(self) -> bool: ...

    def authenticate(self, email: str, password: str) -> User: ...

    def register(self, email: str, password: str) -> str: ...
