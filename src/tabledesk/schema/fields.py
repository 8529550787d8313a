"""Field descriptor and table projection dataclasses"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TEXT = 'text'
INTEGER = 'integer'
NUMBER = 'number'
DATE = 'date'
BOOLEAN = 'boolean'
LOOKUP = 'lookup'

FIELD_TYPES = (TEXT, INTEGER, NUMBER, DATE, BOOLEAN, LOOKUP)

ID_FIELD = 'id'
# Columns dropped from Postgres schemas. Lookup display skips any `_at` column.
AUDIT_COLUMNS = ('created_at', 'updated_at')


@dataclass
class FieldDescriptor:
    """One column of a table"""
    name: str
    type: str = TEXT
    lookup_target: Optional[str] = None   # table the values are drawn from
    readonly: bool = False

    def __post_init__(self):
        if self.type not in FIELD_TYPES:
            raise ValueError(f"Unknown field type: {self.type}")

    @property
    def is_id(self) -> bool:
        return self.name.lower() == ID_FIELD

    def to_dict(self) -> dict:
        data = {'name': self.name, 'type': self.type, 'readonly': self.readonly}
        if self.lookup_target:
            data['lookupTarget'] = self.lookup_target
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'FieldDescriptor':
        return cls(
            name=data['name'],
            type=data.get('type', TEXT),
            lookup_target=data.get('lookupTarget'),
            readonly=data.get('readonly', False),
        )


def id_field() -> FieldDescriptor:
    return FieldDescriptor(ID_FIELD, INTEGER, readonly=True)


def normalize_fields(fields: List[FieldDescriptor]) -> List[FieldDescriptor]:
    """
    Enforce the schema invariants: exactly one `id` column, readonly, first.

    A schema without an id column gets one prepended.
    """
    ids = [f for f in fields if f.is_id]
    others = [f for f in fields if not f.is_id]
    if ids:
        head = ids[0]
        head.readonly = True
    else:
        head = id_field()
    return [head] + others


def field_names(fields: List[FieldDescriptor]) -> List[str]:
    return [f.name for f in fields]


def display_field(fields: List[FieldDescriptor]) -> Optional[FieldDescriptor]:
    """First non-id, non-audit field: the column shown for lookup values."""
    for f in fields:
        # Any timestamp-style name, not just AUDIT_COLUMNS
        if f.is_id or f.name.lower().endswith('_at'):
            continue
        return f
    return None


@dataclass
class TableInfo:
    """Listing entry for one table of a source"""
    name: str
    title: str

    def to_dict(self) -> dict:
        return {'name': self.name, 'title': self.title}


@dataclass
class TableData:
    """Full table projection: schema plus every row"""
    name: str
    title: str
    fields: List[FieldDescriptor] = field(default_factory=list)
    rows: List[List[Any]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'object': self.name,
            'title': self.title,
            'fields': [f.to_dict() for f in self.fields],
            'rows': self.rows,
        }


@dataclass
class RowData:
    """Single row projection"""
    name: str
    title: str
    fields: List[FieldDescriptor]
    row: List[Any]

    def as_record(self) -> Dict[str, Any]:
        return dict(zip(field_names(self.fields), self.row))

    def to_dict(self) -> dict:
        return {
            'object': self.name,
            'title': self.title,
            'fields': [f.to_dict() for f in self.fields],
            'row': self.row,
        }
