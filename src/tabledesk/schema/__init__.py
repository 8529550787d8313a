"""Schema model, type inference and the shared schema cache"""
from .fields import (
    FieldDescriptor, TableInfo, TableData, RowData,
    TEXT, INTEGER, NUMBER, DATE, BOOLEAN, LOOKUP, FIELD_TYPES,
    ID_FIELD, AUDIT_COLUMNS,
    id_field, normalize_fields, field_names, display_field,
)
from .inference import infer_type, apply_lookups
from .cache import SchemaCache
