"""Delimited file codec and CSV bulk import"""
from .delimited import (
    DelimitedTable,
    parse_text,
    serialize,
    read_table,
    write_table,
    map_type_code,
)
from .csv_import import (
    ImportResult,
    ImportRowError,
    MAX_UPLOAD_BYTES,
    import_csv,
    parse_csv,
)
