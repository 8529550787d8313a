"""
CSV bulk import into any registered table.

Single sequential pass: size check, parse, column validation, insert loop,
report. Column problems abort before anything is written; a failing row
is recorded and the loop moves on, so an import can partly succeed.
"""
import io
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List

import pandas as pd

from ..errors import ColumnMismatchError, DataAppError, ValidationError
from ..schema import field_names

if TYPE_CHECKING:
    from ..registry import SourceRegistry

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB


@dataclass
class ImportRowError:
    row: int        # 1-based, header excluded
    message: str

    def to_dict(self) -> dict:
        return {'row': self.row, 'message': self.message}


@dataclass
class ImportResult:
    imported: int
    total: int
    errors: List[ImportRowError] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        data = {'imported': self.imported, 'total': self.total}
        if self.errors:
            data['errors'] = [e.to_dict() for e in self.errors]
        return data


def parse_csv(data: bytes, max_bytes: int = MAX_UPLOAD_BYTES) -> pd.DataFrame:
    """
    Decode an uploaded CSV with a header row.

    Every cell is read as a string and blanks stay blank (no NaN).
    """
    if len(data) > max_bytes:
        raise ValidationError(f"File too large: {len(data)} bytes (limit {max_bytes})")

    try:
        df = pd.read_csv(
            io.BytesIO(data),
            dtype=str,
            keep_default_na=False,
            encoding='utf-8-sig',
        )
    except pd.errors.EmptyDataError:
        raise ValidationError('CSV file is empty')
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationError(f"Could not parse CSV: {e}")

    if df.empty:
        raise ValidationError('CSV file is empty')
    return df


def validate_columns(csv_columns: List[str], valid_columns: List[str]) -> None:
    invalid = [c for c in csv_columns if c not in valid_columns]
    if invalid:
        raise ColumnMismatchError(invalid, valid_columns)


def import_csv(
    registry: 'SourceRegistry',
    source_id: str,
    table: str,
    data: bytes,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> ImportResult:
    """
    Import every CSV row into a table.

    Raises:
        ValidationError: oversized, empty or unparseable upload
        ColumnMismatchError: a CSV column is not a field of the table
    """
    df = parse_csv(data, max_bytes)

    fields = registry.discover_schema(source_id, table)
    validate_columns([str(c) for c in df.columns], field_names(fields))

    records = df.to_dict('records')
    result = ImportResult(imported=0, total=len(records))

    for index, record in enumerate(records, start=1):
        try:
            registry.insert_row(source_id, table, record)
            result.imported += 1
        except DataAppError as e:
            logger.warning(f"Import into {source_id}/{table}: row {index} failed: {e.message}")
            result.errors.append(ImportRowError(row=index, message=e.message))

    logger.info(f"Imported {result.imported}/{result.total} rows into {source_id}/{table}")
    return result
