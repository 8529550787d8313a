"""Error taxonomy shared by providers, the registry and the API boundary"""
from typing import List, Optional


class DataAppError(Exception):
    """
    Base exception for all tabledesk errors.

    `status` is the HTTP-like class the boundary reports the failure as.
    """
    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(DataAppError):
    """Row, table or source does not exist"""
    status = 404


class SourceNotFound(NotFound):
    """Source id is not registered"""

    def __init__(self, source_id: str):
        super().__init__(f"Data source not found: {source_id}")
        self.source_id = source_id


class ValidationError(DataAppError):
    """Caller input was rejected (bad columns, oversized upload, malformed credentials)"""
    status = 400


class ColumnMismatchError(ValidationError):
    """CSV header names columns the target table does not have"""

    def __init__(self, invalid_columns: List[str], valid_columns: List[str]):
        super().__init__(f"Invalid columns in CSV: {', '.join(invalid_columns)}")
        self.invalid_columns = invalid_columns
        self.valid_columns = valid_columns


class BackendError(DataAppError):
    """I/O or remote call failure"""
    status = 502

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class AuthError(DataAppError):
    """Invalid credentials or missing session"""
    status = 401
