"""
Request handlers for the data app boundary.

Each handler takes plain request values, runs one operation against the
registry and returns an ApiResponse: a status code plus a JSON-ready body.
Failures never escape as exceptions; they become `{error: message}` bodies
with the status of the error class.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .auth import AuthService, SessionStore
from .errors import ColumnMismatchError, DataAppError
from .loader.csv_import import MAX_UPLOAD_BYTES, import_csv
from .registry import SourceRegistry
from .sitemap import build_sitemap, count_tables

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    status: int = 200
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def error_response(error: DataAppError) -> ApiResponse:
    body: Dict[str, Any] = {'error': error.message}
    if isinstance(error, ColumnMismatchError):
        body['invalidColumns'] = error.invalid_columns
        body['validColumns'] = error.valid_columns
    return ApiResponse(error.status, body)


def bad_request(message: str) -> ApiResponse:
    return ApiResponse(400, {'error': message})


class DataApi:
    """Boundary operations over a registry, with session checks"""

    def __init__(
        self,
        registry: SourceRegistry,
        sessions: Optional[SessionStore] = None,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
    ):
        self.registry = registry
        self.auth = AuthService(registry, sessions)
        self.max_upload_bytes = max_upload_bytes

    def _handle(self, action: str, fn: Callable[[], Dict[str, Any]]) -> ApiResponse:
        try:
            return ApiResponse(200, fn())
        except DataAppError as e:
            if e.status >= 500:
                logger.error(f"Error {action}: {e.message}")
            return error_response(e)
        except Exception as e:
            logger.exception(f"Unexpected error {action}")
            return ApiResponse(500, {'error': str(e)})

    def _authorized(self, action: str, session_id: Optional[str], fn: Callable[[], Dict[str, Any]]) -> ApiResponse:
        def run():
            self.auth.resolve(session_id)
            return fn()
        return self._handle(action, run)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def get_object_data(self, session_id: Optional[str], source: str, obj: str, row_id: Any = None) -> ApiResponse:
        if not obj:
            return bad_request('invalid object')
        if not source:
            return bad_request('invalid source')

        def run():
            if row_id not in (None, ''):
                return self.registry.get_row(source, obj, row_id).to_dict()
            return self.registry.get_table(source, obj).to_dict()
        return self._authorized('fetching data', session_id, run)

    def get_lookup_data(self, session_id: Optional[str], source: str, target: str) -> ApiResponse:
        if not target:
            return bad_request('invalid lookup file')
        if not source:
            return bad_request('invalid source')
        return self._authorized(
            'fetching lookup data', session_id,
            lambda: {'values': self.registry.lookup_values(source, target)},
        )

    def save_object(self, session_id: Optional[str], source: str, obj: str, row_id: Any, row: Dict[str, Any]) -> ApiResponse:
        if not obj or not source or row_id in (None, '') or not row:
            return bad_request('invalid input')

        def run():
            self.registry.update_row(source, obj, row_id, row)
            return {'ok': True}
        return self._authorized('updating', session_id, run)

    def add_object(self, session_id: Optional[str], source: str, obj: str, row: Dict[str, Any]) -> ApiResponse:
        if not obj or not source or not row:
            return bad_request('invalid input')
        return self._authorized(
            'inserting', session_id,
            lambda: {'ok': True, 'id': self.registry.insert_row(source, obj, row)},
        )

    def delete_object(self, session_id: Optional[str], source: str, obj: str, row_id: Any) -> ApiResponse:
        if not obj or not source or row_id in (None, ''):
            return bad_request('invalid input')

        def run():
            self.registry.delete_row(source, obj, row_id)
            return {'ok': True}
        return self._authorized('deleting', session_id, run)

    def import_csv(self, session_id: Optional[str], source: str, obj: str, data: Optional[bytes]) -> ApiResponse:
        if not obj:
            return bad_request('Object name required')
        if not source:
            return bad_request('Source required')
        if data is None:
            return bad_request('No file uploaded')

        def run():
            result = import_csv(self.registry, source, obj, data, self.max_upload_bytes)
            return dict(success=True, **result.to_dict())
        return self._authorized('importing CSV', session_id, run)

    def refresh_sitemap(self, session_id: Optional[str]) -> ApiResponse:
        def run():
            sitemap = build_sitemap(self.registry, refresh=True)
            return {
                'success': True,
                'message': 'Sitemap refreshed',
                'tableCount': count_tables(sitemap),
                'sitemap': sitemap,
            }
        return self._authorized('refreshing sitemap', session_id, run)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> ApiResponse:
        def run():
            session = self.auth.login(email, password)
            return {'ok': True, 'sessionId': session.id, 'user': session.user.to_dict()}
        return self._handle('logging in', run)

    def register(self, email: str, password: str) -> ApiResponse:
        return self._handle(
            'registering',
            lambda: {'ok': True, 'message': self.auth.register(email, password)},
        )

    def logout(self, session_id: Optional[str]) -> ApiResponse:
        self.auth.logout(session_id)
        return ApiResponse(200, {'ok': True})
