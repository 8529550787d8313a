"""Source registry: one provider per configured source, routed by source id"""
import logging
from typing import Any, Dict, List, Optional

from .auth import User
from .config import AppConfig, SourceConfig
from .errors import AuthError, DataAppError, SourceNotFound
from .providers import Provider, create_provider
from .schema import FieldDescriptor, RowData, SchemaCache, TableData

logger = logging.getLogger(__name__)


class SourceRegistry:
    """
    Holds every enabled provider in configuration order.

    Owns the SchemaCache shared by its providers; `invalidate()` is the
    single entry point for dropping cached schema.
    """

    def __init__(self, sources: List[SourceConfig], cache: Optional[SchemaCache] = None):
        self.cache = cache if cache is not None else SchemaCache()
        self.sources: Dict[str, SourceConfig] = {}
        self.providers: Dict[str, Provider] = {}

        for source in sources:
            if not source.enabled:
                continue
            try:
                provider = create_provider(source, self.cache)
            except DataAppError as e:
                logger.warning(f"Skipping source {source.id}: {e}")
                continue
            self.sources[source.id] = source
            self.providers[source.id] = provider

    @classmethod
    def from_config(cls, config: AppConfig, cache: Optional[SchemaCache] = None) -> 'SourceRegistry':
        return cls(config.enabled_sources(), cache)

    @classmethod
    def from_providers(cls, providers: List[Provider], cache: Optional[SchemaCache] = None) -> 'SourceRegistry':
        """Registry over ready-made providers (tests, embedding)."""
        registry = cls([], cache)
        for provider in providers:
            registry.providers[provider.source_id] = provider
            registry.sources[provider.source_id] = SourceConfig(
                id=provider.source_id,
                name=provider.source_name,
                type=provider.source_type,
            )
        return registry

    def provider(self, source_id: str) -> Provider:
        provider = self.providers.get(source_id)
        if provider is None:
            raise SourceNotFound(source_id)
        return provider

    def __len__(self) -> int:
        return len(self.providers)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def discover_schema(self, source_id: str, table: str) -> List[FieldDescriptor]:
        return self.provider(source_id).discover_schema(table)

    def get_table(self, source_id: str, table: str) -> TableData:
        return self.provider(source_id).get_all(table)

    def get_row(self, source_id: str, table: str, row_id: Any) -> RowData:
        return self.provider(source_id).get_one(table, row_id)

    def insert_row(self, source_id: str, table: str, values: Dict[str, Any]) -> Any:
        return self.provider(source_id).insert(table, values)

    def update_row(self, source_id: str, table: str, row_id: Any, values: Dict[str, Any]) -> None:
        self.provider(source_id).update(table, row_id, values)

    def delete_row(self, source_id: str, table: str, row_id: Any) -> None:
        self.provider(source_id).delete(table, row_id)

    def lookup_values(self, source_id: str, target: str) -> List[Any]:
        return self.provider(source_id).list_lookup_values(target)

    def tables_by_source(self) -> List[Dict[str, Any]]:
        """
        Tables of every source, in registration order.

        A failing source is reported with an empty table list and an
        `error` message rather than failing the whole listing.
        """
        grouped = []
        for source_id, provider in self.providers.items():
            entry = {
                'sourceId': source_id,
                'sourceName': provider.source_name,
                'sourceType': provider.source_type,
                'tables': [],
            }
            try:
                entry['tables'] = provider.list_tables()
            except DataAppError as e:
                logger.error(f"Error getting tables from {source_id}: {e}")
                entry['error'] = e.message
            grouped.append(entry)
        return grouped

    def invalidate(self) -> None:
        """Drop every cached table list, schema and foreign-key map."""
        self.cache.invalidate()
        logger.info('Schema cache cleared')

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def is_auth_required(self) -> bool:
        return any(p.is_auth_required() for p in self.providers.values())

    def login(self, email: str, password: str) -> User:
        """First provider that accepts the credentials wins."""
        for source_id, provider in self.providers.items():
            try:
                return provider.authenticate(email, password)
            except DataAppError as e:
                logger.info(f"Login failed for provider {source_id}: {e}")
        raise AuthError('Invalid credentials')

    def register(self, email: str, password: str) -> str:
        """First provider that accepts the registration wins."""
        for source_id, provider in self.providers.items():
            try:
                return provider.register(email, password)
            except DataAppError as e:
                logger.info(f"Registration failed for provider {source_id}: {e}")
        raise AuthError('Registration not supported')
