"""Data providers and the factory that builds them from source configuration"""
import logging
from typing import Callable, Dict

from ..config import SourceConfig
from ..errors import ValidationError
from ..schema import SchemaCache
from .base import Provider
from .postgres import PostgresProvider
from .textfile import TextFileProvider

logger = logging.getLogger(__name__)

# Source type tag -> provider constructor
PROVIDER_TYPES: Dict[str, Callable[[SourceConfig, SchemaCache], Provider]] = {
    'textfiles': TextFileProvider,
    'postgres': PostgresProvider,
}


def create_provider(source: SourceConfig, cache: SchemaCache) -> Provider:
    """Build the provider for one configured source."""
    factory = PROVIDER_TYPES.get(source.type)
    if factory is None:
        raise ValidationError(f"Unknown data source type: {source.type}")
    provider = factory(source, cache)
    logger.info(f"Initialized data source: {source.name} ({source.id})")
    return provider


__all__ = [
    'Provider',
    'PROVIDER_TYPES',
    'create_provider',
    'TextFileProvider',
    'PostgresProvider',
]
