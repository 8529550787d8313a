"""Application configuration dataclasses and loading"""
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config.json'
DEFAULT_PORT = 3000


@dataclass
class SourceConfig:
    """One configured backend"""
    id: str                         # "source1"
    name: str                       # "Text Files"
    type: str                       # "textfiles" or "postgres"
    enabled: bool = True
    config: Dict[str, Any] = field(default_factory=dict)  # backend specific settings

    @property
    def auth_required(self) -> Optional[bool]:
        return self.config.get('authRequired')

    @property
    def lookups(self) -> Dict[str, Dict[str, str]]:
        return self.config.get('lookups') or {}

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'enabled': self.enabled,
            'config': self.config,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SourceConfig':
        return cls(
            id=data['id'],
            name=data.get('name', data['id']),
            type=data['type'],
            enabled=data.get('enabled', True),
            config=data.get('config', {}) or {},
        )


@dataclass
class AppConfig:
    """Complete application configuration"""
    port: int = DEFAULT_PORT
    data_sources: List[SourceConfig] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'port': self.port,
            'dataSources': [s.to_dict() for s in self.data_sources],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> 'AppConfig':
        return cls(
            port=data.get('port') or DEFAULT_PORT,
            data_sources=[SourceConfig.from_dict(s) for s in data.get('dataSources', [])],
        )

    @classmethod
    def from_json(cls, json_str: str) -> 'AppConfig':
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def default(cls) -> 'AppConfig':
        """Single text-file source over ./data (or $TEXT_DATA_PATH)."""
        return cls(data_sources=[
            SourceConfig(
                id='source1',
                name='Text Files',
                type='textfiles',
                config={'dataPath': os.getenv('TEXT_DATA_PATH', './data')},
            )
        ])

    def enabled_sources(self) -> List[SourceConfig]:
        return [s for s in self.data_sources if s.enabled]

    def source_by_id(self, source_id: str) -> Optional[SourceConfig]:
        return next((s for s in self.data_sources if s.id == source_id), None)

    def source_by_type(self, source_type: str) -> Optional[SourceConfig]:
        """First enabled source of a type."""
        return next((s for s in self.data_sources if s.type == source_type and s.enabled), None)


def load_config(path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from JSON.

    Path resolution: explicit argument, then $TABLEDESK_CONFIG, then ./config.json.
    A missing or unreadable file falls back to AppConfig.default().
    """
    path = path or os.getenv('TABLEDESK_CONFIG', DEFAULT_CONFIG_PATH)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return AppConfig.from_json(f.read())
    except (OSError, ValueError, KeyError) as e:
        logger.warning(f"Failed to load {path}, using defaults: {e}")
        return AppConfig.default()
