"""Navigation tree built from the tables each source exposes"""
import json
import logging
from datetime import datetime, timezone
from typing import Dict, List

from .registry import SourceRegistry

logger = logging.getLogger(__name__)

HOME_NODE = {'title': 'Home', 'object': 'home', 'children': []}


def _home() -> dict:
    return dict(HOME_NODE, children=[])


def _leaf(table, source_id: str) -> dict:
    return {
        'title': table.title,
        'object': table.name,
        'sourceId': source_id,
        'children': [],
    }


def build_sitemap(registry: SourceRegistry, refresh: bool = False) -> Dict[str, List[dict]]:
    """
    Home node plus one node per source, each listing that source's tables.

    Args:
        refresh: drop cached schema first so newly created tables appear
    """
    if refresh:
        registry.invalidate()

    pages = [_home()]
    for source in registry.tables_by_source():
        pages.append({
            'title': source['sourceName'],
            'url': '#',
            'sourceId': source['sourceId'],
            'children': [_leaf(t, source['sourceId']) for t in source['tables']],
        })

    logger.info(f"Generated sitemap with {len(pages) - 1} data sources")
    return {'pages': pages}


def build_flat_sitemap(registry: SourceRegistry) -> dict:
    """Every table as one flat list with a path."""
    tables = []
    for source in registry.tables_by_source():
        for t in source['tables']:
            tables.append({
                'name': t.name,
                'title': t.title,
                'sourceId': source['sourceId'],
                'path': f"/table/{source['sourceId']}/{t.name}",
            })
    return {'tables': tables}


def build_grouped_sitemap(registry: SourceRegistry) -> dict:
    """Tables grouped by the first word of their title, groups sorted."""
    groups: Dict[str, List[dict]] = {}
    for source in registry.tables_by_source():
        for t in source['tables']:
            first_word = t.title.split(' ')[0] if t.title else t.name
            groups.setdefault(first_word, []).append(_leaf(t, source['sourceId']))

    pages = [_home()]
    for name in sorted(groups):
        pages.append({'title': name, 'url': '#', 'children': groups[name]})
    return {'pages': pages}


def build_enhanced_sitemap(registry: SourceRegistry, refresh: bool = False) -> dict:
    """Standard sitemap plus generation metadata."""
    sitemap = build_sitemap(registry, refresh=refresh)
    sitemap['metadata'] = {
        'generatedAt': datetime.now(timezone.utc).isoformat(),
        'tableCount': count_tables(sitemap),
        'sources': [s.name for s in registry.sources.values()],
    }
    return sitemap


def count_tables(sitemap: dict) -> int:
    """Leaf count across every top-level node."""
    return sum(len(page.get('children') or []) for page in sitemap.get('pages', []))


def sitemap_to_json(sitemap: dict, pretty: bool = True) -> str:
    return json.dumps(sitemap, indent=2 if pretty else None)


def save_sitemap(sitemap: dict, output_path: str) -> None:
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(sitemap_to_json(sitemap))
    logger.info(f"Sitemap saved to {output_path}")
