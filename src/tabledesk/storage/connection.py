"""PostgreSQL connection management"""
import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import psycopg2
from psycopg2.extensions import connection as PgConnection
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

logger = logging.getLogger(__name__)


def get_connection_string(settings: Optional[Dict[str, Any]] = None) -> str:
    """
    Build a connection string from source settings, falling back to env vars.

    An explicit `dsn` setting wins outright.
    """
    settings = settings or {}
    if settings.get('dsn'):
        return settings['dsn']

    name = settings.get('dbname') or os.getenv('DB_NAME', 'tabledesk')
    user = settings.get('user') or os.getenv('DB_USER', '')
    password = settings.get('password') or os.getenv('DB_PASSWORD', '')
    host = settings.get('host') or os.getenv('DB_HOST', '')
    port = settings.get('port') or os.getenv('DB_PORT', '')

    # Build connection string - only include non-empty values
    # This allows unix socket auth when host is not specified
    parts = [f"dbname={name}"]
    if user:
        parts.append(f"user={user}")
    if password:
        parts.append(f"password={password}")
    if host:
        parts.append(f"host={host}")
    if port:
        parts.append(f"port={port}")

    return " ".join(parts)


@contextmanager
def get_connection(dsn: Optional[str] = None) -> Generator[PgConnection, None, None]:
    """
    Get a PostgreSQL connection as a context manager.

    Commits on clean exit, rolls back on error.

    Usage:
        with get_connection(dsn) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
    """
    conn = psycopg2.connect(dsn or get_connection_string())
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
