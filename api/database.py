"""
Request-scoped dependencies for the API.

Provides a get_db() dependency that opens a per-request SQLite connection to
the disposition store and closes it after the response is sent, and a
get_catalog() dependency that hands routes the reason catalog loaded at
startup.  Both read what create_app() stored on ``app.state``, so several
apps (one per test, say) can run side by side against different stores.
"""

import sqlite3
from collections.abc import Generator
from pathlib import Path

from fastapi import HTTPException, Request

from dispositions.catalog import ReasonCatalog
from utils.cache import TTLCache
from utils.config import AppConfig
from utils.database import connect


def get_db(request: Request) -> Generator[sqlite3.Connection, None, None]:
    """FastAPI dependency: yield a SQLite connection, close on exit.

    The store path comes from ``app.state.db_path`` (set by create_app).
    Raises HTTP 503 when the store file is missing or cannot be opened,
    instead of surfacing a raw SQLite error.

    Usage in a route::

        @router.get("/example")
        def example(conn: sqlite3.Connection = Depends(get_db)):
            ...
    """
    db_path: Path = request.app.state.db_path
    if not db_path.exists():
        raise HTTPException(
            status_code=503,
            detail=f"Disposition store not found at '{db_path}'.",
        )
    try:
        conn = connect(db_path)
    except sqlite3.Error as exc:
        raise HTTPException(
            status_code=503,
            detail=f"Disposition store at '{db_path}' is unusable: {exc}",
        ) from exc
    try:
        yield conn
    finally:
        conn.close()


def get_catalog(request: Request) -> ReasonCatalog:
    """FastAPI dependency: the reason catalog stored on ``app.state``."""
    return request.app.state.catalog


def get_stats_cache(request: Request) -> TTLCache:
    return request.app.state.stats_cache


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config
