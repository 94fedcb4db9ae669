"""SQLite store for disposition records.

Provides reusable functions for:
- Connection pragmas and schema initialization
- Record CRUD (fetch, get, insert, delete, count)
- Table helpers used by the health check (table_exists, get_table_count)

Rows are stored with snake_case columns matching DispositionRecord fields.
``removal_date`` is always the normalized ``YYYY-MM-DD`` string, so the
ORDER BY below is chronological.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List

from dispositions.records import DispositionRecord, record_from_mapping

logger = logging.getLogger(__name__)

TABLE = "dispositions"

# Insert column order; ``id`` and ``created_at`` are filled by SQLite.
RECORD_COLUMNS = (
    "species_name",
    "strain_name",
    "sex",
    "count",
    "date_of_birth",
    "removal_date",
    "reason_code",
    "project_reference",
    "transfer_institution",
)

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE} (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    species_name         TEXT    NOT NULL,
    strain_name          TEXT    NOT NULL,
    sex                  TEXT    NOT NULL,
    count                INTEGER NOT NULL CHECK (count >= 1),
    date_of_birth        TEXT,
    removal_date         TEXT    NOT NULL,
    reason_code          TEXT,
    project_reference    TEXT    DEFAULT '-',
    transfer_institution TEXT,
    created_at           TEXT    NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_{TABLE}_removal_date ON {TABLE}(removal_date);
"""


def init_pragmas(conn: sqlite3.Connection) -> None:
    """Apply the standard pragmas: WAL journal, NORMAL sync, 5s busy timeout.

    Args:
        conn: SQLite connection to configure
    """
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA busy_timeout=5000")


def connect(db_path: Path) -> sqlite3.Connection:
    """Open a read-write connection with ``row_factory=sqlite3.Row``."""
    conn = sqlite3.connect(str(db_path), check_same_thread=False, timeout=10)
    conn.row_factory = sqlite3.Row
    init_pragmas(conn)
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create the dispositions table and its index if they don't exist."""
    conn.executescript(_SCHEMA)
    conn.commit()


def init_database(db_path: Path) -> None:
    """Create *db_path* (and parent directories) with the schema applied."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = connect(db_path)
    try:
        init_schema(conn)
    finally:
        conn.close()
    logger.info("Disposition store ready at %s", db_path)


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists in the database."""
    result = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (table,),
    ).fetchone()
    return result is not None


def get_table_count(conn: sqlite3.Connection, table: str = TABLE) -> int:
    """Get row count for a table."""
    result = conn.execute(f"SELECT COUNT(*) AS cnt FROM {table}").fetchone()
    return result[0] if result else 0


# ── Records ──────────────────────────────────────────────────────────────────

def fetch_records(conn: sqlite3.Connection) -> List[DispositionRecord]:
    """Return every record, newest removal first (ties broken by id desc)."""
    rows = conn.execute(
        f"SELECT * FROM {TABLE} ORDER BY removal_date DESC, id DESC"
    ).fetchall()
    return [record_from_mapping(r) for r in rows]


def get_record(conn: sqlite3.Connection, record_id: int) -> DispositionRecord | None:
    row = conn.execute(f"SELECT * FROM {TABLE} WHERE id = ?", (record_id,)).fetchone()
    return record_from_mapping(row) if row else None


def insert_record(conn: sqlite3.Connection, values: Dict[str, Any]) -> DispositionRecord:
    """Insert one record and return it with its assigned id.

    Args:
        conn: SQLite connection
        values: Mapping keyed by RECORD_COLUMNS; missing keys become NULL
            (``project_reference`` falls back to the column default).

    Returns:
        The stored DispositionRecord.
    """
    cols = [c for c in RECORD_COLUMNS if values.get(c) is not None]
    placeholders = ", ".join("?" for _ in cols)
    cur = conn.execute(
        f"INSERT INTO {TABLE} ({', '.join(cols)}) VALUES ({placeholders})",
        [values[c] for c in cols],
    )
    conn.commit()
    stored = get_record(conn, cur.lastrowid)
    if stored is None:
        raise sqlite3.DatabaseError(f"Inserted row {cur.lastrowid} not found")
    return stored


def insert_many(conn: sqlite3.Connection, rows: Iterable[Dict[str, Any]]) -> int:
    """Insert several records in one transaction; return how many were written."""
    params = [tuple(r.get(c) for c in RECORD_COLUMNS) for r in rows]
    if not params:
        return 0
    placeholders = ", ".join("?" for _ in RECORD_COLUMNS)
    with conn:
        conn.executemany(
            f"INSERT INTO {TABLE} ({', '.join(RECORD_COLUMNS)}) VALUES ({placeholders})",
            params,
        )
    return len(params)


def delete_record(conn: sqlite3.Connection, record_id: int) -> bool:
    """Delete a record by id; False if no such record existed."""
    cur = conn.execute(f"DELETE FROM {TABLE} WHERE id = ?", (record_id,))
    conn.commit()
    return cur.rowcount > 0


def count_records(conn: sqlite3.Connection) -> int:
    return get_table_count(conn, TABLE)


def store_fingerprint(conn: sqlite3.Connection) -> tuple[int, int]:
    """Return ``(row count, max id)``; changes whenever a record is added or removed.

    AUTOINCREMENT ids are never reused, so a delete followed by an insert
    still yields a new fingerprint.
    """
    row = conn.execute(f"SELECT COUNT(*), COALESCE(MAX(id), 0) FROM {TABLE}").fetchone()
    return int(row[0]), int(row[1])


def search_project_references(
    conn: sqlite3.Connection, q: str, limit: int = 10,
) -> List[str]:
    """Distinct stored project references containing *q* (case-insensitive).

    The "-" placeholder is never returned.
    """
    escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    rows = conn.execute(
        f"SELECT DISTINCT project_reference FROM {TABLE} "
        "WHERE project_reference LIKE ? ESCAPE '\\' AND project_reference != '-' "
        "ORDER BY project_reference LIMIT ?",
        (f"%{escaped}%", limit),
    ).fetchall()
    return [r[0] for r in rows]
