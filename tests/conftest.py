"""
Pytest fixtures for the disposition service tests.

Provides record factories, a synthetic reason catalog, a temporary SQLite
store built through utils.database, and a TestClient bound to it.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dispositions.catalog import ReasonCatalog, default_catalog
from dispositions.records import DispositionRecord
from utils.database import connect, init_database, insert_record


def make_record(
    removal_date: str = "2024-02-15",
    count: int = 1,
    reason_code: str | None = "EXP-01",
    species_name: str = "Mouse",
    strain_name: str = "C57BL/6",
    sex: str = "female",
    **extra,
) -> DispositionRecord:
    """Build a DispositionRecord with sensible defaults for every field."""
    return DispositionRecord(
        species_name=species_name,
        strain_name=strain_name,
        sex=sex,
        count=count,
        removal_date=removal_date,
        reason_code=reason_code,
        **extra,
    )


@pytest.fixture()
def record_factory():
    return make_record


@pytest.fixture()
def catalog() -> ReasonCatalog:
    return default_catalog()


@pytest.fixture()
def small_catalog() -> ReasonCatalog:
    """Two-category catalog independent of the built-in one."""
    return ReasonCatalog.from_dict([
        {"id": "A", "label": "Alpha", "options": [
            {"code": "A-1", "label": "a one", "requiresProject": True},
            {"code": "A-2", "label": "a two"},
        ]},
        {"id": "B", "label": "Beta", "options": [
            {"code": "B-1", "label": "b one"},
        ]},
    ])


@pytest.fixture()
def store_path(tmp_path) -> Path:
    """Empty disposition store with the schema applied."""
    db_path = tmp_path / "dispositions.sqlite"
    init_database(db_path)
    return db_path


SEED_ROWS = [
    {"species_name": "Mouse", "strain_name": "C57BL/6", "sex": "female", "count": 3,
     "date_of_birth": "2023-09-01", "removal_date": "2024-02-15", "reason_code": "EXP-01", "project_reference": "PRJ-1"},
    {"species_name": "Mouse", "strain_name": "BALB/c", "sex": "male", "count": 2,
     "date_of_birth": "2023-10-12", "removal_date": "2024-02-20", "reason_code": "HEALTH-03", "project_reference": "-"},
    {"species_name": "Rat", "strain_name": "Wistar", "sex": "male", "count": 4,
     "date_of_birth": "2023-06-30", "removal_date": "2024-03-05", "reason_code": "BREED-02", "project_reference": "-"},
    {"species_name": "Rat", "strain_name": "Sprague Dawley", "sex": "female", "count": 1,
     "date_of_birth": "2023-05-04", "removal_date": "2023-11-30", "reason_code": "EXP-01", "project_reference": "PRJ-0"},
]


@pytest.fixture()
def seeded_store(store_path) -> Path:
    """Store holding SEED_ROWS (8 animals in 2024, 1 in 2023)."""
    conn = connect(store_path)
    try:
        for row in SEED_ROWS:
            insert_record(conn, row)
    finally:
        conn.close()
    return store_path


@pytest.fixture()
def client(seeded_store):
    from fastapi.testclient import TestClient

    from api.app import create_app

    return TestClient(create_app(db_path=seeded_store))


@pytest.fixture()
def empty_client(store_path):
    from fastapi.testclient import TestClient

    from api.app import create_app

    return TestClient(create_app(db_path=store_path))
