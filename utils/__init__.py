"""Shared utilities for the disposition service."""

from utils.cache import TTLCache
from utils.config import AppConfig, Config
from utils.database import (
    connect,
    count_records,
    delete_record,
    fetch_records,
    get_record,
    init_database,
    init_pragmas,
    init_schema,
    insert_many,
    insert_record,
    search_project_references,
    store_fingerprint,
    table_exists,
)
from utils.strings import clean_import_item, safe_int, sanitize_json_text

__all__ = [
    # Cache
    "TTLCache",
    # Config
    "AppConfig",
    "Config",
    # Database
    "connect",
    "count_records",
    "delete_record",
    "fetch_records",
    "get_record",
    "init_database",
    "init_pragmas",
    "init_schema",
    "insert_many",
    "insert_record",
    "search_project_references",
    "store_fingerprint",
    "table_exists",
    # Strings
    "clean_import_item",
    "safe_int",
    "sanitize_json_text",
]
