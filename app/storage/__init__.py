"""Storage backends"""
from pathlib import Path

from app.core.config import settings
from app.storage.base import StorageBackend
from app.storage.memory import MemoryStorage
from app.storage.json_file import JSONFileStorage
from app.storage.fallback import FallbackStorage
from app.storage.locks import RecordLocks
from app.storage.sql import SQLStorage


def build_storage(backend: str = None) -> StorageBackend:
    """
    Build the configured backend.

    memory: process-local dicts; file: JSON files in DATA_DIR; sql: the
    database at DATABASE_URL; sql+file: the database with a JSON file cache
    to fall back on.
    """
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return JSONFileStorage(Path(settings.DATA_DIR))
    if backend == "sql":
        return SQLStorage()
    if backend == "sql+file":
        return FallbackStorage(SQLStorage(), JSONFileStorage(Path(settings.DATA_DIR)))
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    "StorageBackend",
    "MemoryStorage",
    "JSONFileStorage",
    "FallbackStorage",
    "RecordLocks",
    "SQLStorage",
    "build_storage",
]
