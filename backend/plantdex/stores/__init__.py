# Stores package init
"""
PlantDex Backend — Record Stores
=================================

What:  Persistence for users and plant records behind one interface.

    RecordStore (abstract)
    ├── DatabaseRecordStore  — async SQLAlchemy, durable
    └── MemoryRecordStore    — process-local dicts, for tests and demos

Which one runs is decided by whoever builds the app (create_app), usually
via build_store() reading STORE_BACKEND.
"""

from typing import Optional

from plantdex.config import settings
from plantdex.stores.base import RecordStore
from plantdex.stores.database import DatabaseRecordStore
from plantdex.stores.memory import MemoryRecordStore


def build_store(backend: Optional[str] = None) -> RecordStore:
    """Construct the store named by `backend` (defaults to STORE_BACKEND)."""
    backend = backend or settings.store_backend
    if backend == "memory":
        return MemoryRecordStore()
    return DatabaseRecordStore.from_url(settings.database_url)


__all__ = ["RecordStore", "DatabaseRecordStore", "MemoryRecordStore", "build_store"]
