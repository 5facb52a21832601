# pixelmatch/storage/__init__.py
"""
Persistence Gateway selection.

PIXELMATCH_USE_DATABASE=1 selects the SQLAlchemy gateway at
PIXELMATCH_DATABASE_URL; otherwise the in-memory store is used.
"""

from __future__ import annotations

from pixelmatch.config import Settings, load_settings

from .base import StorageGateway
from .memory import MemStorage


def get_storage(settings: Settings | None = None) -> StorageGateway:
    settings = settings or load_settings()
    if settings.use_database:
        # Imported lazily so the in-memory path never touches SQLAlchemy
        from .database import DatabaseStorage

        return DatabaseStorage(settings.database_url)
    return MemStorage()


__all__ = ["StorageGateway", "MemStorage", "get_storage"]
