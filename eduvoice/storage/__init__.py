"""Storage backends and the factory that picks one at start up."""

import logging

from eduvoice.config import Settings
from eduvoice.db.session import create_engine_from_settings, create_session_factory
from eduvoice.storage.base import DuplicateUserError, Storage
from eduvoice.storage.database import DatabaseStorage
from eduvoice.storage.memory import MemoryStorage

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> Storage:
    """Create the storage backend selected by configuration."""
    backend = settings.resolved_storage_backend
    if backend == "memory":
        logger.warning("Using in-memory storage; data will be lost on restart")
        return MemoryStorage()

    engine = create_engine_from_settings(settings)
    logger.info("Using database storage (%s)", engine.url.get_backend_name())
    return DatabaseStorage(engine, create_session_factory(engine))


__all__ = ["DuplicateUserError", "Storage", "MemoryStorage", "DatabaseStorage", "build_storage"]
