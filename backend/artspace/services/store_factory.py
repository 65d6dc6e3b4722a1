"""
Document store factory.
Configures which store adapter backs the consistency engine.
"""

from typing import Optional

from artspace.core.config import get_settings
from artspace.core.logging import get_logger
from artspace.db.session import get_session_factory
from artspace.infrastructure.document_store import DocumentStore
from artspace.infrastructure.memory_store import MemoryDocumentStore
from artspace.infrastructure.sql_store import SqlDocumentStore

logger = get_logger(__name__)


def build_document_store() -> DocumentStore:
    """
    Build the configured document store.

    Backend selection:
    - memory: in-process store (local runs, tests)
    - sql: SQLAlchemy over the documents table (PostgreSQL in production)

    Selected via the STORE_BACKEND env var.
    """
    settings = get_settings()
    backend = settings.STORE_BACKEND.lower()

    if backend == "memory":
        store: DocumentStore = MemoryDocumentStore(max_attempts=settings.MAX_RETRY_ATTEMPTS)
    elif backend == "sql":
        store = SqlDocumentStore(get_session_factory(), max_attempts=settings.MAX_RETRY_ATTEMPTS)
    else:
        raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")

    logger.info("document_store_configured", backend=backend)
    return store


# Singleton instance
_store: Optional[DocumentStore] = None


def get_document_store() -> DocumentStore:
    """Get document store singleton."""
    global _store
    if _store is None:
        _store = build_document_store()
    return _store
