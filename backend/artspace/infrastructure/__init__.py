"""
Infrastructure layer - document store adapters.
Keeps the consistency engine independent of the storage engine.
"""

from .document_store import DocumentStore, FieldFilter, Transaction, where
from .memory_store import MemoryDocumentStore
from .sql_store import SqlDocumentStore

__all__ = [
    'DocumentStore',
    'FieldFilter',
    'MemoryDocumentStore',
    'SqlDocumentStore',
    'Transaction',
    'where',
]
