"""
Error taxonomy for the consistency engine.

NotFoundError and ValidationError are raised before any write happens.
StoreError (and its subclasses) propagate from the document store; the
operation that raised it is safe to re-issue. PartialApplicationWarning is
never raised: it is attached to operation results and logged.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class ArtspaceError(Exception):
    """Base class for errors surfaced to callers."""

    code = "ARTSPACE_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class NotFoundError(ArtspaceError):
    """The primary entity targeted by an operation does not exist."""

    code = "NOT_FOUND"

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"{collection}/{document_id} not found")

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "collection": self.collection,
            "id": self.document_id,
        }


class ValidationError(ArtspaceError):
    """The requested target state is invalid."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.details:
            data["details"] = self.details
        return data


class StoreError(ArtspaceError):
    """Transport, timeout or conflict failure reported by the document store."""

    code = "STORE_ERROR"


class StoreTimeoutError(StoreError):
    code = "STORE_TIMEOUT"


class TransactionConflictError(StoreError):
    """Optimistic transaction kept conflicting after all retries."""

    code = "TRANSACTION_CONFLICT"

    def __init__(self, message: str, attempts: int):
        self.attempts = attempts
        super().__init__(message)


@dataclass(frozen=True)
class PartialApplicationWarning:
    """A secondary document was missing or could not be updated."""

    collection: str
    document_id: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "collection": self.collection,
            "id": self.document_id,
            "reason": self.reason,
        }
