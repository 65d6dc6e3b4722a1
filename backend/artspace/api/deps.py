"""
FastAPI dependencies wiring the store, notifier and services.
Tests override `get_store` and `get_notifier` through app.dependency_overrides.
"""

from fastapi import Depends

from artspace.core.config import get_settings
from artspace.infrastructure.document_store import DocumentStore
from artspace.services.assignment_service import AssignmentService
from artspace.services.curation_service import CurationService
from artspace.services.interfaces.notification import NotificationHook
from artspace.services.notification_service import build_notifier
from artspace.services.store_factory import get_document_store


def get_store() -> DocumentStore:
    return get_document_store()


def get_notifier(store: DocumentStore = Depends(get_store)) -> NotificationHook:
    return build_notifier(store, get_settings())


def get_assignment_service(
    store: DocumentStore = Depends(get_store),
    notifier: NotificationHook = Depends(get_notifier),
) -> AssignmentService:
    return AssignmentService(store, notifier=notifier, settings=get_settings())


def get_curation_service(store: DocumentStore = Depends(get_store)) -> CurationService:
    return CurationService(store, settings=get_settings())
