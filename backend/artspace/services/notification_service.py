"""
Acceptance notifications delivered through a mail queue collection.

The mail extension watching the `mail` collection sends one email per
document, so notifying an artist means writing a document shaped like:

    {
      "toUids": ["<artist id>"],
      "cc": [...], "bcc": [...],
      "message": {"subject": "...", "html": "..."},
      "createdAt": "<iso timestamp>"
    }

Outside production the recipients are replaced by the MAIL_DEV_* settings
so test runs never email real artists.
"""

from datetime import datetime, timezone
from html import escape
from typing import Any, Dict, Optional

from artspace.core.config import Settings, get_settings
from artspace.core.logging import get_logger
from artspace.infrastructure.document_store import DocumentStore
from artspace.services.interfaces.notification import AcceptanceNotification, NotificationHook
from artspace.services.interfaces.null_notifier import NullNotifier
from artspace.services.relationships import ARTISTS, LOCATIONS, SHOWS

logger = get_logger(__name__)


class MailQueueNotifier(NotificationHook):
    def __init__(self, store: DocumentStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def recipients(self, artist_id: str) -> Dict[str, Any]:
        if self.settings.ENVIRONMENT != "production" and self.settings.MAIL_DEV_TO_UIDS:
            return {
                "toUids": list(self.settings.MAIL_DEV_TO_UIDS),
                "cc": list(self.settings.MAIL_DEV_CC),
                "bcc": list(self.settings.MAIL_DEV_BCC),
            }
        return {"toUids": [artist_id], "cc": [], "bcc": []}

    async def notify(self, event: AcceptanceNotification) -> None:
        artist = await self.store.get(ARTISTS, event.artist_id) or {}
        show = await self.store.get(SHOWS, event.show_id) or {}
        location = await self.store.get(LOCATIONS, event.location_id) if event.location_id else None

        artist_name = escape(artist.get("name") or "there")
        show_name = escape(show.get("name") or "our upcoming show")
        where = f" at {escape(location['name'])}" if location and location.get("name") else ""
        count = event.selected_artwork_count
        pieces = "piece" if count == 1 else "pieces"

        mail = {
            **self.recipients(event.artist_id),
            "message": {
                "subject": f"You've been accepted into {show.get('name') or 'the show'}",
                "html": (
                    f"<p>Hi {artist_name},</p>"
                    f"<p>Congratulations! You have been accepted into {show_name}{where} "
                    f"with {count} {pieces} selected.</p>"
                ),
            },
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        mail_id = await self.store.create(self.settings.MAIL_COLLECTION, mail)
        logger.info(
            "acceptance_mail_queued",
            mail_id=mail_id,
            artist_id=event.artist_id,
            show_id=event.show_id,
        )


def build_notifier(store: DocumentStore, settings: Optional[Settings] = None) -> NotificationHook:
    settings = settings or get_settings()
    if not settings.NOTIFICATIONS_ENABLED:
        return NullNotifier()
    return MailQueueNotifier(store, settings)
