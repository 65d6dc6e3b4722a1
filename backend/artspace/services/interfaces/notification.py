"""
Notification hook interface.
The engine emits events; delivery belongs to whoever implements the hook.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class AcceptanceNotification:
    """Emitted once per artist accepted into a show."""

    artist_id: str
    show_id: str
    location_id: str
    selected_artwork_count: int

    def to_dict(self) -> dict:
        return asdict(self)


class NotificationHook(ABC):
    """
    Interface for acceptance notification delivery.

    Implementations:
    - NullNotifier: drop events (notifications disabled)
    - MailQueueNotifier: queue a mail document for the mail extension
    """

    @abstractmethod
    async def notify(self, event: AcceptanceNotification) -> None:
        """
        Deliver an acceptance notification.

        Raising is allowed: the engine logs the failure and keeps the
        assignment.
        """
        pass
