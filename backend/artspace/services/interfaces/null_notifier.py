"""
No-op notification hook, used when notifications are disabled.
"""

from artspace.services.interfaces.notification import AcceptanceNotification, NotificationHook


class NullNotifier(NotificationHook):
    async def notify(self, event: AcceptanceNotification) -> None:
        """Drop the event."""
        pass
