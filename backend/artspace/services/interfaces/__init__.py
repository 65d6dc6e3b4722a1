"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .notification import AcceptanceNotification, NotificationHook
from .null_notifier import NullNotifier

__all__ = ['AcceptanceNotification', 'NotificationHook', 'NullNotifier']
