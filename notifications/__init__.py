"""
Order notification system.

- NotificationStore keeps the recent order notifications and their subscribers
- NotificationAggregator turns realtime order changes into store mutations,
  modals, toasts and the sound alert
- Presenters (bell, modals, toasts) render store and modal state
- NotificationContext owns all of it for the lifetime of the application
"""

from notifications.aggregator import ModalState, NotificationAggregator
from notifications.context import NotificationContext
from notifications.presenters import (
    NotificationBell,
    NotificationProvider,
    OrderNotificationModal,
    Toaster,
)
from notifications.roles import Customer, Owner, RoleResolver, Unknown
from notifications.sound import SoundPlayer
from notifications.store import NotificationStore

__all__ = [
    "ModalState",
    "NotificationAggregator",
    "NotificationContext",
    "NotificationBell",
    "NotificationProvider",
    "OrderNotificationModal",
    "Toaster",
    "Customer",
    "Owner",
    "RoleResolver",
    "Unknown",
    "SoundPlayer",
    "NotificationStore",
]
