"""
Notification store.

Holds the most recent order notifications (newest first) and the callbacks
that want to hear about changes. Every presenter reads from here; only the
aggregator and the presenters' explicit actions (mark as read, clear all)
mutate it.

Design decisions:
- Capacity-bounded: adding beyond capacity evicts the oldest entry
- Updates replace the matching snapshot in place and never insert
- Subscribers are called synchronously, in registration order, after every
  mutation (including no-op updates/removals)
- Each subscriber runs in its own failure boundary: one raising callback is
  logged and the rest still run
- Every subscription is independent, even for the same callback, and gets its
  own unsubscribe function

Note: there is no per-item read flag. "Unread" means "still retained", so an
entry pushed out by capacity is gone for good.
"""

import itertools
import logging
from typing import Callable

from shared.models import OrderNotification

logger = logging.getLogger("notification_store")


DEFAULT_CAPACITY = 10

# Subscribers take no arguments; they re-read the store.
Subscriber = Callable[[], None]
Unsubscribe = Callable[[], bool]


class NotificationStore:
    """
    In-memory store of recent order notifications with change subscribers.

    Example:
        store = NotificationStore()
        unsubscribe = store.subscribe(lambda: print(store.get_notifications()))
        store.add_notification(notification)
        unsubscribe()
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._notifications: list[OrderNotification] = []
        # subscription token -> callback; dicts keep insertion order
        self._subscribers: dict[int, Subscriber] = {}
        self._tokens = itertools.count()

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """
        Register a callback invoked after any mutation.

        Returns:
            A function that removes this subscription. It returns True the
            first time and False afterwards.
        """
        token = next(self._tokens)
        self._subscribers[token] = callback
        logger.debug(f"Subscriber {token} registered ({len(self._subscribers)} total)")

        def unsubscribe() -> bool:
            removed = self._subscribers.pop(token, None) is not None
            if removed:
                logger.debug(f"Subscriber {token} removed")
            return removed

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_notifications(self) -> tuple[OrderNotification, ...]:
        """Snapshot of the retained notifications, newest first."""
        return tuple(self._notifications)

    def has_unread(self) -> bool:
        """True iff any notification is retained."""
        return len(self._notifications) > 0

    def __len__(self) -> int:
        return len(self._notifications)

    # =========================================================================
    # Mutations
    # =========================================================================

    def add_notification(self, notification: OrderNotification) -> None:
        """
        Prepend a notification, keeping only the newest `capacity` entries.

        No deduplication: use update_notification for a known id.
        """
        logger.info(f"Adding notification for order {notification.id}")
        retained = [notification, *self._notifications]
        evicted = retained[self.capacity:]
        self._notifications = retained[: self.capacity]
        for old in evicted:
            logger.debug(f"Evicted notification for order {old.id}")
        self._notify()

    def update_notification(self, notification: OrderNotification) -> None:
        """Replace the entry with the same id in place; unknown ids change nothing."""
        logger.info(f"Updating notification for order {notification.id}")
        self._notifications = [
            notification if n.id == notification.id else n
            for n in self._notifications
        ]
        self._notify()

    def remove_notification(self, order_id: str) -> None:
        """Delete the entry with this id, if present."""
        logger.info(f"Removing notification for order {order_id}")
        self._notifications = [n for n in self._notifications if n.id != order_id]
        self._notify()

    def clear_all(self) -> None:
        """Drop every notification. Subscribers stay registered."""
        logger.info("Clearing all notifications")
        self._notifications = []
        self._notify()

    def _notify(self) -> int:
        """Call every subscriber; returns how many completed without raising."""
        succeeded = 0
        for token, callback in list(self._subscribers.items()):
            try:
                callback()
                succeeded += 1
            except Exception:
                logger.exception(f"Subscriber {token} raised during dispatch")
        return succeeded
