"""
Notification aggregator.

Bridges the realtime change feed to the notification store for one session.
It subscribes to the orders channel that matches the session's role, turns
row changes into store mutations, and triggers the one-shot side effects:
modals, toasts and the sound alert.

Behaviour per role:
- Owner, INSERT   -> add to store, open new-order modal, toast, sound
- Owner, UPDATE   -> replace snapshot in store
- Customer, INSERT -> add to store
- Customer, UPDATE -> replace snapshot; on a status change open the
                      status-change modal and toast the new status

Modals and sound only fire on the transitions above; an UPDATE that leaves
the status untouched refreshes the stored snapshot and nothing else.

Preferences are read when each event arrives: `notifications` gates toasts,
`sound` gates the alert. Modals are always shown to the relevant role.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from pydantic import ValidationError

from notifications.presenters import Toaster
from notifications.roles import Customer, Owner, Role, RoleResolver, Unknown
from notifications.sound import SoundPlayer
from notifications.store import NotificationStore
from realtime.change_feed import Channel, ChangeFeed
from realtime.events import ORDERS_TABLE, ChangeEvent, EventTypes
from shared.data_store import DataStoreError
from shared.formatters import (
    NEW_ORDER_TOAST,
    SUBSCRIBE_FAILED_TOAST,
    format_currency,
    get_status_toast,
)
from shared.models import OrderNotification, UserAccount, UserPreferences

logger = logging.getLogger("notification_aggregator")


class PreferenceSource(Protocol):
    def get_preferences(self, user_id: str) -> UserPreferences: ...


@dataclass
class ModalState:
    """At most one order on display, plus whether the dialog is open."""
    order: Optional[OrderNotification] = None
    is_open: bool = False

    def open(self, order: OrderNotification) -> None:
        self.order = order
        self.is_open = True

    def close(self) -> None:
        self.order = None
        self.is_open = False


class NotificationAggregator:
    """
    Realtime-to-store bridge for a single session.

    Example:
        aggregator = NotificationAggregator(store, feed, toaster, sound, data_store,
                                            resolver=RoleResolver(data_store))
        aggregator.start(user)      # subscribes to the role's orders channel
        ...
        aggregator.stop()           # releases the channel
    """

    def __init__(
        self,
        store: NotificationStore,
        feed: ChangeFeed,
        toaster: Toaster,
        sound_player: SoundPlayer,
        preferences: PreferenceSource,
        resolver: Optional[RoleResolver] = None,
    ):
        self.store = store
        self.feed = feed
        self.toaster = toaster
        self.sound_player = sound_player
        self.preferences = preferences
        self.resolver = resolver

        self.role: Role = Unknown()
        self.user_id: Optional[str] = None
        self.new_order_modal = ModalState()
        self.status_modal = ModalState()

        self._channel: Optional[Channel] = None
        self._last_status: dict[str, str] = {}

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_active(self) -> bool:
        return self._channel is not None

    def start(self, user: UserAccount) -> Role:
        """Resolve the user's role and subscribe to the matching channel."""
        if self.resolver is None:
            raise RuntimeError("start() needs a RoleResolver; use attach() with a known role")
        role = self.resolver.resolve(user)
        self.attach(user.id, role)
        return role

    def attach(self, user_id: str, role: Role) -> bool:
        """
        Subscribe for a session whose role is already known.

        Returns:
            True if a channel is now active
        """
        if self.is_active:
            logger.warning("Aggregator already attached; stopping previous session")
            self.stop()

        self.user_id = user_id
        self.role = role

        if isinstance(role, Unknown):
            logger.info(f"No notifications for user {user_id}: role unknown")
            return False

        prefs = self._preferences()
        if isinstance(role, Owner):
            self.sound_player.observe(prefs.sound)

        try:
            self._channel = (
                self.feed.channel(role.channel_name)
                .on(EventTypes.INSERT, ORDERS_TABLE, self._handle_insert, filter=role.row_filter)
                .on(EventTypes.UPDATE, ORDERS_TABLE, self._handle_update, filter=role.row_filter)
                .subscribe()
            )
        except Exception:
            logger.exception(f"Could not subscribe to {role.channel_name}")
            self._channel = None
            self.toaster.show_template(SUBSCRIBE_FAILED_TOAST, variant="destructive")
            return False

        logger.info(f"Listening for order changes on {role.channel_name}")
        return True

    def stop(self) -> None:
        """Release the realtime channel. Already-applied mutations stay."""
        if self._channel is None:
            return
        name = self._channel.name
        self.feed.remove_channel(self._channel)
        self._channel = None
        self._last_status.clear()
        logger.info(f"Stopped listening on {name}")

    # =========================================================================
    # Event Handlers
    # =========================================================================

    def _handle_insert(self, event: ChangeEvent) -> None:
        if not self._accepts(event):
            return
        notification = self._to_notification(event)
        if notification is None:
            return

        logger.info(f"New order {notification.id} for {self._describe_role()}")
        self.store.add_notification(notification)
        self._remember_status(notification)

        if not isinstance(self.role, Owner):
            return

        self.new_order_modal.open(notification)
        prefs = self._preferences()
        if prefs.notifications:
            self.toaster.show_template(
                NEW_ORDER_TOAST,
                customer_name=notification.customer_name,
                total=format_currency(notification.total_amount),
            )
        if prefs.sound:
            self.sound_player.observe(True)
            self.sound_player.play()

    def _handle_update(self, event: ChangeEvent) -> None:
        if not self._accepts(event):
            return
        notification = self._to_notification(event)
        if notification is None:
            return

        previous = self._last_status.get(notification.id) or event.old.get("status")
        self.store.update_notification(notification)
        self._remember_status(notification)

        if previous == notification.status:
            logger.debug(f"Order {notification.id} changed without a status change")
            return

        logger.info(f"Order {notification.id} status: {previous} -> {notification.status}")
        if not isinstance(self.role, Customer):
            return

        self.status_modal.open(notification)
        template = get_status_toast(notification.status)
        if template is not None and self._preferences().notifications:
            self.toaster.show_template(template)

    def _remember_status(self, notification: OrderNotification) -> None:
        """Track the last status per order, only for orders the store still holds."""
        self._last_status[notification.id] = notification.status
        retained = {n.id for n in self.store.get_notifications()}
        for order_id in list(self._last_status):
            if order_id not in retained:
                del self._last_status[order_id]

    def _accepts(self, event: ChangeEvent) -> bool:
        """Late events after stop() and rows outside the session are ignored."""
        if not self.is_active:
            logger.debug(f"Ignoring {event}: aggregator stopped")
            return False
        row = event.new
        if isinstance(self.role, Owner):
            return str(row.get("business_id")) == self.role.business_id
        if isinstance(self.role, Customer):
            return str(row.get("customer_id")) == self.role.customer_id
        return False

    @staticmethod
    def _to_notification(event: ChangeEvent) -> Optional[OrderNotification]:
        try:
            return OrderNotification.from_row(event.new)
        except ValidationError as e:
            logger.error(f"Dropping {event}: invalid order row ({e.error_count()} errors)")
            return None

    def _preferences(self) -> UserPreferences:
        if self.user_id is None:
            return UserPreferences()
        try:
            return self.preferences.get_preferences(self.user_id)
        except DataStoreError:
            logger.exception(f"Could not load preferences for {self.user_id}, using defaults")
            return UserPreferences()

    def _describe_role(self) -> str:
        if isinstance(self.role, Owner):
            return f"business {self.role.business_id}"
        if isinstance(self.role, Customer):
            return f"customer {self.role.customer_id}"
        return "unknown role"

    # =========================================================================
    # Consumer actions
    # =========================================================================

    @property
    def notifications(self) -> tuple[OrderNotification, ...]:
        return self.store.get_notifications()

    @property
    def has_unread(self) -> bool:
        return self.store.has_unread()

    def mark_as_read(self, order_id: str) -> None:
        self.store.remove_notification(order_id)

    def clear_all(self) -> None:
        self.store.clear_all()

    def close_new_order_modal(self) -> None:
        self.new_order_modal.close()

    def close_status_modal(self) -> None:
        self.status_modal.close()
