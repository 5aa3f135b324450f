"""
In-memory realtime change feed.

This module provides the pub/sub side of the backend's realtime service:
clients open named channels, bind handlers to change events on a table with
an optional `column=eq.value` filter, and receive matching events as rows
change. In production this is the BaaS realtime socket; here it is
synchronous and in-process so the notification system can be exercised end
to end.

Design decisions:
- Synchronous delivery, in publish order
- Filtering happens in the feed ("server side"), so a channel only ever sees
  rows it asked for
- A channel delivers nothing until subscribe() and nothing after unsubscribe()
- A handler raising is logged and does not stop other handlers
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from realtime.events import ChangeEvent, EventTypes

logger = logging.getLogger("change_feed")


# Type alias for change handler functions
ChangeHandler = Callable[[ChangeEvent], None]

DEFAULT_EVENT_LOG_LIMIT = 1000


class ChannelState(str, Enum):
    CLOSED = "CLOSED"
    SUBSCRIBED = "SUBSCRIBED"


@dataclass(frozen=True)
class RowFilter:
    """
    Equality filter on a single column, written `column=eq.value`.

    Example:
        RowFilter.parse("business_id=eq.biz-001").matches({"business_id": "biz-001"})
    """
    column: str
    value: str

    @classmethod
    def parse(cls, expression: str) -> "RowFilter":
        """
        Parse a filter expression.

        Raises:
            ValueError: If the expression is not of the form column=eq.value
        """
        column, sep, rest = expression.partition("=")
        operator, dot, value = rest.partition(".")
        if not sep or not dot or not column or operator != "eq":
            raise ValueError(f"Unsupported filter expression: {expression!r}")
        return cls(column=column, value=value)

    def matches(self, row: dict) -> bool:
        return str(row.get(self.column)) == self.value

    def __str__(self) -> str:
        return f"{self.column}=eq.{self.value}"


@dataclass(frozen=True)
class Binding:
    """One handler bound to changes on a table."""
    event_type: str
    table: str
    handler: ChangeHandler
    row_filter: Optional[RowFilter] = None

    def accepts(self, event: ChangeEvent) -> bool:
        if self.table != event.table:
            return False
        if self.event_type not in (EventTypes.ALL, event.event_type):
            return False
        if self.row_filter is None:
            return True
        return self.row_filter.matches(event.row)


class Channel:
    """
    A named realtime channel with its handler bindings.

    Example:
        channel = (
            feed.channel("orders-owner-biz-001")
            .on(EventTypes.INSERT, "orders", handle_insert, filter="business_id=eq.biz-001")
            .subscribe()
        )
        ...
        channel.unsubscribe()
    """

    def __init__(self, name: str, feed: "ChangeFeed"):
        self.name = name
        self._feed = feed
        self._bindings: list[Binding] = []
        self.state = ChannelState.CLOSED

    def on(
        self,
        event_type: str,
        table: str,
        handler: ChangeHandler,
        filter: Optional[str] = None,
    ) -> "Channel":
        """Bind a handler to change events on a table."""
        row_filter = RowFilter.parse(filter) if filter else None
        self._bindings.append(Binding(event_type, table, handler, row_filter))
        return self

    def subscribe(self) -> "Channel":
        """Start receiving events."""
        self._feed._attach(self)
        self.state = ChannelState.SUBSCRIBED
        logger.info(f"Channel '{self.name}' subscribed ({len(self._bindings)} bindings)")
        return self

    def unsubscribe(self) -> bool:
        """Stop receiving events. Returns False if the channel wasn't subscribed."""
        removed = self._feed._detach(self)
        self.state = ChannelState.CLOSED
        if removed:
            logger.info(f"Channel '{self.name}' unsubscribed")
        return removed

    @property
    def is_subscribed(self) -> bool:
        return self.state == ChannelState.SUBSCRIBED

    def deliver(self, event: ChangeEvent) -> int:
        """Deliver an event to every matching binding. Returns handlers called."""
        called = 0
        for binding in list(self._bindings):
            if not binding.accepts(event):
                continue
            called += 1
            try:
                binding.handler(event)
            except Exception:
                logger.exception(f"Handler on channel '{self.name}' failed for {event}")
        return called


class ChangeFeed:
    """
    Simple in-memory realtime feed.

    Tables (see realtime.orders.OrdersTable) publish change events here, and
    every subscribed channel whose bindings match receives them.
    """

    def __init__(self, event_log_limit: int = DEFAULT_EVENT_LOG_LIMIT):
        self._channels: list[Channel] = []

        # Track recent events for debugging/replay; oldest are dropped
        self._event_log: deque[ChangeEvent] = deque(maxlen=event_log_limit)
        self._log_events: bool = True

    def channel(self, name: str) -> Channel:
        """Create a channel; it receives nothing until subscribe()."""
        return Channel(name, self)

    def remove_channel(self, channel: Channel) -> bool:
        """Unsubscribe and drop a channel."""
        return channel.unsubscribe()

    def publish(self, event: ChangeEvent) -> int:
        """
        Publish a change event to all subscribed channels.

        Returns:
            Number of handlers that received the event
        """
        if self._log_events:
            self._event_log.append(event)

        logger.info(f"Publishing: {event}")

        handlers_called = 0
        for channel in list(self._channels):
            handlers_called += channel.deliver(event)

        if handlers_called == 0:
            logger.debug(f"No listeners for {event}")

        return handlers_called

    def get_channel_names(self) -> list[str]:
        """Names of the currently subscribed channels."""
        return [c.name for c in self._channels]

    def get_event_log(self) -> list[ChangeEvent]:
        """Get the most recent published events, oldest first."""
        return list(self._event_log)

    def clear_event_log(self) -> None:
        self._event_log.clear()

    def set_logging(self, enabled: bool) -> None:
        """Enable or disable event logging."""
        self._log_events = enabled

    def _attach(self, channel: Channel) -> None:
        if channel not in self._channels:
            self._channels.append(channel)

    def _detach(self, channel: Channel) -> bool:
        try:
            self._channels.remove(channel)
            return True
        except ValueError:
            return False
