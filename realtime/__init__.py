"""
Realtime change feed.

This package simulates the backend's realtime service:
- Tables publish row-level change events (INSERT, UPDATE)
- Clients open filtered channels and receive only the rows they asked for
"""

from realtime.change_feed import Channel, ChangeFeed, RowFilter
from realtime.events import ChangeEvent, EventTypes, ORDERS_TABLE
from realtime.orders import OrdersTable

__all__ = [
    "Channel",
    "ChangeFeed",
    "RowFilter",
    "ChangeEvent",
    "EventTypes",
    "ORDERS_TABLE",
    "OrdersTable",
]
