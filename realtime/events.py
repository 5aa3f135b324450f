"""
Change event definitions for the realtime feed.

A change event is a row-level record of something that happened to a table:
an INSERT carries the new row, an UPDATE carries the new row and (when the
table publishes it) the previous one.

Design decisions:
- Events mirror the backend's postgres_changes payload: event type, table,
  `new` row, `old` row
- Helper functions create properly structured events for the orders table
- The wire format belongs to the platform; these records are its in-process
  shape only
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4


class EventTypes:
    """Constants for change event types."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    # Subscribe to every event type on a table
    ALL = "*"


ORDERS_TABLE = "orders"


@dataclass
class ChangeEvent:
    """
    A row-level change on a table.

    Attributes:
        event_type: INSERT, UPDATE or DELETE
        table: Name of the changed table
        new: The row after the change (empty for DELETE)
        old: The row before the change, when known
        event_id: Unique identifier for this event instance
        commit_timestamp: When the change was committed
    """
    event_type: str
    table: str
    new: dict[str, Any] = field(default_factory=dict)
    old: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid4()))
    commit_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def row(self) -> dict[str, Any]:
        """The row a subscriber should look at (new, or old for deletes)."""
        return self.new or self.old

    def __str__(self) -> str:
        return f"ChangeEvent({self.event_type} {self.table}, id={self.row.get('id')})"


def order_inserted(row: dict[str, Any]) -> ChangeEvent:
    """Create an INSERT event for an orders row."""
    return ChangeEvent(event_type=EventTypes.INSERT, table=ORDERS_TABLE, new=dict(row))


def order_updated(row: dict[str, Any], old: Optional[dict[str, Any]] = None) -> ChangeEvent:
    """
    Create an UPDATE event for an orders row.

    `old` is optional: the platform only sends it when the table is configured
    to publish previous values.
    """
    return ChangeEvent(
        event_type=EventTypes.UPDATE,
        table=ORDERS_TABLE,
        new=dict(row),
        old=dict(old or {}),
    )
