"""
Orders table simulator.

This stands in for the backend's `orders` table: inserting or updating a row
publishes the matching change event on the realtime feed, the way the
database's replication stream would.

Key point:
- This table ONLY publishes change events
- It does not know the notification system exists
- Listeners pick up only the rows their channel filters select
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from realtime.change_feed import ChangeFeed
from realtime.events import order_inserted, order_updated
from shared.models import OrderStatus

logger = logging.getLogger("orders_table")


class OrdersTable:
    """
    Simulated `orders` table that publishes row changes.

    Example:
        table = OrdersTable(feed)
        row = table.insert(business_id="biz-001", customer_id="cust-001",
                           customer_name="Maria", total_amount="42.50")
        table.update_status(row["id"], OrderStatus.PREPARING)
    """

    def __init__(self, feed: ChangeFeed):
        self.feed = feed
        self._rows: dict[str, dict[str, Any]] = {}

    def insert(
        self,
        business_id: str,
        customer_id: str,
        customer_name: str,
        total_amount: Any,
        status: str = OrderStatus.PENDING.value,
        order_id: Optional[str] = None,
        **columns: Any,
    ) -> dict[str, Any]:
        """
        Insert a new order row and publish an INSERT event.

        Extra keyword arguments become additional columns
        (customer_phone, customer_address, payment_method, notes, ...).
        """
        order_id = order_id or str(uuid4())
        if order_id in self._rows:
            raise ValueError(f"Order already exists: {order_id}")

        row = {
            "id": order_id,
            "business_id": business_id,
            "customer_id": customer_id,
            "customer_name": customer_name,
            "total_amount": str(Decimal(str(total_amount))),
            "status": OrderStatus(status).value,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "order_code": columns.pop("order_code", None) or order_id[:6].upper(),
            **columns,
        }
        self._rows[order_id] = row

        logger.info(f"Inserted order {order_id} for business {business_id}")
        self.feed.publish(order_inserted(row))
        return dict(row)

    def update(self, order_id: str, **changes: Any) -> Optional[dict[str, Any]]:
        """
        Update columns of an order row and publish an UPDATE event.

        Returns the updated row or None if the order doesn't exist.
        """
        row = self._rows.get(order_id)
        if row is None:
            logger.error(f"Order not found: {order_id}")
            return None
        if "status" in changes:
            changes["status"] = OrderStatus(changes["status"]).value
        if "id" in changes and changes["id"] != order_id:
            raise ValueError("Order id cannot change")

        old = dict(row)
        row.update(changes)
        row["updated_at"] = datetime.now(timezone.utc).isoformat()

        logger.info(f"Updated order {order_id}: {sorted(changes)}")
        self.feed.publish(order_updated(row, old=old))
        return dict(row)

    def update_status(self, order_id: str, status: str) -> Optional[dict[str, Any]]:
        """Move an order to a new status."""
        return self.update(order_id, status=status)

    def get(self, order_id: str) -> Optional[dict[str, Any]]:
        row = self._rows.get(order_id)
        return dict(row) if row else None

    def rows(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self._rows.values()]
