"""
Domain models for the delivery ordering platform.

These models describe the records the notification system reads from the
backend: order rows (as seen by the realtime change feed), the accounts and
directory entries used for role detection, and per-user preferences.

Design decisions:
- Using Pydantic for validation and serialization
- OrderNotification is frozen: the store replaces snapshots, it never edits them
- Unknown row columns are ignored so schema additions don't break listeners
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class OrderStatus(str, Enum):
    """Order lifecycle states, as stored in the `orders.status` column."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class UserRoleHint(str, Enum):
    """Role hint stored in account metadata at sign-up."""
    CUSTOMER = "cliente"
    BUSINESS_OWNER = "dono_delivery"


# =============================================================================
# Order snapshots
# =============================================================================

class OrderNotification(BaseModel):
    """
    Snapshot of an order at the moment a change event fired.

    Only the first six fields are required by the bell; the optional detail
    columns are shown by the new-order modal when present.
    """
    id: str = Field(..., description="Order identifier, stable across updates")
    customer_name: str = Field(..., description="Name shown to the business owner")
    total_amount: Decimal = Field(..., ge=0, description="Order total")
    status: OrderStatus = Field(default=OrderStatus.PENDING)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    order_code: Optional[str] = Field(default=None, description="Short display code")

    customer_phone: Optional[str] = Field(default=None)
    customer_address: Optional[str] = Field(default=None)
    payment_method: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)

    model_config = ConfigDict(use_enum_values=True, frozen=True, extra="ignore")

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "OrderNotification":
        """Map a raw `orders` row to a notification snapshot."""
        return cls.model_validate(row)

    @property
    def display_code(self) -> str:
        """Short code for headings: order_code, or the tail of the id."""
        return self.order_code or self.id[-8:]


# =============================================================================
# Accounts and directory
# =============================================================================

class UserAccount(BaseModel):
    """An authenticated user as handed over by the auth service."""
    id: str = Field(..., description="Auth user id")
    email: Optional[str] = Field(default=None)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def role_hint(self) -> Optional[str]:
        """The role recorded in account metadata, if any."""
        return self.metadata.get("role")


class Business(BaseModel):
    """A delivery business; its owner receives new-order notifications."""
    id: str
    owner_id: str
    name: str
    is_active: bool = True


class CustomerProfile(BaseModel):
    """A customer profile linked to an auth user."""
    id: str
    user_id: str
    name: str
    phone: Optional[str] = None


# =============================================================================
# Preferences
# =============================================================================

class UserPreferences(BaseModel):
    """
    Persisted per-user preferences.

    `notifications` gates toasts, `sound` gates the new-order alert.
    """
    theme: Literal["light", "dark"] = "light"
    notifications: bool = True
    sound: bool = True
    language: str = "pt-BR"
