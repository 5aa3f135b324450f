"""
Shared infrastructure for the order notification system.

This package contains code used across the realtime, notification and API layers:
- Domain models (OrderNotification, UserAccount, Business, ...)
- Data store for the JSON-backed directory and user preferences
- Display formatting and toast templates
- Application settings
"""

from shared.models import (
    Business,
    CustomerProfile,
    OrderNotification,
    OrderStatus,
    UserAccount,
    UserPreferences,
)
from shared.data_store import DataStore, DataStoreError
from shared.config import Settings, get_settings

__all__ = [
    "Business",
    "CustomerProfile",
    "OrderNotification",
    "OrderStatus",
    "UserAccount",
    "UserPreferences",
    "DataStore",
    "DataStoreError",
    "Settings",
    "get_settings",
]
