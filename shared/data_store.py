"""
JSON-backed directory and preference store.

Stands in for the backend tables the notification system reads outside the
realtime feed:
- delivery businesses (who owns which business)
- customer profiles (which auth user is which customer)
- user accounts (metadata carrying the sign-up role hint)
- user preferences (persisted key-value record per user)

Design decisions:
- Fixtures are loaded lazily on first access
- Preference writes update memory and, when a data directory exists, disk
- I/O and decode failures are raised as DataStoreError so callers can degrade
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from shared.models import Business, CustomerProfile, UserAccount, UserPreferences

logger = logging.getLogger("data_store")


class DataStoreError(Exception):
    """A directory or preference lookup failed."""


class DataStore:
    """
    Central data store that loads and manages JSON fixtures.

    Example:
        store = DataStore(data_dir=Path("data"))
        business = store.find_business_by_owner("user-owner-1")
        prefs = store.get_preferences("user-owner-1")
    """

    PREFERENCES_FILE = "user_preferences.json"

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize the data store.

        Args:
            data_dir: Directory containing the JSON fixtures. Defaults to
                     ./data relative to the project root.
        """
        if data_dir is None:
            data_dir = Path(__file__).parent.parent / "data"

        self.data_dir = Path(data_dir)

        # In-memory caches - loaded lazily
        self._businesses: Optional[dict[str, Business]] = None  # keyed by owner_id
        self._customers: Optional[dict[str, CustomerProfile]] = None  # keyed by user_id
        self._users: Optional[dict[str, UserAccount]] = None
        self._preferences: Optional[dict[str, UserPreferences]] = None  # keyed by user_id

    # =========================================================================
    # Data Loading (lazy)
    # =========================================================================

    def _load_json(self, filename: str) -> Any:
        """Load a JSON fixture file; a missing file is an empty table."""
        filepath = self.data_dir / filename
        if not filepath.exists():
            return []
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataStoreError(f"Could not read {filepath}: {e}") from e

    def _ensure_businesses_loaded(self):
        if self._businesses is None:
            data = self._load_json("businesses.json")
            businesses = self._parse(Business, data)
            self._businesses = {b.owner_id: b for b in businesses}

    def _ensure_customers_loaded(self):
        if self._customers is None:
            data = self._load_json("customer_profiles.json")
            profiles = self._parse(CustomerProfile, data)
            self._customers = {c.user_id: c for c in profiles}

    def _ensure_users_loaded(self):
        if self._users is None:
            data = self._load_json("users.json")
            users = self._parse(UserAccount, data)
            self._users = {u.id: u for u in users}

    def _ensure_preferences_loaded(self):
        """Preferences are stored as {user_id: {...}}."""
        if self._preferences is None:
            data = self._load_json(self.PREFERENCES_FILE) or {}
            try:
                self._preferences = {
                    user_id: UserPreferences(**prefs) for user_id, prefs in data.items()
                }
            except (AttributeError, TypeError, ValidationError) as e:
                raise DataStoreError(f"Invalid preferences file: {e}") from e

    @staticmethod
    def _parse(model, rows: list[dict]) -> list:
        try:
            return [model(**row) for row in rows]
        except (TypeError, ValidationError) as e:
            raise DataStoreError(f"Invalid {model.__name__} fixture: {e}") from e

    # =========================================================================
    # Directory Operations
    # =========================================================================

    def find_business_by_owner(self, owner_id: str) -> Optional[Business]:
        """Get the business owned by a user, if any."""
        self._ensure_businesses_loaded()
        return self._businesses.get(owner_id)

    def find_customer_profile(self, user_id: str) -> Optional[CustomerProfile]:
        """Get the customer profile linked to a user, if any."""
        self._ensure_customers_loaded()
        return self._customers.get(user_id)

    def get_user(self, user_id: str) -> Optional[UserAccount]:
        """Get a user account by id."""
        self._ensure_users_loaded()
        return self._users.get(user_id)

    def add_business(self, business: Business) -> None:
        """Register a business (in-memory only)."""
        self._ensure_businesses_loaded()
        self._businesses[business.owner_id] = business

    def add_customer_profile(self, profile: CustomerProfile) -> None:
        """Register a customer profile (in-memory only)."""
        self._ensure_customers_loaded()
        self._customers[profile.user_id] = profile

    def add_user(self, user: UserAccount) -> None:
        """Register a user account (in-memory only)."""
        self._ensure_users_loaded()
        self._users[user.id] = user

    # =========================================================================
    # Preference Operations
    # =========================================================================

    def get_preferences(self, user_id: str) -> UserPreferences:
        """
        Get a user's preferences.

        Users without a stored record get the defaults.
        """
        self._ensure_preferences_loaded()
        return self._preferences.get(user_id) or UserPreferences()

    def save_preferences(self, user_id: str, preferences: UserPreferences) -> UserPreferences:
        """Store a user's preferences and persist them when possible."""
        self._ensure_preferences_loaded()
        self._preferences[user_id] = preferences
        self._persist_preferences()
        logger.info(f"Saved preferences for user {user_id}")
        return preferences

    def update_preference(self, user_id: str, key: str, value: Any) -> UserPreferences:
        """
        Change a single preference.

        Raises:
            KeyError: If the key is not a known preference
            ValidationError: If the value doesn't fit the preference
        """
        return self.update_preferences(user_id, {key: value})

    def update_preferences(self, user_id: str, changes: dict[str, Any]) -> UserPreferences:
        """
        Change several preferences at once.

        Every change is validated before anything is stored, so a bad key or
        value leaves the saved preferences untouched.

        Raises:
            KeyError: If any key is not a known preference
            ValidationError: If any value doesn't fit its preference
        """
        unknown = sorted(set(changes) - set(UserPreferences.model_fields))
        if unknown:
            raise KeyError(f"Unknown preference: {', '.join(unknown)}")
        current = self.get_preferences(user_id)
        updated = UserPreferences(**{**current.model_dump(), **changes})
        return self.save_preferences(user_id, updated)

    def clear_preferences(self, user_id: str) -> None:
        """Drop a user's stored preferences (reads fall back to defaults)."""
        self._ensure_preferences_loaded()
        if self._preferences.pop(user_id, None) is not None:
            self._persist_preferences()

    def _persist_preferences(self) -> None:
        if not self.data_dir.is_dir():
            return
        filepath = self.data_dir / self.PREFERENCES_FILE
        payload = {uid: prefs.model_dump() for uid, prefs in self._preferences.items()}
        try:
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise DataStoreError(f"Could not write {filepath}: {e}") from e
