"""
Session role resolution.

Decides once per session whether the user is acting as a business owner
(receives new orders), a customer (places orders), or neither.

Resolution order:
1. Unless the account metadata says "cliente", look for a business the user
   owns. Found -> Owner.
2. Look for the user's customer profile. Found -> Customer.
3. Otherwise Unknown.

A failed business lookup falls through to the customer lookup; a failed
customer lookup yields Unknown. Failures are logged, never raised.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from shared.models import Business, CustomerProfile, UserAccount, UserRoleHint

logger = logging.getLogger("role_resolver")


@dataclass(frozen=True)
class Owner:
    """Session belongs to the owner of a business."""
    business_id: str

    @property
    def channel_name(self) -> str:
        return f"orders-owner-{self.business_id}"

    @property
    def row_filter(self) -> str:
        return f"business_id=eq.{self.business_id}"


@dataclass(frozen=True)
class Customer:
    """Session belongs to a customer."""
    customer_id: str

    @property
    def channel_name(self) -> str:
        return f"orders-customer-{self.customer_id}"

    @property
    def row_filter(self) -> str:
        return f"customer_id=eq.{self.customer_id}"


@dataclass(frozen=True)
class Unknown:
    """No business and no customer profile: nothing to listen to."""


Role = Union[Owner, Customer, Unknown]


class Directory(Protocol):
    """The lookups role resolution needs (see shared.data_store.DataStore)."""

    def find_business_by_owner(self, owner_id: str) -> Optional[Business]: ...

    def find_customer_profile(self, user_id: str) -> Optional[CustomerProfile]: ...


class RoleResolver:
    """Single authoritative role lookup for a session."""

    def __init__(self, directory: Directory):
        self.directory = directory

    def resolve(self, user: UserAccount) -> Role:
        """Resolve the role for an authenticated user."""
        if user.role_hint != UserRoleHint.CUSTOMER.value:
            business = self._find_business(user.id)
            if business is not None:
                logger.info(f"User {user.id} owns business {business.id}")
                return Owner(business_id=business.id)

        try:
            profile = self.directory.find_customer_profile(user.id)
        except Exception:
            logger.exception(f"Customer lookup failed for user {user.id}")
            return Unknown()

        if profile is not None:
            logger.info(f"User {user.id} is customer {profile.id}")
            return Customer(customer_id=profile.id)

        logger.warning(f"No business or customer profile for user {user.id}")
        return Unknown()

    def _find_business(self, user_id: str) -> Optional[Business]:
        try:
            return self.directory.find_business_by_owner(user_id)
        except Exception:
            logger.exception(f"Business lookup failed for user {user_id}, assuming customer")
            return None
