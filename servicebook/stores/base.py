"""Booking Store interface.

The store owns persistence of properties, bookings, payments, coupons and
subscriptions. Business rules do NOT live in store implementations, only
reads, writes and the per-booking compare-and-set contract:

- ``update_booking`` and ``save_payment_decision`` write only if the stored
  booking still carries ``expected_version``; otherwise they raise
  ``ConcurrentModification``. A successful write bumps the version.
- Lookups that miss return None (or an empty list); they never raise
  ``NotFoundError`` themselves.
"""

from abc import ABC, abstractmethod
from enum import Enum

from servicebook.schemas.booking import Booking
from servicebook.schemas.coupon import Coupon
from servicebook.schemas.payment import Payment
from servicebook.schemas.property import (
    Department,
    OfferedService,
    Property,
    PropertyStatus,
    Specialist,
)
from servicebook.schemas.subscription import HostSubscription, SubscriptionPlan


class StoreBackend(str, Enum):
    """Available store implementations."""

    MEMORY = "memory"
    HTTP = "http"


class BookingStore(ABC):
    """Abstract base class for booking stores."""

    @property
    @abstractmethod
    def backend(self) -> StoreBackend:
        """Return the backend type."""

    # Properties

    @abstractmethod
    async def get_property(self, department: Department, property_id: str) -> Property | None:
        """Fetch one property by department and id."""

    @abstractmethod
    async def count_host_properties(self, host_id: str) -> int:
        """Number of properties the host currently owns, all departments."""

    @abstractmethod
    async def update_property_status(
        self,
        department: Department,
        property_id: str,
        status: PropertyStatus,
    ) -> Property:
        """Persist a property status toggle and return the updated property."""

    @abstractmethod
    async def list_specialists(self, property_id: str) -> list[Specialist]:
        """Specialists working at the property."""

    @abstractmethod
    async def list_services(self, property_id: str) -> list[OfferedService]:
        """Services offered by the property."""

    # Coupons

    @abstractmethod
    async def get_coupon(self, code: str) -> Coupon | None:
        """Exact, case-sensitive code lookup."""

    @abstractmethod
    async def list_coupons(self, user_id: str | None = None) -> list[Coupon]:
        """Coupons visible to ``user_id`` (all coupons when None)."""

    # Bookings

    @abstractmethod
    async def create_booking(self, booking: Booking) -> Booking:
        """Persist a new booking; returns it as stored."""

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Booking | None:
        """Fetch one booking."""

    @abstractmethod
    async def update_booking(self, booking: Booking, expected_version: int) -> Booking:
        """Compare-and-set write of a booking.

        Args:
            booking: New booking state
            expected_version: Version the caller read

        Returns:
            Booking: Stored booking with its version incremented

        Raises:
            ConcurrentModification: If the stored version differs
        """

    # Payments

    @abstractmethod
    async def get_payment(self, booking_id: str) -> Payment | None:
        """Latest payment submitted for the booking."""

    @abstractmethod
    async def save_payment(self, payment: Payment, expected_version: int) -> Payment:
        """Persist a newly submitted payment.

        Takes the booking slot through the same compare-and-set as
        ``update_booking``: the booking must still carry ``expected_version``
        and its version is bumped, so a write based on an older snapshot
        (e.g. a cash confirmation) fails with ``ConcurrentModification``.
        """

    @abstractmethod
    async def save_payment_decision(
        self,
        payment: Payment,
        booking: Booking,
        expected_version: int,
    ) -> tuple[Payment, Booking]:
        """Atomically store a verify/reject decision with the booking state.

        The booking is written under the same compare-and-set rule as
        ``update_booking``; the payment is written only if that succeeds.
        """

    # Subscriptions

    @abstractmethod
    async def get_host_subscription(self, host_id: str) -> HostSubscription | None:
        """Fetch the host's subscription record."""

    @abstractmethod
    async def save_host_subscription(self, subscription: HostSubscription) -> HostSubscription:
        """Create or replace the host's subscription record."""

    @abstractmethod
    async def get_plan(self, plan_id: str) -> SubscriptionPlan | None:
        """Fetch a subscription plan."""

    async def close(self) -> None:
        """Release any held resources."""
