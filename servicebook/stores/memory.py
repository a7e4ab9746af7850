"""In-memory Booking Store.

Used by default in development and by the test suite. Each booking gets
its own ``asyncio.Lock`` so compare-and-set writes for one booking are
serialized while different bookings proceed independently.
"""

import asyncio
import logging
from collections import defaultdict

from servicebook.core.exceptions import ConcurrentModification, InvalidTransition, NotFoundError
from servicebook.schemas.booking import Booking
from servicebook.schemas.coupon import Coupon
from servicebook.schemas.payment import Payment, PaymentStatus
from servicebook.schemas.property import (
    Department,
    OfferedService,
    Property,
    PropertyStatus,
    Specialist,
)
from servicebook.schemas.subscription import HostSubscription, SubscriptionPlan
from servicebook.stores.base import BookingStore, StoreBackend

logger = logging.getLogger(__name__)


class InMemoryBookingStore(BookingStore):
    """Booking store kept in process memory.

    Records are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._properties: dict[tuple[Department, str], Property] = {}
        self._specialists: dict[str, list[Specialist]] = defaultdict(list)
        self._services: dict[str, list[OfferedService]] = defaultdict(list)
        self._coupons: dict[str, Coupon] = {}
        self._bookings: dict[str, Booking] = {}
        self._payments: dict[str, list[Payment]] = defaultdict(list)
        self._subscriptions: dict[str, HostSubscription] = {}
        self._plans: dict[str, SubscriptionPlan] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def backend(self) -> StoreBackend:
        return StoreBackend.MEMORY

    def _lock_for(self, booking_id: str) -> asyncio.Lock:
        return self._locks.setdefault(booking_id, asyncio.Lock())

    # Seeding

    def add_property(self, prop: Property) -> Property:
        self._properties[(prop.department, prop.id)] = prop.model_copy(deep=True)
        return prop

    def add_specialist(self, specialist: Specialist) -> Specialist:
        self._specialists[specialist.property_id].append(specialist)
        return specialist

    def add_service(self, service: OfferedService) -> OfferedService:
        self._services[service.property_id].append(service)
        return service

    def add_coupon(self, coupon: Coupon) -> Coupon:
        self._coupons[coupon.code] = coupon.model_copy(deep=True)
        return coupon

    def add_plan(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        self._plans[plan.id] = plan
        return plan

    def add_subscription(self, subscription: HostSubscription) -> HostSubscription:
        self._subscriptions[subscription.host_id] = subscription.model_copy(deep=True)
        return subscription

    # Properties

    async def get_property(self, department: Department, property_id: str) -> Property | None:
        prop = self._properties.get((Department(department), property_id))
        return prop.model_copy(deep=True) if prop else None

    async def count_host_properties(self, host_id: str) -> int:
        return sum(1 for prop in self._properties.values() if prop.host_id == host_id)

    async def update_property_status(
        self,
        department: Department,
        property_id: str,
        status: PropertyStatus,
    ) -> Property:
        key = (Department(department), property_id)
        prop = self._properties.get(key)
        if prop is None:
            raise NotFoundError("Property", property_id)
        updated = prop.model_copy(update={"status": PropertyStatus(status)})
        self._properties[key] = updated
        return updated.model_copy(deep=True)

    async def list_specialists(self, property_id: str) -> list[Specialist]:
        return list(self._specialists.get(property_id, []))

    async def list_services(self, property_id: str) -> list[OfferedService]:
        return list(self._services.get(property_id, []))

    # Coupons

    async def get_coupon(self, code: str) -> Coupon | None:
        coupon = self._coupons.get(code)
        return coupon.model_copy(deep=True) if coupon else None

    async def list_coupons(self, user_id: str | None = None) -> list[Coupon]:
        coupons = list(self._coupons.values())
        if user_id is not None:
            coupons = [c for c in coupons if not c.target_user_ids or user_id in c.target_user_ids]
        return [c.model_copy(deep=True) for c in coupons]

    # Bookings

    async def create_booking(self, booking: Booking) -> Booking:
        if booking.id in self._bookings:
            raise InvalidTransition(f"Booking '{booking.id}' already exists")
        self._bookings[booking.id] = booking.model_copy(deep=True)
        return booking.model_copy(deep=True)

    async def get_booking(self, booking_id: str) -> Booking | None:
        booking = self._bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    def _compare_and_set(self, booking: Booking, expected_version: int) -> Booking:
        current = self._bookings.get(booking.id)
        if current is None:
            raise NotFoundError("Booking", booking.id)
        if current.version != expected_version:
            logger.warning(
                f"Stale write for booking {booking.id}: expected v{expected_version}, "
                f"stored v{current.version}"
            )
            raise ConcurrentModification("Booking", booking.id)
        stored = booking.model_copy(update={"version": expected_version + 1}, deep=True)
        self._bookings[booking.id] = stored
        return stored

    async def update_booking(self, booking: Booking, expected_version: int) -> Booking:
        async with self._lock_for(booking.id):
            return self._compare_and_set(booking, expected_version).model_copy(deep=True)

    # Payments

    async def get_payment(self, booking_id: str) -> Payment | None:
        payments = self._payments.get(booking_id)
        return payments[-1].model_copy(deep=True) if payments else None

    async def save_payment(self, payment: Payment, expected_version: int) -> Payment:
        async with self._lock_for(payment.booking_id):
            booking = self._bookings.get(payment.booking_id)
            if booking is None:
                raise NotFoundError("Booking", payment.booking_id)
            history = self._payments[payment.booking_id]
            if history and history[-1].status in (PaymentStatus.PENDING, PaymentStatus.VERIFIED):
                raise InvalidTransition(
                    f"Booking '{payment.booking_id}' already has a "
                    f"{history[-1].status.value.lower()} payment"
                )
            self._compare_and_set(booking, expected_version)
            history.append(payment.model_copy(deep=True))
            return payment.model_copy(deep=True)

    async def save_payment_decision(
        self,
        payment: Payment,
        booking: Booking,
        expected_version: int,
    ) -> tuple[Payment, Booking]:
        async with self._lock_for(booking.id):
            history = self._payments.get(payment.booking_id) or []
            index = next((i for i, p in enumerate(history) if p.id == payment.id), None)
            if index is None:
                raise NotFoundError("Payment", payment.id)
            if history[index].status != PaymentStatus.PENDING:
                raise ConcurrentModification("Payment", payment.id)
            stored_booking = self._compare_and_set(booking, expected_version)
            history[index] = payment.model_copy(deep=True)
            return payment.model_copy(deep=True), stored_booking.model_copy(deep=True)

    # Subscriptions

    async def get_host_subscription(self, host_id: str) -> HostSubscription | None:
        subscription = self._subscriptions.get(host_id)
        return subscription.model_copy(deep=True) if subscription else None

    async def save_host_subscription(self, subscription: HostSubscription) -> HostSubscription:
        self._subscriptions[subscription.host_id] = subscription.model_copy(deep=True)
        return subscription.model_copy(deep=True)

    async def get_plan(self, plan_id: str) -> SubscriptionPlan | None:
        return self._plans.get(plan_id)
