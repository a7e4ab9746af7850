"""
Pytest configuration and shared fixtures for the booking engine tests.
"""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from servicebook.core.permissions import ActorContext, UserRole
from servicebook.schemas.booking import Booking, BookingStatus, HotelDetails, SalonDetails
from servicebook.schemas.coupon import Coupon, CouponStatus, DiscountType
from servicebook.schemas.payment import Payment, PaymentMethod, PaymentStatus
from servicebook.schemas.property import (
    CabRateTable,
    Department,
    OfferedService,
    Property,
    PropertyStatus,
    Specialist,
)
from servicebook.schemas.subscription import (
    BillingStatus,
    HostSubscription,
    SubscriptionPlan,
    SubscriptionStatus,
)
from servicebook.stores.memory import InMemoryBookingStore

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)

CUSTOMER_ID = "cust-1"
HOST_ID = "host-1"


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation time."""
    return NOW


# ==================== ACTORS ====================


@pytest.fixture
def customer() -> ActorContext:
    return ActorContext(actor_id=CUSTOMER_ID, role=UserRole.CUSTOMER)


@pytest.fixture
def other_customer() -> ActorContext:
    return ActorContext(actor_id="cust-2", role=UserRole.CUSTOMER)


@pytest.fixture
def host() -> ActorContext:
    return ActorContext(actor_id=HOST_ID, role=UserRole.HOST)


@pytest.fixture
def other_host() -> ActorContext:
    return ActorContext(actor_id="host-2", role=UserRole.HOST)


@pytest.fixture
def admin() -> ActorContext:
    return ActorContext(actor_id="admin-1", role=UserRole.ADMIN)


# ==================== CATALOGUE ====================


@pytest.fixture
def hotel() -> Property:
    return Property(
        id="hotel-1",
        department=Department.HOTEL,
        host_id=HOST_ID,
        name="Lakeview Inn",
        base_price=Decimal("1000"),
    )


@pytest.fixture
def salon() -> Property:
    return Property(
        id="salon-1",
        department=Department.SALON,
        host_id=HOST_ID,
        name="Style Studio",
        base_price=Decimal("300"),
    )


@pytest.fixture
def cab() -> Property:
    return Property(
        id="cab-1",
        department=Department.CAB,
        host_id=HOST_ID,
        name="City Rides",
        base_price=Decimal("9"),
        cab_rates=CabRateTable(economy=Decimal("12"), premium=Decimal("18")),
    )


@pytest.fixture
def hospital() -> Property:
    return Property(
        id="hospital-1",
        department=Department.HOSPITAL,
        host_id=HOST_ID,
        name="Green Clinic",
        base_price=Decimal("500"),
        status=PropertyStatus.INACTIVE,
    )


@pytest.fixture
def hotel_details() -> HotelDetails:
    return HotelDetails(check_in=date(2025, 6, 10), check_out=date(2025, 6, 12), guests=2)


@pytest.fixture
def salon_details() -> SalonDetails:
    return SalonDetails(appointment_at=datetime(2025, 6, 5, 10, 30, tzinfo=UTC))


# ==================== COUPONS & PLANS ====================


@pytest.fixture
def coupons() -> list[Coupon]:
    return [
        Coupon(code="SAVE20", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("20")),
        Coupon(code="FLAT150", discount_type=DiscountType.FLAT, discount_value=Decimal("150")),
        Coupon(
            code="OLD20",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("20"),
            valid_to=NOW - timedelta(days=1),
        ),
        Coupon(
            code="PAUSED",
            discount_type=DiscountType.FLAT,
            discount_value=Decimal("50"),
            status=CouponStatus.INACTIVE,
        ),
        Coupon(
            code="VIP",
            discount_type=DiscountType.FLAT,
            discount_value=Decimal("100"),
            target_user_ids=["cust-2"],
        ),
        Coupon(
            code="SALONONLY",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
            property_id="salon-1",
            property_department=Department.SALON,
        ),
    ]


@pytest.fixture
def basic_plan() -> SubscriptionPlan:
    return SubscriptionPlan(
        id="plan-basic",
        name="Basic",
        amount=Decimal("999"),
        validity_days=30,
        max_properties=3,
    )


@pytest.fixture
def trial_subscription(basic_plan) -> HostSubscription:
    return HostSubscription(
        host_id=HOST_ID,
        plan_id=basic_plan.id,
        plan_name=basic_plan.name,
        status=SubscriptionStatus.ACTIVE,
        is_trial_active=True,
        trial_start_date=NOW - timedelta(days=5),
        trial_end_date=NOW + timedelta(days=10),
        payment_status=BillingStatus.PENDING,
    )


# ==================== BOOKINGS & PAYMENTS ====================


@pytest.fixture
def make_booking(hotel_details):
    """Factory for booking snapshots used by the pure state machine tests."""

    def _make(**overrides) -> Booking:
        data = dict(
            id="booking-1",
            department=Department.HOTEL,
            property_id="hotel-1",
            host_id=HOST_ID,
            customer_id=CUSTOMER_ID,
            details=hotel_details,
            base_price=Decimal("1000.00"),
            final_price=Decimal("1000.00"),
            status=BookingStatus.PENDING,
            created_at=NOW - timedelta(hours=1),
        )
        data.update(overrides)
        return Booking(**data)

    return _make


@pytest.fixture
def make_payment():
    def _make(**overrides) -> Payment:
        data = dict(
            id="payment-1",
            booking_id="booking-1",
            amount=Decimal("1000.00"),
            method=PaymentMethod.UPI,
            transaction_reference="UPI123456",
            receipt_reference="receipts/upi123456.png",
            status=PaymentStatus.PENDING,
            submitted_at=NOW - timedelta(minutes=30),
        )
        data.update(overrides)
        return Payment(**data)

    return _make


# ==================== STORE ====================


@pytest.fixture
def store(hotel, salon, cab, hospital, coupons, basic_plan, trial_subscription) -> InMemoryBookingStore:
    """In-memory store seeded with one host's catalogue."""
    store = InMemoryBookingStore()
    for prop in (hotel, salon, cab, hospital):
        store.add_property(prop)
    store.add_specialist(Specialist(id="spec-1", property_id="salon-1", name="Asha"))
    store.add_specialist(Specialist(id="spec-2", property_id="salon-1", name="Ravi"))
    store.add_service(
        OfferedService(id="svc-1", property_id="salon-1", name="Haircut", price=Decimal("200"))
    )
    store.add_service(
        OfferedService(id="svc-2", property_id="salon-1", name="Facial", price=Decimal("450"))
    )
    for coupon in coupons:
        store.add_coupon(coupon)
    store.add_plan(basic_plan)
    store.add_plan(
        SubscriptionPlan(id="plan-pro", name="Pro", amount=Decimal("2499"), validity_days=90)
    )
    store.add_subscription(trial_subscription)
    return store
