"""Pydantic schemas for the engine and API."""

from servicebook.schemas.booking import (
    Booking,
    BookingCreate,
    BookingDetails,
    BookingStatus,
    BookingStatusUpdate,
    CabDetails,
    HospitalDetails,
    HotelDetails,
    PriceBreakdown,
    SalonDetails,
)
from servicebook.schemas.coupon import (
    Coupon,
    CouponRejectionReason,
    CouponStatus,
    CouponValidateRequest,
    CouponValidation,
    DiscountType,
)
from servicebook.schemas.payment import (
    Payment,
    PaymentMethod,
    PaymentReject,
    PaymentStatus,
    PaymentSubmissionResponse,
    PaymentSubmit,
    PaymentVerify,
)
from servicebook.schemas.property import (
    CabCategory,
    CabRateTable,
    Department,
    OfferedService,
    Property,
    PropertyCreateAuthorization,
    PropertyStatus,
    PropertyStatusUpdate,
    Specialist,
)
from servicebook.schemas.subscription import (
    AccessStatusResponse,
    BillingStatus,
    HostSubscription,
    PlanSelection,
    SubscriptionPaymentSubmit,
    SubscriptionPlan,
    SubscriptionStatus,
)

__all__ = [
    # Property
    "Department",
    "Property",
    "PropertyStatus",
    "PropertyStatusUpdate",
    "PropertyCreateAuthorization",
    "CabCategory",
    "CabRateTable",
    "OfferedService",
    "Specialist",
    # Booking
    "Booking",
    "BookingCreate",
    "BookingDetails",
    "BookingStatus",
    "BookingStatusUpdate",
    "HotelDetails",
    "SalonDetails",
    "HospitalDetails",
    "CabDetails",
    "PriceBreakdown",
    # Payment
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentSubmit",
    "PaymentVerify",
    "PaymentReject",
    "PaymentSubmissionResponse",
    # Coupon
    "Coupon",
    "CouponStatus",
    "CouponRejectionReason",
    "CouponValidateRequest",
    "CouponValidation",
    "DiscountType",
    # Subscription
    "SubscriptionPlan",
    "HostSubscription",
    "SubscriptionStatus",
    "BillingStatus",
    "AccessStatusResponse",
    "PlanSelection",
    "SubscriptionPaymentSubmit",
]
