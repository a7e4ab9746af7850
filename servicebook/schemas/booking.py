"""Booking-related Pydantic schemas."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import Field, field_validator

from servicebook.schemas.base import UtcDatetime, WireModel
from servicebook.schemas.property import CabCategory, Department


class BookingStatus(str, Enum):
    """Booking lifecycle status (wire values)."""

    PENDING = "Pending"
    PAYMENT_PENDING = "Payment Pending"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    CANCELLED_BY_CUSTOMER = "Cancelled by Customer"


# Department-specific booking fields, discriminated on ``department``


class HotelDetails(WireModel):
    """Stay with a check-in/check-out pair."""

    department: Literal["Hotel"] = "Hotel"
    check_in: date
    check_out: date
    guests: int = Field(default=1, ge=1, le=20)
    room_type: str | None = Field(None, max_length=50)

    @field_validator("check_out")
    @classmethod
    def validate_checkout(cls, v: date, info) -> date:
        check_in = info.data.get("check_in")
        if check_in and v <= check_in:
            raise ValueError("check_out must be after check_in")
        return v


class SalonDetails(WireModel):
    """Single appointment slot."""

    department: Literal["Salon"] = "Salon"
    appointment_at: UtcDatetime


class HospitalDetails(WireModel):
    """Consultation slot with an optional reason."""

    department: Literal["Hospital"] = "Hospital"
    appointment_at: UtcDatetime
    reason: str | None = Field(None, max_length=1000)


class CabDetails(WireModel):
    """Ride priced by category and distance."""

    department: Literal["Cab"] = "Cab"
    appointment_at: UtcDatetime
    pickup_location: str = Field(..., min_length=1, max_length=500)
    dropoff_location: str = Field(..., min_length=1, max_length=500)
    category: CabCategory = CabCategory.ECONOMY
    distance_km: Decimal = Field(..., gt=0)


BookingDetails = Annotated[
    Union[HotelDetails, SalonDetails, HospitalDetails, CabDetails],
    Field(discriminator="department"),
]


class BookingCreate(WireModel):
    """Schema for creating (or quoting) a booking."""

    property_id: str
    specialist_id: str | None = None
    service_id: str | None = None
    coupon_code: str | None = Field(None, max_length=50)
    details: BookingDetails

    @property
    def department(self) -> Department:
        return Department(self.details.department)


class BookingStatusUpdate(WireModel):
    """Schema for a status change request."""

    status: BookingStatus


class PriceBreakdown(WireModel):
    """Derived booking totals."""

    base_price: Decimal
    service_price: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    final_price: Decimal
    coupon_code: str | None = None
    currency: str = "INR"


class Booking(WireModel):
    """A reservation against a property."""

    id: str
    department: Department
    property_id: str
    host_id: str
    customer_id: str
    specialist_id: str | None = None
    service_id: str | None = None
    details: BookingDetails

    # Pricing
    base_price: Decimal
    service_price: Decimal = Decimal("0.00")
    discount_amount: Decimal = Decimal("0.00")
    coupon_code: str | None = None
    final_price: Decimal
    currency: str = "INR"

    # Status
    status: BookingStatus = BookingStatus.PENDING
    cancelled_by: str | None = None
    version: int = 0

    # Timestamps
    created_at: UtcDatetime
    confirmed_at: UtcDatetime | None = None
    cancelled_at: UtcDatetime | None = None
    completed_at: UtcDatetime | None = None
