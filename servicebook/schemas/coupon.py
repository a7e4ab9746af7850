"""Coupon-related Pydantic schemas."""

from datetime import UTC, date, datetime, time
from decimal import Decimal
from enum import Enum

from pydantic import Field, field_validator, model_validator

from servicebook.schemas.base import UtcDatetime, WireModel
from servicebook.schemas.property import Department


class DiscountType(str, Enum):
    """How a coupon's value is applied."""

    PERCENTAGE = "Percentage"
    FLAT = "Flat"


class CouponStatus(str, Enum):
    """Coupon availability toggle."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class CouponRejectionReason(str, Enum):
    """Why a coupon could not be applied."""

    NOT_FOUND = "NotFound"
    INACTIVE = "Inactive"
    EXPIRED = "Expired"
    NOT_APPLICABLE_TO_USER = "NotApplicableToUser"
    NOT_APPLICABLE_TO_PROPERTY = "NotApplicableToProperty"


class Coupon(WireModel):
    """Discount code, optionally scoped to users and/or one property."""

    id: str | None = None
    code: str = Field(..., min_length=1, max_length=50)
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(..., ge=0)
    valid_from: UtcDatetime | None = None
    valid_to: UtcDatetime | None = None
    target_user_ids: list[str] = Field(default_factory=list)
    property_id: str | None = None
    property_department: Department | None = None
    status: CouponStatus = CouponStatus.ACTIVE

    @field_validator("valid_from", "valid_to", mode="before")
    @classmethod
    def expand_calendar_day(cls, v, info):
        """Date-only bounds cover the whole day."""
        if isinstance(v, str) and len(v) == 10:
            v = date.fromisoformat(v)
        if isinstance(v, date) and not isinstance(v, datetime):
            bound = time.max if info.field_name == "valid_to" else time.min
            return datetime.combine(v, bound, tzinfo=UTC)
        return v

    @model_validator(mode="after")
    def check_value_and_window(self) -> "Coupon":
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        if self.valid_from and self.valid_to and self.valid_to < self.valid_from:
            raise ValueError("valid_to must not be before valid_from")
        return self


class CouponValidateRequest(WireModel):
    """Schema for checking a code before booking."""

    code: str = Field(..., min_length=1, max_length=50)
    user_id: str | None = None
    property_id: str | None = None
    department: Department | None = None
    amount: Decimal = Field(default=Decimal("0"), ge=0)


class CouponValidation(WireModel):
    """Outcome of coupon validation."""

    valid: bool
    code: str
    reason: CouponRejectionReason | None = None
    message: str
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = None
    discount_amount: Decimal = Decimal("0.00")
