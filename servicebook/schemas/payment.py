"""Payment-related Pydantic schemas."""

from decimal import Decimal
from enum import Enum

from pydantic import Field

from servicebook.schemas.base import UtcDatetime, WireModel


class PaymentMethod(str, Enum):
    """How the customer paid."""

    UPI = "UPI"
    NET_BANKING = "Net Banking"
    CARD = "Card"
    CASH = "Cash"


class PaymentStatus(str, Enum):
    """Payment verification status."""

    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class Payment(WireModel):
    """Payment evidence submitted for a booking."""

    id: str
    booking_id: str
    amount: Decimal
    method: PaymentMethod
    transaction_reference: str | None = None
    receipt_reference: str | None = None
    status: PaymentStatus = PaymentStatus.PENDING
    verified_by: str | None = None
    notes: str | None = None
    rejection_reason: str | None = None
    submitted_at: UtcDatetime
    decided_at: UtcDatetime | None = None


class PaymentSubmit(WireModel):
    """Schema for a customer submitting payment evidence."""

    method: PaymentMethod = PaymentMethod.UPI
    transaction_reference: str | None = Field(None, max_length=100)
    receipt_reference: str | None = Field(None, max_length=500)


class PaymentVerify(WireModel):
    """Schema for a host approving a payment."""

    notes: str | None = Field(None, max_length=1000)


class PaymentReject(WireModel):
    """Schema for a host rejecting a payment."""

    reason: str = Field(default="", max_length=1000)


class PaymentSubmissionResponse(WireModel):
    """Result of a payment submission; Cash yields no record."""

    payment: Payment | None = None
    message: str
