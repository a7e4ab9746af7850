"""Subscription-related Pydantic schemas."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from servicebook.schemas.base import UtcDatetime, WireModel


class SubscriptionStatus(str, Enum):
    """Host subscription status."""

    NONE = "None"
    ACTIVE = "Active"
    PENDING = "Pending"
    EXPIRED = "Expired"


class BillingStatus(str, Enum):
    """Status of the subscription's own billing payment."""

    PENDING = "Pending"
    SUBMITTED = "Submitted"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class SubscriptionPlan(WireModel):
    """A purchasable host plan."""

    id: str
    name: str
    amount: Decimal = Field(..., ge=0)
    validity_days: int = Field(..., gt=0)
    max_properties: int | None = Field(None, ge=0)
    status: str = "Active"


class HostSubscription(BaseModel):
    """Subscription record for one host.

    Field names are snake_case on the wire as well.
    """

    model_config = ConfigDict(from_attributes=True)

    host_id: str
    plan_id: str | None = None
    plan_name: str | None = None
    status: SubscriptionStatus = SubscriptionStatus.NONE
    is_trial_active: bool = False
    trial_start_date: UtcDatetime | None = None
    trial_end_date: UtcDatetime | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    payment_status: BillingStatus = BillingStatus.PENDING
    pending_plan_id: str | None = None
    transaction_reference: str | None = None
    receipt_reference: str | None = None
    reviewed_by: str | None = None


class AccessStatusResponse(WireModel):
    """What the subscription gate renders."""

    has_access: bool
    reason: str
    message: str
    next_action: str
    trial_end_date: UtcDatetime | None = None
    trial_days_remaining: int = 0


class PlanSelection(WireModel):
    """Schema for a host picking a plan."""

    plan_id: str


class SubscriptionPaymentSubmit(WireModel):
    """Schema for a host submitting subscription billing evidence."""

    plan_id: str
    transaction_reference: str = Field(..., min_length=1, max_length=100)
    receipt_reference: str | None = Field(None, max_length=500)
