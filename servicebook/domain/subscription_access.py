"""Host subscription access policy.

Access is decided at read time, first matching rule wins:

1. No subscription record            -> no access, select a plan
2. Trial running                     -> access
3. Billing payment not yet submitted -> no access, submit payment
4. Billing payment submitted         -> no access, await admin approval
5. Verified, active and not past end -> access
6. Anything else                     -> no access, subscribe again

The billing payment moves Pending/Rejected/Verified -> Submitted (host)
and Submitted -> Verified | Rejected (admin).
"""

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from servicebook.core.exceptions import (
    InvalidTransition,
    PropertyLimitReached,
    SubscriptionRequired,
    ValidationError,
)
from servicebook.core.permissions import (
    ActorContext,
    Permission,
    require_host_ownership,
    require_permission,
)
from servicebook.schemas.subscription import (
    BillingStatus,
    HostSubscription,
    SubscriptionPlan,
    SubscriptionStatus,
)

DEFAULT_TRIAL_DAYS = 15


class AccessReason(str, Enum):
    NO_SUBSCRIPTION = "no_subscription"
    TRIAL_ACTIVE = "trial_active"
    TRIAL_EXPIRED_PAYMENT_PENDING = "trial_expired_payment_pending"
    TRIAL_EXPIRED_AWAITING_APPROVAL = "trial_expired_awaiting_approval"
    SUBSCRIPTION_ACTIVE = "subscription_active"
    TRIAL_EXPIRED = "trial_expired"
    SUBSCRIPTION_EXPIRED = "subscription_expired"


class NextAction(str, Enum):
    NONE = "none"
    SELECT_PLAN = "select_plan"
    SUBMIT_PAYMENT = "submit_payment"
    AWAIT_APPROVAL = "await_approval"
    SUBSCRIBE = "subscribe"


ACCESS_MESSAGES: dict[AccessReason, str] = {
    AccessReason.NO_SUBSCRIPTION: "Please select a subscription plan to start using the platform.",
    AccessReason.TRIAL_ACTIVE: "Your free trial is active.",
    AccessReason.TRIAL_EXPIRED_PAYMENT_PENDING: (
        "Your free trial has ended. Please complete the subscription payment to continue."
    ),
    AccessReason.TRIAL_EXPIRED_AWAITING_APPROVAL: (
        "Your subscription payment has been submitted and is awaiting admin approval."
    ),
    AccessReason.SUBSCRIPTION_ACTIVE: "Your subscription is active.",
    AccessReason.TRIAL_EXPIRED: "Your free trial has expired. Please subscribe to continue.",
    AccessReason.SUBSCRIPTION_EXPIRED: "Your subscription has expired. Please renew to continue.",
}

SUBSCRIPTION_PAYMENT_TRANSITIONS: dict[BillingStatus, set[BillingStatus]] = {
    BillingStatus.PENDING: {BillingStatus.SUBMITTED},
    BillingStatus.REJECTED: {BillingStatus.SUBMITTED},
    BillingStatus.VERIFIED: {BillingStatus.SUBMITTED},
    BillingStatus.SUBMITTED: {BillingStatus.VERIFIED, BillingStatus.REJECTED},
}


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of evaluating a host's subscription."""

    has_access: bool
    reason: AccessReason
    message: str
    next_action: NextAction
    trial_end_date: datetime | None = None


def _decide(
    has_access: bool,
    reason: AccessReason,
    next_action: NextAction,
    trial_end_date: datetime | None,
) -> AccessDecision:
    return AccessDecision(
        has_access=has_access,
        reason=reason,
        message=ACCESS_MESSAGES[reason],
        next_action=next_action,
        trial_end_date=trial_end_date,
    )


def is_trial_running(subscription: HostSubscription, now: datetime) -> bool:
    return bool(
        subscription.is_trial_active
        and subscription.trial_end_date is not None
        and now < subscription.trial_end_date
    )


def is_paid_period_running(subscription: HostSubscription, now: datetime) -> bool:
    """Verified and Active, with no end date or an end date not yet passed."""
    return (
        subscription.payment_status == BillingStatus.VERIFIED
        and subscription.status == SubscriptionStatus.ACTIVE
        and (subscription.end_date is None or now <= subscription.end_date)
    )


def evaluate_access(subscription: HostSubscription | None, now: datetime | None = None) -> AccessDecision:
    """Decide whether the host may use the platform right now.

    Args:
        subscription: Host's subscription record, or None if never created
        now: Evaluation time

    Returns:
        AccessDecision: access flag, reason code, message and next action
    """
    now = now or datetime.now(UTC)
    if subscription is None:
        return _decide(False, AccessReason.NO_SUBSCRIPTION, NextAction.SELECT_PLAN, None)

    trial_end = subscription.trial_end_date
    if is_trial_running(subscription, now):
        return _decide(True, AccessReason.TRIAL_ACTIVE, NextAction.NONE, trial_end)
    if subscription.payment_status == BillingStatus.PENDING:
        return _decide(
            False, AccessReason.TRIAL_EXPIRED_PAYMENT_PENDING, NextAction.SUBMIT_PAYMENT, trial_end
        )
    if subscription.payment_status == BillingStatus.SUBMITTED:
        return _decide(
            False, AccessReason.TRIAL_EXPIRED_AWAITING_APPROVAL, NextAction.AWAIT_APPROVAL, trial_end
        )
    if is_paid_period_running(subscription, now):
        return _decide(True, AccessReason.SUBSCRIPTION_ACTIVE, NextAction.NONE, trial_end)

    had_trial = subscription.trial_start_date is not None or trial_end is not None
    reason = AccessReason.TRIAL_EXPIRED if had_trial else AccessReason.SUBSCRIPTION_EXPIRED
    return _decide(False, reason, NextAction.SUBSCRIBE, trial_end)


def effective_status(subscription: HostSubscription | None, now: datetime | None = None) -> SubscriptionStatus:
    """Stored status corrected for time: an Active record past its end reads as Expired."""
    now = now or datetime.now(UTC)
    if subscription is None:
        return SubscriptionStatus.NONE
    if subscription.status != SubscriptionStatus.ACTIVE:
        return subscription.status
    if is_trial_running(subscription, now) or is_paid_period_running(subscription, now):
        return SubscriptionStatus.ACTIVE
    if subscription.end_date is not None and now > subscription.end_date:
        return SubscriptionStatus.EXPIRED
    if subscription.is_trial_active and not is_trial_running(subscription, now):
        return SubscriptionStatus.EXPIRED
    return subscription.status


def trial_days_remaining(subscription: HostSubscription | None, now: datetime | None = None) -> int:
    """Whole days left in the trial, rounded up; 0 once it has ended."""
    now = now or datetime.now(UTC)
    if subscription is None or not is_trial_running(subscription, now):
        return 0
    remaining = subscription.trial_end_date - now
    return math.ceil(remaining.total_seconds() / timedelta(days=1).total_seconds())


def assert_host_access(decision: AccessDecision) -> None:
    """Raise SubscriptionRequired unless ``decision`` grants access."""
    if not decision.has_access:
        raise SubscriptionRequired(decision.reason.value, decision.message)


def assert_property_limit(plan: SubscriptionPlan | None, current_count: int) -> None:
    """Raise PropertyLimitReached if the plan has no room for another property.

    A missing plan or a plan without ``max_properties`` is unlimited.
    """
    if plan is None or plan.max_properties is None:
        return
    if current_count >= plan.max_properties:
        raise PropertyLimitReached(plan.max_properties)


def assert_subscription_payment_transition(current: BillingStatus, target: BillingStatus) -> None:
    current, target = BillingStatus(current), BillingStatus(target)
    allowed = SUBSCRIPTION_PAYMENT_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidTransition(
            f"Invalid subscription payment transition: {current.value} → {target.value}"
        )


def start_trial(
    host_id: str,
    plan: SubscriptionPlan,
    now: datetime | None = None,
    trial_days: int = DEFAULT_TRIAL_DAYS,
) -> HostSubscription:
    """First plan selection: start the free trial on ``plan``."""
    now = now or datetime.now(UTC)
    return HostSubscription(
        host_id=host_id,
        plan_id=plan.id,
        plan_name=plan.name,
        status=SubscriptionStatus.ACTIVE,
        is_trial_active=True,
        trial_start_date=now,
        trial_end_date=now + timedelta(days=trial_days),
        payment_status=BillingStatus.PENDING,
    )


def select_plan(
    subscription: HostSubscription | None,
    plan: SubscriptionPlan,
    actor: ActorContext,
    now: datetime | None = None,
    trial_days: int = DEFAULT_TRIAL_DAYS,
) -> HostSubscription:
    """Host picks a plan.

    Without a subscription this starts the trial. Afterwards the choice
    only marks the plan to be paid for; the trial is never restarted.
    """
    require_permission(actor, Permission.MANAGE_SUBSCRIPTION)
    host_id = subscription.host_id if subscription else actor.actor_id
    require_host_ownership(actor, host_id, "subscription")
    if plan.status != "Active":
        raise ValidationError(f"Plan '{plan.name}' is not available")

    if subscription is None:
        return start_trial(host_id, plan, now, trial_days)
    return subscription.model_copy(update={"pending_plan_id": plan.id})


def submit_subscription_payment(
    subscription: HostSubscription,
    plan: SubscriptionPlan,
    transaction_reference: str,
    actor: ActorContext,
    now: datetime | None = None,
    receipt_reference: str | None = None,
) -> HostSubscription:
    """Host submits billing evidence for ``plan``; awaits admin review.

    Renewal opens once the paid period has ended. Submitting earlier would
    move a verified host to Submitted and lock them out until review.
    """
    require_permission(actor, Permission.MANAGE_SUBSCRIPTION)
    require_host_ownership(actor, subscription.host_id, "subscription")
    if not transaction_reference or not transaction_reference.strip():
        raise ValidationError("Please enter transaction ID")
    assert_subscription_payment_transition(subscription.payment_status, BillingStatus.SUBMITTED)
    if is_paid_period_running(subscription, now or datetime.now(UTC)):
        until = f" until {subscription.end_date:%Y-%m-%d}" if subscription.end_date else ""
        raise InvalidTransition(f"Subscription is already paid{until}; renew after it ends")

    return subscription.model_copy(
        update={
            "payment_status": BillingStatus.SUBMITTED,
            "pending_plan_id": plan.id,
            "transaction_reference": transaction_reference.strip(),
            "receipt_reference": receipt_reference,
            "reviewed_by": None,
        }
    )


def approve_subscription_payment(
    subscription: HostSubscription,
    plan: SubscriptionPlan,
    actor: ActorContext,
    now: datetime | None = None,
) -> HostSubscription:
    """Admin approval: the submitted plan becomes the active paid period."""
    require_permission(actor, Permission.REVIEW_SUBSCRIPTION_PAYMENT)
    assert_subscription_payment_transition(subscription.payment_status, BillingStatus.VERIFIED)
    if subscription.pending_plan_id and subscription.pending_plan_id != plan.id:
        raise ValidationError(
            f"Payment was submitted for plan '{subscription.pending_plan_id}', not '{plan.id}'"
        )

    now = now or datetime.now(UTC)
    return subscription.model_copy(
        update={
            "plan_id": plan.id,
            "plan_name": plan.name,
            "status": SubscriptionStatus.ACTIVE,
            "payment_status": BillingStatus.VERIFIED,
            "is_trial_active": False,
            "start_date": now,
            "end_date": now + timedelta(days=plan.validity_days),
            "pending_plan_id": None,
            "reviewed_by": actor.actor_id,
        }
    )


def reject_subscription_payment(
    subscription: HostSubscription,
    actor: ActorContext,
) -> HostSubscription:
    """Admin rejection: the host may submit again."""
    require_permission(actor, Permission.REVIEW_SUBSCRIPTION_PAYMENT)
    assert_subscription_payment_transition(subscription.payment_status, BillingStatus.REJECTED)
    return subscription.model_copy(
        update={
            "payment_status": BillingStatus.REJECTED,
            "pending_plan_id": None,
            "reviewed_by": actor.actor_id,
        }
    )
