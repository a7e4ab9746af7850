"""Payment verification state machine.

Pending -> Verified | Rejected, both terminal. Verifying emits a
``PaymentVerified`` event which the booking machine turns into a
confirmation. Cash is settled on the booking directly and never produces
a payment record.
"""

from datetime import UTC, datetime
from uuid import uuid4

from servicebook.core.exceptions import InvalidTransition, ValidationError
from servicebook.core.permissions import (
    ActorContext,
    Permission,
    require_customer_ownership,
    require_host_ownership,
    require_permission,
)
from servicebook.domain.booking_state import CONFIRMABLE, PaymentVerified, stamp_transition
from servicebook.schemas.booking import Booking, BookingStatus
from servicebook.schemas.payment import Payment, PaymentMethod, PaymentStatus

PAYMENT_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.PENDING: {PaymentStatus.VERIFIED, PaymentStatus.REJECTED},
    PaymentStatus.VERIFIED: set(),
    PaymentStatus.REJECTED: set(),
}

# Payment states that occupy a booking's single payment slot
OPEN_PAYMENT_STATUSES: frozenset[PaymentStatus] = frozenset(
    {PaymentStatus.PENDING, PaymentStatus.VERIFIED}
)

CASH_CONFIRMATION_BLOCKED: frozenset[BookingStatus] = frozenset(
    {
        BookingStatus.CONFIRMED,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.CANCELLED_BY_CUSTOMER,
    }
)


def assert_payment_transition(current: PaymentStatus, target: PaymentStatus) -> None:
    current, target = PaymentStatus(current), PaymentStatus(target)
    allowed = PAYMENT_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidTransition(
            f"Invalid payment transition: {current.value} → {target.value}"
        )


def occupies_slot(payment: Payment | None) -> bool:
    """True when ``payment`` blocks a new submission or a cash confirmation."""
    return payment is not None and payment.status in OPEN_PAYMENT_STATUSES


def can_confirm_by_cash(booking: Booking, payment: Payment | None) -> bool:
    """Whether the "Paid by Cash" action applies to this booking."""
    return booking.status not in CASH_CONFIRMATION_BLOCKED and not occupies_slot(payment)


def build_payment(
    booking: Booking,
    method: PaymentMethod,
    transaction_reference: str | None,
    receipt_reference: str | None,
    actor: ActorContext,
    now: datetime | None = None,
    existing: Payment | None = None,
) -> Payment:
    """Create a Pending payment record for the customer's booking.

    Args:
        booking: Booking being paid for
        method: Non-cash payment method
        transaction_reference: Transaction id from the customer's bank/app
        receipt_reference: Reference to the uploaded receipt
        actor: Customer submitting the payment
        now: Submission time
        existing: Current payment for the booking, if any

    Returns:
        Payment: New record in Pending

    Raises:
        Forbidden: Actor is not the booking's customer
        InvalidTransition: Booking not payable or a payment is already open
        ValidationError: Cash method or missing references
    """
    require_permission(actor, Permission.SUBMIT_PAYMENT)
    require_customer_ownership(actor, booking.customer_id)

    method = PaymentMethod(method)
    if method == PaymentMethod.CASH:
        raise ValidationError(
            "Cash payments are not submitted online; the host confirms them on the booking"
        )
    if booking.status not in CONFIRMABLE:
        raise InvalidTransition(
            f"Payments cannot be submitted for a booking in status '{booking.status.value}'"
        )
    if occupies_slot(existing):
        raise InvalidTransition(
            f"A {existing.status.value.lower()} payment already exists for this booking"
        )

    transaction_reference = (transaction_reference or "").strip()
    receipt_reference = (receipt_reference or "").strip()
    if not transaction_reference:
        raise ValidationError("Please enter transaction ID")
    if not receipt_reference:
        raise ValidationError("Please upload payment receipt")

    return Payment(
        id=str(uuid4()),
        booking_id=booking.id,
        amount=booking.final_price,
        method=method,
        transaction_reference=transaction_reference,
        receipt_reference=receipt_reference,
        status=PaymentStatus.PENDING,
        submitted_at=now or datetime.now(UTC),
    )


def _check_decision(payment: Payment, booking: Booking, actor: ActorContext) -> None:
    require_permission(actor, Permission.VERIFY_PAYMENT)
    require_host_ownership(actor, booking.host_id, "payment")
    if payment.booking_id != booking.id:
        raise ValidationError(
            f"Payment '{payment.id}' does not belong to booking '{booking.id}'"
        )


def verify_payment(
    payment: Payment,
    booking: Booking,
    actor: ActorContext,
    notes: str | None = None,
    now: datetime | None = None,
) -> tuple[Payment, PaymentVerified]:
    """Approve a Pending payment and emit the event that confirms the booking."""
    _check_decision(payment, booking, actor)
    assert_payment_transition(payment.status, PaymentStatus.VERIFIED)
    if booking.status not in CONFIRMABLE:
        raise InvalidTransition(
            f"Cannot verify a payment for a booking in status '{booking.status.value}'"
        )

    now = now or datetime.now(UTC)
    verified = payment.model_copy(
        update={
            "status": PaymentStatus.VERIFIED,
            "verified_by": actor.actor_id,
            "notes": notes,
            "decided_at": now,
        }
    )
    event = PaymentVerified(
        booking_id=booking.id,
        payment_id=payment.id,
        verified_by=actor.actor_id,
        verified_at=now,
    )
    return verified, event


def reject_payment(
    payment: Payment,
    booking: Booking,
    actor: ActorContext,
    reason: str,
    now: datetime | None = None,
) -> Payment:
    """Reject a Pending payment; the booking status is left alone."""
    if not reason or not reason.strip():
        raise ValidationError("Please provide a reason for rejection")
    _check_decision(payment, booking, actor)
    assert_payment_transition(payment.status, PaymentStatus.REJECTED)

    return payment.model_copy(
        update={
            "status": PaymentStatus.REJECTED,
            "verified_by": actor.actor_id,
            "rejection_reason": reason.strip(),
            "decided_at": now or datetime.now(UTC),
        }
    )


def confirm_by_cash(
    booking: Booking,
    payment: Payment | None,
    actor: ActorContext,
    now: datetime | None = None,
) -> Booking:
    """Host records cash received; confirms the booking with no payment record."""
    require_permission(actor, Permission.CONFIRM_CASH_PAYMENT)
    require_host_ownership(actor, booking.host_id, "booking")
    if booking.status in CASH_CONFIRMATION_BLOCKED:
        raise InvalidTransition(
            f"Cannot confirm a cash payment for a booking in status '{booking.status.value}'"
        )
    if occupies_slot(payment):
        raise InvalidTransition(
            f"Booking has a {payment.status.value.lower()} online payment; "
            "verify or reject it instead of confirming cash"
        )
    return stamp_transition(booking, BookingStatus.CONFIRMED, None, now or datetime.now(UTC))
