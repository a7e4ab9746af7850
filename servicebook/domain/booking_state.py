"""Booking state machine.

Customers may only self-cancel before confirmation. Hosts (for their own
properties) and admins move bookings through the table below, including
corrections such as Confirmed -> Pending. A verified payment or a cash
confirmation confirms a booking automatically.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from servicebook.core.exceptions import Forbidden, InvalidTransition
from servicebook.core.permissions import (
    ActorContext,
    Permission,
    require_customer_ownership,
    require_host_ownership,
    require_permission,
)
from servicebook.schemas.booking import Booking, BookingStatus

# Host/admin transitions
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {
        BookingStatus.PAYMENT_PENDING,
        BookingStatus.CONFIRMED,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.PAYMENT_PENDING: {
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.CONFIRMED: {
        BookingStatus.PENDING,
        BookingStatus.PAYMENT_PENDING,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.CANCELLED_BY_CUSTOMER: set(),
}

CUSTOMER_CANCELLABLE: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.PAYMENT_PENDING}
)

# Statuses a verified payment or cash settlement may confirm
CONFIRMABLE: frozenset[BookingStatus] = CUSTOMER_CANCELLABLE

TERMINAL: frozenset[BookingStatus] = frozenset(
    status for status, targets in BOOKING_TRANSITIONS.items() if not targets
)


@dataclass(frozen=True)
class PaymentVerified:
    """Emitted when a host or admin verifies a booking payment."""

    booking_id: str
    payment_id: str
    verified_by: str
    verified_at: datetime


def initial_status(configured: str = BookingStatus.PENDING.value) -> BookingStatus:
    """Status a new booking starts in; only the two open statuses qualify."""
    status = BookingStatus(configured)
    if status not in CUSTOMER_CANCELLABLE:
        raise ValueError(f"'{status.value}' cannot be the initial booking status")
    return status


def can_customer_cancel(status: BookingStatus) -> bool:
    """Whether the customer cancel action should be offered."""
    return BookingStatus(status) in CUSTOMER_CANCELLABLE


def is_terminal(status: BookingStatus) -> bool:
    return BookingStatus(status) in TERMINAL


def assert_booking_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Validate a host/admin transition against the table."""
    current, target = BookingStatus(current), BookingStatus(target)
    if target == BookingStatus.CANCELLED_BY_CUSTOMER:
        raise InvalidTransition(
            "Only the customer can cancel a booking as 'Cancelled by Customer'"
        )
    allowed = BOOKING_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidTransition(
            f"Invalid booking transition: {current.value} → {target.value}"
        )


def stamp_transition(booking: Booking, target: BookingStatus, actor_label: str | None, now: datetime) -> Booking:
    update: dict = {"status": target}
    if target == BookingStatus.CONFIRMED:
        update["confirmed_at"] = now
    elif target == BookingStatus.COMPLETED:
        update["completed_at"] = now
    elif target in (BookingStatus.CANCELLED, BookingStatus.CANCELLED_BY_CUSTOMER):
        update["cancelled_at"] = now
        update["cancelled_by"] = actor_label
    elif target in CUSTOMER_CANCELLABLE:
        # Host corrections back to an open status clear confirmation
        update["confirmed_at"] = None
    return booking.model_copy(update=update)


def cancel_by_customer(booking: Booking, actor: ActorContext, now: datetime | None = None) -> Booking:
    """Customer self-cancellation, only before confirmation."""
    require_permission(actor, Permission.CANCEL_OWN_BOOKING)
    require_customer_ownership(actor, booking.customer_id)
    if not can_customer_cancel(booking.status):
        raise InvalidTransition(
            f"A booking in status '{booking.status.value}' can no longer be cancelled by the customer"
        )
    return stamp_transition(booking, BookingStatus.CANCELLED_BY_CUSTOMER, "customer", now or datetime.now(UTC))


def transition_booking(
    booking: Booking,
    target: BookingStatus,
    actor: ActorContext,
    now: datetime | None = None,
) -> Booking:
    """Apply a status change requested by ``actor``.

    Args:
        booking: Current booking snapshot
        target: Requested status
        actor: Who is asking
        now: Transition time

    Returns:
        Booking: Updated copy; the input is not mutated

    Raises:
        Forbidden: Actor may not change this booking this way
        InvalidTransition: The move breaks the state machine
    """
    target = BookingStatus(target)
    now = now or datetime.now(UTC)

    if actor.is_customer:
        require_customer_ownership(actor, booking.customer_id)
        if not can_customer_cancel(booking.status):
            raise InvalidTransition(
                f"A booking in status '{booking.status.value}' can no longer be changed by the customer"
            )
        if target != BookingStatus.CANCELLED_BY_CUSTOMER:
            raise Forbidden("Customers can only cancel their own bookings")
        return cancel_by_customer(booking, actor, now)

    require_permission(actor, Permission.UPDATE_BOOKING_STATUS)
    require_host_ownership(actor, booking.host_id, "booking")
    if booking.status == target:
        raise InvalidTransition(f"Booking is already '{target.value}'")
    assert_booking_transition(booking.status, target)
    return stamp_transition(booking, target, actor.role.value, now)


def apply_payment_verified(booking: Booking, event: PaymentVerified) -> Booking:
    """Confirm the booking a verified payment belongs to."""
    if event.booking_id != booking.id:
        raise InvalidTransition(
            f"Payment event for booking '{event.booking_id}' applied to booking '{booking.id}'"
        )
    if booking.status not in CONFIRMABLE:
        raise InvalidTransition(
            f"Cannot confirm a booking in status '{booking.status.value}' from a verified payment"
        )
    return stamp_transition(booking, BookingStatus.CONFIRMED, None, event.verified_at)
