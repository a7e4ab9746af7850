"""Booking, payment and cash confirmation endpoints."""

from fastapi import APIRouter, status

from servicebook.api.deps import ActorDep, StoreDep
from servicebook.schemas.base import WireModel
from servicebook.schemas.booking import Booking, BookingCreate, BookingStatusUpdate
from servicebook.schemas.payment import (
    Payment,
    PaymentReject,
    PaymentSubmissionResponse,
    PaymentSubmit,
    PaymentVerify,
)
from servicebook.services.booking_service import booking_service

router = APIRouter()


# ============ SCHEMAS ============


class PaymentVerifiedResponse(WireModel):
    """Verified payment together with the booking it confirmed."""

    payment: Payment
    booking: Booking


# ============ ENDPOINTS ============


@router.post("", response_model=Booking, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    actor: ActorDep,
    store: StoreDep,
) -> Booking:
    """Create a booking for the acting customer."""
    return await booking_service.create_booking(store, data, actor)


@router.get("/{booking_id}", response_model=Booking)
async def get_booking(
    booking_id: str,
    actor: ActorDep,
    store: StoreDep,
) -> Booking:
    """Get booking details (customer, owning host or admin)."""
    return await booking_service.get_booking(store, booking_id, actor)


@router.put("/{booking_id}/status", response_model=Booking)
async def update_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    actor: ActorDep,
    store: StoreDep,
) -> Booking:
    """Change booking status (customer cancel, host/admin workflow)."""
    return await booking_service.update_status(store, booking_id, data.status, actor)


@router.post(
    "/{booking_id}/payment",
    response_model=PaymentSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_payment(
    booking_id: str,
    data: PaymentSubmit,
    actor: ActorDep,
    store: StoreDep,
) -> PaymentSubmissionResponse:
    """Submit payment evidence. Cash records nothing and waits for the host."""
    payment = await booking_service.submit_payment(store, booking_id, data, actor)
    if payment is None:
        return PaymentSubmissionResponse(
            payment=None,
            message="Please pay in cash at the property; the host will confirm your booking.",
        )
    return PaymentSubmissionResponse(
        payment=payment,
        message="Payment submitted successfully and is awaiting verification.",
    )


@router.get("/{booking_id}/payment", response_model=Payment | None)
async def get_payment(
    booking_id: str,
    actor: ActorDep,
    store: StoreDep,
) -> Payment | None:
    """Get the latest payment for a booking."""
    return await booking_service.get_payment(store, booking_id, actor)


@router.put("/{booking_id}/payment/verify", response_model=PaymentVerifiedResponse)
async def verify_payment(
    booking_id: str,
    data: PaymentVerify,
    actor: ActorDep,
    store: StoreDep,
) -> PaymentVerifiedResponse:
    """Verify the pending payment; confirms the booking."""
    payment, booking = await booking_service.verify_payment(store, booking_id, actor, data.notes)
    return PaymentVerifiedResponse(payment=payment, booking=booking)


@router.put("/{booking_id}/payment/reject", response_model=Payment)
async def reject_payment(
    booking_id: str,
    data: PaymentReject,
    actor: ActorDep,
    store: StoreDep,
) -> Payment:
    """Reject the pending payment with a reason."""
    return await booking_service.reject_payment(store, booking_id, data.reason, actor)


@router.post("/{booking_id}/confirm-cash", response_model=Booking)
async def confirm_cash_payment(
    booking_id: str,
    actor: ActorDep,
    store: StoreDep,
) -> Booking:
    """Host confirms the booking was paid in cash."""
    return await booking_service.confirm_cash(store, booking_id, actor)
