"""Booking service: pricing, creation, status changes and payment verification.

Every mutation reads a snapshot, runs the pure rules in ``servicebook.domain``
and writes back with the version it read, so two racing transitions on the
same booking can never both apply.
"""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from servicebook.config import settings
from servicebook.core.exceptions import (
    CouponRejected,
    DomainError,
    Forbidden,
    NotFoundError,
    PropertyNotAvailable,
    ValidationError,
)
from servicebook.core.permissions import (
    ActorContext,
    Permission,
    require_customer_ownership,
    require_permission,
)
from servicebook.domain.booking_state import (
    apply_payment_verified,
    initial_status,
    transition_booking,
)
from servicebook.domain.coupon_policy import available_coupons, validate_coupon
from servicebook.domain.payment_state import (
    build_payment,
    confirm_by_cash,
    reject_payment,
    verify_payment,
)
from servicebook.domain.pricing import build_price_breakdown, compute_base_price
from servicebook.schemas.booking import (
    Booking,
    BookingCreate,
    BookingStatus,
    PriceBreakdown,
)
from servicebook.schemas.coupon import Coupon, CouponValidateRequest, CouponValidation
from servicebook.schemas.payment import Payment, PaymentMethod, PaymentSubmit
from servicebook.schemas.property import OfferedService, Property, Specialist
from servicebook.services.subscription_service import subscription_service
from servicebook.stores.base import BookingStore
from servicebook.utils.money import ZERO

logger = logging.getLogger(__name__)


class BookingService:
    """Service for the booking and payment lifecycle."""

    # ==================== LOOKUPS ====================

    async def _get_property(self, store: BookingStore, request: BookingCreate) -> Property:
        prop = await store.get_property(request.department, request.property_id)
        if prop is None:
            raise NotFoundError("Property", request.property_id)
        return prop

    async def _get_booking(self, store: BookingStore, booking_id: str) -> Booking:
        booking = await store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    async def _resolve_selection(
        self,
        store: BookingStore,
        prop: Property,
        request: BookingCreate,
        required: bool,
    ) -> tuple[Specialist | None, OfferedService | None]:
        """Look up the chosen specialist and service; both must belong to ``prop``.

        With ``required`` set, a property that lists specialists (or services)
        must have one of them chosen.
        """
        specialists = await store.list_specialists(prop.id)
        services = await store.list_services(prop.id)

        specialist = None
        if request.specialist_id:
            specialist = next((s for s in specialists if s.id == request.specialist_id), None)
            if specialist is None:
                raise ValidationError(
                    f"Specialist '{request.specialist_id}' does not work at this property"
                )
        elif required and specialists:
            raise ValidationError("Please select a professional to proceed.")

        service = None
        if request.service_id:
            service = next((s for s in services if s.id == request.service_id), None)
            if service is None:
                raise ValidationError(
                    f"Service '{request.service_id}' is not offered by this property"
                )
        elif required and services:
            raise ValidationError("Please select a service to proceed.")

        return specialist, service

    # ==================== PRICING ====================

    async def _price(
        self,
        store: BookingStore,
        prop: Property,
        service: OfferedService | None,
        request: BookingCreate,
        customer_id: str | None,
        now: datetime,
    ) -> PriceBreakdown:
        base_price = compute_base_price(prop, request.details)
        service_price = service.price if service else ZERO
        discount = ZERO

        if request.coupon_code:
            coupon = await store.get_coupon(request.coupon_code)
            result = validate_coupon(
                coupon,
                code=request.coupon_code,
                user_id=customer_id,
                property=prop,
                amount=build_price_breakdown(base_price, service_price).subtotal,
                now=now,
            )
            if not result.valid:
                raise CouponRejected(result.reason.value, result.message)
            discount = result.discount_amount

        return build_price_breakdown(
            base_price,
            service_price,
            discount,
            coupon_code=request.coupon_code,
            currency=settings.currency,
        )

    async def quote(
        self,
        store: BookingStore,
        request: BookingCreate,
        actor: ActorContext | None = None,
        now: datetime | None = None,
    ) -> PriceBreakdown:
        """Price a prospective booking without creating it."""
        prop = await self._get_property(store, request)
        _, service = await self._resolve_selection(store, prop, request, required=False)
        customer_id = actor.actor_id if actor and actor.is_customer else None
        return await self._price(store, prop, service, request, customer_id, now or datetime.now(UTC))

    async def validate_coupon(
        self,
        store: BookingStore,
        request: CouponValidateRequest,
        now: datetime | None = None,
    ) -> CouponValidation:
        """Check a code ahead of booking; never raises for a bad code."""
        coupon = await store.get_coupon(request.code)
        result = validate_coupon(
            coupon,
            code=request.code,
            user_id=request.user_id,
            property_id=request.property_id,
            department=request.department,
            amount=request.amount,
            now=now or datetime.now(UTC),
        )
        if not result.valid:
            logger.info(f"Coupon {request.code!r} rejected: {result.reason.value}")
        return result

    async def list_coupons(
        self,
        store: BookingStore,
        actor: ActorContext | None = None,
        now: datetime | None = None,
    ) -> list[Coupon]:
        """Coupons the caller could apply now; targeted ones only to their customers."""
        user_id = actor.actor_id if actor is not None and actor.is_customer else None
        coupons = await store.list_coupons(user_id)
        return available_coupons(coupons, user_id, now or datetime.now(UTC))

    # ==================== BOOKINGS ====================

    async def create_booking(
        self,
        store: BookingStore,
        request: BookingCreate,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> Booking:
        """Create a booking for the acting customer.

        Raises:
            NotFoundError: Unknown property
            PropertyNotAvailable: Property not Active
            ValidationError: Missing/foreign specialist or service, bad details
            CouponRejected: Coupon code given but not applicable
        """
        require_permission(actor, Permission.CREATE_BOOKING)
        now = now or datetime.now(UTC)

        prop = await self._get_property(store, request)
        if not prop.accepts_bookings:
            raise PropertyNotAvailable(
                f"This property is {prop.status.value.lower()} and is not accepting bookings"
            )
        specialist, service = await self._resolve_selection(store, prop, request, required=True)
        price = await self._price(store, prop, service, request, actor.actor_id, now)

        booking = Booking(
            id=str(uuid4()),
            department=prop.department,
            property_id=prop.id,
            host_id=prop.host_id,
            customer_id=actor.actor_id,
            specialist_id=specialist.id if specialist else None,
            service_id=service.id if service else None,
            details=request.details,
            base_price=price.base_price,
            service_price=price.service_price,
            discount_amount=price.discount_amount,
            coupon_code=price.coupon_code,
            final_price=price.final_price,
            currency=price.currency,
            status=initial_status(settings.booking_initial_status),
            created_at=now,
        )
        booking = await store.create_booking(booking)
        logger.info(
            f"Booking {booking.id} created for {prop.department.value} property {prop.id} "
            f"by customer {actor.actor_id}: {booking.final_price} {booking.currency}"
        )
        return booking

    async def _gate_host(
        self,
        store: BookingStore,
        booking: Booking,
        actor: ActorContext,
        now: datetime | None,
    ) -> None:
        # Other hosts are refused by the ownership rules instead
        if actor.is_host and actor.actor_id == booking.host_id:
            await subscription_service.ensure_host_access(store, actor, booking.host_id, now)

    def _check_visibility(self, booking: Booking, actor: ActorContext) -> None:
        if actor.is_admin:
            return
        if actor.is_customer and actor.actor_id == booking.customer_id:
            return
        if actor.is_host and actor.actor_id == booking.host_id:
            return
        raise Forbidden("You can only view your own bookings")

    async def get_booking(self, store: BookingStore, booking_id: str, actor: ActorContext) -> Booking:
        booking = await self._get_booking(store, booking_id)
        self._check_visibility(booking, actor)
        return booking

    async def update_status(
        self,
        store: BookingStore,
        booking_id: str,
        target: BookingStatus,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> Booking:
        """Apply a customer cancellation or a host/admin status change."""
        booking = await self._get_booking(store, booking_id)
        await self._gate_host(store, booking, actor, now)
        try:
            updated = transition_booking(booking, target, actor, now or datetime.now(UTC))
        except DomainError as exc:
            logger.warning(
                f"Booking {booking_id} change {booking.status.value} → {BookingStatus(target).value} "
                f"by {actor.audit_label} refused: {exc}"
            )
            raise
        saved = await store.update_booking(updated, expected_version=booking.version)
        logger.info(
            f"Booking {booking_id} {booking.status.value} → {saved.status.value} by {actor.audit_label}"
        )
        return saved

    # ==================== PAYMENTS ====================

    async def submit_payment(
        self,
        store: BookingStore,
        booking_id: str,
        payload: PaymentSubmit,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> Payment | None:
        """Record the customer's payment evidence.

        Cash creates nothing; the host confirms it on the booking instead.
        """
        booking = await self._get_booking(store, booking_id)
        if payload.method == PaymentMethod.CASH:
            require_permission(actor, Permission.SUBMIT_PAYMENT)
            require_customer_ownership(actor, booking.customer_id)
            logger.info(f"Booking {booking_id} will be paid in cash; awaiting host confirmation")
            return None

        existing = await store.get_payment(booking_id)
        try:
            payment = build_payment(
                booking,
                payload.method,
                payload.transaction_reference,
                payload.receipt_reference,
                actor,
                now or datetime.now(UTC),
                existing=existing,
            )
        except DomainError as exc:
            logger.warning(f"Payment submission for booking {booking_id} refused: {exc}")
            raise
        saved = await store.save_payment(payment, expected_version=booking.version)
        logger.info(
            f"Payment {saved.id} submitted for booking {booking_id}: "
            f"{saved.amount} via {saved.method.value}"
        )
        return saved

    async def get_payment(self, store: BookingStore, booking_id: str, actor: ActorContext) -> Payment | None:
        booking = await self._get_booking(store, booking_id)
        self._check_visibility(booking, actor)
        return await store.get_payment(booking_id)

    async def _get_payment(self, store: BookingStore, booking_id: str) -> Payment:
        payment = await store.get_payment(booking_id)
        if payment is None:
            raise NotFoundError("Payment", detail=f"No payment submitted for booking '{booking_id}'")
        return payment

    async def verify_payment(
        self,
        store: BookingStore,
        booking_id: str,
        actor: ActorContext,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> tuple[Payment, Booking]:
        """Verify the Pending payment and confirm its booking in one write."""
        now = now or datetime.now(UTC)
        booking = await self._get_booking(store, booking_id)
        payment = await self._get_payment(store, booking_id)
        await self._gate_host(store, booking, actor, now)
        try:
            verified, event = verify_payment(payment, booking, actor, notes, now)
            confirmed = apply_payment_verified(booking, event)
        except DomainError as exc:
            logger.warning(f"Verification of payment {payment.id} refused: {exc}")
            raise
        verified, confirmed = await store.save_payment_decision(
            verified, confirmed, expected_version=booking.version
        )
        logger.info(
            f"Payment {payment.id} verified by {actor.audit_label}; booking {booking_id} confirmed"
        )
        return verified, confirmed

    async def reject_payment(
        self,
        store: BookingStore,
        booking_id: str,
        reason: str,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> Payment:
        """Reject the Pending payment; the customer may submit a new one."""
        now = now or datetime.now(UTC)
        booking = await self._get_booking(store, booking_id)
        payment = await self._get_payment(store, booking_id)
        await self._gate_host(store, booking, actor, now)
        try:
            rejected = reject_payment(payment, booking, actor, reason, now)
        except DomainError as exc:
            logger.warning(f"Rejection of payment {payment.id} refused: {exc}")
            raise
        rejected, _ = await store.save_payment_decision(
            rejected, booking, expected_version=booking.version
        )
        logger.info(f"Payment {payment.id} rejected by {actor.audit_label}: {rejected.rejection_reason}")
        return rejected

    async def confirm_cash(
        self,
        store: BookingStore,
        booking_id: str,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> Booking:
        """Host records cash received and the booking is confirmed."""
        now = now or datetime.now(UTC)
        booking = await self._get_booking(store, booking_id)
        payment = await store.get_payment(booking_id)
        await self._gate_host(store, booking, actor, now)
        try:
            confirmed = confirm_by_cash(booking, payment, actor, now)
        except DomainError as exc:
            logger.warning(f"Cash confirmation for booking {booking_id} refused: {exc}")
            raise
        saved = await store.update_booking(confirmed, expected_version=booking.version)
        logger.info(f"Booking {booking_id} confirmed as paid in cash by {actor.audit_label}")
        return saved


booking_service = BookingService()
