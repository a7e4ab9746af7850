"""Price quote and coupon check endpoints."""

from fastapi import APIRouter

from servicebook.api.deps import OptionalActorDep, StoreDep
from servicebook.schemas.booking import BookingCreate, PriceBreakdown
from servicebook.schemas.coupon import Coupon, CouponValidateRequest, CouponValidation
from servicebook.services.booking_service import booking_service

router = APIRouter()


@router.post("/pricing/quote", response_model=PriceBreakdown)
async def quote_booking(
    data: BookingCreate,
    actor: OptionalActorDep,
    store: StoreDep,
) -> PriceBreakdown:
    """Price a booking request without creating it."""
    return await booking_service.quote(store, data, actor)


@router.post("/coupons/validate", response_model=CouponValidation)
async def validate_coupon(
    data: CouponValidateRequest,
    actor: OptionalActorDep,
    store: StoreDep,
) -> CouponValidation:
    """Check whether a coupon applies; a bad code is a normal (invalid) result."""
    if data.user_id is None and actor is not None and actor.is_customer:
        data = data.model_copy(update={"user_id": actor.actor_id})
    return await booking_service.validate_coupon(store, data)


@router.get("/coupons", response_model=list[Coupon])
async def list_coupons(
    actor: OptionalActorDep,
    store: StoreDep,
) -> list[Coupon]:
    """Coupons the caller could apply right now."""
    return await booking_service.list_coupons(store, actor)
