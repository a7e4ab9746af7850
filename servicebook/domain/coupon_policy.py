"""Coupon applicability rules.

Checks run in order and the first failure wins:
NotFound -> Inactive -> Expired -> NotApplicableToUser -> NotApplicableToProperty

Validation never redeems a coupon.
"""

from datetime import datetime
from decimal import Decimal

from servicebook.schemas.coupon import (
    Coupon,
    CouponRejectionReason,
    CouponStatus,
    CouponValidation,
    DiscountType,
)
from servicebook.schemas.property import Department, Property
from servicebook.utils.money import ZERO, to_money

REJECTION_MESSAGES: dict[CouponRejectionReason, str] = {
    CouponRejectionReason.NOT_FOUND: "Invalid coupon code",
    CouponRejectionReason.INACTIVE: "This coupon is no longer active",
    CouponRejectionReason.EXPIRED: "This coupon is not valid at this time",
    CouponRejectionReason.NOT_APPLICABLE_TO_USER: "This coupon is not available for your account",
    CouponRejectionReason.NOT_APPLICABLE_TO_PROPERTY: "This coupon cannot be used for this property",
}


def compute_discount(coupon: Coupon, amount: Decimal) -> Decimal:
    """Discount for ``amount``, never more than ``amount`` itself."""
    amount = to_money(amount)
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = amount * coupon.discount_value / Decimal("100")
    else:
        discount = coupon.discount_value
    return min(to_money(discount), amount)


def is_within_window(coupon: Coupon, now: datetime) -> bool:
    """Inclusive ``[valid_from, valid_to]`` check; open bounds are unbounded."""
    if coupon.valid_from and now < coupon.valid_from:
        return False
    if coupon.valid_to and now > coupon.valid_to:
        return False
    return True


def _applies_to_property(
    coupon: Coupon,
    property_id: str | None,
    department: Department | None,
) -> bool:
    if coupon.property_id is None:
        return True
    if property_id != coupon.property_id:
        return False
    # Property ids are only unique per department upstream
    if coupon.property_department and department and department != coupon.property_department:
        return False
    return True


def _reject(code: str, reason: CouponRejectionReason) -> CouponValidation:
    return CouponValidation(
        valid=False,
        code=code,
        reason=reason,
        message=REJECTION_MESSAGES[reason],
    )


def validate_coupon(
    coupon: Coupon | None,
    *,
    code: str,
    user_id: str | None,
    property: Property | None = None,
    property_id: str | None = None,
    department: Department | None = None,
    amount: Decimal = ZERO,
    now: datetime,
) -> CouponValidation:
    """Decide whether ``coupon`` applies and how much it takes off.

    Args:
        coupon: Coupon looked up by code, or None if the lookup missed
        code: Code the customer typed (matched case-sensitively)
        user_id: Customer applying the code
        property: Property being booked (takes precedence over property_id/department)
        property_id: Property id when no Property snapshot is at hand
        department: Department of property_id
        amount: Pre-discount total the coupon applies to
        now: Evaluation time

    Returns:
        CouponValidation: valid flag, discount amount or rejection reason
    """
    if property is not None:
        property_id, department = property.id, property.department

    if coupon is None or coupon.code != code:
        return _reject(code, CouponRejectionReason.NOT_FOUND)
    if coupon.status != CouponStatus.ACTIVE:
        return _reject(code, CouponRejectionReason.INACTIVE)
    if not is_within_window(coupon, now):
        return _reject(code, CouponRejectionReason.EXPIRED)
    if coupon.target_user_ids and user_id not in coupon.target_user_ids:
        return _reject(code, CouponRejectionReason.NOT_APPLICABLE_TO_USER)
    if not _applies_to_property(coupon, property_id, department):
        return _reject(code, CouponRejectionReason.NOT_APPLICABLE_TO_PROPERTY)

    discount = compute_discount(coupon, amount)
    if coupon.discount_type == DiscountType.PERCENTAGE:
        message = f"Coupon applied! You get {coupon.discount_value.normalize():f}% off"
    else:
        message = f"Coupon applied! You get {to_money(coupon.discount_value)} off"

    return CouponValidation(
        valid=True,
        code=code,
        message=message,
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_value,
        discount_amount=discount,
    )


def available_coupons(coupons: list[Coupon], user_id: str | None, now: datetime) -> list[Coupon]:
    """Coupons ``user_id`` could apply right now, ignoring property scope."""
    return [
        coupon
        for coupon in coupons
        if coupon.status == CouponStatus.ACTIVE
        and is_within_window(coupon, now)
        and (not coupon.target_user_ids or user_id in coupon.target_user_ids)
    ]
