"""Booking price calculation.

Rules:
- Hotel / Salon / Hospital: base price of the property
- Cab: per-km rate of the chosen category x distance; a category without
  its own rate falls back to the property base price
- A selected offered service adds its price on top
- A coupon discount is subtracted last; the final price never goes negative
"""

from decimal import Decimal

from servicebook.core.exceptions import InvalidRateConfiguration, ValidationError
from servicebook.schemas.booking import BookingDetails, CabDetails, PriceBreakdown
from servicebook.schemas.property import CabCategory, OfferedService, Property
from servicebook.utils.money import ZERO, to_money


def rate_per_km(property: Property, category: CabCategory) -> Decimal:
    """Resolve the per-km rate for a cab category.

    Args:
        property: Cab property with an optional rate table
        category: Requested vehicle category

    Returns:
        Decimal: Rate per km

    Raises:
        InvalidRateConfiguration: If neither the category rate nor a base price exists
    """
    rate = property.cab_rates.rate_for(category) if property.cab_rates else None
    if rate is None:
        rate = property.base_price
    if rate is None:
        raise InvalidRateConfiguration(
            f"Cab property '{property.id}' has no rate for category "
            f"'{CabCategory(category).value}' and no base price"
        )
    return rate


def compute_base_price(property: Property, details: BookingDetails) -> Decimal:
    """Department-specific base amount before services and discounts."""
    if details.department != property.department:
        raise ValidationError(
            f"Booking details are for {details.department} but property "
            f"'{property.id}' belongs to {property.department.value}"
        )

    if isinstance(details, CabDetails):
        return to_money(rate_per_km(property, details.category) * details.distance_km)

    # Missing base price books at zero, the catalogue treats it as "on request"
    return to_money(property.base_price)


def compute_total(
    property: Property,
    selected_service: OfferedService | None,
    details: BookingDetails,
) -> Decimal:
    """Pre-discount total: base price plus the selected service's price."""
    service_price = to_money(selected_service.price) if selected_service else ZERO
    return compute_base_price(property, details) + service_price


def build_price_breakdown(
    base_price: Decimal,
    service_price: Decimal = ZERO,
    discount_amount: Decimal = ZERO,
    coupon_code: str | None = None,
    currency: str = "INR",
) -> PriceBreakdown:
    """Assemble totals, enforcing ``final = base + service - discount >= 0``.

    Args:
        base_price: Department base amount
        service_price: Selected service surcharge
        discount_amount: Coupon discount, already capped by the validator
        coupon_code: Applied coupon code, if any
        currency: ISO currency code

    Returns:
        PriceBreakdown: Derived totals
    """
    base_price = to_money(base_price)
    service_price = to_money(service_price)
    discount_amount = to_money(discount_amount)
    if base_price < 0 or service_price < 0 or discount_amount < 0:
        raise ValidationError("Price components cannot be negative")

    subtotal = base_price + service_price
    discount_amount = min(discount_amount, subtotal)

    return PriceBreakdown(
        base_price=base_price,
        service_price=service_price,
        subtotal=subtotal,
        discount_amount=discount_amount,
        final_price=subtotal - discount_amount,
        coupon_code=coupon_code,
        currency=currency,
    )
