from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from servicebook.core.exceptions import InvalidRateConfiguration, ValidationError
from servicebook.domain.pricing import (
    build_price_breakdown,
    compute_base_price,
    compute_total,
    rate_per_km,
)
from servicebook.schemas.booking import CabDetails, HotelDetails
from servicebook.schemas.property import (
    CabCategory,
    CabRateTable,
    Department,
    OfferedService,
    Property,
)


def cab_details(category=CabCategory.ECONOMY, distance="10") -> CabDetails:
    return CabDetails(
        appointment_at=datetime(2025, 6, 5, 8, 0, tzinfo=UTC),
        pickup_location="Airport",
        dropoff_location="Central Station",
        category=category,
        distance_km=Decimal(distance),
    )


@pytest.mark.pricing
class TestComputeTotal:
    """Base price plus selected service."""

    def test_base_price_only(self, hotel, hotel_details):
        """Property base 1000, no service, no coupon gives 1000."""
        assert compute_total(hotel, None, hotel_details) == Decimal("1000.00")

    def test_hotel_stay_is_priced_per_booking(self, hotel):
        stay = HotelDetails(check_in=date(2025, 6, 10), check_out=date(2025, 6, 15), guests=2)
        assert compute_total(hotel, None, stay) == Decimal("1000.00")

    def test_service_price_is_added(self, salon, salon_details):
        service = OfferedService(id="svc-1", property_id="salon-1", name="Haircut", price=Decimal("200"))
        assert compute_total(salon, service, salon_details) == Decimal("500.00")

    def test_missing_base_price_counts_as_zero(self, salon_details):
        prop = Property(id="s-2", department=Department.SALON, host_id="h", base_price=None)
        assert compute_total(prop, None, salon_details) == Decimal("0.00")

    def test_department_mismatch_is_rejected(self, hotel, salon_details):
        with pytest.raises(ValidationError):
            compute_total(hotel, None, salon_details)


@pytest.mark.pricing
class TestCabRates:
    """Per-km pricing by vehicle category."""

    def test_economy_rate_times_distance(self, cab):
        assert compute_base_price(cab, cab_details()) == Decimal("120.00")

    def test_premium_rate_times_distance(self, cab):
        details = cab_details(CabCategory.PREMIUM, "7.5")
        assert compute_base_price(cab, details) == Decimal("135.00")

    def test_missing_category_falls_back_to_base_price(self, cab):
        # cab fixture has no xl rate; base price is 9 per km
        assert compute_base_price(cab, cab_details(CabCategory.XL)) == Decimal("90.00")

    @pytest.mark.parametrize(
        "category,expected",
        [(CabCategory.ECONOMY, "12"), (CabCategory.PREMIUM, "18"), (CabCategory.XL, "9")],
    )
    def test_rate_lookup(self, cab, category, expected):
        assert rate_per_km(cab, category) == Decimal(expected)

    def test_no_rate_and_no_base_price(self):
        prop = Property(
            id="cab-2",
            department=Department.CAB,
            host_id="h",
            cab_rates=CabRateTable(economy=Decimal("10")),
        )
        with pytest.raises(InvalidRateConfiguration):
            compute_base_price(prop, cab_details(CabCategory.PREMIUM))

    def test_no_rate_table_uses_base_price(self):
        prop = Property(id="cab-3", department=Department.CAB, host_id="h", base_price=Decimal("11"))
        assert compute_base_price(prop, cab_details(distance="3")) == Decimal("33.00")


@pytest.mark.pricing
class TestPriceBreakdown:
    """final = base + service - discount, never negative."""

    def test_final_price_identity(self):
        breakdown = build_price_breakdown(Decimal("1000"), Decimal("250"), Decimal("125.50"), "SAVE")
        assert breakdown.subtotal == Decimal("1250.00")
        assert breakdown.final_price == Decimal("1124.50")
        assert breakdown.final_price == (
            breakdown.base_price + breakdown.service_price - breakdown.discount_amount
        )
        assert breakdown.coupon_code == "SAVE"

    def test_discount_is_capped_at_subtotal(self):
        breakdown = build_price_breakdown(Decimal("100"), Decimal("0"), Decimal("500"))
        assert breakdown.discount_amount == Decimal("100.00")
        assert breakdown.final_price == Decimal("0.00")

    def test_negative_component_is_rejected(self):
        with pytest.raises(ValidationError):
            build_price_breakdown(Decimal("100"), Decimal("-1"))

    def test_amounts_are_rounded_to_cents(self):
        breakdown = build_price_breakdown(Decimal("99.995"))
        assert breakdown.final_price == Decimal("100.00")
