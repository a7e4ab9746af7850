from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from servicebook.domain.coupon_policy import (
    available_coupons,
    compute_discount,
    is_within_window,
    validate_coupon,
)
from servicebook.schemas.coupon import Coupon, CouponRejectionReason, CouponStatus, DiscountType
from servicebook.schemas.property import Department


def find(coupons, code):
    return next(c for c in coupons if c.code == code)


@pytest.mark.coupon
class TestValidateCoupon:
    """Rejection reasons and their precedence."""

    def test_percentage_coupon_applies(self, coupons, hotel, now):
        result = validate_coupon(
            find(coupons, "SAVE20"), code="SAVE20", user_id="cust-1", property=hotel,
            amount=Decimal("1000"), now=now,
        )
        assert result.valid
        assert result.discount_amount == Decimal("200.00")
        assert result.reason is None
        assert "20% off" in result.message

    def test_flat_coupon_applies(self, coupons, hotel, now):
        result = validate_coupon(
            find(coupons, "FLAT150"), code="FLAT150", user_id="cust-1", property=hotel,
            amount=Decimal("1000"), now=now,
        )
        assert result.valid
        assert result.discount_amount == Decimal("150.00")

    def test_flat_discount_is_capped_at_amount(self, coupons, hotel, now):
        result = validate_coupon(
            find(coupons, "FLAT150"), code="FLAT150", user_id="cust-1", property=hotel,
            amount=Decimal("80"), now=now,
        )
        assert result.discount_amount == Decimal("80.00")

    def test_unknown_code(self, hotel, now):
        result = validate_coupon(None, code="NOPE", user_id="cust-1", property=hotel, now=now)
        assert not result.valid
        assert result.reason == CouponRejectionReason.NOT_FOUND

    def test_code_match_is_case_sensitive(self, coupons, hotel, now):
        result = validate_coupon(
            find(coupons, "SAVE20"), code="save20", user_id="cust-1", property=hotel, now=now
        )
        assert result.reason == CouponRejectionReason.NOT_FOUND

    def test_inactive(self, coupons, hotel, now):
        result = validate_coupon(
            find(coupons, "PAUSED"), code="PAUSED", user_id="cust-1", property=hotel, now=now
        )
        assert result.reason == CouponRejectionReason.INACTIVE

    def test_expired_percentage_coupon(self, coupons, hotel, now):
        """Percentage 20 with a past valid_to is rejected as Expired."""
        result = validate_coupon(
            find(coupons, "OLD20"), code="OLD20", user_id="cust-1", property=hotel,
            amount=Decimal("1000"), now=now,
        )
        assert result.valid is False
        assert result.reason == CouponRejectionReason.EXPIRED
        assert result.discount_amount == Decimal("0.00")

    def test_targeted_at_other_user(self, coupons, hotel, now):
        result = validate_coupon(find(coupons, "VIP"), code="VIP", user_id="cust-1", property=hotel, now=now)
        assert result.reason == CouponRejectionReason.NOT_APPLICABLE_TO_USER

    def test_targeted_user_may_use_it(self, coupons, hotel, now):
        result = validate_coupon(
            find(coupons, "VIP"), code="VIP", user_id="cust-2", property=hotel,
            amount=Decimal("500"), now=now,
        )
        assert result.valid

    def test_scoped_to_other_property(self, coupons, hotel, now):
        result = validate_coupon(
            find(coupons, "SALONONLY"), code="SALONONLY", user_id="cust-1", property=hotel, now=now
        )
        assert result.reason == CouponRejectionReason.NOT_APPLICABLE_TO_PROPERTY

    def test_scoped_property_by_id_and_department(self, coupons, now):
        result = validate_coupon(
            find(coupons, "SALONONLY"), code="SALONONLY", user_id="cust-1",
            property_id="salon-1", department=Department.SALON, amount=Decimal("300"), now=now,
        )
        assert result.valid
        assert result.discount_amount == Decimal("30.00")

    def test_same_id_in_other_department_is_rejected(self, coupons, now):
        result = validate_coupon(
            find(coupons, "SALONONLY"), code="SALONONLY", user_id="cust-1",
            property_id="salon-1", department=Department.HOTEL, now=now,
        )
        assert result.reason == CouponRejectionReason.NOT_APPLICABLE_TO_PROPERTY

    def test_inactive_wins_over_expired(self, hotel, now):
        coupon = Coupon(
            code="BOTH",
            discount_value=Decimal("10"),
            status=CouponStatus.INACTIVE,
            valid_to=now - timedelta(days=3),
        )
        result = validate_coupon(coupon, code="BOTH", user_id="cust-1", property=hotel, now=now)
        assert result.reason == CouponRejectionReason.INACTIVE

    def test_validation_does_not_mutate_coupon(self, coupons, hotel, now):
        coupon = find(coupons, "SAVE20")
        before = coupon.model_dump()
        validate_coupon(coupon, code="SAVE20", user_id="cust-1", property=hotel, amount=Decimal("10"), now=now)
        assert coupon.model_dump() == before


@pytest.mark.coupon
class TestValidityWindow:
    """Inclusive [valid_from, valid_to] window."""

    @pytest.fixture
    def windowed(self) -> Coupon:
        return Coupon(
            code="JUNE",
            discount_value=Decimal("5"),
            valid_from=datetime(2025, 6, 1, tzinfo=UTC),
            valid_to=datetime(2025, 6, 30, 23, 59, tzinfo=UTC),
        )

    @pytest.mark.parametrize(
        "moment,expected",
        [
            (datetime(2025, 5, 31, 23, 59, tzinfo=UTC), False),
            (datetime(2025, 6, 1, 0, 0, tzinfo=UTC), True),
            (datetime(2025, 6, 15, 12, 0, tzinfo=UTC), True),
            (datetime(2025, 6, 30, 23, 59, tzinfo=UTC), True),
            (datetime(2025, 7, 1, 0, 0, tzinfo=UTC), False),
        ],
    )
    def test_window_bounds(self, windowed, hotel, moment, expected):
        assert is_within_window(windowed, moment) is expected
        result = validate_coupon(windowed, code="JUNE", user_id="u", property=hotel, now=moment)
        assert result.valid is expected
        if not expected:
            assert result.reason == CouponRejectionReason.EXPIRED

    def test_date_only_valid_to_covers_the_whole_day(self):
        coupon = Coupon.model_validate(
            {"code": "DAY", "discountValue": "5", "validFrom": "2025-06-01", "validTo": "2025-06-01"}
        )
        assert is_within_window(coupon, datetime(2025, 6, 1, 23, 30, tzinfo=UTC))
        assert not is_within_window(coupon, datetime(2025, 6, 2, 0, 0, tzinfo=UTC))
        assert coupon.valid_from.date() == date(2025, 6, 1)

    def test_open_window(self, now):
        assert is_within_window(Coupon(code="ANY", discount_value=Decimal("1")), now)


@pytest.mark.coupon
class TestAvailableCoupons:
    def test_customer_sees_applicable_codes(self, coupons, now):
        codes = {c.code for c in available_coupons(coupons, "cust-1", now)}
        assert codes == {"SAVE20", "FLAT150", "SALONONLY"}

    def test_targeted_coupon_listed_for_its_customer(self, coupons, now):
        assert "VIP" in {c.code for c in available_coupons(coupons, "cust-2", now)}

    def test_anonymous_caller_sees_untargeted_only(self, coupons, now):
        assert "VIP" not in {c.code for c in available_coupons(coupons, None, now)}


@pytest.mark.coupon
class TestCouponSchema:
    def test_percentage_over_100_is_invalid(self):
        with pytest.raises(ValueError):
            Coupon(code="BAD", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("120"))

    def test_percentage_discount_rounds_half_up(self):
        coupon = Coupon(code="P", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("15"))
        assert compute_discount(coupon, Decimal("99.99")) == Decimal("15.00")
