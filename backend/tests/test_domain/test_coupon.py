"""
Unit tests for Coupon discount calculation

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime, timezone
from decimal import Decimal

from storefront.domain.coupon import Coupon


def _coupon(**overrides) -> Coupon:
    data = {
        'id': 1,
        'code': 'LUXE80',
        'discount_type': 'percentage',
        'discount_value': Decimal('80'),
    }
    data.update(overrides)
    return Coupon(**data)


class TestCalculateDiscount:

    def test_percentage(self):
        coupon = _coupon(discount_value=Decimal('20'))
        assert coupon.calculate_discount(Decimal('150.00')) == Decimal('30.00')

    def test_percentage_capped_by_max_discount(self):
        coupon = _coupon(max_discount=Decimal('50'))
        assert coupon.calculate_discount(200) == Decimal('50.00')

    def test_fixed_never_exceeds_amount(self):
        coupon = _coupon(discount_type='fixed', discount_value=Decimal('25'))
        assert coupon.calculate_discount(Decimal('19.99')) == Decimal('19.99')
        assert coupon.calculate_discount(Decimal('100')) == Decimal('25.00')

    def test_below_minimum_gives_nothing(self):
        coupon = _coupon(min_order_amount=Decimal('100'))
        assert coupon.calculate_discount(Decimal('99.99')) == Decimal('0.00')

    def test_rounds_half_up_to_cents(self):
        coupon = _coupon(discount_value=Decimal('15'))
        # 15% of 33.33 = 4.9995
        assert coupon.calculate_discount(Decimal('33.33')) == Decimal('5.00')


class TestUsage:

    def test_uses_by_counts_only_that_user(self):
        coupon = _coupon(usages=[
            {'user_id': 7, 'order_number': 'LF251000001'},
            {'user_id': 7, 'order_number': 'LF251000002'},
            {'user_id': 8, 'order_number': 'LF251000003'},
        ])
        assert coupon.uses_by(7) == 2
        assert coupon.uses_by(9) == 0
        assert coupon.uses_by(None) == 0


class TestValidityWindow:

    NOW = datetime(2025, 10, 17, 12, 0, tzinfo=timezone.utc)

    def test_naive_dates_compare_as_utc(self):
        coupon = _coupon(start_date=datetime(2025, 10, 1), expiry_date=datetime(2025, 10, 17, 11, 59))

        assert coupon.has_started(self.NOW) is True
        assert coupon.is_expired(self.NOW) is True

    def test_open_ended_window(self):
        coupon = _coupon()

        assert coupon.has_started(self.NOW) is True
        assert coupon.is_expired(self.NOW) is False
