"""
Unit tests for CheckoutService

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock
from datetime import datetime
from decimal import Decimal

from storefront.domain.coupon import Coupon
from storefront.domain.order import PlaceOrderRequest
from storefront.services.checkout_service import (
    CheckoutService,
    CheckoutError,
    next_order_number,
    order_number_prefix,
)


@pytest.fixture
def repos():
    order_repo = MagicMock()
    product_repo = MagicMock()
    cart_repo = MagicMock()
    coupon_service = MagicMock()
    email_service = MagicMock()
    email_service.send_order_confirmation.return_value = (True, None)
    return order_repo, product_repo, cart_repo, coupon_service, email_service


@pytest.fixture
def service(repos):
    return CheckoutService(*repos)


def _request(**overrides) -> PlaceOrderRequest:
    data = {
        'items': [{'product_id': 10, 'quantity': 2, 'size': 'm', 'color': 'Black'}],
        'shipping_address': {
            'full_name': 'Jane Doe', 'phone': '5550102030', 'address_line1': '1 Main St',
            'city': 'Springfield', 'state': 'IL', 'postal_code': '62701',
        },
        'payment_method': 'cod',
        'shipping_cost': Decimal('10'),
    }
    data.update(overrides)
    return PlaceOrderRequest(**data)


class TestOrderNumbers:

    def test_prefix_is_year_and_month(self):
        assert order_number_prefix(datetime(2025, 10, 17), prefix="LF") == "LF2510"

    def test_first_number_of_month(self):
        assert next_order_number(None, "LF2510") == ("LF251000001", 1)

    def test_continues_sequence(self):
        assert next_order_number("LF251000041", "LF2510") == ("LF251000042", 42)

    def test_collision_adds_random_offset(self, service, repos):
        order_repo = repos[0]
        order_repo.find_last_number.return_value = "LF251000041"
        order_repo.number_exists.return_value = True

        number = service.generate_order_number(datetime(2025, 10, 17))

        assert number.startswith("LF2510")
        assert 142 <= int(number[-5:]) <= 1041


class TestPriceLines:

    def test_prices_at_effective_price(self, service, repos, make_product):
        repos[1].find_by_ids.return_value = {10: make_product()}

        lines, subtotal = service.price_lines([{'product_id': 10, 'quantity': 2, 'size': 'm'}])

        assert subtotal == Decimal('180.00')
        assert lines[0]['price'] == Decimal('90.00')
        # Size name is taken from the catalog
        assert lines[0]['size'] == 'M'
        assert lines[0]['image'] == 'https://cdn.example.com/b.jpg'

    def test_collects_every_problem(self, service, repos, make_product):
        repos[1].find_by_ids.return_value = {
            10: make_product(),
            11: make_product(id=11, status='draft'),
        }

        with pytest.raises(CheckoutError) as exc:
            service.price_lines([
                {'product_id': 10, 'quantity': 1, 'size': 'XL'},
                {'product_id': 10, 'quantity': 3, 'size': 'S'},
                {'product_id': 11, 'quantity': 1},
                {'product_id': 12, 'quantity': 1},
            ])

        assert exc.value.errors == [
            "Size XL not available for Silk Wrap Dress",
            "Only 2 item(s) available for Silk Wrap Dress",
            "Product 11 is not available",
            "Product 12 is not available",
        ]

    def test_empty_order(self, service):
        with pytest.raises(CheckoutError, match="No items in order"):
            service.price_lines([])

    def test_unsized_product_ignores_sent_size(self, service, repos, make_product):
        repos[1].find_by_ids.return_value = {10: make_product(sizes=[], stock=5)}

        with pytest.raises(CheckoutError) as exc:
            service.price_lines([
                {'product_id': 10, 'quantity': 5, 'size': None},
                {'product_id': 10, 'quantity': 5, 'size': 'XL'},
            ])

        assert exc.value.errors == ["Only 5 item(s) available for Silk Wrap Dress"]

    def test_unsized_product_line_has_no_size(self, service, repos, make_product):
        repos[1].find_by_ids.return_value = {10: make_product(sizes=[], stock=5)}

        lines, _ = service.price_lines([{'product_id': 10, 'quantity': 1, 'size': 'XL'}])

        assert lines[0]['size'] is None


class TestPlaceOrder:

    def test_places_order_with_coupon(self, service, repos, customer, make_product, make_order):
        order_repo, product_repo, cart_repo, coupon_service, email_service = repos
        product_repo.find_by_ids.return_value = {10: make_product()}
        order_repo.find_last_number.return_value = None
        order_repo.number_exists.return_value = False
        coupon_service.get_usable.return_value = Coupon(
            id=4, code='SAVE10', discount_type='fixed', discount_value=Decimal('10')
        )
        order_repo.place_order.return_value = make_order()

        service.place_order(customer, _request(coupon_code='save10'))

        order_fields, lines = order_repo.place_order.call_args[0]
        kwargs = order_repo.place_order.call_args[1]
        assert order_fields['subtotal'] == Decimal('180.00')
        assert order_fields['discount'] == Decimal('10.00')
        assert order_fields['total'] == Decimal('180.00')
        assert order_fields['coupon_code'] == 'SAVE10'
        # Email defaults to the account and country to the store default
        assert order_fields['shipping_address']['email'] == 'jane@example.com'
        assert order_fields['shipping_address']['country'] == 'United States'
        assert kwargs == {'clear_cart': True}
        email_service.send_order_confirmation.assert_called_once()

    def test_orders_the_cart_when_no_items(self, service, repos, customer, make_product, make_order):
        order_repo, product_repo, cart_repo, _, _ = repos
        cart_line = MagicMock(product_id=10, quantity=1, size='S', color=None)
        cart_repo.find_items.return_value = [cart_line]
        product_repo.find_by_ids.return_value = {10: make_product()}
        order_repo.find_last_number.return_value = None
        order_repo.number_exists.return_value = False
        order_repo.place_order.return_value = make_order()

        service.place_order(customer, _request(items=None))

        cart_repo.find_items.assert_called_once_with(customer.id)
        assert order_repo.place_order.call_args[0][1][0]['quantity'] == 1

    def test_explicit_empty_items_does_not_use_cart(self, service, repos, customer):
        order_repo, _, cart_repo, _, _ = repos
        cart_repo.find_items.return_value = [MagicMock(product_id=10, quantity=1, size='S', color=None)]

        with pytest.raises(CheckoutError, match="No items in order"):
            service.place_order(customer, _request(items=[]))

        cart_repo.find_items.assert_not_called()
        order_repo.place_order.assert_not_called()

    def test_missing_address_fields(self, service, customer):
        request = _request(shipping_address={'full_name': 'Jane', 'phone': '555'})

        with pytest.raises(CheckoutError) as exc:
            service.place_order(customer, request)

        assert "address_line1" in str(exc.value)
        assert "postal_code" in str(exc.value)

    def test_card_requires_last4(self, service, customer):
        with pytest.raises(CheckoutError, match="last 4 digits"):
            service.place_order(customer, _request(payment_method='card'))

    def test_email_failure_does_not_fail_order(self, service, repos, customer, make_product, make_order):
        order_repo, product_repo, _, _, email_service = repos
        product_repo.find_by_ids.return_value = {10: make_product()}
        order_repo.find_last_number.return_value = None
        order_repo.number_exists.return_value = False
        order_repo.place_order.return_value = make_order()
        email_service.send_order_confirmation.return_value = (False, "Email service is not configured")

        order = service.place_order(customer, _request())

        assert order.order_number == 'LF251000001'
