"""
Unit tests for CartService

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock
from decimal import Decimal

from storefront.domain.cart import CartItem
from storefront.services.cart_service import CartService


def _item(**overrides) -> CartItem:
    data = {
        'id': 1, 'user_id': 7, 'product_id': 10, 'title': 'Silk Wrap Dress',
        'size': 'M', 'color': 'Black', 'price': Decimal('90.00'),
        'regular_price': Decimal('120.00'), 'quantity': 2,
        'image': 'https://cdn.example.com/b.jpg',
    }
    data.update(overrides)
    return CartItem(**data)


@pytest.fixture
def cart_repo():
    return MagicMock()


@pytest.fixture
def product_repo():
    return MagicMock()


@pytest.fixture
def service(cart_repo, product_repo):
    return CartService(cart_repo=cart_repo, product_repo=product_repo)


class TestGetCart:

    def test_totals(self, service, cart_repo, product_repo, make_product):
        cart_repo.find_items.return_value = [_item()]
        product_repo.find_by_ids.return_value = {10: make_product()}

        cart = service.get_cart(7).to_dict()

        assert cart['total_items'] == 2
        assert cart['subtotal'] == 180.0
        assert cart['removed_items'] == []
        cart_repo.update_item.assert_not_called()

    def test_drops_unavailable_lines(self, service, cart_repo, product_repo, make_product):
        cart_repo.find_items.return_value = [
            _item(),
            _item(id=2, product_id=11, title='Gone Jacket', size=None),
            _item(id=3, size='S'),
        ]
        product_repo.find_by_ids.return_value = {
            10: make_product(sizes=[{'name': 'M', 'stock': 5}, {'name': 'S', 'stock': 0}]),
        }

        cart = service.get_cart(7)

        assert [item.id for item in cart.items] == [1]
        assert [r.reason for r in cart.removed_items] == ["Product no longer available", "Out of stock"]
        cart_repo.remove_items.assert_called_once_with(7, [2, 3])

    def test_clamps_quantity_and_refreshes_price(self, service, cart_repo, product_repo, make_product):
        cart_repo.find_items.return_value = [_item(quantity=4, price=Decimal('120.00'))]
        product_repo.find_by_ids.return_value = {10: make_product(sizes=[{'name': 'M', 'stock': 3}])}
        cart_repo.update_item.return_value = None

        cart = service.get_cart(7)

        changed = cart_repo.update_item.call_args[0][1]
        assert changed == {'quantity': 3, 'price': Decimal('90.00')}
        assert cart.items[0].quantity == 3
        assert cart.items[0].stock == 3


class TestAddItem:

    def test_merges_with_existing_line(self, service, cart_repo, product_repo, make_product):
        product_repo.find_by_id.return_value = make_product()
        cart_repo.find_line.return_value = _item(quantity=2)
        cart_repo.find_items.return_value = []

        service.add_item(7, 10, quantity=2, size='m')

        cart_repo.find_line.assert_called_once_with(7, 10, 'M', None)
        assert cart_repo.update_item.call_args[0][1]['quantity'] == 4
        cart_repo.add_item.assert_not_called()

    def test_over_stock(self, service, cart_repo, product_repo, make_product):
        product_repo.find_by_id.return_value = make_product()
        cart_repo.find_line.return_value = None

        with pytest.raises(ValueError, match="Only 2 item\\(s\\) available"):
            service.add_item(7, 10, quantity=3, size='S')

    def test_size_required(self, service, product_repo, make_product):
        product_repo.find_by_id.return_value = make_product()

        with pytest.raises(ValueError, match="Size \\(none\\) is not available"):
            service.add_item(7, 10)

    def test_inactive_product(self, service, product_repo, make_product):
        product_repo.find_by_id.return_value = make_product(status='draft')

        with pytest.raises(ValueError, match="not found or unavailable"):
            service.add_item(7, 10, size='M')

    def test_update_foreign_line(self, service, cart_repo):
        cart_repo.find_item.return_value = None

        assert service.update_item(7, 55, 1) is None
