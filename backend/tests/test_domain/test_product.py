"""
Unit tests for the Product domain model and pricing helpers

Author: TM3
Date: 2025-10-17
"""
from decimal import Decimal

import pytest

from storefront.domain.product import (
    ProductCreate,
    compute_effective_price,
    compute_discount_percent,
    slugify,
)
from storefront.domain.pagination import normalize_paging, build_pagination


class TestPricing:

    def test_sale_price_applies_when_lower(self):
        assert compute_effective_price(Decimal('120'), Decimal('90')) == Decimal('90')

    def test_sale_price_ignored_when_zero_or_higher(self):
        assert compute_effective_price(Decimal('120'), Decimal('0')) == Decimal('120')
        assert compute_effective_price(Decimal('120'), Decimal('150')) == Decimal('120')
        assert compute_effective_price(Decimal('120'), None) == Decimal('120')

    def test_discount_percent(self):
        assert compute_discount_percent(Decimal('120'), Decimal('90')) == 25
        assert compute_discount_percent(Decimal('0'), Decimal('0')) == 0


class TestProduct:

    def test_computed_fields(self, make_product):
        product = make_product()

        data = product.to_dict()

        assert data['effective_price'] == 90.0
        assert data['is_on_sale'] is True
        assert data['discount_percent'] == 25
        assert data['main_image'] == 'https://cdn.example.com/b.jpg'
        assert data['regular_price'] == 120.0

    def test_main_image_falls_back_to_first(self, make_product):
        product = make_product(images=[{'url': 'https://cdn.example.com/a.jpg'}])
        assert product.main_image == 'https://cdn.example.com/a.jpg'
        assert make_product(images=None).main_image is None

    def test_available_stock_per_size(self, make_product):
        product = make_product()

        assert product.available_stock('m') == 5
        assert product.available_stock('XL') == 0
        assert product.available_stock(None) == 0

    def test_available_stock_without_sizes(self, make_product):
        product = make_product(sizes=[], stock=3)
        assert product.available_stock() == 3


class TestSlugify:

    def test_slugify(self):
        assert slugify("Silk Wrap Dress (Black)") == "silk-wrap-dress-black"
        assert slugify("  --  ") == "product"

    def test_create_rejects_unknown_status(self):
        with pytest.raises(ValueError):
            ProductCreate(title="Dress", regular_price=Decimal('10'), status="deleted")


class TestPagination:

    def test_normalize_paging_clamps(self):
        assert normalize_paging(0, 500, 20, 100) == (1, 100, 0)
        assert normalize_paging(3, 0, 20, 100) == (3, 20, 40)

    def test_build_pagination(self):
        pagination = build_pagination(2, 10, 25)

        assert pagination['total_pages'] == 3
        assert pagination['has_next_page'] is True
        assert pagination['has_prev_page'] is True

    def test_build_pagination_empty(self):
        pagination = build_pagination(1, 10, 0)
        assert pagination['total_pages'] == 0
        assert pagination['has_next_page'] is False
