"""
Unit tests for CatalogService

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock
from decimal import Decimal

from storefront.domain.product import ProductCreate, ProductUpdate
from storefront.services.catalog_service import CatalogService


@pytest.fixture
def product_repo():
    repo = MagicMock()
    repo.slug_exists.return_value = False
    return repo


@pytest.fixture
def media_service():
    return MagicMock()


@pytest.fixture
def service(product_repo, media_service):
    return CatalogService(product_repo=product_repo, media_service=media_service)


class TestPublicCatalog:

    def test_public_listing_forces_active(self, service, product_repo):
        product_repo.find_all.return_value = ([], 0)

        service.list_products({'category': 'women', 'search': '', 'status': 'draft'}, page=2, limit=12)

        kwargs = product_repo.find_all.call_args[1]
        assert kwargs['status'] == 'active'
        assert kwargs['category'] == 'women'
        assert 'search' not in kwargs
        assert kwargs['offset'] == 12

    def test_collection_filters(self, service, product_repo):
        product_repo.find_all.return_value = ([], 0)

        service.list_collection('sale')

        kwargs = product_repo.find_all.call_args[1]
        assert kwargs['on_sale'] is True
        assert kwargs['sort'] == 'discount'

    def test_unknown_collection(self, service):
        with pytest.raises(ValueError, match="Unknown collection"):
            service.list_collection('clearance')

    def test_hidden_product_not_found_publicly(self, service, product_repo, make_product):
        product_repo.find_by_id.return_value = make_product(status='draft')

        assert service.get_product('10') is None
        assert service.get_product('10', public=False).status == 'draft'

    def test_lookup_by_slug(self, service, product_repo, make_product):
        product_repo.find_by_slug.return_value = make_product()

        assert service.get_product('silk-wrap-dress').id == 10
        product_repo.find_by_id.assert_not_called()

    def test_blank_suggestions(self, service, product_repo):
        assert service.search_suggestions('  ') == []
        product_repo.search_suggestions.assert_not_called()


class TestAdminCatalog:

    def test_create_generates_unique_slug_and_stock(self, service, product_repo, make_product):
        product_repo.slug_exists.side_effect = [True, False]
        product_repo.create.return_value = make_product()

        service.create_product(ProductCreate(
            title='Silk Wrap Dress',
            regular_price=Decimal('120'),
            sizes=[{'name': 'S', 'stock': 0}, {'name': 'M', 'stock': 0}],
        ))

        fields = product_repo.create.call_args[0][0]
        assert fields['slug'] == 'silk-wrap-dress-2'
        assert fields['stock'] == 0
        assert fields['status'] == 'out_of_stock'

    def test_update_title_renames_slug(self, service, product_repo, make_product):
        product_repo.find_by_id.return_value = make_product()

        service.update_product(10, ProductUpdate(title='Silk Midi Dress'))

        assert product_repo.update.call_args[0][1] == {'title': 'Silk Midi Dress', 'slug': 'silk-midi-dress'}

    def test_stock_update_on_sized_product(self, service, product_repo, make_product):
        product_repo.find_by_id.return_value = make_product()

        with pytest.raises(ValueError, match="per size"):
            service.update_stock(10, stock=5)

    def test_restock_reactivates(self, service, product_repo, make_product):
        product_repo.find_by_id.return_value = make_product(sizes=[], stock=0, status='out_of_stock')

        service.update_stock(10, stock=4)

        assert product_repo.update.call_args[0][1] == {'stock': 4, 'status': 'active'}

    def test_delete_removes_images(self, service, product_repo, media_service, make_product):
        product_repo.find_by_id.return_value = make_product()
        product_repo.delete.return_value = True
        media_service.delete.side_effect = [Exception("storage down"), True]

        assert service.delete_product(10) is True
        assert media_service.delete.call_count == 2


class TestCategoriesAndFilters:

    def test_public_categories_skip_empty(self, service, product_repo):
        product_repo.category_summary.return_value = [
            {'category': 'evening-wear', 'active_count': 3, 'total_count': 4, 'sub_categories': ['Gowns', 'Dresses']},
            {'category': 'archive', 'active_count': 0, 'total_count': 2, 'sub_categories': []},
        ]

        categories = service.list_categories()

        assert categories == [{
            'slug': 'evening-wear', 'name': 'Evening Wear', 'product_count': 3,
            'sub_categories': ['Dresses', 'Gowns'],
        }]

    def test_admin_categories_count_every_product(self, service, product_repo):
        product_repo.category_summary.return_value = [
            {'category': 'archive', 'active_count': 0, 'total_count': 2, 'sub_categories': None},
        ]

        categories = service.list_categories(public=False)

        assert categories[0]['product_count'] == 2

    def test_filter_options(self, service, product_repo):
        product_repo.filter_options.return_value = {
            'sizes': ['XL', 'S', '38', 'M'],
            'colors': [{'name': 'Black', 'hex': '#000000'}],
            'sub_categories': ['Dresses'],
            'tags': ['silk'],
            'min_price': Decimal('45.00'),
            'max_price': Decimal('320.00'),
        }

        options = service.filter_options('')

        product_repo.filter_options.assert_called_once_with(category=None)
        assert options['sizes'] == ['S', 'M', 'XL', '38']
        assert options['price_range'] == {'min': 45.0, 'max': 320.0}

    def test_filter_options_without_products(self, service, product_repo):
        product_repo.filter_options.return_value = {
            'sizes': [], 'colors': [], 'sub_categories': [], 'tags': [],
            'min_price': None, 'max_price': None,
        }

        assert service.filter_options('shoes')['price_range'] == {'min': 0.0, 'max': 0.0}


class TestBulkActions:

    def test_bulk_status(self, service, product_repo):
        product_repo.update_status_many.return_value = 2

        assert service.bulk_update_status([10, 11], 'draft') == 2
        product_repo.update_status_many.assert_called_once_with([10, 11], 'draft')

    def test_bulk_status_rejects_unknown_status(self, service, product_repo):
        with pytest.raises(ValueError, match="Invalid status"):
            service.bulk_update_status([10], 'hidden')

        product_repo.update_status_many.assert_not_called()

    def test_bulk_delete_removes_images(self, service, product_repo, media_service, make_product):
        product_repo.find_by_ids.return_value = {10: make_product()}
        product_repo.delete_many.return_value = 1

        assert service.bulk_delete([10, 99]) == 1
        assert media_service.delete.call_count == 2
        product_repo.delete_many.assert_called_once_with([10, 99])

    def test_bulk_delete_needs_ids(self, service):
        with pytest.raises(ValueError, match="product IDs"):
            service.bulk_delete([])
