"""
Unit tests for ProductRepository

These tests validate repository logic without requiring a database connection.

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import patch, MagicMock
from decimal import Decimal

from storefront.repositories.product_repository import ProductRepository
from storefront.domain.product import Product


class TestProductRepository:
    """Test ProductRepository methods"""

    @patch('storefront.repositories.product_repository.get_db_connection_dict')
    def test_find_by_id_returns_product(self, mock_get_conn, mock_db, sample_product_row):
        """Test find_by_id returns a Product domain model"""
        # Arrange: Mock database connection
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = sample_product_row

        # Act: Call repository method
        repo = ProductRepository()
        product = repo.find_by_id(10)

        # Assert: Verify result
        assert isinstance(product, Product)
        assert product.slug == 'silk-wrap-dress'
        assert product.effective_price == Decimal('90.00')
        assert [size.name for size in product.sizes] == ['S', 'M']

        # Verify database was called correctly
        mock_cursor.execute.assert_called_once()
        assert mock_cursor.execute.call_args[0][1] == (10,)
        mock_cursor.close.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('storefront.repositories.product_repository.get_db_connection_dict')
    def test_find_by_id_returns_none_when_not_found(self, mock_get_conn, mock_db):
        """Test find_by_id returns None when product doesn't exist"""
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        # Act
        product = ProductRepository().find_by_id(999)

        # Assert
        assert product is None
        mock_cursor.close.assert_called_once()
        mock_conn.close.assert_called_once()

    def test_find_by_ids_empty_skips_database(self):
        """No ids means no query at all"""
        with patch('storefront.repositories.product_repository.get_db_connection_dict') as mock_get_conn:
            assert ProductRepository().find_by_ids([]) == {}
            mock_get_conn.assert_not_called()

    @patch('storefront.repositories.product_repository.get_db_connection_dict')
    def test_find_by_ids_keys_by_id(self, mock_get_conn, mock_db, sample_product_row):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        other = dict(sample_product_row, id=11, slug='linen-shirt', title='Linen Shirt')
        mock_cursor.fetchall.return_value = [sample_product_row, other]

        products = ProductRepository().find_by_ids([10, 11, 10])

        assert set(products) == {10, 11}
        assert products[11].title == 'Linen Shirt'
        # Duplicate ids are collapsed before querying
        assert sorted(mock_cursor.execute.call_args[0][1][0]) == [10, 11]

    @patch('storefront.repositories.product_repository.get_db_connection_dict')
    def test_delete_rolls_back_on_error(self, mock_get_conn, mock_db):
        """Failed writes roll back and still release the connection"""
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.execute.side_effect = Exception("boom")

        with pytest.raises(Exception, match="boom"):
            ProductRepository().delete(10)

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()

    @patch('storefront.repositories.product_repository.get_db_connection_dict')
    def test_update_status_many(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 2

        assert ProductRepository().update_status_many([10, 11, 10], 'draft') == 2

        status, ids = mock_cursor.execute.call_args[0][1]
        assert status == 'draft'
        assert sorted(ids) == [10, 11]
        mock_conn.commit.assert_called_once()

    @patch('storefront.repositories.product_repository.get_db_connection_dict')
    def test_filter_options_scoped_to_category(self, mock_get_conn, mock_db):
        # Arrange: sizes, colors, price/sub category row, tags
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.side_effect = [
            [{'name': 'M'}, {'name': 'S'}],
            [{'name': 'Black', 'hex': '#000000'}],
            [{'tag': 'silk'}],
        ]
        mock_cursor.fetchone.return_value = {
            'min_price': Decimal('90.00'), 'max_price': Decimal('120.00'), 'sub_categories': ['Gowns', 'Dresses'],
        }

        # Act
        options = ProductRepository().filter_options(category='evening-wear')

        # Assert
        assert options['sizes'] == ['M', 'S']
        assert options['colors'] == [{'name': 'Black', 'hex': '#000000'}]
        assert options['sub_categories'] == ['Dresses', 'Gowns']
        assert options['tags'] == ['silk']
        assert options['min_price'] == Decimal('90.00')
        for call in mock_cursor.execute.call_args_list:
            assert "p.status = 'active' AND p.category = %s" in call[0][0]
            assert call[0][1] == ['evening-wear']
        mock_conn.close.assert_called_once()
