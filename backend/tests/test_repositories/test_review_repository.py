"""
Unit tests for ReviewRepository

Covers the moderation writes that refresh the product rating.

Author: TM3
Date: 2025-10-17
"""
from unittest.mock import patch

from storefront.repositories.review_repository import ReviewRepository


class TestReviewRepository:

    @patch('storefront.repositories.review_repository.get_db_connection_dict')
    def test_update_status_refreshes_rating_in_same_transaction(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'product_id': 10}
        repo = ReviewRepository()

        # Act
        with patch.object(repo, 'find_by_id', return_value='review') as mock_find:
            result = repo.update_status(3, 'approved')

        # Assert
        assert result == 'review'
        mock_find.assert_called_once_with(3)
        statements = [call[0][0] for call in mock_cursor.execute.call_args_list]
        assert "UPDATE reviews" in statements[0]
        assert "UPDATE products" in statements[1]
        assert "status = 'approved'" in statements[1]
        assert mock_cursor.execute.call_args_list[1][0][1] == (10, 10, 10)
        mock_conn.commit.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('storefront.repositories.review_repository.get_db_connection_dict')
    def test_update_status_unknown_review(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        assert ReviewRepository().update_status(999, 'approved') is None
        assert mock_cursor.execute.call_count == 1
        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()

    @patch('storefront.repositories.review_repository.get_db_connection_dict')
    def test_delete_refreshes_rating(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'product_id': 10}

        assert ReviewRepository().delete(3) is True

        assert "UPDATE products" in mock_cursor.execute.call_args_list[1][0][0]
        mock_conn.commit.assert_called_once()

    @patch('storefront.repositories.review_repository.get_db_connection_dict')
    def test_create_duplicate_returns_none(self, mock_get_conn, mock_db):
        """A concurrent second review of the same product inserts nothing"""
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        result = ReviewRepository().create(10, 7, 5, None, 'Fits perfectly, great fabric', False)

        assert result is None
        assert "ON CONFLICT (product_id, user_id) DO NOTHING" in mock_cursor.execute.call_args[0][0]
        mock_conn.commit.assert_called_once()

    @patch('storefront.repositories.review_repository.get_db_connection_dict')
    def test_rating_counts(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.return_value = [{'rating': 5, 'count': 3}, {'rating': 2, 'count': 1}]

        assert ReviewRepository().rating_counts(10) == {5: 3, 2: 1}
