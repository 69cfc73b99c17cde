"""
Unit tests for NewsletterRepository

Author: TM3
Date: 2025-10-17
"""
from unittest.mock import patch
from datetime import datetime

from storefront.repositories.newsletter_repository import NewsletterRepository
from storefront.domain.newsletter import Subscriber


def _row(**overrides):
    row = {
        'id': 3,
        'email': 'jane@example.com',
        'name': 'Jane',
        'status': 'subscribed',
        'source': 'footer',
        'ip_address': '10.0.0.1',
        'subscribed_at': datetime(2025, 10, 1, 8, 0),
        'unsubscribed_at': None,
        'created_at': datetime(2025, 10, 1, 8, 0),
        'updated_at': None,
    }
    row.update(overrides)
    return row


class TestNewsletterRepository:

    @patch('storefront.repositories.newsletter_repository.get_db_connection_dict')
    def test_find_by_email_normalizes_case(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _row()

        subscriber = NewsletterRepository().find_by_email('  Jane@Example.COM ')

        assert isinstance(subscriber, Subscriber)
        assert mock_cursor.execute.call_args[0][1] == ('jane@example.com',)
        mock_conn.close.assert_called_once()

    @patch('storefront.repositories.newsletter_repository.get_db_connection_dict')
    def test_create_if_absent_reports_insert(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 1

        assert NewsletterRepository().create_if_absent('new@example.com', None, 'chat') is True
        mock_conn.commit.assert_called_once()

    @patch('storefront.repositories.newsletter_repository.get_db_connection_dict')
    def test_create_if_absent_existing_email(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 0

        assert NewsletterRepository().create_if_absent('jane@example.com', 'Jane', 'chat') is False
        assert "ON CONFLICT (email) DO NOTHING" in mock_cursor.execute.call_args[0][0]

    @patch('storefront.repositories.newsletter_repository.get_db_connection_dict')
    def test_unsubscribe_unknown_email(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        assert NewsletterRepository().unsubscribe('ghost@example.com') is None
        mock_cursor.close.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('storefront.repositories.newsletter_repository.get_db_connection_dict')
    def test_find_all_without_limit_has_no_paging(self, mock_get_conn, mock_db):
        """The CSV export asks for every row"""
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'total': 2}
        mock_cursor.fetchall.return_value = [_row(), _row(id=4, email='amy@example.com')]

        subscribers, total = NewsletterRepository().find_all(status='subscribed', limit=None)

        assert total == 2
        assert len(subscribers) == 2
        last_query, last_params = mock_cursor.execute.call_args[0]
        assert "LIMIT" not in last_query
        assert last_params == ['subscribed']
