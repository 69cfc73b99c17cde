"""
Pytest fixtures and configuration for the storefront backend tests

This file provides shared fixtures that can be used across all test modules.
Nothing here needs a database: repositories are mocked at the
get_db_connection_dict seam and services are swapped through FastAPI
dependency overrides.

Author: TM3
Date: 2025-10-17
"""
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

from storefront.core.auth import TokenUser
from storefront.domain.product import Product
from storefront.domain.order import Order
from storefront.domain.chat import Chat, ChatSettings


@pytest.fixture
def customer():
    """Signed-in customer as the API sees it"""
    return TokenUser(id=7, email="jane@example.com", name="Jane Doe", role="user")


@pytest.fixture
def admin_user():
    return TokenUser(id=1, email="admin@luxefashion.com", name="Admin", role="admin")


@pytest.fixture
def sample_product_row():
    """
    Provides a products row as RealDictCursor returns it
    """
    return {
        'id': 10,
        'title': 'Silk Wrap Dress',
        'slug': 'silk-wrap-dress',
        'description': 'Flowing silk dress',
        'short_description': None,
        'category': 'women',
        'sub_category': 'Dresses',
        'images': [
            {'url': 'https://cdn.example.com/a.jpg', 'public_id': 'products/a.jpg', 'is_main': False},
            {'url': 'https://cdn.example.com/b.jpg', 'public_id': 'products/b.jpg', 'is_main': True},
        ],
        'regular_price': Decimal('120.00'),
        'sale_price': Decimal('90.00'),
        'sizes': [{'name': 'S', 'stock': 2}, {'name': 'M', 'stock': 5}],
        'colors': [{'name': 'Black', 'hex': '#000000'}],
        'stock': 7,
        'sku': 'LX-DR-001',
        'tags': ['silk', 'summer'],
        'featured': True,
        'new_arrival': False,
        'best_seller': False,
        'status': 'active',
        'rating_average': Decimal('4.5'),
        'rating_count': 12,
        'total_sold': 30,
        'created_at': datetime(2025, 10, 1, 12, 0),
        'updated_at': None,
    }


@pytest.fixture
def make_product(sample_product_row):
    """Factory for Product models with field overrides"""
    def _make(**overrides) -> Product:
        row = dict(sample_product_row)
        row.update(overrides)
        return Product(**row)
    return _make


@pytest.fixture
def make_order():
    """Factory for Order models with field overrides"""
    def _make(**overrides) -> Order:
        data = {
            'id': 100,
            'order_number': 'LF251000001',
            'user_id': 7,
            'items': [{
                'id': 1, 'order_id': 100, 'product_id': 10, 'title': 'Silk Wrap Dress',
                'size': 'M', 'color': 'Black', 'price': Decimal('90.00'), 'quantity': 2,
                'total': Decimal('180.00'),
            }],
            'shipping_address': {
                'full_name': 'Jane Doe', 'phone': '+1 (555) 010-2030', 'email': 'jane@example.com',
                'address_line1': '1 Main St', 'city': 'Springfield', 'state': 'IL',
                'postal_code': '62701', 'country': 'United States',
            },
            'payment_method': 'cod',
            'payment_status': 'pending',
            'order_status': 'pending',
            'status_history': [{'status': 'pending', 'note': 'Order placed successfully'}],
            'subtotal': Decimal('180.00'),
            'discount': Decimal('0'),
            'shipping_cost': Decimal('10.00'),
            'total': Decimal('190.00'),
            'created_at': datetime(2025, 10, 5, 9, 30, tzinfo=timezone.utc),
            'customer_name': 'Jane Doe',
            'customer_email': 'jane@example.com',
            'customer_phone': '5550102030',
        }
        data.update(overrides)
        return Order(**data)
    return _make


@pytest.fixture
def make_chat():
    def _make(**overrides) -> Chat:
        data = {
            'id': 5,
            'visitor_id': 'v-123',
            'visitor_name': '',
            'visitor_email': '',
            'status': 'active',
            'messages': [],
        }
        data.update(overrides)
        return Chat(**data)
    return _make


@pytest.fixture
def chat_settings():
    return ChatSettings()


@pytest.fixture
def mock_db():
    """
    Mocked psycopg2 connection and cursor

    Returns (connection, cursor); patch get_db_connection_dict to return
    the connection.
    """
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_conn.cursor.return_value = mock_cursor
    return mock_conn, mock_cursor


@pytest.fixture
def api_client(customer, admin_user):
    """
    TestClient over the real app with authentication overridden

    Yields (client, overrides); tests register service overrides on the
    returned dict. Overrides are cleared afterwards.
    """
    from fastapi.testclient import TestClient

    from storefront.main import app
    from storefront.core.auth import get_current_user, require_admin
    from storefront.core.rate_limit import rate_limiter

    app.dependency_overrides[get_current_user] = lambda: customer
    app.dependency_overrides[require_admin] = lambda: admin_user
    rate_limiter.reset()

    with TestClient(app) as client:
        yield client, app.dependency_overrides

    app.dependency_overrides.clear()
