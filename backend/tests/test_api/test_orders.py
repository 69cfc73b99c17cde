"""
API tests for checkout, order tracking and admin order management

Author: TM3
Date: 2025-10-17
"""
import io
import pytest
from unittest.mock import MagicMock

from storefront.services.checkout_service import CheckoutError, get_checkout_service
from storefront.services.order_service import get_order_service
from storefront.services.report_service import get_report_service


@pytest.fixture
def services(api_client):
    client, overrides = api_client
    checkout, orders, reports = MagicMock(), MagicMock(), MagicMock()
    overrides[get_checkout_service] = lambda: checkout
    overrides[get_order_service] = lambda: orders
    overrides[get_report_service] = lambda: reports
    return client, checkout, orders, reports


CHECKOUT_BODY = {
    "items": [{"product_id": 10, "quantity": 1, "size": "M"}],
    "shipping_address": {
        "full_name": "Jane Doe", "phone": "5550102030", "address_line1": "1 Main St",
        "city": "Springfield", "state": "IL", "postal_code": "62701",
    },
    "payment_method": "cod",
}


class TestCheckoutAPI:

    def test_place_order(self, services, make_order, customer):
        client, checkout, _, _ = services
        checkout.place_order.return_value = make_order()

        response = client.post("/api/v1/orders", json=CHECKOUT_BODY)

        assert response.status_code == 201
        assert response.json()["data"]["order_number"] == "LF251000001"
        assert response.json()["data"]["progress"]["current_step"] == 0
        assert checkout.place_order.call_args[0][0] == customer

    def test_checkout_errors_are_400(self, services):
        client, checkout, _, _ = services
        checkout.place_order.side_effect = CheckoutError([
            "Only 1 item(s) available for Silk Wrap Dress",
            "Product 12 is not available",
        ])

        response = client.post("/api/v1/orders", json=CHECKOUT_BODY)

        assert response.status_code == 400
        assert response.json()["detail"] == (
            "Only 1 item(s) available for Silk Wrap Dress; Product 12 is not available"
        )

    def test_unknown_payment_method(self, services):
        client, checkout, _, _ = services

        response = client.post("/api/v1/orders", json=dict(CHECKOUT_BODY, payment_method="cheque"))

        assert response.status_code == 422
        checkout.place_order.assert_not_called()


class TestCustomerOrdersAPI:

    def test_track_not_found(self, services):
        client, _, orders, _ = services
        orders.track.return_value = None

        response = client.post("/api/v1/orders/track", json={
            "order_number": " LF251000001 ", "contact": "someone@example.com"
        })

        assert response.status_code == 404
        assert response.json()["detail"] == "No order found with these details"
        orders.track.assert_called_once_with("LF251000001", "someone@example.com")

    def test_cancel_too_late(self, services):
        client, _, orders, _ = services
        orders.cancel_my_order.side_effect = ValueError("Order cannot be cancelled once it is shipped")

        response = client.put("/api/v1/orders/my-orders/100/cancel", json={"reason": "Changed my mind"})

        assert response.status_code == 400

    def test_foreign_order_is_404(self, services):
        client, _, orders, _ = services
        orders.get_my_order.return_value = None

        response = client.get("/api/v1/orders/my-orders/LF251000099")

        assert response.status_code == 404


class TestAdminOrdersAPI:

    def test_status_update_bad_alias(self, services):
        client, _, orders, _ = services

        response = client.patch("/api/v1/orders/admin/100/status", json={"order_status": "lost"})

        assert response.status_code == 422
        orders.update_status.assert_not_called()

    def test_status_update(self, services, make_order, admin_user):
        client, _, orders, _ = services
        orders.update_status.return_value = make_order(order_status="confirmed")

        response = client.patch("/api/v1/orders/admin/100/status", json={"order_status": "confirmed"})

        assert response.status_code == 200
        assert response.json()["data"]["order_status"] == "confirmed"
        order_id, update, admin_id = orders.update_status.call_args[0]
        assert order_id == 100
        assert update.order_status == "confirmed"
        assert admin_id == admin_user.id

    def test_export_csv(self, services):
        client, _, _, reports = services
        reports.export_orders_csv.return_value = (io.BytesIO(b"Order Number\nLF251000001\n"), "orders-2025-10-17.csv")

        response = client.get("/api/v1/orders/admin/export", params={"status": "delivered"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "orders-2025-10-17.csv" in response.headers["content-disposition"]
        assert response.text.splitlines()[1] == "LF251000001"
        assert reports.export_orders_csv.call_args[0][0]["order_status"] == "delivered"

    def test_admin_search(self, services):
        client, _, orders, _ = services
        orders.search_orders.return_value = {
            "orders": [],
            "pagination": {"current_page": 1, "total_pages": 0, "total_items": 0},
            "status_counts": {"pending": 2},
        }

        response = client.get("/api/v1/orders/admin/all", params={"status": "pending", "search": "jane"})

        assert response.status_code == 200
        assert response.json()["status_counts"] == {"pending": 2}
