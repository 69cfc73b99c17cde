"""
API tests for the catalog endpoints

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock

from storefront.domain.pagination import build_pagination
from storefront.services.catalog_service import get_catalog_service


@pytest.fixture
def catalog(api_client):
    client, overrides = api_client
    service = MagicMock()
    overrides[get_catalog_service] = lambda: service
    return client, service


class TestProductsAPI:

    def test_list_products(self, catalog, make_product):
        client, service = catalog
        service.list_products.return_value = {
            "products": [make_product().to_dict()],
            "pagination": build_pagination(1, 12, 1),
        }

        response = client.get("/api/v1/products", params={"category": "women", "sort": "price_low"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["data"][0]["effective_price"] == 90.0
        assert body["pagination"]["total_items"] == 1
        filters = service.list_products.call_args[0][0]
        assert filters["category"] == "women"
        assert service.list_products.call_args[1]["sort"] == "price_low"

    def test_limit_over_maximum_rejected(self, catalog):
        client, _ = catalog

        response = client.get("/api/v1/products", params={"limit": 500})

        assert response.status_code == 422

    def test_product_detail_with_related(self, catalog, make_product):
        client, service = catalog
        service.get_product.return_value = make_product()
        service.related_products.return_value = []

        response = client.get("/api/v1/products/silk-wrap-dress")

        assert response.status_code == 200
        assert response.json()["data"]["slug"] == "silk-wrap-dress"
        assert response.json()["related"] == []

    def test_product_not_found(self, catalog):
        client, service = catalog
        service.get_product.return_value = None

        response = client.get("/api/v1/products/unknown-thing")

        assert response.status_code == 404

    def test_unknown_collection(self, catalog):
        client, service = catalog

        response = client.get("/api/v1/products/collections/clearance")

        assert response.status_code == 404
        service.list_collection.assert_not_called()

    def test_suggestions_route_not_shadowed_by_detail(self, catalog):
        client, service = catalog
        service.search_suggestions.return_value = []

        response = client.get("/api/v1/products/suggestions", params={"q": "silk"})

        assert response.status_code == 200
        service.search_suggestions.assert_called_once_with("silk", 5)
        service.get_product.assert_not_called()

    def test_admin_stock_update_validation_error(self, catalog):
        client, service = catalog
        service.update_stock.side_effect = ValueError("Provide stock or sizes")

        response = client.patch("/api/v1/products/10/stock", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Provide stock or sizes"

    def test_categories_route_not_shadowed_by_detail(self, catalog):
        client, service = catalog
        service.list_categories.return_value = [
            {"slug": "evening-wear", "name": "Evening Wear", "product_count": 3, "sub_categories": []}
        ]

        response = client.get("/api/v1/products/categories")

        assert response.status_code == 200
        assert response.json()["data"][0]["slug"] == "evening-wear"
        service.get_product.assert_not_called()

    def test_filter_options_for_category(self, catalog):
        client, service = catalog
        service.filter_options.return_value = {"sizes": ["S"], "price_range": {"min": 0.0, "max": 0.0}}

        response = client.get("/api/v1/products/filters/options", params={"category": "evening-wear"})

        assert response.status_code == 200
        service.filter_options.assert_called_once_with("evening-wear")

    def test_bulk_status(self, catalog):
        client, service = catalog
        service.bulk_update_status.return_value = 2

        response = client.put("/api/v1/products/admin/bulk/status", json={"product_ids": [10, 11], "status": "draft"})

        assert response.status_code == 200
        assert response.json()["data"]["modified_count"] == 2
        service.bulk_update_status.assert_called_once_with([10, 11], "draft")

    def test_bulk_status_invalid(self, catalog):
        client, service = catalog
        service.bulk_update_status.side_effect = ValueError("Invalid status. Must be one of: active")

        response = client.put("/api/v1/products/admin/bulk/status", json={"product_ids": [10], "status": "x"})

        assert response.status_code == 400

    def test_bulk_delete_needs_ids(self, catalog):
        client, service = catalog

        response = client.request("DELETE", "/api/v1/products/admin/bulk/delete", json={"product_ids": []})

        assert response.status_code == 422
        service.bulk_delete.assert_not_called()

    def test_bulk_delete(self, catalog):
        client, service = catalog
        service.bulk_delete.return_value = 2

        response = client.request("DELETE", "/api/v1/products/admin/bulk/delete", json={"product_ids": [10, 11]})

        assert response.status_code == 200
        assert response.json()["data"]["deleted_count"] == 2
