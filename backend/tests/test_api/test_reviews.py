"""
API tests for the review endpoints

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock

from storefront.domain.review import Review
from storefront.services.review_service import get_review_service


@pytest.fixture
def reviews(api_client):
    client, overrides = api_client
    service = MagicMock()
    overrides[get_review_service] = lambda: service
    return client, service


def _review(**overrides) -> Review:
    data = {
        'id': 3, 'product_id': 10, 'user_id': 7, 'rating': 5,
        'comment': 'Fits perfectly, great fabric', 'status': 'pending',
    }
    data.update(overrides)
    return Review(**data)


class TestReviewsAPI:

    def test_create_review(self, reviews, customer):
        client, service = reviews
        service.create_review.return_value = _review()

        response = client.post("/api/v1/reviews", json={
            "product_id": 10, "rating": 5, "comment": "Fits perfectly, great fabric",
        })

        assert response.status_code == 201
        assert response.json()["data"]["status"] == "pending"
        user_id, data = service.create_review.call_args[0]
        assert user_id == customer.id
        assert data.rating == 5

    def test_short_comment_rejected(self, reviews):
        client, service = reviews

        response = client.post("/api/v1/reviews", json={"product_id": 10, "rating": 5, "comment": "Nice"})

        assert response.status_code == 422
        service.create_review.assert_not_called()

    def test_duplicate_review(self, reviews):
        client, service = reviews
        service.create_review.side_effect = ValueError("You have already reviewed this product")

        response = client.post("/api/v1/reviews", json={
            "product_id": 10, "rating": 4, "comment": "Second thoughts on this one",
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "You have already reviewed this product"

    def test_review_for_missing_product(self, reviews):
        client, service = reviews
        service.create_review.return_value = None

        response = client.post("/api/v1/reviews", json={
            "product_id": 99, "rating": 4, "comment": "Fits perfectly, great fabric",
        })

        assert response.status_code == 404

    def test_product_reviews(self, reviews):
        client, service = reviews
        service.product_reviews.return_value = {
            "reviews": [_review(status='approved').to_dict()],
            "stats": {"average_rating": 5.0, "total_reviews": 1, "distribution": {5: 1}},
            "pagination": {"total_items": 1},
        }

        response = client.get("/api/v1/reviews/product/10", params={"sort": "rating_low"})

        assert response.status_code == 200
        assert response.json()["stats"]["average_rating"] == 5.0
        service.product_reviews.assert_called_once_with(10, sort="rating_low", page=1, limit=10)

    def test_approve_unknown_review(self, reviews):
        client, service = reviews
        service.set_status.return_value = None

        response = client.put("/api/v1/reviews/999/status", json={"status": "approved"})

        assert response.status_code == 404

    def test_invalid_status(self, reviews):
        client, service = reviews

        response = client.put("/api/v1/reviews/3/status", json={"status": "hidden"})

        assert response.status_code == 422
        service.set_status.assert_not_called()

    def test_reply_records_admin(self, reviews, admin_user):
        client, service = reviews
        service.reply.return_value = _review(admin_reply="Thank you!")

        response = client.put("/api/v1/reviews/3/reply", json={"comment": " Thank you! "})

        assert response.status_code == 200
        service.reply.assert_called_once_with(3, "Thank you!", admin_user.id)
