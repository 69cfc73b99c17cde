"""
API tests for newsletter signup and authentication endpoints

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock

from storefront.domain.newsletter import Subscriber
from storefront.services.auth_service import AuthError, get_auth_service
from storefront.services.newsletter_service import get_newsletter_service


@pytest.fixture
def newsletter(api_client):
    client, overrides = api_client
    service = MagicMock()
    overrides[get_newsletter_service] = lambda: service
    return client, service


@pytest.fixture
def auth(api_client):
    client, overrides = api_client
    service = MagicMock()
    overrides[get_auth_service] = lambda: service
    return client, service


class TestNewsletterAPI:

    def test_new_subscriber_is_201(self, newsletter):
        client, service = newsletter
        service.subscribe.return_value = (
            Subscriber(id=1, email="jane@example.com", name="Jane"), True, "Thank you for subscribing to our newsletter!"
        )

        response = client.post(
            "/api/v1/newsletter/subscribe",
            json={"email": "Jane@Example.com", "name": "Jane", "source": "footer"},
            headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
        )

        assert response.status_code == 201
        assert response.json()["data"] == {"email": "jane@example.com", "name": "Jane"}
        service.subscribe.assert_called_once_with("jane@example.com", "Jane", "footer", "203.0.113.9")

    def test_returning_subscriber_is_200(self, newsletter):
        client, service = newsletter
        service.subscribe.return_value = (
            Subscriber(id=1, email="jane@example.com"), False, "Welcome back! You have been re-subscribed to our newsletter."
        )

        response = client.post("/api/v1/newsletter/subscribe", json={"email": "jane@example.com"})

        assert response.status_code == 200
        assert response.json()["message"].startswith("Welcome back")

    def test_duplicate_is_400(self, newsletter):
        client, service = newsletter
        service.subscribe.side_effect = ValueError("This email is already subscribed")

        response = client.post("/api/v1/newsletter/subscribe", json={"email": "jane@example.com"})

        assert response.status_code == 400

    def test_invalid_email_is_422(self, newsletter):
        client, service = newsletter

        response = client.post("/api/v1/newsletter/subscribe", json={"email": "not-an-email"})

        assert response.status_code == 422
        service.subscribe.assert_not_called()

    def test_unsubscribe_unknown(self, newsletter):
        client, service = newsletter
        service.unsubscribe.return_value = None

        response = client.post("/api/v1/newsletter/unsubscribe", json={"email": "ghost@example.com"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Email not found in our subscriber list"


class TestAuthAPI:

    def test_login_failure_is_401_with_challenge(self, auth):
        client, service = auth
        service.login.side_effect = AuthError("Invalid email or password", 401)

        response = client.post("/api/v1/auth/login", json={"email": "jane@example.com", "password": "x"})

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_admin_login_forbidden(self, auth):
        client, service = auth
        service.login.side_effect = AuthError("Access denied. Admin privileges required.", 403)

        response = client.post("/api/v1/auth/admin/login", json={"email": "jane@example.com", "password": "Secret123"})

        assert response.status_code == 403
        assert service.login.call_args[1] == {"admin": True}

    def test_register_password_mismatch_is_422(self, auth):
        client, service = auth

        response = client.post("/api/v1/auth/register", json={
            "name": "Jane", "email": "jane@example.com",
            "password": "Secret123", "confirm_password": "Secret124",
        })

        assert response.status_code == 422
        service.register.assert_not_called()

    def test_register(self, auth):
        client, service = auth
        service.register.return_value = {"token": "abc", "user": {"id": 7, "email": "jane@example.com"}}

        response = client.post("/api/v1/auth/register", json={
            "name": "Jane", "email": "jane@example.com",
            "password": "Secret123", "confirm_password": "Secret123",
        })

        assert response.status_code == 201
        assert response.json()["data"]["token"] == "abc"
