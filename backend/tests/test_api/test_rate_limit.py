"""
Tests for the rate limiting middleware

Author: TM3
Date: 2025-10-17
"""
from unittest.mock import MagicMock, patch

from storefront.core.rate_limit import RateLimiter, get_client_ip


class TestRateLimiter:

    def test_allows_up_to_limit(self):
        limiter = RateLimiter()

        results = [limiter.is_allowed("ip:1.2.3.4", max_requests=2) for _ in range(3)]

        assert [allowed for allowed, _, _ in results] == [True, True, False]
        assert results[0][1] == 1
        assert results[2][2] >= 1

    def test_identifiers_are_independent(self):
        limiter = RateLimiter()
        limiter.is_allowed("ip:1.2.3.4", max_requests=1)

        allowed, _, _ = limiter.is_allowed("ip:5.6.7.8", max_requests=1)

        assert allowed is True


class TestClientIp:

    def test_forwarded_for_first_hop(self):
        request = MagicMock()
        request.headers = {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}

        assert get_client_ip(request) == "203.0.113.9"

    def test_ipv4_mapped_address(self):
        request = MagicMock()
        request.headers = {}
        request.client.host = "::ffff:192.168.1.20"

        assert get_client_ip(request) == "192.168.1.20"


class TestRateLimitMiddleware:

    def test_form_posts_have_their_own_limit(self, api_client):
        client, _ = api_client

        with patch('storefront.core.rate_limit.settings.RATE_LIMIT_FORMS', 2):
            codes = [
                client.post("/api/v1/newsletter/subscribe", json={"email": "bad"}).status_code
                for _ in range(3)
            ]
            browsing = client.get("/api/v1/chat/admin/stats")

        assert codes == [422, 422, 429]
        assert browsing.status_code == 200
        assert browsing.headers["X-RateLimit-Limit"] != "2"

    def test_limited_response_headers(self, api_client):
        client, _ = api_client

        with patch('storefront.core.rate_limit.settings.RATE_LIMIT_FORMS', 1):
            client.post("/api/v1/orders/track", json={})
            response = client.post("/api/v1/orders/track", json={})

        assert response.status_code == 429
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert int(response.headers["Retry-After"]) >= 1
