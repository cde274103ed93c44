"""Rate limiting middleware tests."""

import pytest
from httpx import AsyncClient

from desicargo.config import settings


@pytest.fixture
def rate_limited():
    settings.rate_limit_enabled = True
    yield
    settings.rate_limit_enabled = False


@pytest.mark.api
@pytest.mark.asyncio
class TestRateLimit:

    async def test_signin_window(self, client: AsyncClient, rate_limited, staff_user):
        body = {"email": staff_user.email, "password": "wrong-password"}
        for _ in range(5):
            response = await client.post("/api/auth/signin", json=body)
            assert response.status_code == 401

        blocked = await client.post("/api/auth/signin", json=body)
        assert blocked.status_code == 429
        assert blocked.json()["error"]["code"] == "RATE_LIMITED"
        assert int(blocked.headers["Retry-After"]) >= 1

    async def test_headers_on_allowed_requests(self, client: AsyncClient, rate_limited, staff_headers):
        response = await client.get("/api/branches/", headers=staff_headers)
        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "500"

    async def test_health_is_exempt(self, client: AsyncClient, rate_limited):
        response = await client.get("/health")
        assert "X-RateLimit-Limit" not in response.headers

    async def test_disabled(self, client: AsyncClient, staff_user):
        body = {"email": staff_user.email, "password": "wrong-password"}
        for _ in range(7):
            response = await client.post("/api/auth/signin", json=body)
            assert response.status_code == 401
