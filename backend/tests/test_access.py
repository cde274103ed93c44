"""Route access policy tests."""

import pytest
from httpx import AsyncClient

from desicargo.auth import access


@pytest.mark.unit
class TestAccessPolicy:

    @pytest.mark.parametrize("path", ["/track", "/track/LR-20240315-0001", "/signin", "/reset-password"])
    def test_public_paths(self, path):
        assert access.decide(path, None) == (True, None)

    def test_anonymous_is_sent_to_signin(self):
        assert access.decide("/dashboard", None) == (False, "/signin")
        assert access.decide("/", None) == (False, "/signin")

    def test_signed_in_user_reaches_dashboard(self):
        assert access.decide("/dashboard/bookings", "staff") == (True, None)

    @pytest.mark.parametrize("role, expected", [
        ("admin", (True, None)),
        ("accountant", (True, None)),
        ("staff", (False, "/unauthorized")),
        ("branch_manager", (False, "/unauthorized")),
    ])
    def test_finance_roles(self, role, expected):
        assert access.decide("/finance/revenue", role) == expected

    def test_admin_only(self):
        assert access.decide("/admin/users", "admin") == (True, None)
        assert access.decide("/admin", "accountant") == (False, "/unauthorized")

    def test_prefix_is_segment_aware(self):
        assert access.allowed_roles_for("/administrators") is None
        assert access.is_public("/tracking") is False

    def test_query_string_ignored(self):
        assert access.decide("/admin?tab=users", "staff") == (False, "/unauthorized")

    def test_check_with_explicit_roles(self):
        assert access.check("staff", ["admin", "staff"]) is None
        assert access.check("staff", ["admin"]) == "/unauthorized"
        assert access.check(None, ["admin"]) == "/signin"


@pytest.mark.auth
@pytest.mark.asyncio
class TestAccessEndpoint:

    async def test_anonymous(self, client: AsyncClient):
        response = await client.get("/api/auth/access?path=/dashboard")
        assert response.json() == {"path": "/dashboard", "allowed": False, "redirect": "/signin"}

    async def test_role_denied(self, client: AsyncClient, staff_headers):
        response = await client.get("/api/auth/access?path=/admin/users", headers=staff_headers)
        assert response.json()["redirect"] == "/unauthorized"

    async def test_role_allowed(self, client: AsyncClient, accountant_headers):
        response = await client.get("/api/auth/access?path=/finance", headers=accountant_headers)
        assert response.json()["allowed"] is True

    async def test_revoked_token_counts_as_anonymous(self, client: AsyncClient, staff_headers):
        await client.post("/api/auth/signout", headers=staff_headers)
        response = await client.get("/api/auth/access?path=/dashboard", headers=staff_headers)
        assert response.json()["redirect"] == "/signin"
