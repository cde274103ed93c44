"""Parties, articles and health endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.api
@pytest.mark.asyncio
class TestCustomers:

    async def test_create_defaults_to_caller_branch(self, client: AsyncClient, staff_headers, mumbai):
        response = await client.post(
            "/api/customers/",
            json={"name": "Lakshmi Textiles", "mobile": "98765-43211", "type": "company"},
            headers=staff_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["branch_id"] == mumbai.id
        assert data["mobile"] == "9876543211"

    async def test_invalid_mobile(self, client: AsyncClient, staff_headers):
        response = await client.post(
            "/api/customers/", json={"name": "Short Number", "mobile": "12345"}, headers=staff_headers
        )
        assert response.status_code == 422

    async def test_search(self, client: AsyncClient, parties, staff_headers):
        response = await client.get("/api/customers/?search=ravi", headers=staff_headers)
        assert [c["name"] for c in response.json()] == ["Ravi Traders"]

    async def test_list_by_malformed_branch(self, client: AsyncClient, staff_headers):
        response = await client.get("/api/customers/?branch_id=x", headers=staff_headers)
        assert response.status_code == 400


@pytest.mark.api
@pytest.mark.asyncio
class TestArticles:

    async def test_list_includes_shared_articles(self, client: AsyncClient, parties, staff_headers, mumbai, delhi):
        shared = await client.post(
            "/api/articles/", json={"name": "Bags", "base_rate": 20}, headers=staff_headers
        )
        assert shared.status_code == 201

        at_mumbai = await client.get(f"/api/articles/?branch_id={mumbai.id}", headers=staff_headers)
        at_delhi = await client.get(f"/api/articles/?branch_id={delhi.id}", headers=staff_headers)
        assert [a["name"] for a in at_mumbai.json()] == ["Bags", "Cartons"]
        assert [a["name"] for a in at_delhi.json()] == ["Bags"]


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
