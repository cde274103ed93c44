"""Branch directory endpoint tests."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from desicargo.models.branch import Branch


NEW_BRANCH = {
    "name": "Chennai Port",
    "code": "maa",
    "city": "Chennai",
    "state": "Tamil Nadu",
    "pincode": "600001",
}


@pytest.mark.api
@pytest.mark.asyncio
class TestBranchDirectory:

    async def test_list_ordered_by_name(self, client: AsyncClient, staff_headers, mumbai, delhi, pune):
        response = await client.get("/api/branches/", headers=staff_headers)
        assert response.status_code == 200
        assert [b["name"] for b in response.json()] == ["Delhi Hub", "Mumbai Central", "Pune Depot"]

    async def test_list_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/branches/")
        assert response.status_code == 401

    async def test_create_uppercases_code(self, client: AsyncClient, admin_headers):
        response = await client.post("/api/branches/", json=NEW_BRANCH, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["code"] == "MAA"

    async def test_create_duplicate_code(self, client: AsyncClient, admin_headers, mumbai):
        response = await client.post(
            "/api/branches/", json={**NEW_BRANCH, "code": "bom"}, headers=admin_headers
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_RECORD"

    async def test_single_head_office(self, client: AsyncClient, admin_headers, mumbai):
        response = await client.post(
            "/api/branches/", json={**NEW_BRANCH, "is_head_office": True}, headers=admin_headers
        )
        assert response.status_code == 422
        assert "head office" in response.json()["error"]["message"]

    async def test_staff_cannot_create(self, client: AsyncClient, staff_headers):
        response = await client.post("/api/branches/", json=NEW_BRANCH, headers=staff_headers)
        assert response.status_code == 403

    async def test_update(self, client: AsyncClient, admin_headers, pune):
        response = await client.patch(
            f"/api/branches/{pune.id}", json={"status": "maintenance"}, headers=admin_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "maintenance"
        assert data["name"] == "Pune Depot"

    async def test_get_malformed_id(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/branches/nope", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid branch ID format"

    async def test_get_unknown_id(self, client: AsyncClient, admin_headers):
        response = await client.get(
            "/api/branches/00000000-0000-4000-8000-000000000000", headers=admin_headers
        )
        assert response.status_code == 404


@pytest.mark.api
@pytest.mark.asyncio
class TestBranchDeletion:

    async def test_delete_unreferenced(self, client: AsyncClient, admin_headers, pune):
        response = await client.delete(f"/api/branches/{pune.id}", headers=admin_headers)
        assert response.status_code == 204

        again = await client.get(f"/api/branches/{pune.id}", headers=admin_headers)
        assert again.status_code == 404

    async def test_delete_with_bookings_is_refused(
        self, client: AsyncClient, session_factory, admin_headers, make_booking, delhi
    ):
        await make_booking()

        response = await client.delete(f"/api/branches/{delhi.id}", headers=admin_headers)
        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "REFERENTIAL_INTEGRITY"
        assert error["message"] == "Cannot delete branch with existing bookings"

        async with session_factory() as session:
            branch = (await session.execute(select(Branch).where(Branch.id == delhi.id))).scalar_one()
            assert branch.name == "Delhi Hub"

    async def test_delete_with_users_is_refused(self, client: AsyncClient, admin_headers, manager_user, delhi):
        response = await client.delete(f"/api/branches/{delhi.id}", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Cannot delete branch with assigned users"

    async def test_delete_with_vehicles_is_refused(self, client: AsyncClient, admin_headers, truck, mumbai):
        response = await client.delete(f"/api/branches/{mumbai.id}", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Cannot delete branch with assigned vehicles"

    async def test_branch_users(self, client: AsyncClient, admin_headers, manager_user, delhi):
        response = await client.get(f"/api/branches/{delhi.id}/users", headers=admin_headers)
        assert response.status_code == 200
        assert [u["email"] for u in response.json()] == [manager_user.email]
