"""Dashboard and finance endpoint tests over seeded bookings.

Seeded rows (Mumbai → Delhi): 100 booked 1h ago, 200 in transit 1d ago,
300 delivered 8d ago (24h to deliver), 400 cancelled 40d ago.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.api
@pytest.mark.asyncio
class TestDashboardStats:

    async def test_default_window_is_last_month(self, client: AsyncClient, seeded_bookings, admin_headers):
        response = await client.get("/api/dashboard/stats", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["date_range"] == "last_month"
        assert data["total_bookings"] == 3
        assert data["status_counts"] == {"booked": 1, "in_transit": 1, "delivered": 1, "cancelled": 0}
        assert data["revenue"] == {"total": 600.0, "average": 200.0}
        assert data["average_delivery_hours"] == 24.0
        assert len(data["daily_trend"]) == 30
        assert len(data["monthly_revenue"]) == 12
        assert data["branch_revenue"] == [{"name": "Mumbai Central", "value": 600.0}]

    async def test_all_time(self, client: AsyncClient, seeded_bookings, admin_headers):
        response = await client.get("/api/dashboard/stats?date_range=all", headers=admin_headers)
        data = response.json()
        assert data["total_bookings"] == 4
        assert data["revenue"]["total"] == 1000.0

    async def test_last_week(self, client: AsyncClient, seeded_bookings, admin_headers):
        response = await client.get("/api/dashboard/stats?date_range=last_week", headers=admin_headers)
        assert response.json()["total_bookings"] == 2

    async def test_search_by_lr(self, client: AsyncClient, seeded_bookings, admin_headers):
        response = await client.get(
            "/api/dashboard/stats?date_range=all&search=seed-0003", headers=admin_headers
        )
        data = response.json()
        assert data["total_bookings"] == 1
        assert data["status_counts"]["delivered"] == 1

    async def test_search_by_party(self, client: AsyncClient, seeded_bookings, admin_headers):
        response = await client.get(
            "/api/dashboard/stats?date_range=all&search=meena", headers=admin_headers
        )
        assert response.json()["total_bookings"] == 4

    async def test_top_customers(self, client: AsyncClient, seeded_bookings, admin_headers):
        response = await client.get("/api/dashboard/stats?date_range=all", headers=admin_headers)
        top = response.json()["top_customers"]
        assert [(c["name"], c["count"]) for c in top] == [("Ravi Traders", 4), ("Meena Stores", 4)]
        assert top[0]["type"] == "company"

    async def test_unknown_range_rejected(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/dashboard/stats?date_range=forever", headers=admin_headers)
        assert response.status_code == 422

    async def test_scope_outside_caller_branch(self, client: AsyncClient, seeded_bookings, staff_headers, pune):
        response = await client.get(
            f"/api/dashboard/stats?date_range=all&branch_id={pune.id}", headers=staff_headers
        )
        assert response.json()["total_bookings"] == 0


@pytest.mark.api
@pytest.mark.asyncio
class TestBranchDashboard:

    async def test_destination_branch(self, client: AsyncClient, seeded_bookings, admin_headers, delhi):
        response = await client.get(f"/api/dashboard/branch/{delhi.id}", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["branch_name"] == "Delhi Hub"
        assert data["summary"] == {
            "total_bookings": 4,
            "revenue": 1000.0,
            "inbound": 4,
            "outbound": 0,
            "pending_deliveries": 2,
            "active_vehicles": 0,
        }

    async def test_origin_branch_counts_vehicles(
        self, client: AsyncClient, seeded_bookings, truck, admin_headers, mumbai
    ):
        response = await client.get(f"/api/dashboard/branch/{mumbai.id}", headers=admin_headers)
        summary = response.json()["summary"]
        assert summary["outbound"] == 4
        assert summary["active_vehicles"] == 1

    async def test_malformed_branch(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/dashboard/branch/not-a-branch", headers=admin_headers)
        assert response.status_code == 400

    async def test_unknown_branch(self, client: AsyncClient, admin_headers):
        response = await client.get(
            "/api/dashboard/branch/00000000-0000-4000-8000-000000000000", headers=admin_headers
        )
        assert response.status_code == 404


@pytest.mark.api
@pytest.mark.asyncio
class TestFinance:

    async def test_cancelled_bookings_excluded(self, client: AsyncClient, seeded_bookings, accountant_headers):
        response = await client.get("/api/finance/revenue?date_range=all", headers=accountant_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["revenue"]["total"] == 600.0
        assert data["payment_types"][0] == {"name": "Paid", "value": 400.0}

    async def test_manager_refused(self, client: AsyncClient, manager_headers):
        response = await client.get("/api/finance/revenue", headers=manager_headers)
        assert response.status_code == 403
