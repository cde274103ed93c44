"""OGPL manifest tests: loading bookings and all-or-nothing unloading."""

from datetime import date

import pytest
import pytest_asyncio
from httpx import AsyncClient

from desicargo.middleware.exceptions import DomainValidationError
from desicargo.schemas.ogpl import UnloadCondition
from desicargo.services.ogpl import validate_conditions


@pytest.fixture
def manifest(truck, mumbai, delhi) -> dict:
    return {
        "name": "Night run to Delhi",
        "vehicle_id": truck.id,
        "transit_mode": "direct",
        "transit_date": date.today().isoformat(),
        "from_station": mumbai.id,
        "to_station": delhi.id,
        "departure_time": "21:30",
        "supervisor_name": "Kiran Patil",
        "supervisor_mobile": "98200 11223",
        "primary_driver_name": "Ramesh Yadav",
        "primary_driver_mobile": "9820044556",
    }


@pytest_asyncio.fixture
async def loaded(client: AsyncClient, make_booking, manifest, staff_headers) -> dict:
    """A manifest carrying two fresh bookings."""
    first = await make_booking()
    second = await make_booking(quantity=1)
    response = await client.post(
        "/api/ogpl/",
        json={**manifest, "booking_ids": [first["id"], second["id"]]},
        headers=staff_headers,
    )
    assert response.status_code == 201, response.text
    return {"ogpl": response.json(), "bookings": [first, second]}


@pytest.mark.unit
class TestConditionValidation:

    def test_unlisted_bookings_default_to_good(self):
        result = validate_conditions(["a", "b"], {"b": UnloadCondition(status="damaged", remarks=" torn ")})
        assert result["a"] == {"status": "good", "remarks": None, "photo": None}
        assert result["b"]["remarks"] == "torn"

    def test_remarks_required_names_lr(self):
        with pytest.raises(DomainValidationError) as exc:
            validate_conditions(
                ["a", "b"],
                {"b": UnloadCondition(status="missing", remarks="  ")},
                {"b": "LR-20240315-0002"},
            )
        assert "LR-20240315-0002" in exc.value.message
        assert exc.value.details == {"booking_ids": ["b"]}

    def test_duplicates_rejected(self):
        with pytest.raises(DomainValidationError):
            validate_conditions(["a", "a"], {})

    def test_conditions_for_other_bookings_rejected(self):
        with pytest.raises(DomainValidationError):
            validate_conditions(["a"], {"z": UnloadCondition()})


@pytest.mark.api
@pytest.mark.asyncio
class TestLoading:

    async def test_create_loads_bookings_in_order(self, client: AsyncClient, loaded, staff_headers):
        ogpl = loaded["ogpl"]
        assert ogpl["status"] == "in_transit"
        assert ogpl["ogpl_number"].startswith("OGPL-")
        assert ogpl["supervisor_mobile"] == "9820011223"
        assert ogpl["vehicle"]["vehicle_number"] == "MH01AB1234"

        records = sorted(ogpl["loading_records"], key=lambda r: r["sequence"])
        assert [r["booking_id"] for r in records] == [b["id"] for b in loaded["bookings"]]

        booking = await client.get(
            f"/api/bookings/{loaded['bookings'][0]['id']}", headers=staff_headers
        )
        assert booking.json()["status"] == "in_transit"

    async def test_tracking_shows_manifest(self, client: AsyncClient, loaded):
        lr_number = loaded["bookings"][0]["lr_number"]
        response = await client.get(f"/api/track/{lr_number}")
        assert response.json()["ogpl_number"] == loaded["ogpl"]["ogpl_number"]

    async def test_booking_cannot_be_loaded_twice(self, client: AsyncClient, loaded, manifest, staff_headers):
        response = await client.post(
            "/api/ogpl/",
            json={**manifest, "booking_ids": [loaded["bookings"][0]["id"]]},
            headers=staff_headers,
        )
        assert response.status_code == 422

    async def test_inactive_vehicle(self, client: AsyncClient, make_booking, manifest, truck, admin_headers, staff_headers):
        booking = await make_booking()
        await client.patch(
            f"/api/vehicles/{truck.id}/status", json={"status": "maintenance"}, headers=admin_headers
        )
        response = await client.post(
            "/api/ogpl/", json={**manifest, "booking_ids": [booking["id"]]}, headers=staff_headers
        )
        assert response.status_code == 422
        assert "not active" in response.json()["error"]["message"]

    async def test_malformed_booking_id(self, client: AsyncClient, manifest, staff_headers):
        response = await client.post(
            "/api/ogpl/", json={**manifest, "booking_ids": ["b-1"]}, headers=staff_headers
        )
        assert response.status_code == 400

    async def test_vehicle_in_use_cannot_be_deleted(self, client: AsyncClient, loaded, truck, admin_headers):
        response = await client.delete(f"/api/vehicles/{truck.id}", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Cannot delete vehicle that is used in OGPL records"

    async def test_incoming_for_destination(self, client: AsyncClient, loaded, manager_headers, staff_headers):
        theirs = await client.get("/api/ogpl/incoming", headers=manager_headers)
        mine = await client.get("/api/ogpl/incoming", headers=staff_headers)
        assert [o["id"] for o in theirs.json()] == [loaded["ogpl"]["id"]]
        assert mine.json() == []


@pytest.mark.api
@pytest.mark.asyncio
class TestUnloading:

    async def test_damaged_without_remarks_writes_nothing(self, client: AsyncClient, loaded, manager_headers):
        ogpl = loaded["ogpl"]
        first, second = loaded["bookings"]
        response = await client.post(
            f"/api/ogpl/{ogpl['id']}/unload",
            json={
                "booking_ids": [first["id"], second["id"]],
                "conditions": {second["id"]: {"status": "damaged"}},
            },
            headers=manager_headers,
        )
        assert response.status_code == 422
        assert second["lr_number"] in response.json()["error"]["message"]

        after = await client.get(f"/api/ogpl/{ogpl['id']}", headers=manager_headers)
        assert after.json()["status"] == "in_transit"
        unloadings = await client.get("/api/ogpl/unloadings", headers=manager_headers)
        assert unloadings.json() == []
        booking = await client.get(f"/api/bookings/{first['id']}", headers=manager_headers)
        assert booking.json()["status"] == "in_transit"

    async def test_unload_completes_manifest(self, client: AsyncClient, loaded, manager_headers, delhi):
        ogpl = loaded["ogpl"]
        first, second = loaded["bookings"]
        response = await client.post(
            f"/api/ogpl/{ogpl['id']}/unload",
            json={
                "booking_ids": [first["id"], second["id"]],
                "conditions": {second["id"]: {"status": "missing", "remarks": "Not on truck"}},
            },
            headers=manager_headers,
        )
        assert response.status_code == 201, response.text
        record = response.json()
        assert record["conditions"][first["id"]]["status"] == "good"
        assert record["conditions"][second["id"]]["remarks"] == "Not on truck"
        assert record["ogpl"]["status"] == "completed"

        delivered = await client.get(f"/api/bookings/{first['id']}", headers=manager_headers)
        missing = await client.get(f"/api/bookings/{second['id']}", headers=manager_headers)
        assert delivered.json()["status"] == "delivered"
        assert missing.json()["status"] == "in_transit"

        incoming = await client.get("/api/ogpl/incoming", headers=manager_headers)
        assert incoming.json() == []
        unloadings = await client.get(f"/api/ogpl/unloadings?branch_id={delhi.id}", headers=manager_headers)
        assert [u["id"] for u in unloadings.json()] == [record["id"]]

    async def test_second_unload_rejected(self, client: AsyncClient, loaded, manager_headers):
        ogpl = loaded["ogpl"]
        body = {"booking_ids": [b["id"] for b in loaded["bookings"]]}
        first = await client.post(f"/api/ogpl/{ogpl['id']}/unload", json=body, headers=manager_headers)
        assert first.status_code == 201

        again = await client.post(f"/api/ogpl/{ogpl['id']}/unload", json=body, headers=manager_headers)
        assert again.status_code == 422
        assert again.json()["error"]["code"] == "INVALID_TRANSITION"

    async def test_partial_unload_refused(self, client: AsyncClient, loaded, manager_headers):
        ogpl = loaded["ogpl"]
        first, second = loaded["bookings"]
        response = await client.post(
            f"/api/ogpl/{ogpl['id']}/unload",
            json={"booking_ids": [first["id"]]},
            headers=manager_headers,
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert second["lr_number"] in error["message"]
        assert error["details"] == {"booking_ids": [second["id"]]}

        after = await client.get(f"/api/ogpl/{ogpl['id']}", headers=manager_headers)
        assert after.json()["status"] == "in_transit"
        untouched = await client.get(f"/api/bookings/{first['id']}", headers=manager_headers)
        assert untouched.json()["status"] == "in_transit"
        incoming = await client.get("/api/ogpl/incoming", headers=manager_headers)
        assert [m["id"] for m in incoming.json()] == [ogpl["id"]]

    async def test_booking_not_on_manifest(self, client: AsyncClient, loaded, make_booking, manager_headers):
        stranger = await make_booking()
        response = await client.post(
            f"/api/ogpl/{loaded['ogpl']['id']}/unload",
            json={"booking_ids": [stranger["id"]]},
            headers=manager_headers,
        )
        assert response.status_code == 422

    async def test_unknown_manifest(self, client: AsyncClient, manager_headers):
        response = await client.post(
            "/api/ogpl/00000000-0000-4000-8000-000000000000/unload",
            json={"booking_ids": ["00000000-0000-4000-8000-000000000001"]},
            headers=manager_headers,
        )
        assert response.status_code == 404
