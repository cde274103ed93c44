"""Per-consumer data stores over the DesiCargo API.

Each store owns a private in-memory list. Mutations update that list in
call order; two stores never see each other's writes until they reload.
Reference ids are format-checked before any HTTP call.

Every failure is recorded in the store's ``error`` slot and re-raised,
except ``load()``, which leaves an empty list and the error in place so
list views can render an empty state.

A store can be ``close()``d when its consumer goes away. Responses that
arrive after that are returned to the caller but no longer applied.
"""

import logging
from typing import Any

from pydantic import ValidationError

from desicargo.client.api import ApiClient
from desicargo.client.session import SessionBinding
from desicargo.middleware.exceptions import DesiCargoException, DomainValidationError
from desicargo.schemas.ogpl import UnloadCondition
from desicargo.schemas.validators import ensure_uuid
from desicargo.services.ogpl import validate_conditions

logger = logging.getLogger(__name__)


class _Store:
    resource = "items"

    def __init__(self, api: ApiClient):
        self.api = api
        self.items: list[dict] = []
        self.loading = False
        self.error: DesiCargoException | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def _fail(self, exc: DesiCargoException, action: str) -> None:
        logger.error(f"Error {action} {self.resource}: {exc.message}")
        if not self._closed:
            self.error = exc

    async def _load(self, path: str, **params) -> list[dict]:
        self.loading = True
        self.error = None
        try:
            rows = await self.api.get(path, **params)
        except DesiCargoException as e:
            self._fail(e, "loading")
            if not self._closed:
                self.items = []
            return []
        finally:
            self.loading = False

        if not self._closed:
            self.items = rows
        return rows

    def _prepend(self, row: dict) -> None:
        if not self._closed:
            self.items = [row, *self.items]

    def _replace(self, row: dict) -> None:
        if not self._closed:
            self.items = [row if item["id"] == row["id"] else item for item in self.items]

    def _remove(self, item_id: str) -> None:
        if not self._closed:
            self.items = [item for item in self.items if item["id"] != item_id]

    def _check_ids(self, action: str, **ids: str | None) -> None:
        try:
            for label, value in ids.items():
                if value is not None:
                    ensure_uuid(value, label)
        except DesiCargoException as e:
            self._fail(e, action)
            raise


class BookingStore(_Store):
    """Bookings touching one branch (origin or destination).

    The branch is the explicit ``branch_id``, else the session's assigned
    branch, else every branch.
    """

    resource = "bookings"

    def __init__(self, api: ApiClient, session: SessionBinding | None = None, branch_id: str | None = None):
        super().__init__(api)
        self.session = session
        self.branch_id = branch_id

    def _scope(self) -> str | None:
        if self.branch_id:
            return self.branch_id
        if self.session is not None:
            return self.session.branch_id
        return None

    async def load(self) -> list[dict]:
        scope = self._scope()
        if scope is not None:
            try:
                ensure_uuid(scope, "branch")
            except DesiCargoException as e:
                self._fail(e, "loading")
                if not self._closed:
                    self.items = []
                return []
        return await self._load("/api/bookings/", branch_id=scope)

    async def create(self, draft: dict[str, Any]) -> dict:
        self._check_ids(
            "creating",
            branch=draft.get("branch_id"),
            from_branch=draft.get("from_branch"),
            to_branch=draft.get("to_branch"),
            sender=draft.get("sender_id"),
            receiver=draft.get("receiver_id"),
            article=draft.get("article_id"),
        )
        try:
            booking = await self.api.post("/api/bookings/", json=draft)
        except DesiCargoException as e:
            self._fail(e, "creating")
            raise
        self._prepend(booking)
        return booking

    async def update_status(self, booking_id: str, status: str, extra: dict | None = None) -> dict:
        self._check_ids("updating", booking=booking_id)
        try:
            booking = await self.api.patch(
                f"/api/bookings/{booking_id}/status", json={**(extra or {}), "status": status}
            )
        except DesiCargoException as e:
            self._fail(e, "updating")
            raise
        self._replace(booking)
        return booking

    async def delete(self, booking_id: str) -> None:
        self._check_ids("deleting", booking=booking_id)
        try:
            await self.api.delete(f"/api/bookings/{booking_id}")
        except DesiCargoException as e:
            self._fail(e, "deleting")
            raise
        self._remove(booking_id)


class BranchDirectory(_Store):
    resource = "branches"

    async def load(self) -> list[dict]:
        return await self._load("/api/branches/")

    async def create(self, data: dict[str, Any]) -> dict:
        try:
            branch = await self.api.post("/api/branches/", json=data)
        except DesiCargoException as e:
            self._fail(e, "creating")
            raise
        if not self._closed:
            self.items = sorted([*self.items, branch], key=lambda b: b["name"])
        return branch

    async def update(self, branch_id: str, changes: dict[str, Any]) -> dict:
        self._check_ids("updating", branch=branch_id)
        try:
            branch = await self.api.patch(f"/api/branches/{branch_id}", json=changes)
        except DesiCargoException as e:
            self._fail(e, "updating")
            raise
        self._replace(branch)
        return branch

    async def delete(self, branch_id: str) -> None:
        self._check_ids("deleting", branch=branch_id)
        try:
            await self.api.delete(f"/api/branches/{branch_id}")
        except DesiCargoException as e:
            self._fail(e, "deleting")
            raise
        self._remove(branch_id)


class VehicleRegistry(_Store):
    resource = "vehicles"

    def __init__(self, api: ApiClient, branch_id: str | None = None):
        super().__init__(api)
        self.branch_id = branch_id

    async def load(self) -> list[dict]:
        return await self._load("/api/vehicles/", branch_id=self.branch_id)

    async def create(self, data: dict[str, Any]) -> dict:
        self._check_ids("creating", branch=data.get("branch_id"))
        try:
            vehicle = await self.api.post("/api/vehicles/", json=data)
        except DesiCargoException as e:
            self._fail(e, "creating")
            raise
        if not self._closed:
            self.items = sorted([*self.items, vehicle], key=lambda v: v["vehicle_number"])
        return vehicle

    async def update(self, vehicle_id: str, changes: dict[str, Any]) -> dict:
        self._check_ids("updating", vehicle=vehicle_id, branch=changes.get("branch_id"))
        try:
            vehicle = await self.api.patch(f"/api/vehicles/{vehicle_id}", json=changes)
        except DesiCargoException as e:
            self._fail(e, "updating")
            raise
        self._replace(vehicle)
        return vehicle

    async def update_status(self, vehicle_id: str, status: str) -> dict:
        self._check_ids("updating", vehicle=vehicle_id)
        try:
            vehicle = await self.api.patch(
                f"/api/vehicles/{vehicle_id}/status", json={"status": status}
            )
        except DesiCargoException as e:
            self._fail(e, "updating")
            raise
        self._replace(vehicle)
        return vehicle

    async def delete(self, vehicle_id: str) -> None:
        self._check_ids("deleting", vehicle=vehicle_id)
        try:
            await self.api.delete(f"/api/vehicles/{vehicle_id}")
        except DesiCargoException as e:
            self._fail(e, "deleting")
            raise
        self._remove(vehicle_id)


class UnloadingWorkflow(_Store):
    """Incoming manifests for a branch and the unload action on them.

    ``items`` holds the incoming (in-transit) manifests; ``completed`` holds
    the unloading records fetched by ``load_completed()``.
    """

    resource = "manifests"

    def __init__(self, api: ApiClient, session: SessionBinding | None = None, branch_id: str | None = None):
        super().__init__(api)
        self.session = session
        self.branch_id = branch_id
        self.completed: list[dict] = []

    def _scope(self) -> str | None:
        if self.branch_id:
            return self.branch_id
        if self.session is not None:
            return self.session.branch_id
        return None

    async def load(self) -> list[dict]:
        """Fetch manifests in transit to the branch."""
        return await self._load("/api/ogpl/incoming", branch_id=self._scope())

    async def load_completed(self) -> list[dict]:
        try:
            rows = await self.api.get("/api/ogpl/unloadings", branch_id=self._scope())
        except DesiCargoException as e:
            self._fail(e, "loading")
            if not self._closed:
                self.completed = []
            return []
        if not self._closed:
            self.completed = rows
        return rows

    async def unload(
        self,
        ogpl_id: str,
        booking_ids: list[str],
        conditions: dict[str, dict] | None = None,
    ) -> dict:
        """Unload bookings from a manifest.

        The condition map is checked here first, so a damaged or missing
        entry without remarks never reaches the server.
        """
        self._check_ids("unloading", ogpl=ogpl_id)
        for bid in booking_ids:
            self._check_ids("unloading", booking=bid)

        try:
            parsed = {bid: UnloadCondition(**cond) for bid, cond in (conditions or {}).items()}
        except ValidationError as e:
            error = DomainValidationError(
                "Invalid unloading condition",
                details={"errors": [err["msg"] for err in e.errors()]},
            )
            self._fail(error, "unloading")
            raise error from e

        manifest = next((m for m in self.items if m["id"] == ogpl_id), None)
        lr_numbers = {}
        if manifest:
            lr_numbers = {
                rec["booking"]["id"]: rec["booking"]["lr_number"]
                for rec in manifest.get("loading_records", [])
                if rec.get("booking")
            }
        try:
            full = validate_conditions(booking_ids, parsed, lr_numbers)
        except DesiCargoException as e:
            self._fail(e, "unloading")
            raise

        try:
            record = await self.api.post(
                f"/api/ogpl/{ogpl_id}/unload",
                json={"booking_ids": booking_ids, "conditions": full},
            )
        except DesiCargoException as e:
            self._fail(e, "unloading")
            raise

        # The manifest is completed by the unload and leaves the incoming list
        self._remove(ogpl_id)
        if not self._closed:
            self.completed = [record, *self.completed]
        return record
