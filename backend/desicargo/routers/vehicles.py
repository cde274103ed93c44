"""Vehicle registry router.

Endpoints:
    GET    /api/vehicles/?branch_id=    List vehicles (by vehicle number)
    GET    /api/vehicles/{id}           Vehicle detail
    POST   /api/vehicles/               Register vehicle
    PATCH  /api/vehicles/{id}           Update vehicle
    PATCH  /api/vehicles/{id}/status    Change status only
    DELETE /api/vehicles/{id}           Delete a vehicle not used by any OGPL
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.deps import require_permission
from desicargo.database import get_db
from desicargo.middleware.exceptions import PersistenceError, ResourceNotFoundError
from desicargo.models.branch import Branch
from desicargo.models.ogpl import OGPL
from desicargo.models.user import User
from desicargo.models.vehicle import Vehicle
from desicargo.schemas.validators import ensure_uuid, is_valid_uuid
from desicargo.schemas.vehicle import (
    VehicleCreate,
    VehicleOut,
    VehicleStatusUpdate,
    VehicleUpdate,
)
from desicargo.utils.activity import log_activity

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_vehicle(db: AsyncSession, vehicle_id: str) -> Vehicle:
    ensure_uuid(vehicle_id, "vehicle")
    result = await db.execute(select(Vehicle).where(Vehicle.id == vehicle_id))
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)
    return vehicle


async def _ensure_unique_number(db: AsyncSession, number: str, exclude_id: str | None = None) -> None:
    query = select(Vehicle.id).where(Vehicle.vehicle_number == number)
    if exclude_id:
        query = query.where(Vehicle.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise PersistenceError(
            f"Vehicle number already registered: {number}", error_code="DUPLICATE_RECORD"
        )


@router.get("/", response_model=list[VehicleOut])
async def list_vehicles(
    branch_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("vehicles.read")),
):
    """List vehicles, optionally for one branch.

    A malformed branch id matches nothing, so the list is simply empty.
    """
    query = select(Vehicle).order_by(Vehicle.vehicle_number)
    if branch_id:
        if not is_valid_uuid(branch_id):
            logger.warning(f"Vehicle list requested for malformed branch id {branch_id!r}")
            return []
        query = query.where(Vehicle.branch_id == branch_id)
    result = await db.execute(query)
    return [VehicleOut.model_validate(v) for v in result.scalars().all()]


@router.get("/{vehicle_id}", response_model=VehicleOut)
async def get_vehicle(
    vehicle_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("vehicles.read")),
):
    return VehicleOut.model_validate(await _get_vehicle(db, vehicle_id))


@router.post("/", response_model=VehicleOut, status_code=201)
async def create_vehicle(
    body: VehicleCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("vehicles.write")),
):
    ensure_uuid(body.branch_id, "branch")
    branch = await db.execute(select(Branch.id).where(Branch.id == body.branch_id))
    if branch.first() is None:
        raise PersistenceError(
            f"Referenced branch does not exist: {body.branch_id}",
            error_code="REFERENTIAL_INTEGRITY",
        )
    await _ensure_unique_number(db, body.vehicle_number)

    vehicle = Vehicle(**body.model_dump())
    db.add(vehicle)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="vehicle",
        entity_id=vehicle.id,
        entity_code=vehicle.vehicle_number,
        summary=f"Registered {vehicle.make} {vehicle.model} ({vehicle.type})",
    )
    return VehicleOut.model_validate(vehicle)


@router.patch("/{vehicle_id}", response_model=VehicleOut)
async def update_vehicle(
    vehicle_id: str,
    body: VehicleUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("vehicles.write")),
):
    vehicle = await _get_vehicle(db, vehicle_id)

    updates = body.model_dump(exclude_unset=True)
    if updates.get("vehicle_number"):
        await _ensure_unique_number(db, updates["vehicle_number"], exclude_id=vehicle.id)

    for key, value in updates.items():
        setattr(vehicle, key, value)
    vehicle.updated_at = datetime.utcnow()
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type="vehicle",
        entity_id=vehicle.id,
        entity_code=vehicle.vehicle_number,
        details={"fields": sorted(updates)},
    )
    return VehicleOut.model_validate(vehicle)


@router.patch("/{vehicle_id}/status", response_model=VehicleOut)
async def update_vehicle_status(
    vehicle_id: str,
    body: VehicleStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("vehicles.write")),
):
    vehicle = await _get_vehicle(db, vehicle_id)
    previous = vehicle.status
    vehicle.status = body.status
    vehicle.updated_at = datetime.utcnow()
    await db.flush()

    if previous != body.status:
        await log_activity(
            db, user,
            action="status_changed",
            entity_type="vehicle",
            entity_id=vehicle.id,
            entity_code=vehicle.vehicle_number,
            details={"from": previous, "to": body.status},
        )
    return VehicleOut.model_validate(vehicle)


@router.delete("/{vehicle_id}", status_code=204)
async def delete_vehicle(
    vehicle_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("vehicles.delete")),
):
    vehicle = await _get_vehicle(db, vehicle_id)

    used = await db.execute(
        select(func.count()).select_from(OGPL).where(OGPL.vehicle_id == vehicle_id)
    )
    if used.scalar():
        logger.error(f"Refused to delete vehicle {vehicle.vehicle_number}: referenced by OGPL")
        raise PersistenceError(
            "Cannot delete vehicle that is used in OGPL records",
            error_code="REFERENTIAL_INTEGRITY",
        )

    number = vehicle.vehicle_number
    await db.delete(vehicle)
    await db.flush()

    await log_activity(
        db, user,
        action="deleted",
        entity_type="vehicle",
        entity_id=vehicle_id,
        entity_code=number,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
