"""Branch directory router.

Endpoints:
    GET    /api/branches/             List branches (by name)
    GET    /api/branches/{id}         Branch detail
    POST   /api/branches/             Create branch (admin)
    PATCH  /api/branches/{id}         Update branch (admin)
    DELETE /api/branches/{id}         Delete an unreferenced branch (admin)
    GET    /api/branches/{id}/users   Users assigned to the branch
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.deps import get_current_user, require_permission
from desicargo.database import get_db
from desicargo.middleware.exceptions import (
    BusinessLogicError,
    PersistenceError,
    ResourceNotFoundError,
)
from desicargo.models.booking import Booking
from desicargo.models.branch import Branch
from desicargo.models.user import User
from desicargo.models.vehicle import Vehicle
from desicargo.schemas.admin import AdminUserOut
from desicargo.schemas.branch import BranchCreate, BranchOut, BranchUpdate
from desicargo.schemas.validators import ensure_uuid
from desicargo.utils.activity import log_activity

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_branch(db: AsyncSession, branch_id: str) -> Branch:
    ensure_uuid(branch_id, "branch")
    result = await db.execute(select(Branch).where(Branch.id == branch_id))
    branch = result.scalar_one_or_none()
    if not branch:
        raise ResourceNotFoundError("Branch", branch_id)
    return branch


async def _ensure_single_head_office(db: AsyncSession, exclude_id: str | None = None) -> None:
    query = select(Branch.name).where(Branch.is_head_office == True)  # noqa: E712
    if exclude_id:
        query = query.where(Branch.id != exclude_id)
    current = (await db.execute(query)).scalars().first()
    if current:
        raise BusinessLogicError(f"{current} is already the head office")


async def _ensure_unique_code(db: AsyncSession, code: str, exclude_id: str | None = None) -> None:
    query = select(Branch.id).where(func.upper(Branch.code) == code.upper())
    if exclude_id:
        query = query.where(Branch.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise PersistenceError(f"Branch code already exists: {code}", error_code="DUPLICATE_RECORD")


@router.get("/", response_model=list[BranchOut])
async def list_branches(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    result = await db.execute(select(Branch).order_by(Branch.name))
    return [BranchOut.model_validate(b) for b in result.scalars().all()]


@router.get("/{branch_id}", response_model=BranchOut)
async def get_branch(
    branch_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return BranchOut.model_validate(await _get_branch(db, branch_id))


@router.post("/", response_model=BranchOut, status_code=201)
async def create_branch(
    body: BranchCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("branches.write")),
):
    await _ensure_unique_code(db, body.code)
    if body.is_head_office:
        await _ensure_single_head_office(db)

    branch = Branch(**body.model_dump())
    branch.code = body.code.upper()
    db.add(branch)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="branch",
        entity_id=branch.id,
        entity_code=branch.code,
        summary=f"Created branch {branch.name} ({branch.city})",
    )
    return BranchOut.model_validate(branch)


@router.patch("/{branch_id}", response_model=BranchOut)
async def update_branch(
    branch_id: str,
    body: BranchUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("branches.write")),
):
    branch = await _get_branch(db, branch_id)

    updates = body.model_dump(exclude_unset=True)
    if updates.get("code"):
        await _ensure_unique_code(db, updates["code"], exclude_id=branch.id)
        updates["code"] = updates["code"].upper()
    if updates.get("is_head_office"):
        await _ensure_single_head_office(db, exclude_id=branch.id)

    for key, value in updates.items():
        setattr(branch, key, value)
    branch.updated_at = datetime.utcnow()
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type="branch",
        entity_id=branch.id,
        entity_code=branch.code,
        details={"fields": sorted(updates)},
    )
    return BranchOut.model_validate(branch)


@router.delete("/{branch_id}", status_code=204)
async def delete_branch(
    branch_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("branches.delete")),
):
    """Delete a branch that nothing references any more."""
    branch = await _get_branch(db, branch_id)

    references = [
        ("Cannot delete branch with existing bookings", select(func.count()).select_from(Booking).where(
            or_(
                Booking.branch_id == branch_id,
                Booking.from_branch == branch_id,
                Booking.to_branch == branch_id,
            )
        )),
        ("Cannot delete branch with assigned users", select(func.count()).select_from(User).where(User.branch_id == branch_id)),
        ("Cannot delete branch with assigned vehicles", select(func.count()).select_from(Vehicle).where(Vehicle.branch_id == branch_id)),
    ]
    for message, query in references:
        if (await db.execute(query)).scalar():
            logger.error(f"Refused to delete branch {branch.code}: {message}")
            raise PersistenceError(
                message,
                error_code="REFERENTIAL_INTEGRITY",
            )

    code = branch.code
    await db.delete(branch)
    try:
        await db.flush()
    except IntegrityError as e:
        logger.error(f"Failed to delete branch {code}: {e.orig}")
        raise PersistenceError(
            "Cannot delete branch that is still referenced",
            error_code="REFERENTIAL_INTEGRITY",
        ) from e

    await log_activity(
        db, user,
        action="deleted",
        entity_type="branch",
        entity_id=branch_id,
        entity_code=code,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{branch_id}/users", response_model=list[AdminUserOut])
async def list_branch_users(
    branch_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("users.read")),
):
    await _get_branch(db, branch_id)
    result = await db.execute(
        select(User).where(User.branch_id == branch_id).order_by(User.name)
    )
    return [AdminUserOut.model_validate(u) for u in result.scalars().all()]
