"""Admin-only router for user administration and the activity feed.

Endpoints:
    GET    /api/admin/users                          List users (paginated, filterable)
    POST   /api/admin/users/invite                   Invite a user (password set via reset token)
    PATCH  /api/admin/users/{user_id}/role           Change a user's role
    PATCH  /api/admin/users/{user_id}/branch         Reassign a user's branch
    POST   /api/admin/users/{user_id}/deactivate     Deactivate a user and revoke their sessions
    GET    /api/admin/activity                       Activity log
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.deps import require_role
from desicargo.auth.jwt import create_action_token
from desicargo.auth.revocation import TokenRevocation
from desicargo.config import settings
from desicargo.database import get_db
from desicargo.middleware.exceptions import (
    BusinessLogicError,
    PersistenceError,
    ResourceNotFoundError,
)
from desicargo.models.activity_log import ActivityLog
from desicargo.models.branch import Branch
from desicargo.models.user import User, UserRole
from desicargo.schemas.admin import (
    ActivityLogOut,
    AdminUserOut,
    InviteUserRequest,
    InviteUserResponse,
    UpdateBranchRequest,
    UpdateRoleRequest,
)
from desicargo.schemas.common import PaginatedResponse
from desicargo.schemas.validators import ensure_uuid
from desicargo.utils.activity import log_activity

logger = logging.getLogger(__name__)

router = APIRouter()

admin_only = require_role(UserRole.ADMIN)


async def _get_target(db: AsyncSession, user_id: str) -> User:
    ensure_uuid(user_id, "user")
    result = await db.execute(select(User).where(User.id == user_id))
    target = result.scalar_one_or_none()
    if not target:
        raise ResourceNotFoundError("User", user_id)
    return target


async def _ensure_branch(db: AsyncSession, branch_id: str | None) -> None:
    if branch_id is None:
        return
    ensure_uuid(branch_id, "branch")
    exists = (await db.execute(select(Branch.id).where(Branch.id == branch_id))).first()
    if exists is None:
        raise ResourceNotFoundError("Branch", branch_id)


async def _reload(db: AsyncSession, user: User) -> AdminUserOut:
    await db.flush()
    result = await db.execute(
        select(User).where(User.id == user.id).execution_options(populate_existing=True)
    )
    return AdminUserOut.model_validate(result.scalar_one())


# ══════════════════════════════════════════════════════════════
# USERS
# ══════════════════════════════════════════════════════════════

@router.get("/users", response_model=PaginatedResponse[AdminUserOut])
async def list_users(
    search: str | None = Query(None, max_length=100),
    role: UserRole | None = Query(None),
    branch_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(admin_only),
):
    """List users, newest first, filtered by name/email search, role and branch."""
    query = select(User)
    count_query = select(func.count()).select_from(User)

    filters = []
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if role:
        filters.append(User.role == role)
    if branch_id:
        ensure_uuid(branch_id, "branch")
        filters.append(User.branch_id == branch_id)

    for f in filters:
        query = query.where(f)
        count_query = count_query.where(f)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(
        query.order_by(User.created_at.desc()).offset(offset).limit(limit)
    )
    items = [AdminUserOut.model_validate(u) for u in result.scalars().all()]
    return PaginatedResponse[AdminUserOut](items=items, total=total, limit=limit, offset=offset)


@router.post("/users/invite", response_model=InviteUserResponse, status_code=status.HTTP_201_CREATED)
async def invite_user(
    body: InviteUserRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_only),
):
    """Create an account without a password.

    The invitee completes setup through the password-reset flow, which
    also marks the email as verified.
    """
    email = body.email.lower()
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.first() is not None:
        raise PersistenceError("Email already registered", error_code="DUPLICATE_RECORD")

    await _ensure_branch(db, body.branch_id)

    user = User(
        email=email,
        name=body.name.strip(),
        role=body.role,
        branch_id=body.branch_id,
        hashed_password=None,
        email_verified=False,
        created_by=admin.id,
    )
    db.add(user)
    await db.flush()

    await log_activity(
        db, admin,
        action="user_invited",
        entity_type="user",
        entity_id=user.id,
        entity_code=user.email,
        summary=f"Invited {user.email} as {user.role.value}",
    )
    logger.info(f"User invited: {user.email} ({user.role.value}) by {admin.email}")

    token = create_action_token(user.id, "reset")
    return InviteUserResponse(
        user=await _reload(db, user),
        setup_token=token if settings.environment != "production" else None,
    )


@router.patch("/users/{user_id}/role", response_model=AdminUserOut)
async def update_role(
    user_id: str,
    body: UpdateRoleRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_only),
):
    target = await _get_target(db, user_id)
    if target.id == admin.id:
        raise BusinessLogicError("Cannot change your own role")

    old_role = target.role.value
    target.role = body.role
    # Existing tokens carry the old permission set
    await TokenRevocation.revoke_all_user_tokens(target.id)

    await log_activity(
        db, admin,
        action="role_changed",
        entity_type="user",
        entity_id=target.id,
        entity_code=target.email,
        summary=f"Role {old_role} → {body.role.value}",
        details={"from": old_role, "to": body.role.value},
    )
    return await _reload(db, target)


@router.patch("/users/{user_id}/branch", response_model=AdminUserOut)
async def update_branch(
    user_id: str,
    body: UpdateBranchRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_only),
):
    target = await _get_target(db, user_id)
    await _ensure_branch(db, body.branch_id)

    old_branch = target.branch_id
    target.branch_id = body.branch_id

    await log_activity(
        db, admin,
        action="branch_changed",
        entity_type="user",
        entity_id=target.id,
        entity_code=target.email,
        details={"from": old_branch, "to": body.branch_id},
    )
    return await _reload(db, target)


@router.post("/users/{user_id}/deactivate", response_model=AdminUserOut)
async def deactivate_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_only),
):
    """Deactivate a user and invalidate every token issued to them."""
    target = await _get_target(db, user_id)
    if target.id == admin.id:
        raise BusinessLogicError("Cannot deactivate your own account")
    if not target.is_active:
        raise BusinessLogicError("User is already inactive")

    target.is_active = False
    await TokenRevocation.revoke_all_user_tokens(target.id)

    await log_activity(
        db, admin,
        action="user_deactivated",
        entity_type="user",
        entity_id=target.id,
        entity_code=target.email,
    )
    logger.info(f"User deactivated: {target.email} by {admin.email}")
    return await _reload(db, target)


# ══════════════════════════════════════════════════════════════
# ACTIVITY LOG
# ══════════════════════════════════════════════════════════════

@router.get("/activity", response_model=PaginatedResponse[ActivityLogOut])
async def list_activity(
    entity_type: str | None = Query(None),
    action: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(admin_only),
):
    """List activity log entries with optional filters."""
    query = select(ActivityLog)
    count_query = select(func.count()).select_from(ActivityLog)

    if entity_type:
        query = query.where(ActivityLog.entity_type == entity_type)
        count_query = count_query.where(ActivityLog.entity_type == entity_type)
    if action:
        query = query.where(ActivityLog.action == action)
        count_query = count_query.where(ActivityLog.action == action)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(
        query.order_by(ActivityLog.created_at.desc()).offset(offset).limit(limit)
    )
    items = [ActivityLogOut.model_validate(a) for a in result.scalars().all()]
    return PaginatedResponse[ActivityLogOut](items=items, total=total, limit=limit, offset=offset)
