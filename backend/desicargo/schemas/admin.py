"""Schemas for user administration and the activity feed."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from desicargo.models.user import UserRole
from desicargo.schemas.branch import BranchBrief


class AdminUserOut(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole
    branch_id: str | None
    branch: BranchBrief | None = None
    is_active: bool
    email_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class InviteUserRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    role: UserRole = UserRole.STAFF
    branch_id: str | None = None


class InviteUserResponse(BaseModel):
    user: AdminUserOut
    # Password-setup token; only returned outside production
    setup_token: str | None = None


class UpdateRoleRequest(BaseModel):
    role: UserRole


class UpdateBranchRequest(BaseModel):
    branch_id: str | None = None


class ActivityLogOut(BaseModel):
    id: str
    user_id: str
    user_name: str
    action: str
    entity_type: str
    entity_id: str | None
    entity_code: str | None
    summary: str | None
    details: dict | None
    created_at: datetime

    model_config = {"from_attributes": True}
