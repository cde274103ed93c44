"""Pydantic schemas for branch CRUD operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

BranchStatus = Literal["active", "maintenance", "inactive"]


class BranchCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    code: str = Field(..., min_length=2, max_length=20)
    address: str | None = None
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    pincode: str | None = Field(None, pattern=r"^\d{6}$")
    phone: str | None = None
    email: EmailStr | None = None
    is_head_office: bool = False
    status: BranchStatus = "active"


class BranchUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=255)
    code: str | None = Field(None, min_length=2, max_length=20)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = Field(None, pattern=r"^\d{6}$")
    phone: str | None = None
    email: EmailStr | None = None
    is_head_office: bool | None = None
    status: BranchStatus | None = None


class BranchOut(BaseModel):
    id: str
    name: str
    code: str
    address: str | None
    city: str
    state: str
    pincode: str | None
    phone: str | None
    email: str | None
    is_head_office: bool
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BranchBrief(BaseModel):
    """Embedded in bookings and manifests."""
    id: str
    name: str
    code: str
    city: str
    state: str

    model_config = {"from_attributes": True}
