"""Pydantic schemas for the vehicle registry."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from desicargo.schemas.validators import validate_vehicle_number

VehicleType = Literal["own", "hired", "attached"]
VehicleStatus = Literal["active", "maintenance", "inactive"]


class VehicleCreate(BaseModel):
    branch_id: str
    vehicle_number: str
    type: VehicleType
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1950, le=2100)
    status: VehicleStatus = "active"
    last_maintenance_date: date | None = None
    next_maintenance_date: date | None = None

    @field_validator("vehicle_number")
    @classmethod
    def _vehicle_number(cls, v: str) -> str:
        return validate_vehicle_number(v)


class VehicleUpdate(BaseModel):
    vehicle_number: str | None = None
    type: VehicleType | None = None
    make: str | None = None
    model: str | None = None
    year: int | None = Field(None, ge=1950, le=2100)
    status: VehicleStatus | None = None
    last_maintenance_date: date | None = None
    next_maintenance_date: date | None = None

    @field_validator("vehicle_number")
    @classmethod
    def _vehicle_number(cls, v: str | None) -> str | None:
        return validate_vehicle_number(v) if v is not None else v


class VehicleStatusUpdate(BaseModel):
    status: VehicleStatus


class VehicleOut(BaseModel):
    id: str
    branch_id: str
    vehicle_number: str
    type: str
    make: str
    model: str
    year: int
    status: str
    last_maintenance_date: date | None
    next_maintenance_date: date | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
