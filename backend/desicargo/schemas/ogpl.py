"""Pydantic schemas for OGPL manifests, loading and unloading."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from desicargo.schemas.booking import BookingOut
from desicargo.schemas.branch import BranchBrief
from desicargo.schemas.validators import validate_mobile, validate_time

ConditionStatus = Literal["good", "damaged", "missing"]


class OGPLCreate(BaseModel):
    """Create a manifest and load the given bookings onto it, in order."""
    name: str = Field(..., min_length=1, max_length=255)
    vehicle_id: str
    transit_mode: Literal["direct", "hub", "local"]
    transit_date: date
    from_station: str
    to_station: str
    departure_time: str | None = None
    arrival_time: str | None = None
    supervisor_name: str = Field(..., min_length=2)
    supervisor_mobile: str
    primary_driver_name: str = Field(..., min_length=2)
    primary_driver_mobile: str
    secondary_driver_name: str | None = None
    secondary_driver_mobile: str | None = None

    booking_ids: list[str] = Field(..., min_length=1)
    # Optional loading remarks keyed by booking id
    remarks: dict[str, str] | None = None

    @field_validator("departure_time", "arrival_time")
    @classmethod
    def _time(cls, v: str | None) -> str | None:
        return validate_time(v)

    @field_validator("supervisor_mobile", "primary_driver_mobile")
    @classmethod
    def _mobile(cls, v: str) -> str:
        return validate_mobile(v)

    @field_validator("secondary_driver_mobile")
    @classmethod
    def _optional_mobile(cls, v: str | None) -> str | None:
        return validate_mobile(v) if v else None


class VehicleBrief(BaseModel):
    id: str
    vehicle_number: str
    type: str
    make: str
    model: str

    model_config = {"from_attributes": True}


class LoadingRecordOut(BaseModel):
    id: str
    ogpl_id: str
    booking_id: str
    sequence: int
    loaded_at: datetime
    loaded_by: str | None
    remarks: str | None
    booking: BookingOut | None = None

    model_config = {"from_attributes": True}


class OGPLSummary(BaseModel):
    id: str
    ogpl_number: str
    name: str
    vehicle_id: str
    transit_mode: str
    transit_date: date
    from_station: str
    to_station: str
    departure_time: str | None
    arrival_time: str | None
    supervisor_name: str
    supervisor_mobile: str
    primary_driver_name: str
    primary_driver_mobile: str
    secondary_driver_name: str | None
    secondary_driver_mobile: str | None
    status: str
    created_by: str | None
    created_at: datetime
    updated_at: datetime

    vehicle: VehicleBrief | None = None
    from_station_details: BranchBrief | None = None
    to_station_details: BranchBrief | None = None

    model_config = {"from_attributes": True}


class OGPLOut(OGPLSummary):
    loading_records: list[LoadingRecordOut] = []


class UnloadCondition(BaseModel):
    status: ConditionStatus = "good"
    remarks: str | None = None
    photo: str | None = None


class UnloadRequest(BaseModel):
    booking_ids: list[str] = Field(..., min_length=1)
    conditions: dict[str, UnloadCondition] = {}


class UnloadingOut(BaseModel):
    id: str
    ogpl_id: str
    unloaded_at: datetime
    unloaded_by: str
    conditions: dict[str, UnloadCondition]
    created_at: datetime
    ogpl: OGPLSummary | None = None

    model_config = {"from_attributes": True}
