"""Schemas for parties (customers) and articles."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from desicargo.schemas.validators import validate_mobile


class CustomerCreate(BaseModel):
    branch_id: str | None = None
    name: str = Field(..., min_length=2, max_length=255)
    mobile: str
    email: EmailStr | None = None
    gst_number: str | None = Field(None, max_length=20)
    address: str | None = None
    type: Literal["individual", "company"] = "individual"

    @field_validator("mobile")
    @classmethod
    def _mobile(cls, v: str) -> str:
        return validate_mobile(v)


class CustomerOut(BaseModel):
    id: str
    branch_id: str | None
    name: str
    mobile: str
    email: str | None
    gst_number: str | None
    address: str | None
    type: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CustomerBrief(BaseModel):
    id: str
    name: str
    mobile: str
    type: str

    model_config = {"from_attributes": True}


class ArticleCreate(BaseModel):
    branch_id: str | None = None
    name: str = Field(..., min_length=2, max_length=255)
    description: str | None = None
    base_rate: float = Field(0.0, ge=0)


class ArticleOut(BaseModel):
    id: str
    branch_id: str | None
    name: str
    description: str | None
    base_rate: float
    created_at: datetime

    model_config = {"from_attributes": True}


class ArticleBrief(BaseModel):
    id: str
    name: str
    base_rate: float

    model_config = {"from_attributes": True}
