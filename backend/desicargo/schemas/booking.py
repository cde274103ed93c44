"""Pydantic schemas for bookings (consignment notes).

`BookingDraft` forbids unknown fields, which is how `total_amount` is kept
out of caller input: the amount is always computed from the charges.
Reference ids are plain strings here; their format is checked by the
service layer so a malformed id surfaces as an invalid identifier rather
than a generic validation error.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from desicargo.schemas.branch import BranchBrief
from desicargo.schemas.customer import ArticleBrief, CustomerBrief

BookingStatus = Literal["booked", "in_transit", "delivered", "cancelled"]
PaymentType = Literal["Paid", "To Pay", "Quotation"]


class BookingDraft(BaseModel):
    branch_id: str | None = None  # defaults to the caller's branch
    lr_type: Literal["system", "manual"] = "system"
    manual_lr_number: str | None = Field(None, max_length=50)

    from_branch: str
    to_branch: str
    sender_id: str
    receiver_id: str
    article_id: str

    description: str | None = None
    uom: str = "Fixed"
    actual_weight: float | None = Field(None, ge=0)
    quantity: int = Field(..., gt=0)
    freight_per_qty: float = Field(..., ge=0)
    loading_charges: float | None = Field(None, ge=0)
    unloading_charges: float | None = Field(None, ge=0)
    insurance_required: bool = False
    insurance_value: float | None = Field(None, ge=0)
    insurance_charge: float | None = Field(None, ge=0)
    packaging_type: str | None = None
    packaging_charge: float | None = Field(None, ge=0)

    payment_type: PaymentType
    private_mark_number: str | None = None
    remarks: str | None = None
    delivery_type: Literal["Standard", "Express"] | None = None
    priority: Literal["Normal", "High"] | None = None
    expected_delivery_date: date | None = None
    invoice_number: str | None = None
    invoice_amount: float | None = Field(None, ge=0)
    invoice_date: date | None = None
    eway_bill_number: str | None = None
    fragile: bool = False
    special_instructions: str | None = None
    reference_number: str | None = None

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _lr_number_source(self):
        manual = (self.manual_lr_number or "").strip()
        if self.lr_type == "manual" and not manual:
            raise ValueError("manual_lr_number is required when lr_type is 'manual'")
        if self.lr_type == "system" and manual:
            raise ValueError("manual_lr_number is only allowed when lr_type is 'manual'")
        self.manual_lr_number = manual or None
        return self


class BookingStatusUpdate(BaseModel):
    """New status plus the few fields that may change alongside it."""
    status: BookingStatus
    remarks: str | None = None
    special_instructions: str | None = None
    expected_delivery_date: date | None = None
    reference_number: str | None = None

    model_config = {"extra": "forbid"}


class BookingOut(BaseModel):
    id: str
    branch_id: str
    lr_number: str
    lr_type: str
    manual_lr_number: str | None = None
    from_branch: str
    to_branch: str
    sender_id: str
    receiver_id: str
    article_id: str
    description: str | None = None
    uom: str
    actual_weight: float | None = None
    quantity: int
    freight_per_qty: float
    loading_charges: float = 0.0
    unloading_charges: float = 0.0
    insurance_required: bool = False
    insurance_value: float | None = None
    insurance_charge: float = 0.0
    packaging_type: str | None = None
    packaging_charge: float = 0.0
    total_amount: float
    payment_type: str
    private_mark_number: str | None = None
    remarks: str | None = None
    delivery_type: str | None = None
    priority: str | None = None
    expected_delivery_date: date | None = None
    invoice_number: str | None = None
    invoice_amount: float | None = None
    invoice_date: date | None = None
    eway_bill_number: str | None = None
    fragile: bool = False
    special_instructions: str | None = None
    reference_number: str | None = None
    status: str
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime

    sender: CustomerBrief | None = None
    receiver: CustomerBrief | None = None
    article: ArticleBrief | None = None
    from_branch_details: BranchBrief | None = None
    to_branch_details: BranchBrief | None = None

    model_config = {"from_attributes": True}


class TrackingOut(BaseModel):
    """Public view of a consignment; no party or charge details."""
    lr_number: str
    status: str
    origin_city: str | None
    destination_city: str | None
    ogpl_number: str | None = None
    booked_at: datetime
    updated_at: datetime
