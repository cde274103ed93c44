"""Booking — a consignment note ("LR") between two branches.

Lifecycle:  booked → in_transit → delivered
            booked | in_transit → cancelled

``total_amount`` is always derived from the charge components when the
booking is created; it is never taken from the caller.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from desicargo.database import Base


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    branch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("branches.id"), nullable=False, index=True
    )

    # ── LR number ────────────────────────────────────────────
    lr_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    # system | manual
    lr_type: Mapped[str] = mapped_column(String(10), default="system")
    manual_lr_number: Mapped[str | None] = mapped_column(String(50))

    # ── Route ────────────────────────────────────────────────
    from_branch: Mapped[str] = mapped_column(
        String(36), ForeignKey("branches.id"), nullable=False, index=True
    )
    to_branch: Mapped[str] = mapped_column(
        String(36), ForeignKey("branches.id"), nullable=False, index=True
    )

    # ── Parties & goods ──────────────────────────────────────
    sender_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id"), nullable=False, index=True
    )
    receiver_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id"), nullable=False, index=True
    )
    article_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("articles.id"), nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text)
    uom: Mapped[str] = mapped_column(String(20), default="Fixed")
    actual_weight: Mapped[float | None] = mapped_column(Float)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Charges ──────────────────────────────────────────────
    freight_per_qty: Mapped[float] = mapped_column(Float, nullable=False)
    loading_charges: Mapped[float] = mapped_column(Float, default=0.0)
    unloading_charges: Mapped[float] = mapped_column(Float, default=0.0)
    insurance_required: Mapped[bool] = mapped_column(Boolean, default=False)
    insurance_value: Mapped[float | None] = mapped_column(Float)
    insurance_charge: Mapped[float] = mapped_column(Float, default=0.0)
    packaging_type: Mapped[str | None] = mapped_column(String(50))
    packaging_charge: Mapped[float] = mapped_column(Float, default=0.0)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)

    # ── Commercial details ───────────────────────────────────
    # Paid | To Pay | Quotation
    payment_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    private_mark_number: Mapped[str | None] = mapped_column(String(50))
    remarks: Mapped[str | None] = mapped_column(Text)
    # Standard | Express
    delivery_type: Mapped[str | None] = mapped_column(String(20))
    # Normal | High
    priority: Mapped[str | None] = mapped_column(String(20))
    expected_delivery_date: Mapped[date | None] = mapped_column(Date)
    invoice_number: Mapped[str | None] = mapped_column(String(50))
    invoice_amount: Mapped[float | None] = mapped_column(Float)
    invoice_date: Mapped[date | None] = mapped_column(Date)
    eway_bill_number: Mapped[str | None] = mapped_column(String(50))
    fragile: Mapped[bool] = mapped_column(Boolean, default=False)
    special_instructions: Mapped[str | None] = mapped_column(Text)
    reference_number: Mapped[str | None] = mapped_column(String(50))

    # ── Status ───────────────────────────────────────────────
    # booked | in_transit | delivered | cancelled
    status: Mapped[str] = mapped_column(String(20), default="booked", index=True)

    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    sender = relationship("Customer", foreign_keys=[sender_id], lazy="selectin")
    receiver = relationship("Customer", foreign_keys=[receiver_id], lazy="selectin")
    article = relationship("Article", lazy="selectin")
    from_branch_details = relationship(
        "Branch", foreign_keys=[from_branch], lazy="selectin"
    )
    to_branch_details = relationship(
        "Branch", foreign_keys=[to_branch], lazy="selectin"
    )
