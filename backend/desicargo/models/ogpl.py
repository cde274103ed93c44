"""OGPL — an outward goods parcel list (manifest).

Groups bookings loaded onto one vehicle for a trip between two branches.
Loading records keep the order in which bookings were put on the vehicle.

Lifecycle:  in_transit → completed
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from desicargo.database import Base


class OGPL(Base):
    __tablename__ = "ogpls"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    ogpl_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    vehicle_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("vehicles.id"), nullable=False, index=True
    )
    # direct | hub | local
    transit_mode: Mapped[str] = mapped_column(String(20), nullable=False)
    transit_date: Mapped[date] = mapped_column(Date, nullable=False)

    # ── Route ────────────────────────────────────────────────
    from_station: Mapped[str] = mapped_column(
        String(36), ForeignKey("branches.id"), nullable=False, index=True
    )
    to_station: Mapped[str] = mapped_column(
        String(36), ForeignKey("branches.id"), nullable=False, index=True
    )
    departure_time: Mapped[str | None] = mapped_column(String(5))  # HH:MM
    arrival_time: Mapped[str | None] = mapped_column(String(5))

    # ── Crew ─────────────────────────────────────────────────
    supervisor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    supervisor_mobile: Mapped[str] = mapped_column(String(20), nullable=False)
    primary_driver_name: Mapped[str] = mapped_column(String(255), nullable=False)
    primary_driver_mobile: Mapped[str] = mapped_column(String(20), nullable=False)
    secondary_driver_name: Mapped[str | None] = mapped_column(String(255))
    secondary_driver_mobile: Mapped[str | None] = mapped_column(String(20))

    # in_transit | completed
    status: Mapped[str] = mapped_column(String(20), default="in_transit", index=True)

    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    vehicle = relationship("Vehicle", lazy="selectin")
    from_station_details = relationship(
        "Branch", foreign_keys=[from_station], lazy="selectin"
    )
    to_station_details = relationship(
        "Branch", foreign_keys=[to_station], lazy="selectin"
    )
    loading_records = relationship(
        "LoadingRecord",
        back_populates="ogpl",
        order_by="LoadingRecord.sequence",
        lazy="selectin",
    )


class LoadingRecord(Base):
    __tablename__ = "ogpl_loading_records"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    ogpl_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("ogpls.id"), nullable=False, index=True
    )
    booking_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("bookings.id"), nullable=False, index=True
    )
    # Position in which the booking was loaded
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    loaded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    loaded_by: Mapped[str | None] = mapped_column(String(36))
    remarks: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    ogpl = relationship("OGPL", back_populates="loading_records")
    booking = relationship("Booking", lazy="selectin")
