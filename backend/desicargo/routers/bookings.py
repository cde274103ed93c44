"""Booking router.

Endpoints:
    GET    /api/bookings/?branch_id=    Bookings touching a branch (origin or destination)
    POST   /api/bookings/               Create booking (total computed server-side)
    GET    /api/bookings/{id}           Booking detail
    PATCH  /api/bookings/{id}/status    Change status (lifecycle enforced)
    DELETE /api/bookings/{id}           Delete a booking still in 'booked'
    GET    /api/bookings/{id}/qr        SVG QR code linking to the public tracking page

Without ``branch_id`` the list is scoped to the caller's assigned branch;
callers without a branch see every booking.
"""

import io

import segno
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.deps import require_permission
from desicargo.config import settings
from desicargo.database import get_db
from desicargo.models.user import User
from desicargo.schemas.booking import BookingDraft, BookingOut, BookingStatusUpdate
from desicargo.services import bookings as booking_service

router = APIRouter()


@router.get("/", response_model=list[BookingOut])
async def list_bookings(
    branch_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("bookings.read")),
):
    scope = booking_service.resolve_scope(branch_id, user)
    return await booking_service.fetch_bookings(db, scope)


@router.post("/", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: BookingDraft,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("bookings.write")),
):
    booking = await booking_service.create_booking(db, body, user)
    return BookingOut.model_validate(booking)


@router.get("/{booking_id}", response_model=BookingOut)
async def get_booking(
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("bookings.read")),
):
    return BookingOut.model_validate(await booking_service.get_booking(db, booking_id))


@router.patch("/{booking_id}/status", response_model=BookingOut)
async def update_booking_status(
    booking_id: str,
    body: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("bookings.write")),
):
    booking = await booking_service.update_booking_status(db, booking_id, body, user)
    return BookingOut.model_validate(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("bookings.delete")),
):
    await booking_service.delete_booking(db, booking_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{booking_id}/qr")
async def booking_qr(
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("bookings.read")),
):
    """QR code for the consignment label; scanning opens the tracking page."""
    booking = await booking_service.get_booking(db, booking_id)
    url = f"{settings.public_base_url.rstrip('/')}/track/{booking.lr_number}"

    qr = segno.make(url, error="m")
    buf = io.BytesIO()
    qr.save(buf, kind="svg", scale=4)
    return Response(content=buf.getvalue(), media_type="image/svg+xml")
