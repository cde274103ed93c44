"""Public consignment tracking (no authentication)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.database import get_db
from desicargo.schemas.booking import TrackingOut
from desicargo.services.bookings import track_booking

router = APIRouter()


@router.get("/{lr_number}", response_model=TrackingOut)
async def track(lr_number: str, db: AsyncSession = Depends(get_db)):
    return await track_booking(db, lr_number.strip())
