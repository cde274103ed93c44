"""Sequential document numbers.

Format: {PREFIX}-{YYYYMMDD}-{seq:4}, the sequence resetting daily per prefix.

  booking:  LR-20240315-0001
  ogpl:     OGPL-20240315-0001

Manual LR numbers share the bookings column, so a generated candidate that
is already taken is skipped rather than reused.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.models.booking import Booking
from desicargo.models.ogpl import OGPL

SEQ_WIDTH = 4

# entity -> (prefix, code column)
ENTITY_COLUMN_MAP = {
    "booking": ("LR", Booking.lr_number),
    "ogpl": ("OGPL", OGPL.ogpl_number),
}


def format_code(prefix: str, day: datetime, seq: int) -> str:
    return f"{prefix}-{day.strftime('%Y%m%d')}-{seq:0{SEQ_WIDTH}d}"


async def generate_code(
    db: AsyncSession,
    entity: str,
    now: datetime | None = None,
) -> str:
    """Next free code for `entity` ("booking" or "ogpl") on today's date."""
    prefix, column = ENTITY_COLUMN_MAP[entity]
    now = now or datetime.utcnow()
    day_prefix = f"{prefix}-{now.strftime('%Y%m%d')}-"

    result = await db.execute(
        select(func.count()).where(column.like(f"{day_prefix}%"))
    )
    seq = (result.scalar() or 0) + 1

    while True:
        code = format_code(prefix, now, seq)
        taken = await db.execute(select(column).where(column == code))
        if taken.first() is None:
            return code
        seq += 1
