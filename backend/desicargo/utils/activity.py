"""Lightweight helper for recording activity log entries.

Usage:
    await log_activity(
        db, user, action="created", entity_type="booking",
        entity_id=booking.id, entity_code=booking.lr_number,
        summary="Booked LR-20240315-0001 Mumbai → Delhi",
    )

The row is added to the current session and committed with the
enclosing transaction, so a rejected operation leaves no audit entry.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.models.activity_log import ActivityLog
from desicargo.models.user import User


async def log_activity(
    db: AsyncSession,
    user: User,
    *,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    entity_code: str | None = None,
    summary: str | None = None,
    details: dict | None = None,
) -> None:
    """Append an activity log entry to the current DB session."""
    entry = ActivityLog(
        user_id=user.id,
        user_name=user.name,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_code=entity_code,
        summary=summary,
        details=details,
    )
    db.add(entry)
