"""Booking (LR) service.

Handles the booking lifecycle:
  - listing by branch scope (origin or destination), newest first, cached
  - creation with a system-generated or manual LR number and a total
    computed from the charge components
  - status transitions, with a small whitelist of fields that may change
    alongside the status
  - deletion of bookings that have not entered transit yet

Every reference id is checked for UUID format before the database is
touched.
"""

import logging
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.config import settings
from desicargo.middleware.exceptions import (
    BusinessLogicError,
    DomainValidationError,
    PersistenceError,
    ResourceNotFoundError,
)
from desicargo.models.article import Article
from desicargo.models.booking import Booking
from desicargo.models.branch import Branch
from desicargo.models.customer import Customer
from desicargo.models.ogpl import OGPL, LoadingRecord
from desicargo.models.user import User
from desicargo.schemas.booking import BookingDraft, BookingOut, BookingStatusUpdate, TrackingOut
from desicargo.schemas.validators import ensure_uuid
from desicargo.utils.activity import log_activity
from desicargo.utils.cache import cached, invalidate_on_commit
from desicargo.utils.numbering import generate_code

logger = logging.getLogger(__name__)

CHARGE_FIELDS = ("loading_charges", "unloading_charges", "insurance_charge", "packaging_charge")

# current status -> statuses it may move to (besides itself)
TRANSITIONS: dict[str, set[str]] = {
    "booked": {"in_transit", "cancelled"},
    "in_transit": {"delivered", "cancelled"},
    "delivered": set(),
    "cancelled": set(),
}

DELETABLE_STATUSES = {"booked"}


def compute_total(draft) -> float:
    """quantity × freight_per_qty + loading + unloading + insurance + packaging.

    Absent charges count as zero.
    """
    total = (draft.quantity or 0) * (draft.freight_per_qty or 0)
    for field in CHARGE_FIELDS:
        total += getattr(draft, field, None) or 0
    return round(total, 2)


def can_transition(current: str, new: str) -> bool:
    if current == new:
        return True
    return new in TRANSITIONS.get(current, set())


def resolve_scope(requested: str | None, user: User | None) -> str | None:
    """Effective branch filter: the requested branch, else the caller's own, else all.

    Raises:
        InvalidIdentifierError: if the branch id that would be used is malformed.
    """
    if requested:
        return ensure_uuid(requested, "branch")
    if user is not None and user.branch_id:
        return ensure_uuid(user.branch_id, "branch")
    return None


async def _load_booking(db: AsyncSession, booking_id: str) -> Booking | None:
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


# ── Listing ──────────────────────────────────────────────────

@cached(ttl=settings.booking_cache_ttl, prefix="bookings")
async def list_bookings(db: AsyncSession, *, branch_id: str | None = None) -> list[BookingOut]:
    stmt = select(Booking).order_by(Booking.created_at.desc())
    if branch_id:
        stmt = stmt.where(
            or_(Booking.from_branch == branch_id, Booking.to_branch == branch_id)
        )
    result = await db.execute(stmt)
    return [BookingOut.model_validate(b) for b in result.scalars().all()]


async def fetch_bookings(db: AsyncSession, branch_id: str | None = None) -> list[BookingOut]:
    """Scoped booking list as models, whether served from cache or not."""
    rows = await list_bookings(db, branch_id=branch_id)
    return [BookingOut.model_validate(row) for row in rows]


async def get_booking(db: AsyncSession, booking_id: str) -> Booking:
    ensure_uuid(booking_id, "booking")
    booking = await _load_booking(db, booking_id)
    if not booking:
        raise ResourceNotFoundError("Booking", booking_id)
    return booking


# ── Create ───────────────────────────────────────────────────

async def _require_rows(db: AsyncSession, model, ids: dict[str, str]) -> None:
    """Every id in ``{label: id}`` must exist in ``model``'s table."""
    wanted = set(ids.values())
    result = await db.execute(select(model.id).where(model.id.in_(wanted)))
    found = set(result.scalars().all())
    for label, ref in ids.items():
        if ref not in found:
            raise PersistenceError(
                f"Referenced {label} does not exist: {ref}",
                error_code="REFERENTIAL_INTEGRITY",
            )


async def create_booking(db: AsyncSession, draft: BookingDraft, user: User) -> Booking:
    branch_id = draft.branch_id or user.branch_id or draft.from_branch

    ensure_uuid(branch_id, "branch")
    ensure_uuid(draft.from_branch, "origin branch")
    ensure_uuid(draft.to_branch, "destination branch")
    ensure_uuid(draft.sender_id, "sender")
    ensure_uuid(draft.receiver_id, "receiver")
    ensure_uuid(draft.article_id, "article")

    if draft.from_branch == draft.to_branch:
        raise DomainValidationError("Origin and destination branches must be different")

    await _require_rows(db, Branch, {
        "branch": branch_id,
        "origin branch": draft.from_branch,
        "destination branch": draft.to_branch,
    })
    await _require_rows(db, Customer, {"sender": draft.sender_id, "receiver": draft.receiver_id})
    await _require_rows(db, Article, {"article": draft.article_id})

    if draft.lr_type == "manual":
        lr_number = draft.manual_lr_number
        existing = await db.execute(select(Booking.id).where(Booking.lr_number == lr_number))
        if existing.first() is not None:
            raise PersistenceError(
                f"LR number already exists: {lr_number}", error_code="DUPLICATE_RECORD"
            )
    else:
        lr_number = await generate_code(db, "booking")

    fields = draft.model_dump(exclude={"branch_id", *CHARGE_FIELDS})
    booking = Booking(
        **fields,
        **{field: getattr(draft, field) or 0.0 for field in CHARGE_FIELDS},
        branch_id=branch_id,
        lr_number=lr_number,
        total_amount=compute_total(draft),
        status="booked",
        created_by=user.id,
    )
    db.add(booking)
    try:
        await db.flush()
    except IntegrityError as e:
        logger.error(f"Failed to create booking {lr_number}: {e.orig}")
        raise PersistenceError("Failed to create booking") from e

    await log_activity(
        db, user,
        action="created",
        entity_type="booking",
        entity_id=booking.id,
        entity_code=lr_number,
        summary=f"Booked {lr_number} for {booking.total_amount:.2f} ({draft.payment_type})",
    )
    invalidate_on_commit(db, "bookings:*")
    logger.info(f"Booking {lr_number} created by {user.email}")

    return await _load_booking(db, booking.id)


# ── Update status ────────────────────────────────────────────

async def update_booking_status(
    db: AsyncSession,
    booking_id: str,
    body: BookingStatusUpdate,
    user: User,
) -> Booking:
    ensure_uuid(booking_id, "booking")

    booking = await _load_booking(db, booking_id)
    if not booking:
        logger.error(f"Status update for missing booking {booking_id}")
        raise PersistenceError(f"Booking not found or not updated: {booking_id}")

    previous = booking.status
    if not can_transition(previous, body.status):
        raise BusinessLogicError(
            f"Cannot change booking {booking.lr_number} from '{previous}' to '{body.status}'",
            error_code="INVALID_TRANSITION",
        )

    for field, value in body.model_dump(exclude_unset=True, exclude={"status"}).items():
        setattr(booking, field, value)
    booking.status = body.status
    booking.updated_at = datetime.utcnow()
    await db.flush()

    if previous != body.status:
        await log_activity(
            db, user,
            action="status_changed",
            entity_type="booking",
            entity_id=booking.id,
            entity_code=booking.lr_number,
            summary=f"{booking.lr_number}: {previous} → {body.status}",
            details={"from": previous, "to": body.status},
        )
    invalidate_on_commit(db, "bookings:*")

    return await _load_booking(db, booking.id)


# ── Delete ───────────────────────────────────────────────────

async def delete_booking(db: AsyncSession, booking_id: str, user: User) -> None:
    ensure_uuid(booking_id, "booking")

    booking = await _load_booking(db, booking_id)
    if not booking:
        logger.error(f"Delete requested for missing booking {booking_id}")
        raise PersistenceError(f"Booking not found: {booking_id}")

    if booking.status not in DELETABLE_STATUSES:
        raise BusinessLogicError(
            f"Only bookings in 'booked' status can be deleted "
            f"({booking.lr_number} is '{booking.status}')"
        )

    lr_number = booking.lr_number
    await db.delete(booking)
    try:
        await db.flush()
    except IntegrityError as e:
        logger.error(f"Failed to delete booking {lr_number}: {e.orig}")
        raise PersistenceError(
            f"Cannot delete booking {lr_number}: it is still referenced",
            error_code="REFERENTIAL_INTEGRITY",
        ) from e

    await log_activity(
        db, user,
        action="deleted",
        entity_type="booking",
        entity_id=booking_id,
        entity_code=lr_number,
    )
    invalidate_on_commit(db, "bookings:*")
    logger.info(f"Booking {lr_number} deleted by {user.email}")


# ── Public tracking ──────────────────────────────────────────

async def track_booking(db: AsyncSession, lr_number: str) -> TrackingOut:
    result = await db.execute(select(Booking).where(Booking.lr_number == lr_number))
    booking = result.scalar_one_or_none()
    if not booking:
        raise ResourceNotFoundError("Consignment", lr_number)

    manifest = await db.execute(
        select(OGPL.ogpl_number)
        .join(LoadingRecord, LoadingRecord.ogpl_id == OGPL.id)
        .where(LoadingRecord.booking_id == booking.id)
        .order_by(LoadingRecord.loaded_at.desc())
        .limit(1)
    )

    return TrackingOut(
        lr_number=booking.lr_number,
        status=booking.status,
        origin_city=booking.from_branch_details.city if booking.from_branch_details else None,
        destination_city=booking.to_branch_details.city if booking.to_branch_details else None,
        ogpl_number=manifest.scalar_one_or_none(),
        booked_at=booking.created_at,
        updated_at=booking.updated_at,
    )
