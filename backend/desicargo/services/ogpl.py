"""OGPL (manifest) loading and unloading service.

Loading:   create a manifest for a vehicle between two branches and load
           the given bookings onto it in order; each booking moves
           booked → in_transit.

Unloading: capture a condition (good / damaged / missing) per booking.
           The request must account for every loaded booking, and everything
           is validated before the first write. On success the
           unloading record is stored, the manifest moves
           in_transit → completed, and every unloaded booking that is not
           missing moves in_transit → delivered, all in one transaction.
"""

import logging
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.middleware.exceptions import (
    BusinessLogicError,
    DomainValidationError,
    PersistenceError,
    ResourceNotFoundError,
)
from desicargo.models.booking import Booking
from desicargo.models.branch import Branch
from desicargo.models.ogpl import OGPL, LoadingRecord
from desicargo.models.unloading import UnloadingRecord
from desicargo.models.user import User
from desicargo.models.vehicle import Vehicle
from desicargo.schemas.ogpl import OGPLCreate, UnloadCondition, UnloadRequest
from desicargo.schemas.validators import ensure_uuid
from desicargo.utils.activity import log_activity
from desicargo.utils.cache import invalidate_on_commit
from desicargo.utils.numbering import generate_code

logger = logging.getLogger(__name__)

REMARKS_REQUIRED = {"damaged", "missing"}


async def _load_ogpl(db: AsyncSession, ogpl_id: str) -> OGPL | None:
    result = await db.execute(
        select(OGPL)
        .where(OGPL.id == ogpl_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _duplicates(ids: list[str]) -> list[str]:
    seen: set[str] = set()
    dupes = []
    for i in ids:
        if i in seen and i not in dupes:
            dupes.append(i)
        seen.add(i)
    return dupes


# ── Load (create manifest) ───────────────────────────────────

async def create_ogpl(db: AsyncSession, body: OGPLCreate, user: User) -> OGPL:
    ensure_uuid(body.vehicle_id, "vehicle")
    ensure_uuid(body.from_station, "origin branch")
    ensure_uuid(body.to_station, "destination branch")
    for booking_id in body.booking_ids:
        ensure_uuid(booking_id, "booking")

    if body.from_station == body.to_station:
        raise DomainValidationError("Origin and destination stations must be different")

    dupes = _duplicates(body.booking_ids)
    if dupes:
        raise DomainValidationError(
            "Bookings listed more than once", details={"booking_ids": dupes}
        )

    stray = sorted(set(body.remarks or {}) - set(body.booking_ids))
    if stray:
        raise DomainValidationError(
            "Loading remarks given for bookings that are not being loaded",
            details={"booking_ids": stray},
        )

    # ── Vehicle ──────────────────────────────────────────────
    vehicle = (
        await db.execute(select(Vehicle).where(Vehicle.id == body.vehicle_id))
    ).scalar_one_or_none()
    if not vehicle:
        raise PersistenceError(
            f"Referenced vehicle does not exist: {body.vehicle_id}",
            error_code="REFERENTIAL_INTEGRITY",
        )
    if vehicle.status != "active":
        raise BusinessLogicError(
            f"Vehicle {vehicle.vehicle_number} is not active ({vehicle.status})"
        )

    # ── Stations ─────────────────────────────────────────────
    found = set(
        (
            await db.execute(
                select(Branch.id).where(Branch.id.in_([body.from_station, body.to_station]))
            )
        ).scalars().all()
    )
    for label, ref in (("origin branch", body.from_station), ("destination branch", body.to_station)):
        if ref not in found:
            raise PersistenceError(
                f"Referenced {label} does not exist: {ref}",
                error_code="REFERENTIAL_INTEGRITY",
            )

    # ── Bookings ─────────────────────────────────────────────
    result = await db.execute(select(Booking).where(Booking.id.in_(body.booking_ids)))
    bookings = {b.id: b for b in result.scalars().all()}

    missing = [bid for bid in body.booking_ids if bid not in bookings]
    if missing:
        raise PersistenceError(
            "Referenced bookings do not exist: " + ", ".join(missing),
            error_code="REFERENTIAL_INTEGRITY",
        )

    not_ready = [b.lr_number for b in bookings.values() if b.status != "booked"]
    if not_ready:
        raise BusinessLogicError(
            "Only bookings in 'booked' status can be loaded: " + ", ".join(not_ready)
        )

    elsewhere = [b.lr_number for b in bookings.values() if b.from_branch != body.from_station]
    if elsewhere:
        raise BusinessLogicError(
            "Bookings do not originate at the loading station: " + ", ".join(elsewhere)
        )

    # ── Write ────────────────────────────────────────────────
    ogpl_number = await generate_code(db, "ogpl")
    ogpl = OGPL(
        **body.model_dump(exclude={"booking_ids", "remarks"}),
        ogpl_number=ogpl_number,
        status="in_transit",
        created_by=user.id,
    )
    db.add(ogpl)
    await db.flush()

    now = datetime.utcnow()
    remarks = body.remarks or {}
    for seq, booking_id in enumerate(body.booking_ids, start=1):
        db.add(LoadingRecord(
            ogpl_id=ogpl.id,
            booking_id=booking_id,
            sequence=seq,
            loaded_at=now,
            loaded_by=user.id,
            remarks=(remarks.get(booking_id) or "").strip() or None,
        ))
        booking = bookings[booking_id]
        booking.status = "in_transit"
        booking.updated_at = now
    await db.flush()

    await log_activity(
        db, user,
        action="loaded",
        entity_type="ogpl",
        entity_id=ogpl.id,
        entity_code=ogpl_number,
        summary=f"Loaded {len(body.booking_ids)} bookings on {vehicle.vehicle_number}",
        details={"booking_ids": body.booking_ids},
    )
    invalidate_on_commit(db, "bookings:*")
    logger.info(f"OGPL {ogpl_number} created with {len(body.booking_ids)} bookings")

    return await _load_ogpl(db, ogpl.id)


# ── Queries ──────────────────────────────────────────────────

async def list_ogpls(
    db: AsyncSession,
    status: str | None = None,
    branch_id: str | None = None,
) -> list[OGPL]:
    stmt = select(OGPL).order_by(OGPL.created_at.desc())
    if status:
        stmt = stmt.where(OGPL.status == status)
    if branch_id:
        ensure_uuid(branch_id, "branch")
        stmt = stmt.where(or_(OGPL.from_station == branch_id, OGPL.to_station == branch_id))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def incoming_ogpls(db: AsyncSession, branch_id: str | None) -> list[OGPL]:
    """Manifests still in transit towards ``branch_id`` (all branches when None)."""
    stmt = (
        select(OGPL)
        .where(OGPL.status == "in_transit")
        .order_by(OGPL.transit_date.desc(), OGPL.created_at.desc())
    )
    if branch_id:
        ensure_uuid(branch_id, "branch")
        stmt = stmt.where(OGPL.to_station == branch_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_ogpl(db: AsyncSession, ogpl_id: str) -> OGPL:
    ensure_uuid(ogpl_id, "OGPL")
    ogpl = await _load_ogpl(db, ogpl_id)
    if not ogpl:
        raise ResourceNotFoundError("OGPL", ogpl_id)
    return ogpl


async def list_unloadings(db: AsyncSession, branch_id: str | None = None) -> list[UnloadingRecord]:
    stmt = select(UnloadingRecord).order_by(UnloadingRecord.unloaded_at.desc())
    if branch_id:
        ensure_uuid(branch_id, "branch")
        stmt = stmt.join(OGPL, UnloadingRecord.ogpl_id == OGPL.id).where(
            OGPL.to_station == branch_id
        )
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ── Unload ───────────────────────────────────────────────────

def validate_conditions(
    booking_ids: list[str],
    conditions: dict[str, UnloadCondition],
    lr_numbers: dict[str, str] | None = None,
) -> dict[str, dict]:
    """Check an unload request and return the full condition map.

    Booking ids without an explicit condition are recorded as good.
    Damaged and missing entries must carry non-blank remarks.

    Raises:
        DomainValidationError: naming the offending bookings.
    """
    lr_numbers = lr_numbers or {}

    dupes = _duplicates(booking_ids)
    if dupes:
        raise DomainValidationError(
            "Bookings listed more than once", details={"booking_ids": dupes}
        )

    stray = sorted(set(conditions) - set(booking_ids))
    if stray:
        raise DomainValidationError(
            "Conditions given for bookings that are not being unloaded",
            details={"booking_ids": stray},
        )

    lacking = [
        bid for bid in booking_ids
        if bid in conditions
        and conditions[bid].status in REMARKS_REQUIRED
        and not (conditions[bid].remarks or "").strip()
    ]
    if lacking:
        labels = [lr_numbers.get(bid, bid) for bid in lacking]
        raise DomainValidationError(
            "Remarks are required for damaged or missing items: " + ", ".join(labels),
            details={"booking_ids": lacking},
        )

    full: dict[str, dict] = {}
    for bid in booking_ids:
        condition = conditions.get(bid) or UnloadCondition()
        full[bid] = {
            "status": condition.status,
            "remarks": (condition.remarks or "").strip() or None,
            "photo": condition.photo,
        }
    return full


async def unload_ogpl(
    db: AsyncSession,
    ogpl_id: str,
    body: UnloadRequest,
    user: User,
) -> UnloadingRecord:
    ensure_uuid(ogpl_id, "OGPL")
    for booking_id in body.booking_ids:
        ensure_uuid(booking_id, "booking")

    ogpl = await _load_ogpl(db, ogpl_id)
    if not ogpl:
        raise ResourceNotFoundError("OGPL", ogpl_id)
    if ogpl.status != "in_transit":
        raise BusinessLogicError(
            f"OGPL {ogpl.ogpl_number} is already {ogpl.status}",
            error_code="INVALID_TRANSITION",
        )

    loaded = {rec.booking_id: rec.booking for rec in ogpl.loading_records}
    foreign = [bid for bid in body.booking_ids if bid not in loaded]
    if foreign:
        raise DomainValidationError(
            f"Bookings are not loaded on {ogpl.ogpl_number}",
            details={"booking_ids": foreign},
        )

    lr_numbers = {bid: b.lr_number for bid, b in loaded.items() if b is not None}

    # one unloading per manifest, so it has to account for every loaded booking
    requested = set(body.booking_ids)
    left_out = [bid for bid in loaded if bid not in requested]
    if left_out:
        labels = [lr_numbers.get(bid, bid) for bid in left_out]
        raise DomainValidationError(
            f"Every booking on {ogpl.ogpl_number} must be unloaded: " + ", ".join(labels),
            details={"booking_ids": left_out},
        )

    conditions = validate_conditions(body.booking_ids, body.conditions, lr_numbers)

    # ── Write (validation passed) ────────────────────────────
    now = datetime.utcnow()
    record = UnloadingRecord(
        ogpl_id=ogpl.id,
        unloaded_at=now,
        unloaded_by=user.id,
        conditions=conditions,
    )
    db.add(record)

    ogpl.status = "completed"
    ogpl.updated_at = now

    delivered = []
    for booking_id, condition in conditions.items():
        booking = loaded[booking_id]
        if condition["status"] != "missing" and booking.status == "in_transit":
            booking.status = "delivered"
            booking.updated_at = now
            delivered.append(booking.lr_number)
    await db.flush()

    flagged = {bid: c["status"] for bid, c in conditions.items() if c["status"] != "good"}
    await log_activity(
        db, user,
        action="unloaded",
        entity_type="ogpl",
        entity_id=ogpl.id,
        entity_code=ogpl.ogpl_number,
        summary=f"Unloaded {len(conditions)} bookings, {len(flagged)} flagged",
        details={"flagged": flagged, "delivered": delivered},
    )
    invalidate_on_commit(db, "bookings:*")
    logger.info(
        f"OGPL {ogpl.ogpl_number} unloaded: {len(delivered)} delivered, {len(flagged)} flagged"
    )

    result = await db.execute(
        select(UnloadingRecord)
        .where(UnloadingRecord.id == record.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()
