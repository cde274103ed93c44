"""Booking analytics for the dashboards.

Pure functions over an already-loaded booking collection. Nothing here
touches the database; the caller supplies the bookings (usually the
branch-scoped list from `services.bookings.fetch_bookings`) and a reference
``now`` so results are reproducible.

Bookings are read by attribute: `created_at`, `updated_at`, `status`,
`total_amount`, `payment_type`, `lr_number`, `from_branch`, `to_branch`,
`sender_id`, `receiver_id` and the embedded `sender`, `receiver`,
`from_branch_details`.
"""

import calendar
from collections import Counter
from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence

DATE_RANGES = ("today", "yesterday", "last_week", "last_month", "last_3_months", "custom", "all")

STATUS_ORDER = ("booked", "in_transit", "delivered", "cancelled")
PAYMENT_TYPES = ("Paid", "To Pay", "Quotation")
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def months_back(moment: datetime, months: int) -> datetime:
    """Same wall-clock time ``months`` calendar months earlier (day clamped to month end)."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def status_label(status: str) -> str:
    """Display label for a status, e.g. in_transit becomes "In transit"."""
    return status[:1].upper() + status[1:].replace("_", " ")


def _amount(booking) -> float:
    return booking.total_amount or 0.0


# ── Filtering ────────────────────────────────────────────────

def _matches_search(booking, needle: str) -> bool:
    haystack = [booking.lr_number or ""]
    for party in (getattr(booking, "sender", None), getattr(booking, "receiver", None)):
        if party is not None and getattr(party, "name", None):
            haystack.append(party.name)
    return any(needle in value.lower() for value in haystack)


def filter_bookings(
    bookings: Iterable,
    date_range: str,
    now: datetime,
    start_date: date | None = None,
    end_date: date | None = None,
    search: str | None = None,
) -> list:
    """Bookings created inside ``date_range`` whose LR number, sender or
    receiver name contains ``search`` (case-insensitive).

    today / yesterday compare calendar dates; last_week, last_month and
    last_3_months keep bookings created at or after the cut-off; custom spans
    the start of ``start_date`` (epoch when absent) to the end of ``end_date``
    (today when absent); all and unknown ranges keep everything.
    """
    needle = (search or "").strip().lower()
    today = now.date()

    if date_range == "custom":
        lower = datetime.combine(start_date, time.min) if start_date else datetime(1970, 1, 1)
        upper = datetime.combine(end_date or today, time.max)

    def in_range(created: datetime) -> bool:
        if date_range == "today":
            return created.date() == today
        if date_range == "yesterday":
            return created.date() == today - timedelta(days=1)
        if date_range == "last_week":
            return created >= now - timedelta(days=7)
        if date_range == "last_month":
            return created >= months_back(now, 1)
        if date_range == "last_3_months":
            return created >= months_back(now, 3)
        if date_range == "custom":
            return lower <= created <= upper
        return True

    return [
        b for b in bookings
        if (not needle or _matches_search(b, needle)) and in_range(b.created_at)
    ]


# ── Headline figures ─────────────────────────────────────────

def status_counts(bookings: Iterable) -> dict[str, int]:
    counts = dict.fromkeys(STATUS_ORDER, 0)
    for b in bookings:
        counts[b.status] = counts.get(b.status, 0) + 1
    return counts


def revenue_summary(bookings: Sequence) -> dict[str, float]:
    total = sum(_amount(b) for b in bookings)
    average = total / len(bookings) if bookings else 0.0
    return {"total": round(total, 2), "average": round(average, 2)}


def average_delivery_hours(bookings: Iterable) -> float:
    """Mean of (updated_at − created_at) in hours over delivered bookings; 0 when none."""
    durations = [
        (b.updated_at - b.created_at).total_seconds() / 3600
        for b in bookings
        if b.status == "delivered"
    ]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), 2)


# ── Time series ──────────────────────────────────────────────

def daily_trend(bookings: Iterable, now: datetime, days: int = 30) -> list[dict]:
    """Zero-filled daily buckets for the ``days`` days ending today, oldest first."""
    today = now.date()
    buckets = {}
    for offset in range(days - 1, -1, -1):
        day = (today - timedelta(days=offset)).isoformat()
        buckets[day] = {"date": day, "bookings": 0, "delivered": 0, "revenue": 0.0}

    for b in bookings:
        bucket = buckets.get(b.created_at.date().isoformat())
        if bucket is None:
            continue
        bucket["bookings"] += 1
        bucket["revenue"] += _amount(b)
        if b.status == "delivered":
            bucket["delivered"] += 1

    return list(buckets.values())


def month_label(moment) -> str:
    return f"{MONTH_ABBR[moment.month - 1]} {moment.year}"


def monthly_revenue_trend(bookings: Iterable, now: datetime, months: int = 12) -> list[dict]:
    """Zero-filled revenue per month for the trailing ``months`` months, oldest first."""
    first_of_month = now.replace(day=1)
    buckets = {}
    for offset in range(months - 1, -1, -1):
        label = month_label(months_back(first_of_month, offset))
        buckets[label] = {"month": label, "revenue": 0.0}

    for b in bookings:
        bucket = buckets.get(month_label(b.created_at))
        if bucket is not None:
            bucket["revenue"] += _amount(b)

    return list(buckets.values())


# ── Distributions ────────────────────────────────────────────

def status_distribution(bookings: Iterable) -> list[dict]:
    """Counts per status in fixed lifecycle order."""
    return [
        {"name": status_label(status), "value": count}
        for status, count in status_counts(bookings).items()
    ]


def _ranked(totals: dict[str, float]) -> list[dict]:
    return sorted(
        ({"name": name, "value": round(value, 2)} for name, value in totals.items()),
        key=lambda item: item["value"],
        reverse=True,
    )


def payment_type_distribution(bookings: Iterable) -> list[dict]:
    """Revenue per payment type, highest first."""
    totals = dict.fromkeys(PAYMENT_TYPES, 0.0)
    for b in bookings:
        totals[b.payment_type] = totals.get(b.payment_type, 0.0) + _amount(b)
    return _ranked(totals)


def branch_revenue(bookings: Iterable) -> list[dict]:
    """Revenue per origin branch name, highest first."""
    totals: dict[str, float] = {}
    for b in bookings:
        details = getattr(b, "from_branch_details", None)
        name = details.name if details is not None else "Unknown"
        totals[name] = totals.get(name, 0.0) + _amount(b)
    return _ranked(totals)


def top_customers(
    bookings: Iterable,
    customers: Iterable | None = None,
    limit: int = 5,
) -> list[dict]:
    """Parties appearing most often as sender or receiver.

    Names and types come from ``customers`` when given, else from the
    parties embedded in the bookings; unresolved parties show as Unknown.
    """
    directory = {}
    counts: Counter = Counter()
    for b in bookings:
        for party_id, party in (
            (b.sender_id, getattr(b, "sender", None)),
            (b.receiver_id, getattr(b, "receiver", None)),
        ):
            if not party_id:
                continue
            counts[party_id] += 1
            if party is not None:
                directory.setdefault(party_id, party)
    for customer in customers or ():
        directory[customer.id] = customer

    # Counter.most_common keeps first-seen order among equal counts
    ranked = counts.most_common(limit)
    return [
        {
            "id": party_id,
            "name": getattr(directory.get(party_id), "name", None) or "Unknown",
            "type": getattr(directory.get(party_id), "type", None) or "unknown",
            "count": count,
        }
        for party_id, count in ranked
    ]


# ── Branch dashboard ─────────────────────────────────────────

def branch_summary(bookings: Sequence, vehicles: Iterable, branch_id: str) -> dict:
    inbound = [b for b in bookings if b.to_branch == branch_id]
    return {
        "total_bookings": len(bookings),
        "revenue": round(sum(_amount(b) for b in bookings), 2),
        "inbound": len(inbound),
        "outbound": sum(1 for b in bookings if b.from_branch == branch_id),
        "pending_deliveries": sum(1 for b in inbound if b.status in ("booked", "in_transit")),
        "active_vehicles": sum(1 for v in vehicles if v.status == "active"),
    }


def branch_trend(bookings: Iterable, branch_id: str, now: datetime, days: int = 30) -> list[dict]:
    """Daily inbound and outbound counts for ``branch_id``, oldest first."""
    today = now.date()
    buckets = {}
    for offset in range(days - 1, -1, -1):
        day = (today - timedelta(days=offset)).isoformat()
        buckets[day] = {"date": day, "inbound": 0, "outbound": 0}

    for b in bookings:
        bucket = buckets.get(b.created_at.date().isoformat())
        if bucket is None:
            continue
        if b.to_branch == branch_id:
            bucket["inbound"] += 1
        if b.from_branch == branch_id:
            bucket["outbound"] += 1

    return list(buckets.values())
