"""Dashboard router: booking analytics for the overview and branch pages.

Endpoints:
    GET /api/dashboard/stats           Overview figures for the caller's scope
    GET /api/dashboard/branch/{id}     Branch dashboard (inbound / outbound)
"""

from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.deps import require_permission
from desicargo.config import settings
from desicargo.database import get_db
from desicargo.middleware.exceptions import ResourceNotFoundError
from desicargo.models.branch import Branch
from desicargo.models.user import User
from desicargo.models.vehicle import Vehicle
from desicargo.schemas.dashboard import BranchDashboard, DashboardStats
from desicargo.schemas.validators import ensure_uuid
from desicargo.services import analytics
from desicargo.services.bookings import fetch_bookings, resolve_scope

router = APIRouter()

DateRange = Literal["today", "yesterday", "last_week", "last_month", "last_3_months", "custom", "all"]


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    date_range: DateRange = "last_month",
    start_date: date | None = None,
    end_date: date | None = None,
    search: str | None = Query(None, max_length=100),
    branch_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("bookings.read")),
):
    now = datetime.utcnow()
    scope = resolve_scope(branch_id, user)
    bookings = await fetch_bookings(db, scope)
    filtered = analytics.filter_bookings(
        bookings, date_range, now,
        start_date=start_date, end_date=end_date, search=search,
    )

    return DashboardStats(
        date_range=date_range,
        total_bookings=len(filtered),
        status_counts=analytics.status_counts(filtered),
        revenue=analytics.revenue_summary(filtered),
        average_delivery_hours=analytics.average_delivery_hours(filtered),
        daily_trend=analytics.daily_trend(filtered, now, days=settings.dashboard_window_days),
        # Trailing months are drawn from the whole scope, not the filtered window
        monthly_revenue=analytics.monthly_revenue_trend(
            bookings, now, months=settings.revenue_window_months
        ),
        status_distribution=analytics.status_distribution(filtered),
        payment_types=analytics.payment_type_distribution(filtered),
        branch_revenue=analytics.branch_revenue(filtered),
        top_customers=analytics.top_customers(filtered, limit=settings.top_customers_limit),
    )


@router.get("/branch/{branch_id}", response_model=BranchDashboard)
async def branch_dashboard(
    branch_id: str,
    date_range: DateRange = "all",
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("bookings.read")),
):
    ensure_uuid(branch_id, "branch")
    branch = (
        await db.execute(select(Branch).where(Branch.id == branch_id))
    ).scalar_one_or_none()
    if not branch:
        raise ResourceNotFoundError("Branch", branch_id)

    now = datetime.utcnow()
    bookings = analytics.filter_bookings(await fetch_bookings(db, branch_id), date_range, now)
    vehicles = (
        await db.execute(select(Vehicle).where(Vehicle.branch_id == branch_id))
    ).scalars().all()

    return BranchDashboard(
        branch_id=branch.id,
        branch_name=branch.name,
        summary=analytics.branch_summary(bookings, vehicles, branch_id),
        trend=analytics.branch_trend(bookings, branch_id, now, days=settings.dashboard_window_days),
        top_customers=analytics.top_customers(bookings, limit=settings.top_customers_limit),
    )
