"""Finance router: revenue views for administrators and accountants."""

from datetime import date, datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.deps import require_permission
from desicargo.config import settings
from desicargo.database import get_db
from desicargo.models.user import User
from desicargo.routers.dashboard import DateRange
from desicargo.schemas.dashboard import FinanceRevenue
from desicargo.services import analytics
from desicargo.services.bookings import fetch_bookings, resolve_scope

router = APIRouter()


@router.get("/revenue", response_model=FinanceRevenue)
async def revenue(
    date_range: DateRange = "last_month",
    start_date: date | None = None,
    end_date: date | None = None,
    branch_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("financials.read")),
):
    """Revenue totals and breakdowns; cancelled bookings are excluded."""
    now = datetime.utcnow()
    bookings = [
        b for b in await fetch_bookings(db, resolve_scope(branch_id, user))
        if b.status != "cancelled"
    ]
    filtered = analytics.filter_bookings(
        bookings, date_range, now, start_date=start_date, end_date=end_date
    )

    return FinanceRevenue(
        date_range=date_range,
        revenue=analytics.revenue_summary(filtered),
        monthly_revenue=analytics.monthly_revenue_trend(
            bookings, now, months=settings.revenue_window_months
        ),
        payment_types=analytics.payment_type_distribution(filtered),
        branch_revenue=analytics.branch_revenue(filtered),
    )
