"""Response shapes for the dashboard and finance views."""

from pydantic import BaseModel


class StatusCounts(BaseModel):
    booked: int = 0
    in_transit: int = 0
    delivered: int = 0
    cancelled: int = 0


class RevenueSummary(BaseModel):
    total: float
    average: float


class DailyPoint(BaseModel):
    date: str  # YYYY-MM-DD
    bookings: int
    delivered: int
    revenue: float


class MonthlyPoint(BaseModel):
    month: str  # "Jan 2024"
    revenue: float


class LabelValue(BaseModel):
    name: str
    value: float


class TopCustomer(BaseModel):
    id: str
    name: str
    type: str
    count: int


class DashboardStats(BaseModel):
    date_range: str
    total_bookings: int
    status_counts: StatusCounts
    revenue: RevenueSummary
    average_delivery_hours: float
    daily_trend: list[DailyPoint]
    monthly_revenue: list[MonthlyPoint]
    status_distribution: list[LabelValue]
    payment_types: list[LabelValue]
    branch_revenue: list[LabelValue]
    top_customers: list[TopCustomer]


class BranchSummary(BaseModel):
    total_bookings: int
    revenue: float
    inbound: int
    outbound: int
    pending_deliveries: int
    active_vehicles: int


class BranchTrendPoint(BaseModel):
    date: str
    inbound: int
    outbound: int


class BranchDashboard(BaseModel):
    branch_id: str
    branch_name: str
    summary: BranchSummary
    trend: list[BranchTrendPoint]
    top_customers: list[TopCustomer]


class FinanceRevenue(BaseModel):
    date_range: str
    revenue: RevenueSummary
    monthly_revenue: list[MonthlyPoint]
    payment_types: list[LabelValue]
    branch_revenue: list[LabelValue]
