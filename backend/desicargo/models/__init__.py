"""Aggregate model imports for Alembic auto-detection."""

from desicargo.models.branch import Branch  # noqa: F401
from desicargo.models.user import User, UserRole  # noqa: F401
from desicargo.models.customer import Customer  # noqa: F401
from desicargo.models.article import Article  # noqa: F401
from desicargo.models.vehicle import Vehicle  # noqa: F401
from desicargo.models.booking import Booking  # noqa: F401
from desicargo.models.ogpl import OGPL, LoadingRecord  # noqa: F401
from desicargo.models.unloading import UnloadingRecord  # noqa: F401
from desicargo.models.activity_log import ActivityLog  # noqa: F401
