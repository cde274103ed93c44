"""UnloadingRecord — the condition report captured when a manifest is unloaded.

``conditions`` maps booking id to {"status": good|damaged|missing,
"remarks": str | None, "photo": str | None}.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from desicargo.database import Base


class UnloadingRecord(Base):
    __tablename__ = "unloading_records"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    ogpl_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("ogpls.id"), nullable=False, index=True
    )
    unloaded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    unloaded_by: Mapped[str] = mapped_column(String(36), nullable=False)
    conditions: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    ogpl = relationship("OGPL", lazy="selectin")
