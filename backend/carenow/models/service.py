"""
Service catalog model.

One row per offerable service (elder care, child care, pet care,
housekeeping, ...). Rows are read-only for the booking flow; the catalog is
refreshed by re-querying.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.types import JSON

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Service(Base):
    """Offerable home-care service with an hourly base price."""

    __tablename__ = "services"

    id = Column(String(64), primary_key=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(64), nullable=False, index=True)
    icon_url = Column(String(512), nullable=False, default="")
    base_price = Column(Float, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    requirements = Column(JSON, nullable=False, default=list)
    benefits = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="check_base_price_non_negative"),
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
    )

    def calculate_price(self, hours: float) -> float:
        return self.base_price * hours

    def __repr__(self) -> str:
        return f"<Service {self.id}: {self.name} ({self.category}) {self.base_price}/h>"
