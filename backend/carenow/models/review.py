"""
Review model.

One review per booking (unique booking_id). Ratings run 0-5 in half steps.
Reviews stay editable for a limited window after creation; the window is
enforced by ReviewService.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.types import JSON

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Review(Base):
    """Client review of a completed booking."""

    __tablename__ = "reviews"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    booking_id = Column(String(26), nullable=False)
    user_id = Column(String(128), nullable=False, index=True)
    partner_id = Column(String(128), nullable=False, index=True)
    service_id = Column(String(64), nullable=False, index=True)

    rating = Column(Float, nullable=False)
    comment = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_recommended = Column(Boolean, nullable=False, default=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("booking_id", name="uq_reviews_booking"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_reviews_rating_range"),
        Index("idx_reviews_partner_created", "partner_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Review {self.id}: booking={self.booking_id} rating={self.rating}>"
