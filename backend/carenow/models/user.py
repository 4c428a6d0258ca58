"""User profile model, keyed by the auth provider's uid."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, String

from ..database import Base


class UserRole(str, Enum):
    CLIENT = "client"
    PARTNER = "partner"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    phone_number = Column(String(32), nullable=True, index=True)
    display_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.CLIENT.value)
    # Push messaging registration token for this user's device
    fcm_token = Column(String(512), nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("role IN ('client', 'partner', 'admin')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email or self.phone_number} ({self.role})>"
