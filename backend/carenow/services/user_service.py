# backend/carenow/services/user_service.py
"""User profile rows keyed by the auth provider's uid."""

from datetime import datetime, timezone
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..models.user import User, UserRole
from ..repositories.factory import RepositoryFactory
from ..schemas.auth import AuthUser
from .base import BaseService

logger = logging.getLogger(__name__)


class UserService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("ensure_profile")
    def ensure_profile(self, auth_user: AuthUser, role: UserRole = UserRole.CLIENT) -> User:
        """Create the profile row for an authenticated user, or refresh its contact fields."""
        with self.transaction():
            user = self.repository.get_by_id(auth_user.uid)
            if user is None:
                user = self.repository.create(
                    id=auth_user.uid,
                    email=auth_user.email.lower() if auth_user.email else None,
                    phone_number=auth_user.phone_number,
                    display_name=auth_user.display_name,
                    role=UserRole(role).value,
                )
                self.log_operation("create_profile", user_id=user.id)
                return user

            changed = False
            for field in ("phone_number", "display_name"):
                value = getattr(auth_user, field)
                if value and value != getattr(user, field):
                    setattr(user, field, value)
                    changed = True
            if auth_user.email and auth_user.email.lower() != user.email:
                user.email = auth_user.email.lower()
                changed = True
            if changed:
                user.updated_at = datetime.now(timezone.utc)
                self.repository.flush()
            return user

    def get_user(self, user_id: str) -> User:
        user = self.repository.get_by_id(user_id)
        if user is None:
            raise NotFoundException(f"User {user_id} not found", details={"user_id": user_id})
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self.repository.get_by_email(email)

    def delete_profile(self, user_id: str) -> bool:
        with self.transaction():
            return self.repository.delete(user_id)
