# backend/carenow/repositories/factory.py
"""
Repository Factory for CareNow

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from sqlalchemy.orm import Session

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .notification_repository import NotificationRepository
from .partner_repository import PartnerRepository
from .review_repository import ReviewRepository
from .service_catalog_repository import ServiceCatalogRepository
from .user_repository import UserRepository


class RepositoryFactory:
    """Creates repository instances bound to one session."""

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        return BaseRepository(db, model)

    @staticmethod
    def create_service_catalog_repository(db: Session) -> ServiceCatalogRepository:
        return ServiceCatalogRepository(db)

    @staticmethod
    def create_partner_repository(db: Session) -> PartnerRepository:
        return PartnerRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> BookingRepository:
        return BookingRepository(db)

    @staticmethod
    def create_review_repository(db: Session) -> ReviewRepository:
        return ReviewRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> NotificationRepository:
        return NotificationRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> UserRepository:
        return UserRepository(db)
