# backend/carenow/repositories/__init__.py
"""
Repository Pattern Implementation for CareNow

One repository per document-store collection. Repositories only read and
write; services own business rules and transactions.

Usage:
    from carenow.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    bookings = repository.get_user_bookings(user_id)
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .notification_repository import NotificationRepository
from .partner_repository import PartnerRepository
from .review_repository import ReviewRepository
from .service_catalog_repository import ServiceCatalogRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "IRepository",
    "NotificationRepository",
    "PartnerRepository",
    "RepositoryFactory",
    "ReviewRepository",
    "ServiceCatalogRepository",
    "UserRepository",
]
