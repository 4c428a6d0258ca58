"""
Partner Repository for CareNow

Field-equality queries over the partners collection. Service membership is
a JSON list, so it is matched in Python after the indexed boolean filters.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.timezone_utils import utc_now
from ..models.partner import Partner
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PartnerRepository(BaseRepository[Partner]):
    """Repository for care partners."""

    def __init__(self, db: Session):
        super().__init__(db, Partner)

    def get_bookable_partners(self, service_id: str) -> List[Partner]:
        """Verified, currently available partners offering ``service_id``."""
        query = self._build_query().filter(
            Partner.is_available.is_(True),
            Partner.is_verified.is_(True),
        )
        return [p for p in self._execute_query(query) if p.offers(service_id)]

    def get_verified_by_service(self, service_id: str) -> List[Partner]:
        """Verified partners offering ``service_id``, best rated first."""
        query = (
            self._build_query()
            .filter(Partner.is_verified.is_(True))
            .order_by(Partner.rating.desc())
        )
        return [p for p in self._execute_query(query) if p.offers(service_id)]

    def get_by_user_id(self, user_id: str) -> Optional[Partner]:
        return self.find_one_by(user_id=user_id)

    def update_rating(self, partner_id: str, rating: float, total_reviews: int) -> Optional[Partner]:
        return self.update(partner_id, rating=rating, total_reviews=total_reviews)

    # Partner-maintained fields read by the availability filter

    def update_availability(self, partner_id: str, is_available: bool) -> Optional[Partner]:
        return self.update(partner_id, is_available=is_available, updated_at=utc_now())

    def update_working_hours(
        self, partner_id: str, working_hours: Dict[str, List[str]]
    ) -> Optional[Partner]:
        return self.update(partner_id, working_hours=working_hours, updated_at=utc_now())

    def update_location(self, partner_id: str, latitude: float, longitude: float) -> Optional[Partner]:
        return self.update(partner_id, latitude=latitude, longitude=longitude, updated_at=utc_now())
