"""
Service Catalog Repository for CareNow

Data access for the offerable services collection.
"""

import logging
from typing import List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.service import Service
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ServiceCatalogRepository(BaseRepository[Service]):
    """Repository for the service catalog."""

    def __init__(self, db: Session):
        super().__init__(db, Service)

    def get_active_services(self) -> List[Service]:
        """Active services in display order."""
        query = (
            self._build_query()
            .filter(Service.is_active.is_(True))
            .order_by(Service.sort_order.asc(), Service.name.asc())
        )
        return self._execute_query(query)

    def get_by_category(self, category: str) -> List[Service]:
        query = (
            self._build_query()
            .filter(Service.is_active.is_(True), Service.category == category)
            .order_by(Service.sort_order.asc())
        )
        return self._execute_query(query)

    def search(self, text: str) -> List[Service]:
        """Case-insensitive match on name or description."""
        pattern = f"%{text.strip()}%"
        query = (
            self._build_query()
            .filter(
                Service.is_active.is_(True),
                or_(Service.name.ilike(pattern), Service.description.ilike(pattern)),
            )
            .order_by(Service.sort_order.asc())
        )
        return self._execute_query(query)
