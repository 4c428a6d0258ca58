# backend/carenow/services/service_catalog_service.py
"""
Service Catalog Accessor.

Fetches the offerable services and keeps an in-process copy for a short
TTL. Callers receive immutable ServiceRead snapshots; a refresh re-queries
the catalog.
"""

import logging
import time
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import NotFoundException
from ..repositories.service_catalog_repository import ServiceCatalogRepository
from ..schemas.service import ServiceRead
from .base import BaseService

logger = logging.getLogger(__name__)


class ServiceCatalogService(BaseService):
    """Read access to the service catalog with TTL caching of the active list."""

    def __init__(
        self,
        db: Session,
        repository: Optional[ServiceCatalogRepository] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db)
        self.repository = repository or ServiceCatalogRepository(db)
        self.settings = settings or default_settings
        self._cache: Optional[Tuple[float, List[ServiceRead]]] = None

    def _cache_valid(self) -> bool:
        if self._cache is None:
            return False
        loaded_at, _ = self._cache
        return time.monotonic() - loaded_at < self.settings.service_catalog_cache_ttl_seconds

    @BaseService.measure_operation("get_active_services")
    def get_active_services(self) -> List[ServiceRead]:
        """Active services in display order, served from cache while fresh."""
        if self._cache_valid():
            return list(self._cache[1])  # type: ignore[index]

        services = [ServiceRead.model_validate(s) for s in self.repository.get_active_services()]
        self._cache = (time.monotonic(), services)
        self.logger.debug(f"Service catalog loaded: {len(services)} active services")
        return list(services)

    def refresh(self) -> List[ServiceRead]:
        """Drop the cached catalog and re-query."""
        self._cache = None
        return self.get_active_services()

    @BaseService.measure_operation("get_service")
    def get_service(self, service_id: str) -> ServiceRead:
        service = self.repository.get_by_id(service_id)
        if service is None:
            raise NotFoundException(f"Service {service_id} not found", details={"service_id": service_id})
        return ServiceRead.model_validate(service)

    def get_services_by_category(self, category: str) -> List[ServiceRead]:
        return [ServiceRead.model_validate(s) for s in self.repository.get_by_category(category)]

    def search_services(self, query: str) -> List[ServiceRead]:
        if not query.strip():
            return self.get_active_services()
        return [ServiceRead.model_validate(s) for s in self.repository.search(query)]
