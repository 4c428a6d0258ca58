# backend/carenow/services/availability_service.py
"""
Availability Query.

Finds partners eligible for a service on a date and time slot with plain
field filtering: offers the service, verified, available, and works on that
weekday. With client coordinates, partners beyond the search radius are
dropped and the rest are ordered nearest first; otherwise best rated first.

Partners maintain the fields this filter reads (availability flag, weekly
working hours, location) through the update_* operations.
"""

from datetime import date
import logging
import math
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.constants import DAYS_OF_WEEK, EARTH_RADIUS_KM
from ..core.exceptions import NotFoundException, ValidationException
from ..models.booking import parse_slot_start
from ..repositories.partner_repository import PartnerRepository
from ..schemas.partner import PartnerRead
from .base import BaseService

logger = logging.getLogger(__name__)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


class AvailabilityService(BaseService):
    """Partner availability lookups for the booking flow."""

    def __init__(
        self,
        db: Session,
        repository: Optional[PartnerRepository] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db)
        self.repository = repository or PartnerRepository(db)
        self.settings = settings or default_settings

    @BaseService.measure_operation("get_available_partners")
    def get_available_partners(
        self,
        service_id: str,
        on_date: date,
        time_slot: str,
        client_latitude: Optional[float] = None,
        client_longitude: Optional[float] = None,
        max_distance_km: Optional[float] = None,
    ) -> List[PartnerRead]:
        """
        Partners eligible for ``service_id`` on ``on_date``.

        ``time_slot`` keys the query but is not matched against individual
        working-hour slots; any working hours on that weekday qualify.
        """
        partners = [
            p for p in self.repository.get_bookable_partners(service_id) if p.works_on(on_date)
        ]

        if client_latitude is not None and client_longitude is not None:
            radius = (
                self.settings.partner_search_radius_km if max_distance_km is None else max_distance_km
            )
            located = []
            for partner in partners:
                distance = haversine_km(
                    client_latitude, client_longitude, partner.latitude, partner.longitude
                )
                if distance <= radius:
                    located.append(
                        PartnerRead.model_validate(partner).model_copy(
                            update={"distance_km": round(distance, 3)}
                        )
                    )
            located.sort(key=lambda p: p.distance_km)
            result = located
        else:
            result = sorted(
                (PartnerRead.model_validate(p) for p in partners),
                key=lambda p: p.rating,
                reverse=True,
            )

        self.log_operation(
            "get_available_partners",
            service_id=service_id,
            date=on_date.isoformat(),
            time_slot=time_slot,
            count=len(result),
        )
        return result

    def get_partner(self, partner_id: str) -> PartnerRead:
        partner = self.repository.get_by_id(partner_id)
        if partner is None:
            raise NotFoundException(f"Partner {partner_id} not found", details={"partner_id": partner_id})
        return PartnerRead.model_validate(partner)

    def get_partners_by_service(self, service_id: str) -> List[PartnerRead]:
        return [PartnerRead.model_validate(p) for p in self.repository.get_verified_by_service(service_id)]

    # Partner-maintained availability

    def _require_partner(self, partner_id: str) -> None:
        if self.repository.get_by_id(partner_id) is None:
            raise NotFoundException(f"Partner {partner_id} not found", details={"partner_id": partner_id})

    @BaseService.measure_operation("update_partner_availability")
    def update_availability(self, partner_id: str, is_available: bool) -> PartnerRead:
        """Toggle whether the partner accepts new bookings."""
        self._require_partner(partner_id)
        with self.transaction():
            partner = self.repository.update_availability(partner_id, is_available)
        self.log_operation("update_partner_availability", partner_id=partner_id, is_available=is_available)
        return PartnerRead.model_validate(partner)

    @BaseService.measure_operation("update_partner_working_hours")
    def update_working_hours(self, partner_id: str, working_hours: Dict[str, List[str]]) -> PartnerRead:
        """
        Replace the partner's weekly working hours.

        Keys are lower-case weekday names; every slot label needs a start
        time. A weekday with no slots means the partner does not work that day.
        """
        unknown = sorted(set(working_hours) - set(DAYS_OF_WEEK))
        if unknown:
            raise ValidationException(
                f"Unknown weekdays in working hours: {', '.join(unknown)}",
                code="INVALID_WORKING_HOURS",
            )
        for day, slots in working_hours.items():
            for slot in slots:
                try:
                    parse_slot_start(slot)
                except ValueError as e:
                    raise ValidationException(
                        f"{day}: {e}", code="INVALID_WORKING_HOURS"
                    ) from e

        self._require_partner(partner_id)
        cleaned = {day: list(slots) for day, slots in working_hours.items()}
        with self.transaction():
            partner = self.repository.update_working_hours(partner_id, cleaned)
        self.log_operation("update_partner_working_hours", partner_id=partner_id)
        return PartnerRead.model_validate(partner)

    @BaseService.measure_operation("update_partner_location")
    def update_location(self, partner_id: str, latitude: float, longitude: float) -> PartnerRead:
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise ValidationException(
                f"Coordinates out of range: {latitude}, {longitude}", code="INVALID_LOCATION"
            )
        self._require_partner(partner_id)
        with self.transaction():
            partner = self.repository.update_location(partner_id, latitude, longitude)
        self.log_operation("update_partner_location", partner_id=partner_id)
        return PartnerRead.model_validate(partner)
