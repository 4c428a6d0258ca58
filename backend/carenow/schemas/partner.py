from typing import Dict, List, Optional

from pydantic import Field

from .base import SnapshotModel


class PartnerRead(SnapshotModel):
    id: str
    name: str
    rating: float = Field(0.0, ge=0, le=5)
    total_reviews: int = Field(0, ge=0)
    price_per_hour: float = 0.0
    services: List[str] = Field(default_factory=list)
    latitude: float = 0.0
    longitude: float = 0.0
    working_hours: Dict[str, List[str]] = Field(default_factory=dict)
    is_verified: bool = False
    is_available: bool = True
    # Set by availability queries that know the client location
    distance_km: Optional[float] = None
