# backend/carenow/schemas/realtime.py
"""
Realtime booking snapshot published on the change feed.

Snapshots travel as JSON on ``booking:{id}`` channels and are rebuilt with
``from_message`` on the subscriber side.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LocationData(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timestamp: datetime
    accuracy: float = Field(0.0, ge=0)


class RealtimeMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    timestamp: datetime
    type: str = "status_update"


class BookingRealtimeData(BaseModel):
    model_config = ConfigDict(frozen=True)

    booking_id: str
    status: str
    last_updated: datetime
    partner_location: Optional[LocationData] = None
    estimated_arrival: Optional[datetime] = None
    is_partner_en_route: bool = False
    messages: List[RealtimeMessage] = Field(default_factory=list)

    def to_message(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_message(cls, payload: str) -> "BookingRealtimeData":
        return cls.model_validate_json(payload)
