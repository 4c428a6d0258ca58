from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import SnapshotModel


class ServiceRead(SnapshotModel):
    id: str
    name: str
    description: str = ""
    category: str
    icon_url: str = ""
    base_price: float = Field(..., ge=0)
    duration_minutes: int = Field(..., gt=0)
    requirements: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    is_active: bool = True
    sort_order: int = 0
    created_at: Optional[datetime] = None

    def calculate_price(self, hours: float) -> float:
        return self.base_price * hours
