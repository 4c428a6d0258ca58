# backend/carenow/schemas/review.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field
from pydantic.functional_validators import field_validator

from ..core.constants import MAX_COMMENT_LENGTH, MAX_RATING, MIN_RATING, RATING_STEP
from .base import SnapshotModel, StrictModel


class ReviewRequest(StrictModel):
    booking_id: str
    rating: float = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = Field(None, max_length=MAX_COMMENT_LENGTH)
    tags: List[str] = Field(default_factory=list)
    is_recommended: bool = True

    @field_validator("rating")
    @classmethod
    def _half_steps(cls, v: float) -> float:
        if (v / RATING_STEP) != int(v / RATING_STEP):
            raise ValueError("Rating must be a multiple of 0.5")
        return v

    @field_validator("comment")
    @classmethod
    def _clean_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v2 = v.strip()
        return v2 or None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v: List[str]) -> List[str]:
        seen: List[str] = []
        for tag in v:
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class ReviewRead(SnapshotModel):
    id: str
    booking_id: str
    user_id: str
    partner_id: str
    service_id: str
    rating: float
    comment: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_recommended: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None

    @property
    def is_positive(self) -> bool:
        return self.rating >= 4

    @property
    def is_negative(self) -> bool:
        return self.rating <= 2
