"""
Base schemas shared by CareNow value objects.
"""
from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Request base: forbid extras, validate defaults and assignments."""

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        validate_assignment=True,
    )


class SnapshotModel(BaseModel):
    """Immutable read model built from ORM rows."""

    model_config = ConfigDict(from_attributes=True, frozen=True)
