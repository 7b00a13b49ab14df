"""Availability domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class AvailabilityCreate(BaseModel):
    """Schema for declaring one open slot"""

    date: str
    time: str
    providerId: Optional[int] = None


class AvailabilityBulkCreate(BaseModel):
    """Schema for declaring several slots on one day"""

    date: str
    times: list[str]
    providerId: Optional[int] = None

    @field_validator("times")
    @classmethod
    def validate_times(cls, v):
        if not v:
            raise ValueError("At least one time is required")
        if len(v) > 48:
            raise ValueError("A day has at most 48 slots")
        return v


class AvailabilityResponse(BaseModel):
    """Schema for one declared slot"""

    id: int
    providerId: int
    date: date
    time: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AvailabilityMutationResponse(BaseModel):
    success: bool
    message: str
    availability: AvailabilityResponse


class BulkAvailabilityResponse(BaseModel):
    success: bool
    created: list[AvailabilityResponse]
    skipped: list[str]
