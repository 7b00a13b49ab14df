"""Catalog schemas - Pydantic models for services and provider types"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...utils.sanitization import collapse_whitespace


def _validate_duration(v):
    if v is None:
        return v
    if v <= 0 or v >= 24 * 60:
        raise ValueError("Duration must be between 1 and 1439 minutes")
    return v


class ServiceCreate(BaseModel):
    name: str
    duration: Optional[int] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = collapse_whitespace(v)
        if not v:
            raise ValueError("Service name is required")
        return v

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        return _validate_duration(v)


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    duration: Optional[int] = None
    description: Optional[str] = None

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        return _validate_duration(v)


class ServiceResponse(BaseModel):
    id: int
    name: str
    duration: Optional[int] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProviderTypeCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = collapse_whitespace(v, max_length=100)
        if not v:
            raise ValueError("Name is required")
        return v


class ProviderTypeResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True
