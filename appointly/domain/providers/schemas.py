"""Provider domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_slug
from ...utils.sanitization import collapse_whitespace


class ProviderCreate(BaseModel):
    """Schema for creating a provider together with its login"""

    username: str
    password: str
    email: str
    name: str
    bio: Optional[str] = None
    slug: Optional[str] = None  # derived from the name when omitted
    providerTypeId: Optional[int] = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters long")
        return v

    @field_validator("email")
    @classmethod
    def validate_provider_email(cls, v):
        return validate_email(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = collapse_whitespace(v)
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("slug")
    @classmethod
    def validate_provider_slug(cls, v):
        return validate_slug(v)


class ProviderUpdate(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    slug: Optional[str] = None
    providerTypeId: Optional[int] = None

    @field_validator("slug")
    @classmethod
    def validate_provider_slug(cls, v):
        return validate_slug(v)


class ProviderResponse(BaseModel):
    """Schema for provider response"""

    id: int
    name: str
    bio: Optional[str] = None
    slug: str
    providerTypeId: Optional[int] = None
    providerType: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None


class OfferingCreate(BaseModel):
    serviceId: int
    price: float
    active: bool = True

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v < 0:
            raise ValueError("Price cannot be negative")
        return round(v, 2)


class OfferingUpdate(BaseModel):
    price: Optional[float] = None
    active: Optional[bool] = None

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Price cannot be negative")
        return v


class OfferingResponse(BaseModel):
    id: int
    serviceId: int
    name: str
    duration: int
    price: float
    active: bool
