"""Public booking schemas - Pydantic models for the booking surface"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone
from ...utils.sanitization import collapse_whitespace


class BookingRequestSchema(BaseModel):
    """Body of POST /book-appointment"""

    date: str
    time: str
    providerSlug: str
    serviceId: Optional[int] = None
    customerName: str
    customerEmail: str
    customerPhone: str
    notes: Optional[str] = None

    @field_validator("customerName")
    @classmethod
    def validate_name(cls, v):
        v = collapse_whitespace(v)
        if not v:
            raise ValueError("Customer name is required")
        return v

    @field_validator("customerEmail")
    @classmethod
    def validate_customer_email(cls, v):
        if not v:
            raise ValueError("Customer email is required")
        return validate_email(v)

    @field_validator("customerPhone")
    @classmethod
    def validate_customer_phone(cls, v):
        if not v:
            raise ValueError("Customer phone is required")
        return validate_phone(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return collapse_whitespace(v, max_length=2000)


class BookedAppointment(BaseModel):
    id: int
    date: str
    time: str
    endTime: str
    duration: int
    status: str


class BookingResponse(BaseModel):
    success: bool
    message: str
    appointment: BookedAppointment


class ProviderProfile(BaseModel):
    id: int
    name: str
    bio: Optional[str] = None
    slug: str
    providerType: Optional[str] = None


class ServiceOffering(BaseModel):
    id: int  # catalog service id, used as serviceId when booking
    providerServiceId: int
    name: str
    duration: int
    price: float
    description: Optional[str] = None


class BookingPageResponse(BaseModel):
    provider: ProviderProfile
    services: list[ServiceOffering]


class AvailabilityResponse(BaseModel):
    provider: ProviderProfile
    date: str
    availableSlots: list[str]
    bookableTimes: Optional[list[str]] = None
    serviceId: Optional[int] = None
    services: list[ServiceOffering]
