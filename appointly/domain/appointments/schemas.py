"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class AppointmentStatusUpdate(BaseModel):
    """Schema for changing an appointment's status"""

    status: str

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v):
        return v.strip().lower()


class CustomerSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: str

    class Config:
        from_attributes = True


class ServiceSummary(BaseModel):
    id: int
    name: str
    duration: int
    price: float


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    providerId: int
    providerName: Optional[str] = None
    date: date
    time: str
    endTime: str
    duration: int
    status: str
    notes: Optional[str] = None
    customer: Optional[CustomerSummary] = None
    service: Optional[ServiceSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AppointmentMutationResponse(BaseModel):
    success: bool
    message: str
    changed: bool
    appointment: AppointmentResponse
