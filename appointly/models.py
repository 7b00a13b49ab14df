from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

APPOINTMENT_STATUSES = ("scheduled", "confirmed", "completed", "cancelled")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default="provider", nullable=False)  # admin, provider
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="user", uselist=False)


class ProviderType(Base):
    __tablename__ = "provider_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    providers = relationship("Provider", back_populates="provider_type")


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    # Public booking URL key (/book/<slug>)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    bio = Column(String(2000), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    provider_type_id = Column(Integer, ForeignKey("provider_types.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="provider")
    provider_type = relationship("ProviderType", back_populates="providers")
    services = relationship(
        "ProviderService", back_populates="provider", cascade="all, delete-orphan"
    )
    availability = relationship(
        "Availability", back_populates="provider", cascade="all, delete-orphan"
    )
    appointments = relationship("Appointment", back_populates="provider")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    duration = Column(Integer, nullable=True)  # minutes; NULL falls back to the default duration
    description = Column(String(1000), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider_services = relationship("ProviderService", back_populates="service")


class ProviderService(Base):
    __tablename__ = "provider_services"
    __table_args__ = (UniqueConstraint("provider_id", "service_id", name="uq_provider_service"),)

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("Provider", back_populates="services")
    service = relationship("Service", back_populates="provider_services")


class Availability(Base):
    __tablename__ = "availability"
    __table_args__ = (
        UniqueConstraint("provider_id", "date", "time", name="uq_availability_slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)  # calendar day, no time component
    time = Column(String(5), nullable=False)  # HH:MM, 24-hour, zero-padded
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("Provider", back_populates="availability")


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("email", "phone", name="uq_customer_identity"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    appointments = relationship("Appointment", back_populates="customer")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    provider_service_id = Column(Integer, ForeignKey("provider_services.id"), nullable=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)  # HH:MM start of the booking window
    duration = Column(Integer, nullable=True)  # minutes, fixed when the booking commits
    status = Column(String(20), default="scheduled", nullable=False)  # see APPOINTMENT_STATUSES
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="appointments")
    customer = relationship("Customer", back_populates="appointments")
    provider_service = relationship("ProviderService")


class BookingLedger(Base):
    """Per provider-day version counter; bookings advance it with compare-and-swap"""

    __tablename__ = "booking_ledger"
    __table_args__ = (UniqueConstraint("provider_id", "date", name="uq_booking_ledger_day"),)

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False)
    date = Column(Date, nullable=False)
    version = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=True, index=True)
    action = Column(String(500), nullable=False)
    details = Column(Text, nullable=True)
    ip_address = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
