"""
Shared fixtures.

The environment is set before anything from appointly is imported so the
engine binds to a throwaway SQLite file.
"""

import asyncio
import os
import tempfile
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

_tmpdir = tempfile.mkdtemp(prefix="appointly-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'appointly-test.db')}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.pop("REDIS_URL", None)
os.environ.pop("RESEND_API_KEY", None)

import pytest  # noqa: E402

from appointly.database import Base, SessionLocal, engine  # noqa: E402
from appointly.domain.availability.repository import AvailabilityRepository  # noqa: E402
from appointly.domain.catalog.repository import CatalogRepository  # noqa: E402
from appointly.domain.providers.repository import ProviderRepository  # noqa: E402
from appointly.domain.scheduling.booking import BookingRequest, BookingService  # noqa: E402
from appointly.models import User  # noqa: E402
from appointly.security_utils import create_jwt_token, hash_password_bcrypt  # noqa: E402

BOOKING_DAY = date.today() + timedelta(days=7)


@dataclass
class ProviderFixture:
    id: int
    slug: str
    user_id: int
    cut_id: int  # 30 minutes
    colour_id: int  # 45 minutes
    long_id: int  # 90 minutes
    default_id: int  # no duration set
    inactive_id: int  # offered but inactive


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    return SessionLocal


def create_provider(db, slug: str, username: str) -> ProviderFixture:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password_bcrypt("provider-pass"),
        role="provider",
    )
    provider = ProviderRepository.create_provider(
        db, user, slug=slug, name=f"{username.title()} Studio"
    )

    def offer(name, duration, price, active=True):
        service = CatalogRepository.create_service(db, name=f"{name} ({slug})", duration=duration)
        ProviderRepository.add_offering(db, provider.id, service, Decimal(price), active)
        return service.id

    return ProviderFixture(
        id=provider.id,
        slug=slug,
        user_id=user.id,
        cut_id=offer("Cut", 30, "25.00"),
        colour_id=offer("Colour", 45, "40.00"),
        long_id=offer("Long treatment", 90, "90.00"),
        default_id=offer("Consultation", None, "0.00"),
        inactive_id=offer("Shave", 30, "15.00", active=False),
    )


@pytest.fixture
def provider(db) -> ProviderFixture:
    return create_provider(db, "demo-barber", "demo")


@pytest.fixture
def other_provider(db) -> ProviderFixture:
    return create_provider(db, "other-salon", "other")


@pytest.fixture
def admin_user(db) -> User:
    admin = User(
        username="admin",
        email="admin@example.com",
        password_hash=hash_password_bcrypt("admin-pass"),
        role="admin",
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def open_slots(db):
    """Declare slots for a provider day: open_slots(provider_id, ["09:00", ...])"""

    def declare(provider_id: int, times, day: date = BOOKING_DAY):
        for time in times:
            AvailabilityRepository.create_slot(db, provider_id, day, time)
        db.commit()

    return declare


@pytest.fixture
def book(session_factory):
    """Run one booking synchronously and return its result"""

    def run(provider_slug: str, time: str, service_id=None, day: date = BOOKING_DAY, **customer):
        request = make_request(provider_slug, time, service_id, day, **customer)
        return asyncio.run(BookingService(session_factory).book(request))

    return run


def make_request(
    provider_slug: str,
    time: str,
    service_id=None,
    day: date = BOOKING_DAY,
    name: str = "Jamie Customer",
    email: str = "jamie@example.com",
    phone: str = "5551234567",
) -> BookingRequest:
    return BookingRequest(
        provider_slug=provider_slug,
        date=day.isoformat(),
        time=time,
        customer_name=name,
        customer_email=email,
        customer_phone=phone,
        service_id=service_id,
    )


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_jwt_token({'sub': str(user_id)})}"}
