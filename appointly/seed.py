"""
Seed a development database.

    python -m appointly.seed

Creates the tables, an admin login, one demo provider with two services and a
week of availability. Running it again leaves existing rows alone.
"""

import logging
import os
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from .database import Base, SessionLocal, engine
from .domain.availability.repository import AvailabilityRepository
from .domain.catalog.repository import CatalogRepository
from .domain.providers.repository import ProviderRepository
from .domain.scheduling import slot_grid
from .models import Service, User
from .security_utils import hash_password_bcrypt

logger = logging.getLogger(__name__)

ADMIN_USERNAME = os.getenv("SEED_ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "change-me-now")
DEMO_SLUG = "demo-barber"
OPENING_HOURS = ("09:00", "17:00")


def seed_admin(db: Session) -> User:
    admin = db.query(User).filter(User.username == ADMIN_USERNAME).first()
    if admin:
        return admin
    admin = User(
        username=ADMIN_USERNAME,
        email=f"{ADMIN_USERNAME}@appointly.local",
        password_hash=hash_password_bcrypt(ADMIN_PASSWORD),
        role="admin",
    )
    db.add(admin)
    db.commit()
    logger.info(f"✅ Admin user {ADMIN_USERNAME} created")
    return admin


def seed_services(db: Session) -> list[Service]:
    existing = {s.name: s for s in CatalogRepository.get_services(db)}
    wanted = [("Regular cut", 30), ("Cut and beard trim", 45), ("Colour", 90)]
    services = []
    for name, duration in wanted:
        services.append(
            existing.get(name) or CatalogRepository.create_service(db, name=name, duration=duration)
        )
    return services


def seed_demo_provider(db: Session, services: list[Service]) -> None:
    provider = ProviderRepository.get_provider_by_slug(db, DEMO_SLUG)
    if provider is None:
        provider_type = CatalogRepository.get_provider_type_by_name(db, "Barber Shop")
        if provider_type is None:
            provider_type = CatalogRepository.create_provider_type(db, "Barber Shop", None)
        user = User(
            username="demo",
            email="demo@appointly.local",
            password_hash=hash_password_bcrypt("demo-password"),
            role="provider",
        )
        provider = ProviderRepository.create_provider(
            db,
            user,
            slug=DEMO_SLUG,
            name="Demo Barber",
            bio="Walk-ins welcome.",
            provider_type_id=provider_type.id,
        )
        logger.info(f"✅ Demo provider created at /book/{DEMO_SLUG}")

    for service, price in zip(services, (Decimal("25.00"), Decimal("35.00"), Decimal("80.00"))):
        if not ProviderRepository.get_offering(db, provider.id, service.id):
            ProviderRepository.add_offering(db, provider.id, service, price)

    opening, closing = (slot_grid.to_minutes(t) for t in OPENING_HOURS)
    for offset in range(7):
        day = date.today() + timedelta(days=offset)
        for minutes in range(opening, closing, slot_grid.SLOT_MINUTES):
            time = slot_grid.from_minutes(minutes)
            if not AvailabilityRepository.find_slot(db, provider.id, day, time):
                AvailabilityRepository.create_slot(db, provider.id, day, time)
    db.commit()
    logger.info("✅ Demo availability seeded for the next 7 days")


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    Base.metadata.create_all(bind=engine, checkfirst=True)
    with SessionLocal() as db:
        seed_admin(db)
        seed_demo_provider(db, seed_services(db))


if __name__ == "__main__":
    main()
