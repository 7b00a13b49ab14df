"""Catalog service - Business logic for services and provider types"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import ProviderType, Service
from .repository import CatalogRepository
from .schemas import ProviderTypeCreate, ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def get_services(self) -> list[Service]:
        return self.repo.get_services(self.db)

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        service = self.repo.create_service(
            self.db, name=data.name, duration=data.duration, description=data.description
        )
        logger.info(f"✅ Service created: {service.name} ({service.duration or 'default'} min)")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)
        updates = data.model_dump(exclude_unset=True)
        if "name" in updates and not (updates["name"] or "").strip():
            raise HTTPException(status_code=400, detail="Service name cannot be empty")
        if "duration" in updates and updates["duration"] != service.duration:
            logger.info(
                f"⏱️ Service {service_id} duration {service.duration} -> {updates['duration']} min; "
                f"booked appointments keep their stored windows"
            )
        return self.repo.update_service(self.db, service, **updates)

    def delete_service(self, service_id: int) -> None:
        service = self.get_service(service_id)
        if self.repo.is_service_offered(self.db, service_id):
            raise HTTPException(
                status_code=409,
                detail="Service is offered by at least one provider; remove it from providers first",
            )
        self.repo.delete_service(self.db, service)
        logger.info(f"🗑️ Service {service_id} deleted")

    def get_provider_types(self) -> list[ProviderType]:
        return self.repo.get_provider_types(self.db)

    def create_provider_type(self, data: ProviderTypeCreate) -> ProviderType:
        if self.repo.get_provider_type_by_name(self.db, data.name):
            raise HTTPException(status_code=409, detail="Provider type already exists")
        return self.repo.create_provider_type(self.db, data.name, data.description)
