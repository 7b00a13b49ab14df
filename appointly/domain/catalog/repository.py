"""Catalog repository - Database operations for services and provider types"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ProviderService, ProviderType, Service


class CatalogRepository:
    """Repository for the shared service catalog"""

    @staticmethod
    def get_services(db: Session) -> list[Service]:
        return db.query(Service).order_by(Service.name.asc()).all()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            setattr(service, key, value)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def is_service_offered(db: Session, service_id: int) -> bool:
        return (
            db.query(ProviderService.id).filter(ProviderService.service_id == service_id).first()
            is not None
        )

    @staticmethod
    def delete_service(db: Session, service: Service) -> None:
        db.delete(service)
        db.commit()

    # Provider Type Methods
    @staticmethod
    def get_provider_types(db: Session) -> list[ProviderType]:
        return db.query(ProviderType).order_by(ProviderType.name.asc()).all()

    @staticmethod
    def get_provider_type(db: Session, type_id: int) -> Optional[ProviderType]:
        return db.query(ProviderType).filter(ProviderType.id == type_id).first()

    @staticmethod
    def get_provider_type_by_name(db: Session, name: str) -> Optional[ProviderType]:
        return db.query(ProviderType).filter(ProviderType.name == name).first()

    @staticmethod
    def create_provider_type(db: Session, name: str, description: Optional[str]) -> ProviderType:
        provider_type = ProviderType(name=name, description=description)
        db.add(provider_type)
        db.commit()
        db.refresh(provider_type)
        return provider_type
