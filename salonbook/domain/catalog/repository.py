"""Catalog repository - Database operations for professionals and services"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Professional, Service


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    def list_professionals(db: Session, tenant_id: str) -> list[Professional]:
        return (
            db.query(Professional)
            .filter(Professional.tenant_id == tenant_id, Professional.active.is_(True))
            .order_by(Professional.name)
            .all()
        )

    @staticmethod
    def get_active_professional(
        db: Session, tenant_id: str, professional_id: str
    ) -> Optional[Professional]:
        return (
            db.query(Professional)
            .filter(
                Professional.id == professional_id,
                Professional.tenant_id == tenant_id,
                Professional.active.is_(True),
            )
            .first()
        )

    @staticmethod
    def list_services(db: Session, tenant_id: str) -> list[Service]:
        return (
            db.query(Service)
            .filter(Service.tenant_id == tenant_id, Service.active.is_(True))
            .order_by(Service.name)
            .all()
        )

    @staticmethod
    def get_active_services(db: Session, tenant_id: str, service_ids: list[str]) -> list[Service]:
        """Active services of the tenant among service_ids (unknown ids are simply absent)"""
        if not service_ids:
            return []
        return (
            db.query(Service)
            .filter(
                Service.id.in_(service_ids),
                Service.tenant_id == tenant_id,
                Service.active.is_(True),
            )
            .all()
        )
