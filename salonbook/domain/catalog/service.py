"""Catalog service - resolves a client's professional and service selection"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ...models import Professional, Service
from ..errors import InvalidSelectionError
from .repository import CatalogRepository

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """A validated professional + services pick with its totals"""

    professional: Professional
    services: list[Service]

    @property
    def total_minutes(self) -> int:
        return sum(s.duration_minutes for s in self.services)

    @property
    def total_price(self) -> float:
        return round(sum(float(s.price or 0) for s in self.services), 2)

    @property
    def service_ids(self) -> list[str]:
        return [s.id for s in self.services]


class CatalogService:
    """Service layer for catalog reads"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def list_professionals(self, tenant_id: str) -> list[Professional]:
        return self.repo.list_professionals(self.db, tenant_id)

    def list_services(self, tenant_id: str) -> list[Service]:
        return self.repo.list_services(self.db, tenant_id)

    def resolve_selection(
        self, tenant_id: str, professional_id: str, service_ids: list[str]
    ) -> Selection:
        """
        Validate a professional and 1+ services for the tenant.

        Raises:
            InvalidSelectionError: unknown/inactive professional, empty selection,
                or any service that is unknown, inactive or from another tenant
        """
        professional = self.repo.get_active_professional(self.db, tenant_id, professional_id)
        if not professional:
            raise InvalidSelectionError(
                "Professional not available", clear=["professional_id"], next_step="professional"
            )

        unique_ids = list(dict.fromkeys(service_ids or []))
        if not unique_ids:
            raise InvalidSelectionError(
                "Select at least one service", clear=["service_ids"], next_step="services"
            )

        services = self.repo.get_active_services(self.db, tenant_id, unique_ids)
        if len(services) != len(unique_ids):
            found = {s.id for s in services}
            missing = [sid for sid in unique_ids if sid not in found]
            logger.info(f"ℹ️ Rejected service selection for tenant {tenant_id}: {missing}")
            raise InvalidSelectionError(
                "One or more selected services are not available",
                clear=["service_ids"],
                next_step="services",
            )

        # Keep the client's selection order
        by_id = {s.id: s for s in services}
        return Selection(professional=professional, services=[by_id[sid] for sid in unique_ids])
