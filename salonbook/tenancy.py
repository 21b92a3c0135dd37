"""Tenant resolution - maps the request to an opaque tenant id"""

import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .config import DEFAULT_TENANT_ID, TENANT_HEADER
from .database import get_db
from .models import Tenant
from .security_middleware import set_rls_context

logger = logging.getLogger(__name__)


def get_tenant_id(request: Request, db: Session = Depends(get_db)) -> str:
    """
    Resolve the tenant for this request.

    The tenant header may carry either the tenant id or its slug. Requests
    without the header belong to the default tenant.
    """
    requested = (request.headers.get(TENANT_HEADER) or "").strip()
    if not requested:
        set_rls_context(db, DEFAULT_TENANT_ID)
        return DEFAULT_TENANT_ID

    tenant = (
        db.query(Tenant)
        .filter(or_(Tenant.id == requested, Tenant.slug == requested), Tenant.active.is_(True))
        .first()
    )
    if not tenant:
        logger.warning(f"⚠️ Unknown tenant requested: {requested}")
        raise HTTPException(status_code=404, detail="Tenant not found")

    set_rls_context(db, tenant.id)
    return tenant.id


def ensure_default_tenant(db: Session) -> None:
    """Create the default tenant row on first start"""
    if db.query(Tenant).filter(Tenant.id == DEFAULT_TENANT_ID).first():
        return
    db.add(Tenant(id=DEFAULT_TENANT_ID, slug="default", name="Default Tenant"))
    db.commit()
    logger.info(f"✅ Default tenant created: {DEFAULT_TENANT_ID}")
