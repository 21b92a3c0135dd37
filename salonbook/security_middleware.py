"""
Security middleware for setting the tenant RLS context and security headers.
"""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.
    """

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if request.url.path in self.exclude_paths:
            return response

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"

        return response


def set_rls_context(db: Session, tenant_id: str) -> None:
    """
    Set the row-level security context for a database session.

    PostgreSQL policies read `app.current_tenant_id` to isolate tenant rows.
    Other dialects (SQLite in development and tests) have no RLS, so this is a no-op there.

    Example:
        @router.get("/bookings")
        async def list_bookings(db: Session = Depends(get_db)):
            set_rls_context(db, tenant_id)
            return db.query(Booking).all()  # Filtered by tenant_id in the database
    """
    if db.get_bind().dialect.name != "postgresql":
        return

    try:
        db.execute(
            text("SELECT set_config('app.current_tenant_id', :tenant_id, false)"),
            {"tenant_id": str(tenant_id)},
        )
        logger.debug(f"RLS context set for tenant_id={tenant_id}")
    except Exception as e:
        logger.error(f"Failed to set RLS context for tenant_id={tenant_id}: {e}")
        raise
