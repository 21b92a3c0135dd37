import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .config import JWT_ALGORITHM, JWT_AUDIENCE, SUPABASE_JWT_SECRET
from .database import get_db
from .models import TenantAdmin
from .tenancy import get_tenant_id

logger = logging.getLogger(__name__)

security = HTTPBearer()


class AuthUser(BaseModel):
    """Identity asserted by the hosted auth backend"""

    id: str
    email: Optional[str] = None
    role: Optional[str] = None


def verify_access_token(token: str) -> dict:
    """
    Verify an access token issued by the hosted auth backend.
    Signature, expiry and audience are checked by python-jose.
    """
    if not SUPABASE_JWT_SECRET:
        logger.error("❌ SUPABASE_JWT_SECRET not configured")
        raise HTTPException(status_code=500, detail="Authentication not configured")

    try:
        return jose_jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        ) from e
    except JWTError as e:
        logger.warning(f"⚠️ Token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Token verification failed") from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthUser:
    """Get current user from the bearer token"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, token length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    claims = verify_access_token(token)
    user_id = claims.get("sub")
    if not user_id:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    app_metadata = claims.get("app_metadata") or {}
    return AuthUser(id=user_id, email=claims.get("email"), role=app_metadata.get("role"))


async def get_current_admin(
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> AuthUser:
    """Require a tenant admin (or a global admin role on the token)"""
    if current_user.role == "admin":
        return current_user

    is_tenant_admin = (
        db.query(TenantAdmin)
        .filter(TenantAdmin.tenant_id == tenant_id, TenantAdmin.user_id == current_user.id)
        .first()
    )
    if not is_tenant_admin:
        logger.warning(f"🚫 User {current_user.id} is not an admin of tenant {tenant_id}")
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
