from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Callable, Optional
from datetime import datetime
from app.db.session import get_db
from app.models.admin import Admin
from app.core.security import decode_access_token
from app.services.geolocation import GeoLookupResult, lookup_geolocation

ADMIN_ROLE = "admin"

# auto_error off so a missing header is a 401 like any other bad credential
security = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Admin:
    """
    Resolve the bearer token to an admin account.

    Any failure (no header, bad signature, expired, wrong role, unknown
    account) is the same 401 so callers learn nothing about which check failed.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized()

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized()

    email: Optional[str] = payload.get("sub")
    if not email or payload.get("role") != ADMIN_ROLE:
        raise _unauthorized()

    admin = db.query(Admin).filter(Admin.email == email).first()
    if admin is None or admin.role != ADMIN_ROLE:
        raise _unauthorized()
    return admin


def get_now() -> datetime:
    """Request clock (naive UTC); overridden in tests."""
    return datetime.utcnow()


def get_geo_lookup() -> Callable[[Optional[str]], GeoLookupResult]:
    return lookup_geolocation
