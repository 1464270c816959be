import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.models.admin import Admin
from app.schemas.admin import AdminLogin, Token
from app.core.security import verify_password, create_access_token
from app.core.config import settings
from app.core.rate_limit import rate_limit

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=Token)
@rate_limit(lambda: settings.LOGIN_RATE_LIMIT, lambda: settings.RATE_LIMIT_WINDOW_SECONDS)
def login(
    credentials: AdminLogin,
    request: Request,
    db: Session = Depends(get_db),
):
    """Exchange admin email and password for a bearer token."""
    # Normalize email: lowercase and strip whitespace
    normalized_email = credentials.email.lower().strip()

    admin = db.query(Admin).filter(func.lower(Admin.email) == normalized_email).first()
    if not admin or not verify_password(credentials.password, admin.hashed_password):
        # Don't reveal whether the account exists
        logger.info("Failed admin login for %s", normalized_email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": admin.email, "role": admin.role})
    return Token(access_token=access_token, token_type="bearer")
