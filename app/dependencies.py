# app/dependencies.py
import logging
import os

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User

logger = logging.getLogger(__name__)

# Security scheme
bearer = HTTPBearer(description="Google ID Token (JWT)")


def get_verified_email(credentials: HTTPAuthorizationCredentials = Depends(bearer)) -> str:
    token = credentials.credentials

    # 1. Check if Client ID is actually loaded
    client_id = os.getenv("GOOGLE_CLIENT_ID")
    if not client_id:
        logger.critical("GOOGLE_CLIENT_ID is not set in environment variables")
        raise HTTPException(status_code=500, detail="Server Configuration Error")

    try:
        # 2. Verify the token
        idinfo = id_token.verify_oauth2_token(
            token, google_requests.Request(), client_id
        )
        return idinfo["email"]

    except ValueError as e:
        # 3. Log the specific error (e.g. "Token expired", "Audience mismatch")
        logger.warning("Token validation failed: %s", e)
        raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}")
    except Exception:
        logger.exception("Unexpected auth error")
        raise HTTPException(status_code=401, detail="Authentication failed")


def get_current_user(email: str = Depends(get_verified_email), db: Session = Depends(get_db)) -> User:
    """Resolve the verified email to a registered account."""
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not registered")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied. Admin only.")
    return user


def admin_emails() -> set:
    raw = os.getenv("ADMIN_EMAILS", "")
    return {e.strip().lower() for e in raw.split(",") if e.strip()}
