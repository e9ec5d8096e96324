import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_verified_email, get_current_user, admin_emails
from app.models.user import User
from app.serializers import serialize_user
from app.services.users import register_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    name: str
    bio: Optional[str] = None
    avatar: Optional[str] = None

    class Config:
        extra = "forbid"


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, email: str = Depends(get_verified_email), db: Session = Depends(get_db)):
    """
    Create the account for the signed-in Google identity.
    Email comes from the verified token, never from the request body.
    """
    try:
        user = register_user(
            db, email, data.name, bio=data.bio, avatar=data.avatar, admin_emails=admin_emails()
        )
        return {"message": "User registered successfully", "user": serialize_user(user, include_email=True)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Registration failed")
        db.rollback()
        raise HTTPException(status_code=500, detail="Registration failed")


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return serialize_user(user, include_email=True)
