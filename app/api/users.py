import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, require_admin
from app.models.user import User
from app.serializers import serialize_user, serialize_user_brief
from app.services import follows as follow_service
from app.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


class ProfileRequest(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None

    class Config:
        extra = "forbid"


@router.get("")
def list_users(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """All users, newest first - admin only"""
    return [serialize_user(u, include_email=True) for u in user_service.list_users(db)]


@router.get("/search/{query}")
def search_users(query: str, db: Session = Depends(get_db)):
    return [serialize_user(u) for u in user_service.search_users(db, query)]


@router.put("/profile")
def save_profile(data: ProfileRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Update the caller's own name, bio or avatar"""
    try:
        user = user_service.update_profile(db, user, name=data.name, bio=data.bio, avatar=data.avatar)
    except Exception:
        logger.exception("Profile update failed for user %s", user.id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Profile update failed")

    return {
        "message": "Profile updated successfully",
        "user": serialize_user(user, include_email=True),
    }


@router.post("/follow/{user_id}")
def toggle_follow(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Follow the user if not following yet, otherwise unfollow"""
    try:
        following = follow_service.toggle_follow(db, user, user_id)
        return {
            "message": "Followed successfully" if following else "Unfollowed successfully",
            "is_following": following,
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Follow toggle failed for %s -> %s", user.id, user_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to update follow")


@router.get("/{user_id}")
def get_profile(user_id: int, db: Session = Depends(get_db)):
    profile = user_service.get_user_or_404(db, user_id)

    data = serialize_user(profile)
    data["followers"] = [serialize_user_brief(u) for u in profile.followers]
    data["following"] = [serialize_user_brief(u) for u in profile.following]
    data["posts_count"] = user_service.count_published_posts(db, user_id)
    return data
