import logging

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.serializers import serialize_user_brief
from app.services import likes as like_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/likes", tags=["likes"])


class LikeRequest(BaseModel):
    post_id: int

    class Config:
        extra = "forbid"


@router.post("/toggle")
def toggle_like(
    request: LikeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Toggle like status for a post"""
    try:
        liked = like_service.toggle_like(db, request.post_id, user.id)
        return {
            "message": "Post liked successfully" if liked else "Post unliked successfully",
            "liked": liked,
            "likes_count": like_service.count_likes(db, request.post_id),
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error toggling like on post %s", request.post_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to toggle like")


@router.get("/check/{post_id}")
def check_user_like(
    post_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Check if the current user has liked a post"""
    try:
        return {"liked": like_service.is_liked(db, post_id, user.id)}
    except Exception:
        logger.exception("Error checking like on post %s", post_id)
        raise HTTPException(status_code=500, detail="Failed to check like status")


@router.get("/post/{post_id}")
def get_post_likes(post_id: int, db: Session = Depends(get_db)):
    """Users who liked a post, newest first"""
    try:
        likes = like_service.list_likers(db, post_id)
        return [
            {
                "id": like.id,
                "user": serialize_user_brief(like.user),
                "created_at": like.created_at.isoformat() if like.created_at else None,
            }
            for like in likes
        ]
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching likes for post %s", post_id)
        raise HTTPException(status_code=500, detail="Failed to get likes")
