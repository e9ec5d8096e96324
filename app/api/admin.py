"""
Admin back-office API.
Every route requires the Admin role.
"""

import logging
import math

from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.dependencies import require_admin
from app.models.like import Like
from app.models.post import Post
from app.models.user import User
from app.serializers import serialize_post, serialize_user
from app.services import posts as post_service
from app.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class RoleUpdateRequest(BaseModel):
    role: str

    class Config:
        extra = "forbid"


def _brief_with_email(user):
    return {"id": user.id, "name": user.name, "email": user.email, "avatar": user.avatar or ""}


@router.get("/stats")
def get_stats(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    recent_posts = db.query(Post).options(joinedload(Post.author)).order_by(
        Post.created_at.desc(), Post.id.desc()
    ).limit(user_service.RECENT_LIMIT).all()

    return {
        "stats": user_service.site_stats(db),
        "recent_activity": {
            "recent_posts": [serialize_post(p) for p in recent_posts],
            "recent_users": [serialize_user(u, include_email=True) for u in user_service.recent_users(db)],
        },
    }


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = db.query(User)
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "users": [serialize_user(u, include_email=True) for u in users],
        "total_pages": math.ceil(total / limit),
        "current_page": page,
        "total": total,
    }


@router.get("/posts")
def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Every post regardless of status"""
    query = db.query(Post).options(joinedload(Post.author))
    items, total, total_pages = post_service.paginate(query, page, limit)
    return {
        "posts": [serialize_post(p, comments_count=c, likes_count=l)
                  for p, c, l in post_service.with_counts(db, items)],
        "total_pages": total_pages,
        "current_page": page,
        "total": total,
    }


@router.get("/user-likes/{user_id}")
def get_user_likes(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    likes = db.query(Like).options(
        joinedload(Like.post).joinedload(Post.author)
    ).filter(Like.user_id == user_id).order_by(Like.created_at.desc(), Like.id.desc()).all()

    return [
        {
            "id": like.id,
            "post": {
                "id": like.post.id,
                "title": like.post.title,
                "author": {"id": like.post.author.id, "name": like.post.author.name},
            },
            "created_at": like.created_at.isoformat() if like.created_at else None,
        }
        for like in likes
    ]


@router.get("/user-followers/{user_id}")
def get_user_followers(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    user = user_service.get_user_or_404(db, user_id)
    return {
        "followers": [_brief_with_email(u) for u in user.followers],
        "following": [_brief_with_email(u) for u in user.following],
    }


@router.delete("/users/{user_id}")
def delete_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Hard delete a user with their posts, comments, likes and follow edges"""
    try:
        user_service.delete_user(db, user_id, admin)
        return {"message": "User deleted successfully"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting user %s", user_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to delete user")


@router.delete("/posts/{post_id}")
def delete_post(post_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        post_service.delete_post(db, post_id, admin)
        return {"message": "Post deleted successfully"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting post %s", post_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to delete post")


@router.put("/users/{user_id}/role")
def update_role(
    user_id: int,
    data: RoleUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        user = user_service.set_role(db, user_id, data.role)
        return {"message": "User role updated successfully", "user": serialize_user(user, include_email=True)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating role of user %s", user_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to update role")
