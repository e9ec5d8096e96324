import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.serializers import serialize_comment
from app.services import comments as comment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["comments"])


class CommentCreate(BaseModel):
    post_id: int
    content: str
    parent_id: Optional[int] = None

    class Config:
        extra = "forbid"


class CommentUpdate(BaseModel):
    content: str

    class Config:
        extra = "forbid"


@router.get("/post/{post_id}")
def get_post_comments(post_id: int, db: Session = Depends(get_db)):
    """Top-level comments for a post, newest first, each with its replies"""
    try:
        comments = comment_service.list_comments(db, post_id)
        return [serialize_comment(c) for c in comments]
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching comments for post %s", post_id)
        raise HTTPException(status_code=500, detail="Failed to fetch comments")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_comment(
    data: CommentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Comment on a post, or reply to a top-level comment when parent_id is set"""
    try:
        comment = comment_service.create_comment(
            db, data.post_id, user, data.content, parent_id=data.parent_id
        )
        return {"message": "Comment created successfully", "comment": serialize_comment(comment)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating comment")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to create comment")


@router.put("/{comment_id}")
def update_comment(
    comment_id: int,
    data: CommentUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Edit a comment - author only"""
    try:
        comment = comment_service.update_comment(db, comment_id, user, data.content)
        return {"message": "Comment updated successfully", "comment": serialize_comment(comment)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating comment %s", comment_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to update comment")


@router.delete("/{comment_id}")
def delete_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a comment and its replies - author or admin"""
    try:
        removed = comment_service.delete_comment(db, comment_id, user)
        return {"message": "Comment deleted successfully", "deleted": removed}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting comment %s", comment_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to delete comment")
