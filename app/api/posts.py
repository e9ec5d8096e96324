import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.serializers import serialize_post
from app.services import posts as post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])


class PostCreate(BaseModel):
    title: str
    content: str
    category: Optional[str] = None
    tags: List[str] = []
    featured_image: Optional[str] = None
    status: Optional[str] = None

    class Config:
        extra = "forbid"


class PostUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    featured_image: Optional[str] = None
    status: Optional[str] = None

    class Config:
        extra = "forbid"


def _page_response(rows, total, total_pages, page):
    return {
        "items": [serialize_post(p, comments_count=c, likes_count=l) for p, c, l in rows],
        "total_pages": total_pages,
        "current_page": page,
        "total": total,
    }


@router.get("")
def list_posts(
    search: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    author: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(post_service.DEFAULT_PAGE_SIZE, ge=1, le=post_service.MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    """Published posts, newest first, filtered by search/category/tag/author"""
    try:
        rows, total, total_pages = post_service.list_posts(
            db, search=search, category=category, tag=tag, author=author, page=page, limit=limit
        )
        return _page_response(rows, total, total_pages, page)
    except Exception:
        logger.exception("Error listing posts")
        raise HTTPException(status_code=500, detail="Failed to fetch posts")


@router.get("/categories")
def get_categories(db: Session = Depends(get_db)):
    """Get all unique categories of published posts"""
    try:
        return {"categories": post_service.list_categories(db)}
    except Exception:
        logger.exception("Error listing categories")
        raise HTTPException(status_code=500, detail="Failed to fetch categories")


@router.get("/user/{user_id}")
def get_user_posts(user_id: int, db: Session = Depends(get_db)):
    """All published posts of one author"""
    try:
        rows = post_service.list_user_posts(db, user_id)
        return [serialize_post(p, comments_count=c, likes_count=l) for p, c, l in rows]
    except Exception:
        logger.exception("Error listing posts of user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to fetch posts")


@router.get("/{post_id}")
def get_post(post_id: int, db: Session = Depends(get_db)):
    """Get a single post; every call counts as one view"""
    try:
        post, comments_count, likes_count = post_service.get_post(db, post_id)
        return serialize_post(post, comments_count=comments_count, likes_count=likes_count, author_bio=True)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching post %s", post_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to fetch post")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(
    data: PostCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        post = post_service.create_post(
            db,
            user,
            title=data.title,
            content=data.content,
            category=data.category,
            tags=data.tags,
            featured_image=data.featured_image,
            status=data.status,
        )
        return {
            "message": "Post created successfully",
            "post": serialize_post(post, comments_count=0, likes_count=0),
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating post")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to create post")


@router.put("/{post_id}")
def update_post(
    post_id: int,
    data: PostUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a post - author only"""
    try:
        post = post_service.update_post(db, post_id, user, data.dict(exclude_unset=True))
        return {"message": "Post updated successfully", "post": serialize_post(post)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating post %s", post_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to update post")


@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a post with its comments and likes - author or admin"""
    try:
        post_service.delete_post(db, post_id, user)
        return {"message": "Post deleted successfully"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting post %s", post_id)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to delete post")
