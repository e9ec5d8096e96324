import logging

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.comment import Comment
from app.models.like import Like
from app.models.post import Post, STATUS_PUBLISHED
from app.models.user import User, ROLES, ROLE_USER, ROLE_ADMIN
from app.services.comments import purge_user_comments
from app.services.follows import purge_user_edges
from app.services.posts import purge_posts, contains_pattern, LIKE_ESCAPE

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
RECENT_LIMIT = 5


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def register_user(db: Session, email: str, name, bio=None, avatar=None, admin_emails=()) -> User:
    """Create the account for a verified email. Emails listed in ``admin_emails`` start as Admin."""
    email = email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Account already registered")

    name = (name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")

    user = User(
        email=email,
        name=name,
        bio=bio or "",
        avatar=avatar or "",
        role=ROLE_ADMIN if email in admin_emails else ROLE_USER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s with role %s", user.id, user.role)
    return user


def update_profile(db: Session, user: User, name=None, bio=None, avatar=None) -> User:
    """Change only the fields that were provided; an empty bio or avatar clears it."""
    if name and name.strip():
        user.name = name.strip()
    if bio is not None:
        user.bio = bio
    if avatar is not None:
        user.avatar = avatar
    db.commit()
    db.refresh(user)
    return user


def count_published_posts(db: Session, user_id: int) -> int:
    return db.query(Post).filter(
        Post.author_id == user_id,
        Post.status == STATUS_PUBLISHED
    ).count()


def search_users(db: Session, query: str):
    pattern = contains_pattern(query)
    return db.query(User).filter(
        or_(User.name.ilike(pattern, escape=LIKE_ESCAPE), User.email.ilike(pattern, escape=LIKE_ESCAPE))
    ).order_by(User.name).limit(SEARCH_LIMIT).all()


def list_users(db: Session):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def set_role(db: Session, user_id: int, role: str) -> User:
    if role not in ROLES:
        raise HTTPException(status_code=400, detail="Invalid role")
    user = get_user_or_404(db, user_id)
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info("User %s role set to %s", user_id, role)
    return user


def delete_user(db: Session, user_id: int, requester: User) -> None:
    """
    Remove a user and everything hanging off them in one commit:
    their posts (with comments and likes), their comments (with replies),
    their likes and every follow edge in either direction.
    """
    if user_id == requester.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user = get_user_or_404(db, user_id)

    post_ids = [row[0] for row in db.query(Post.id).filter(Post.author_id == user.id).all()]
    purge_posts(db, post_ids)
    purge_user_comments(db, user.id)
    db.query(Like).filter(Like.user_id == user.id).delete(synchronize_session=False)
    purge_user_edges(db, user.id)
    db.query(User).filter(User.id == user.id).delete(synchronize_session=False)
    db.commit()
    logger.info("User %s deleted by admin %s", user_id, requester.id)


def site_stats(db: Session):
    return {
        "total_users": db.query(User).count(),
        "total_posts": db.query(Post).count(),
        "total_comments": db.query(Comment).count(),
        "total_likes": db.query(Like).count(),
    }


def recent_users(db: Session, limit: int = RECENT_LIMIT):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()
