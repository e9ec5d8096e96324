from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.models.comment import Comment
from app.models.user import User
from app.services.posts import get_post_or_404

MAX_COMMENT_LENGTH = 5000


def clean_content(content) -> str:
    content = (content or "").strip()
    if not content:
        raise HTTPException(status_code=400, detail="Comment content is required")
    if len(content) > MAX_COMMENT_LENGTH:
        raise HTTPException(status_code=400, detail=f"Comment is too long (max {MAX_COMMENT_LENGTH} characters)")
    return content


def get_comment_or_404(db: Session, comment_id: int) -> Comment:
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


def create_comment(db: Session, post_id: int, user: User, content, parent_id=None) -> Comment:
    """
    Add a top-level comment, or a reply when ``parent_id`` is given.

    A parent must be a top-level comment on the same post.
    """
    get_post_or_404(db, post_id)
    content = clean_content(content)

    if parent_id is not None:
        parent = db.query(Comment).filter(Comment.id == parent_id).first()
        if not parent:
            raise HTTPException(status_code=404, detail="Parent comment not found")
        if parent.post_id != post_id:
            raise HTTPException(status_code=400, detail="Parent comment belongs to a different post")
        if parent.is_reply:
            raise HTTPException(status_code=400, detail="Cannot reply to a reply")

    comment = Comment(post_id=post_id, user_id=user.id, content=content, parent_id=parent_id)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def update_comment(db: Session, comment_id: int, user: User, content) -> Comment:
    comment = get_comment_or_404(db, comment_id)
    if comment.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not authorized to update this comment")

    comment.content = clean_content(content)
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, comment_id: int, requester: User) -> int:
    """
    Delete a comment, and all of its replies when it is top-level.

    Returns the number of comment records removed.
    """
    comment = get_comment_or_404(db, comment_id)
    if comment.user_id != requester.id and not requester.is_admin:
        raise HTTPException(status_code=403, detail="Not authorized to delete this comment")

    # A reply leaves its parent's replies simply by no longer existing
    removed = db.query(Comment).filter(
        or_(Comment.id == comment.id, Comment.parent_id == comment.id)
    ).delete(synchronize_session=False)
    db.commit()
    return removed


def list_comments(db: Session, post_id: int):
    """Top-level comments of a post, newest first, with replies in insertion order."""
    get_post_or_404(db, post_id)
    return db.query(Comment).options(
        selectinload(Comment.user),
        selectinload(Comment.replies).selectinload(Comment.user),
    ).filter(
        Comment.post_id == post_id,
        Comment.parent_id.is_(None)
    ).order_by(Comment.created_at.desc(), Comment.id.desc()).all()


def purge_user_comments(db: Session, user_id: int) -> None:
    """Delete a user's comments along with every reply to them. Caller commits."""
    own_ids = [row[0] for row in db.query(Comment.id).filter(Comment.user_id == user_id).all()]
    if not own_ids:
        return
    db.query(Comment).filter(Comment.parent_id.in_(own_ids)).delete(synchronize_session=False)
    db.query(Comment).filter(Comment.id.in_(own_ids)).delete(synchronize_session=False)
