import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.models.like import Like
from app.services.posts import get_post_or_404

logger = logging.getLogger(__name__)


def toggle_like(db: Session, post_id: int, user_id: int) -> bool:
    """
    Flip the like state of (post, user) and return the new state.

    The Like table is the only record of who liked what, so one commit is the
    whole mutation. A concurrent toggle that inserted the same pair first is
    caught by the unique constraint; the pair is liked either way.
    """
    get_post_or_404(db, post_id)

    removed = db.query(Like).filter(
        Like.post_id == post_id,
        Like.user_id == user_id
    ).delete(synchronize_session=False)

    if removed:
        db.commit()
        return False

    db.add(Like(post_id=post_id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Like for post %s by user %s already recorded", post_id, user_id)
    return True


def is_liked(db: Session, post_id: int, user_id: int) -> bool:
    return db.query(Like.id).filter(
        Like.post_id == post_id,
        Like.user_id == user_id
    ).first() is not None


def count_likes(db: Session, post_id: int) -> int:
    return db.query(Like).filter(Like.post_id == post_id).count()


def list_likers(db: Session, post_id: int):
    """Likes of a post with their users loaded, newest first."""
    get_post_or_404(db, post_id)
    return db.query(Like).options(joinedload(Like.user)).filter(
        Like.post_id == post_id
    ).order_by(Like.created_at.desc(), Like.id.desc()).all()
