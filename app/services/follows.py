import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User, user_follows

logger = logging.getLogger(__name__)


def _edge(follower_id: int, followed_id: int):
    return (
        (user_follows.c.follower_id == follower_id)
        & (user_follows.c.followed_id == followed_id)
    )


def is_following(db: Session, follower_id: int, target_id: int) -> bool:
    row = db.execute(
        user_follows.select().where(_edge(follower_id, target_id))
    ).first()
    return row is not None


def toggle_follow(db: Session, follower: User, target_id: int) -> bool:
    """
    Follow or unfollow ``target_id`` and return whether ``follower`` now follows it.

    A follow is a single edge row, so the follower's ``following`` and the
    target's ``followers`` always change in the same commit.
    """
    if follower.id == target_id:
        raise HTTPException(status_code=400, detail="You cannot follow yourself")

    target = db.query(User).filter(User.id == target_id).first()
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    removed = db.execute(
        user_follows.delete().where(_edge(follower.id, target_id))
    ).rowcount

    if removed:
        db.commit()
        return False

    try:
        db.execute(user_follows.insert().values(follower_id=follower.id, followed_id=target_id))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("User %s already follows user %s", follower.id, target_id)
    return True


def purge_user_edges(db: Session, user_id: int) -> None:
    """Drop every follow edge touching ``user_id``. Caller commits."""
    db.execute(
        user_follows.delete().where(
            (user_follows.c.follower_id == user_id) | (user_follows.c.followed_id == user_id)
        )
    )
