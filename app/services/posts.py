import logging
import math

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from app.models.comment import Comment
from app.models.like import Like
from app.models.post import Post, PostTag, STATUS_PUBLISHED, DEFAULT_CATEGORY
from app.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
ALL_CATEGORIES = "all"


def get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def engagement_counts(db: Session, post_ids):
    """Return ``(comments_by_post, likes_by_post)`` counted live from the stores."""
    if not post_ids:
        return {}, {}

    comments = dict(
        db.query(Comment.post_id, func.count(Comment.id))
        .filter(Comment.post_id.in_(post_ids))
        .group_by(Comment.post_id)
        .all()
    )
    likes = dict(
        db.query(Like.post_id, func.count(Like.id))
        .filter(Like.post_id.in_(post_ids))
        .group_by(Like.post_id)
        .all()
    )
    return comments, likes


def with_counts(db: Session, posts):
    """Pair each post with its live comment and like counts."""
    comments, likes = engagement_counts(db, [p.id for p in posts])
    return [(p, comments.get(p.id, 0), likes.get(p.id, 0)) for p in posts]


LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """Build a substring pattern for ``ilike`` in which ``%`` and ``_`` match literally."""
    term = term.strip().replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
    for wildcard in ("%", "_"):
        term = term.replace(wildcard, LIKE_ESCAPE + wildcard)
    return f"%{term}%"


def filter_posts(db: Session, search=None, category=None, tag=None, author=None):
    query = db.query(Post).filter(Post.status == STATUS_PUBLISHED)

    if search:
        pattern = contains_pattern(search)
        query = query.filter(or_(
            Post.title.ilike(pattern, escape=LIKE_ESCAPE),
            Post.content.ilike(pattern, escape=LIKE_ESCAPE),
            Post.tag_rows.any(PostTag.tag.ilike(pattern, escape=LIKE_ESCAPE)),
        ))

    if category and category != ALL_CATEGORIES:
        query = query.filter(Post.category == category)

    if tag:
        query = query.filter(Post.tag_rows.any(PostTag.tag == tag))

    if author is not None:
        query = query.filter(Post.author_id == author)

    return query


def paginate(query, page: int, limit: int):
    """Apply newest-first ordering and 1-indexed paging; returns ``(items, total, total_pages)``."""
    total = query.order_by(None).count()
    items = (
        query.order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total, math.ceil(total / limit)


def list_posts(
    db: Session,
    search=None,
    category=None,
    tag=None,
    author=None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
):
    """
    Published posts matching every given filter, newest first.

    Pages past the end come back empty rather than raising.
    Returns ``(rows, total, total_pages)`` where each row is ``(post, comments_count, likes_count)``.
    """
    query = filter_posts(db, search, category, tag, author).options(joinedload(Post.author))
    items, total, total_pages = paginate(query, page, limit)
    return with_counts(db, items), total, total_pages


def get_post(db: Session, post_id: int):
    """Fetch one post for display, counting the view. Returns ``(post, comments_count, likes_count)``."""
    updated = db.query(Post).filter(Post.id == post_id).update(
        {Post.views: Post.views + 1}, synchronize_session=False
    )
    if not updated:
        db.rollback()
        raise HTTPException(status_code=404, detail="Post not found")
    db.commit()

    post = db.query(Post).options(joinedload(Post.author)).filter(Post.id == post_id).first()
    return with_counts(db, [post])[0]


def clean_text(value, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise HTTPException(status_code=400, detail=f"{field} is required")
    return value


def create_post(db: Session, author: User, title, content, category=None, tags=None,
                featured_image=None, status=None) -> Post:
    post = Post(
        title=clean_text(title, "Title"),
        content=clean_text(content, "Content"),
        author_id=author.id,
        category=(category or "").strip() or DEFAULT_CATEGORY,
        featured_image=featured_image or "",
        status=status or STATUS_PUBLISHED,
    )
    post.set_tags(tags)
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


def update_post(db: Session, post_id: int, requester: User, changes: dict) -> Post:
    """
    Apply the fields present in ``changes``; only the author may edit.

    An empty string clears ``featured_image`` and resets ``category`` to the default.
    """
    post = get_post_or_404(db, post_id)
    if post.author_id != requester.id:
        raise HTTPException(status_code=403, detail="Not authorized to update this post")

    if changes.get("title") is not None:
        post.title = clean_text(changes["title"], "Title")
    if changes.get("content") is not None:
        post.content = clean_text(changes["content"], "Content")
    if changes.get("category") is not None:
        post.category = changes["category"].strip() or DEFAULT_CATEGORY
    if changes.get("featured_image") is not None:
        post.featured_image = changes["featured_image"]
    if changes.get("status"):
        post.status = changes["status"]
    if changes.get("tags") is not None:
        post.set_tags(changes["tags"])

    db.commit()
    db.refresh(post)
    return post


def purge_posts(db: Session, post_ids) -> None:
    """Delete posts with their comments, likes and tags. Caller commits."""
    if not post_ids:
        return
    db.query(Comment).filter(Comment.post_id.in_(post_ids)).delete(synchronize_session=False)
    db.query(Like).filter(Like.post_id.in_(post_ids)).delete(synchronize_session=False)
    db.query(PostTag).filter(PostTag.post_id.in_(post_ids)).delete(synchronize_session=False)
    db.query(Post).filter(Post.id.in_(post_ids)).delete(synchronize_session=False)


def delete_post(db: Session, post_id: int, requester: User) -> None:
    post = get_post_or_404(db, post_id)
    if post.author_id != requester.id and not requester.is_admin:
        raise HTTPException(status_code=403, detail="Not authorized to delete this post")

    purge_posts(db, [post.id])
    db.commit()
    logger.info("Post %s deleted by user %s", post_id, requester.id)


def list_user_posts(db: Session, user_id: int):
    posts = filter_posts(db, author=user_id).options(joinedload(Post.author)).order_by(
        Post.created_at.desc(), Post.id.desc()
    ).all()
    return with_counts(db, posts)


def list_categories(db: Session):
    rows = db.query(Post.category).filter(
        Post.status == STATUS_PUBLISHED
    ).distinct().order_by(Post.category).all()
    return [row[0] for row in rows if row[0]]
