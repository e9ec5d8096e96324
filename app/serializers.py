"""Convert ORM objects to plain dicts for JSON responses.

Only public fields leave the service: users are exposed through
``serialize_user_brief`` everywhere except the caller's own account and the
admin back-office.
"""


def _iso(value):
    return value.isoformat() if value else None


def serialize_user_brief(user):
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "avatar": user.avatar or "",
    }


def serialize_user(user, include_email=False):
    data = {
        "id": user.id,
        "name": user.name,
        "role": user.role,
        "bio": user.bio or "",
        "avatar": user.avatar or "",
        "created_at": _iso(user.created_at),
    }
    if include_email:
        data["email"] = user.email
    return data


def serialize_post(post, comments_count=None, likes_count=None, author_bio=False):
    author = serialize_user_brief(post.author)
    if author is not None and author_bio:
        author["bio"] = post.author.bio or ""

    data = {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "category": post.category,
        "tags": post.tags,
        "featured_image": post.featured_image or "",
        "status": post.status,
        "views": post.views,
        "author": author,
        "created_at": _iso(post.created_at),
        "updated_at": _iso(post.updated_at),
    }
    if comments_count is not None:
        data["comments_count"] = comments_count
    if likes_count is not None:
        data["likes_count"] = likes_count
    return data


def serialize_comment(comment, with_replies=True):
    data = {
        "id": comment.id,
        "post_id": comment.post_id,
        "parent_id": comment.parent_id,
        "content": comment.content,
        "user": serialize_user_brief(comment.user),
        "created_at": _iso(comment.created_at),
        "updated_at": _iso(comment.updated_at),
    }
    if with_replies and comment.parent_id is None:
        data["replies"] = [serialize_comment(r, with_replies=False) for r in comment.replies]
    return data
