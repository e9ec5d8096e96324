from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base

STATUS_PUBLISHED = "published"
DEFAULT_CATEGORY = "General"


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    content = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, default=DEFAULT_CATEGORY, index=True)
    featured_image = Column(String(500), default="")
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    views = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=STATUS_PUBLISHED, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    author = relationship("User", backref="posts")
    tag_rows = relationship(
        "PostTag",
        cascade="all, delete-orphan",
        order_by="PostTag.id",
        lazy="selectin",
    )

    @property
    def tags(self):
        return [t.tag for t in self.tag_rows]

    def set_tags(self, tags):
        """Replace the tag set, dropping blanks and duplicates but keeping order."""
        seen = []
        for tag in tags or []:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        # Reuse rows for tags that stay so the (post_id, tag) pair is never inserted twice
        existing = {row.tag: row for row in self.tag_rows}
        self.tag_rows = [existing.get(t) or PostTag(tag=t) for t in seen]


class PostTag(Base):
    __tablename__ = "post_tags"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = Column(String(50), nullable=False, index=True)

    __table_args__ = (UniqueConstraint('post_id', 'tag', name='uq_post_tag'),)
