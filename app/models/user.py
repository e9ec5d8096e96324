from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Table, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base

ROLE_USER = "User"
ROLE_ADMIN = "Admin"
ROLES = (ROLE_USER, ROLE_ADMIN)

# One row per edge: follower -> followed. Both "followers" and "following" read from it.
user_follows = Table(
    "user_follows",
    Base.metadata,
    Column("follower_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("followed_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    CheckConstraint("follower_id != followed_id", name="ck_no_self_follow"),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)
    bio = Column(Text, default="")
    avatar = Column(String(500), default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    following = relationship(
        "User",
        secondary=user_follows,
        primaryjoin=id == user_follows.c.follower_id,
        secondaryjoin=id == user_follows.c.followed_id,
        backref="followers",
        order_by=id,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
