from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blog.database import Base


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships: lazy="raise_on_sql" enforces explicit eager loading in services
    posts: Mapped[List["Post"]] = relationship(
        "Post", back_populates="author", lazy="raise_on_sql"
    )


# ---------------------------------------------------------------------------
# Post
# ---------------------------------------------------------------------------
class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    # Formatted by blog.dates.get_date(); lexical order is chronological order.
    date: Mapped[str] = mapped_column(String(32), nullable=False, index=True)

    # Foreign key
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )

    # Relationships: all lazy="raise_on_sql"; use joinedload/selectinload in services
    author: Mapped[Optional["User"]] = relationship("User", back_populates="posts", lazy="raise_on_sql")
    tag_rows: Mapped[List["PostTag"]] = relationship(
        "PostTag",
        back_populates="post",
        order_by="PostTag.position",
        cascade="all, delete-orphan",
        lazy="raise_on_sql",
    )

    @property
    def tags(self) -> list[str]:
        return [row.name for row in self.tag_rows]


# ---------------------------------------------------------------------------
# PostTag: ordered tag sequence of a post
# ---------------------------------------------------------------------------
class PostTag(Base):
    __tablename__ = "post_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    post: Mapped["Post"] = relationship("Post", back_populates="tag_rows", lazy="raise_on_sql")
