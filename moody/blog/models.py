"""
Blog database models.

Used by DatabaseStorage only. Timestamps are assigned by the store, not the
database, so that every update moves updated_at strictly forward.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime

from moody.shared.database import Base


class Blog(Base):
    """
    A blog post.

    status is "draft" or "published"; tags is a free-text,
    comma-separated list and may be NULL.
    """
    __tablename__ = "blogs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    tags = Column(Text)
    status = Column(String(20), nullable=False, default="draft", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, index=True)


class User(Base):
    """Single-user account row. Present in the schema, not used by any route."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
