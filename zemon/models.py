"""
Database Models

This module defines the database models for the application.

Engagement sub-entities (likes, attendees, comments, reviews) are embedded in
their parent row as JSON arrays rather than stored in separate tables.
"""
import secrets
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def new_id():
    """24 hex characters, the same shape as a document-store object id."""
    return secrets.token_hex(12)


def utcnow():
    # Stored naive in UTC so SQLite round-trips compare cleanly
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class User(Base):
    """Identity referenced by resource owners, upserted from token claims."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    name = Column(String, nullable=False)
    avatar = Column(String)
    role = Column(String, default="user", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, name={self.name})>"


class Repo(TimestampMixin, Base):
    __tablename__ = "repos"

    id = Column(String(24), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    owner = Column(String, nullable=False)
    github_url = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text, default="")
    stars = Column(Integer, default=0, nullable=False)
    forks = Column(Integer, default=0, nullable=False)
    contributors = Column(Integer, default=0, nullable=False)
    language = Column(String)
    programming_language = Column(String, default="not specified")
    topics = Column(JSON, default=list)
    tags = Column(JSON, default=list)
    likes = Column(JSON, default=list)
    comments = Column(JSON, default=list)
    added_by = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), index=True)
    last_synced = Column(DateTime)

    added_by_user = relationship("User", lazy="joined")

    def __repr__(self):
        return f"<Repo(id={self.id}, github_url={self.github_url})>"


class Event(TimestampMixin, Base):
    __tablename__ = "events"

    id = Column(String(24), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    type = Column(String, nullable=False, index=True)
    mode = Column(String, default="online")
    location = Column(String)
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False, index=True)
    image = Column(String)
    tags = Column(JSON, default=list)
    capacity = Column(Integer)
    registration_url = Column(String)
    organizer = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), index=True)
    attendees = Column(JSON, default=list)
    views = Column(Integer, default=0, nullable=False)

    organizer_user = relationship("User", lazy="joined")

    def __repr__(self):
        return f"<Event(id={self.id}, type={self.type}, start_date={self.start_date})>"


class News(TimestampMixin, Base):
    __tablename__ = "news"

    id = Column(String(24), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, default="")
    category = Column(String, nullable=False, index=True)
    image = Column(String)
    tags = Column(JSON, default=list)
    author = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), index=True)
    views = Column(Integer, default=0, nullable=False)
    likes = Column(JSON, default=list)
    comments = Column(JSON, default=list)

    author_user = relationship("User", lazy="joined")


class StoreItem(TimestampMixin, Base):
    __tablename__ = "store_items"

    id = Column(String(24), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    thumbnail = Column(String)
    images = Column(JSON, default=list)
    url = Column(String, nullable=False)
    dev_docs = Column(String)
    github_url = Column(String)
    category = Column(String, nullable=False, index=True)
    tags = Column(JSON, default=list)
    price = Column(String, default="Free")
    author = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), index=True)
    reviews = Column(JSON, default=list)
    average_rating = Column(Float, default=0.0, nullable=False)
    total_reviews = Column(Integer, default=0, nullable=False)
    views = Column(Integer, default=0, nullable=False)
    # pending | approved | rejected
    status = Column(String, default="pending", nullable=False, index=True)

    author_user = relationship("User", lazy="joined")


class Idea(TimestampMixin, Base):
    __tablename__ = "ideas"

    id = Column(String(24), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    author = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), index=True)
    comments = Column(JSON, default=list)

    author_user = relationship("User", lazy="joined")


class CommunityResource(TimestampMixin, Base):
    __tablename__ = "community_resources"

    id = Column(String(24), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    # PDF | VIDEO | TOOL
    resource_type = Column(String, nullable=False)
    url = Column(String, nullable=False)
    added_by = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"))

    added_by_user = relationship("User", lazy="joined")
