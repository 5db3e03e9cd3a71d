"""
Database schema definitions using SQLAlchemy.

This module defines the tables for users, generated content (with its
version history and links), campaigns, session notes and scenario templates. Everything lives
in a single SQLite database file for easy backup and portability.
"""

# mypy: ignore-errors

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()  # type: ignore

LINK_TYPES = ("related", "part_of", "uses", "located_in", "involves")


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored by SQLite."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User table; a user is identified by its bearer token.

    Attributes:
        id: Unique user identifier (UUID)
        name: Display name
        token: Bearer token used to authenticate API calls
        created_at: Timestamp when the user was created
    """

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    token = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class GeneratedContent(Base):
    """
    Library item holding one generated character, environment or mission.

    Attributes:
        id: Unique content identifier (UUID, server-assigned)
        user_id: Owner of the item
        type: character, environment or mission
        scenario_input: Scenario text the content was generated from
        content_data: The generated artifact as JSON
        tags: List of user tags
        notes: Free-form user notes
        is_favorite: Favorite flag
    """

    __tablename__ = "generated_content"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    scenario_input = Column(Text, nullable=False)
    content_data = Column(JSON, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class ContentVersion(Base):
    """Snapshot of a content item's content_data."""

    __tablename__ = "content_versions"
    __table_args__ = (UniqueConstraint("content_id", "version_number"),)

    id = Column(String, primary_key=True, default=new_id)
    content_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False)
    version_number = Column(Integer, nullable=False)
    content_data = Column(JSON, nullable=False)
    change_summary = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class ContentLink(Base):
    """Directed, typed link between two content items of the same user."""

    __tablename__ = "content_links"
    __table_args__ = (
        UniqueConstraint("source_content_id", "target_content_id", "link_type"),
    )

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, nullable=False)
    source_content_id = Column(String, nullable=False, index=True)
    target_content_id = Column(String, nullable=False, index=True)
    link_type = Column(String, nullable=False, default="related")
    created_at = Column(DateTime, nullable=False, default=utcnow)


class Campaign(Base):
    """
    Campaign grouping library items in play order.

    Attributes:
        id: Unique campaign identifier (UUID)
        user_id: Owner of the campaign
        name: Campaign name
        description: Optional description
        settings: Free-form campaign settings object
    """

    __tablename__ = "campaigns"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    settings = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class CampaignContent(Base):
    """Membership of a content item in a campaign; sequence is dense from 0."""

    __tablename__ = "campaign_content"

    campaign_id = Column(String, primary_key=True)
    content_id = Column(String, primary_key=True)
    sequence = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    added_at = Column(DateTime, nullable=False, default=utcnow)


class SessionNote(Base):
    """
    Notes taken during a play session.

    Attributes:
        campaign_id: Optional campaign the session belongs to
        session_date: Date of the session as YYYY-MM-DD
        linked_content_ids: Library items referenced by the notes
    """

    __tablename__ = "session_notes"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, nullable=False, index=True)
    campaign_id = Column(String, nullable=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    session_date = Column(String, nullable=False)
    linked_content_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class ContentTemplate(Base):
    """
    Reusable scenario prompt for one content type.

    Attributes:
        name: Template name shown in the picker
        type: character, environment or mission
        scenario: Scenario text filled into the generator
        is_favorite: Favorite flag
    """

    __tablename__ = "content_templates"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    type = Column(String, nullable=False, index=True)
    scenario = Column(Text, nullable=False)
    is_favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
