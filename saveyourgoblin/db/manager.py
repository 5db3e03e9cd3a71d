"""
Database manager for SaveYourGoblin.

This module provides a high-level interface for database operations on
users, library content (with versions and links), campaigns, session
notes and scenario templates. Every method opens its own session, commits or rolls back, and
returns plain dictionaries. All queries are scoped by user.
"""

import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import create_engine, desc, func, or_
from sqlalchemy.orm import Session as DBSession
from sqlalchemy.orm import sessionmaker

from saveyourgoblin.db.schema import (
    Base,
    Campaign,
    CampaignContent,
    ContentLink,
    ContentTemplate,
    ContentVersion,
    GeneratedContent,
    SessionNote,
    User,
    utcnow,
)
from saveyourgoblin.utils.logger import get_logger

logger = get_logger(__name__)


class RecordNotFound(LookupError):
    """A referenced record does not exist for this user."""


class DuplicateRecord(ValueError):
    """The record to create already exists."""


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _content_to_dict(item: GeneratedContent) -> Dict[str, Any]:
    return {
        "id": item.id,
        "type": item.type,
        "scenario_input": item.scenario_input,
        "content_data": item.content_data,
        "tags": item.tags or [],
        "notes": item.notes,
        "is_favorite": bool(item.is_favorite),
        "created_at": _iso(item.created_at),
        "updated_at": _iso(item.updated_at),
    }


def _version_to_dict(version: ContentVersion) -> Dict[str, Any]:
    return {
        "id": version.id,
        "content_id": version.content_id,
        "version_number": version.version_number,
        "content_data": version.content_data,
        "change_summary": version.change_summary,
        "created_at": _iso(version.created_at),
    }


def _campaign_to_dict(campaign: Campaign) -> Dict[str, Any]:
    return {
        "id": campaign.id,
        "name": campaign.name,
        "description": campaign.description,
        "settings": campaign.settings or {},
        "created_at": _iso(campaign.created_at),
        "updated_at": _iso(campaign.updated_at),
    }


def _note_to_dict(note: SessionNote) -> Dict[str, Any]:
    return {
        "id": note.id,
        "campaign_id": note.campaign_id,
        "title": note.title,
        "content": note.content,
        "session_date": note.session_date,
        "linked_content_ids": note.linked_content_ids or [],
        "created_at": _iso(note.created_at),
        "updated_at": _iso(note.updated_at),
    }


def _template_to_dict(template: ContentTemplate) -> Dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description or "",
        "type": template.type,
        "scenario": template.scenario,
        "is_favorite": bool(template.is_favorite),
        "created_at": _iso(template.created_at),
        "updated_at": _iso(template.updated_at),
    }


class DatabaseManager:
    """
    Manages database operations for the content library.

    Attributes:
        db_path: Path to the SQLite database file
        engine: SQLAlchemy engine for database connections
        SessionLocal: Factory for creating database sessions
    """

    def __init__(self, db_path: str = "data/saveyourgoblin.db"):
        """
        Initialize the database manager.

        Args:
            db_path: Path to SQLite database file (created if doesn't exist)
        """
        self.db_path = db_path

        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self.engine = create_engine(
            f"sqlite:///{db_path}",
            echo=False,
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        logger.info(f"Database initialized at {db_path}")

    @contextmanager
    def _transaction(self, action: str) -> Iterator[DBSession]:
        """Session that commits on success and rolls back on any error."""
        db: DBSession = self.SessionLocal()
        try:
            yield db
            db.commit()
        except (RecordNotFound, DuplicateRecord):
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise
        finally:
            db.close()

    # ==================== User Operations ====================

    def ensure_user(self, token: str, name: str) -> Dict[str, Any]:
        """Return the user owning `token`, creating it if needed."""
        with self._transaction("ensure user") as db:
            user = db.query(User).filter(User.token == token).first()
            if user is None:
                user = User(name=name, token=token)
                db.add(user)
                db.flush()
                logger.info(f"Created user {user.id} ({name})")
            return {"id": user.id, "name": user.name}

    def get_user_by_token(self, token: str) -> Optional[Dict[str, Any]]:
        db: DBSession = self.SessionLocal()
        try:
            user = db.query(User).filter(User.token == token).first()
            if user:
                return {"id": user.id, "name": user.name}
            return None
        finally:
            db.close()

    # ==================== Content Operations ====================

    def _get_content_row(self, db: DBSession, user_id: str, content_id: str) -> Optional[GeneratedContent]:
        return (
            db.query(GeneratedContent)
            .filter(GeneratedContent.id == content_id, GeneratedContent.user_id == user_id)
            .first()
        )

    def _add_version(
        self, db: DBSession, item: GeneratedContent, change_summary: Optional[str]
    ) -> ContentVersion:
        latest = (
            db.query(func.max(ContentVersion.version_number))
            .filter(ContentVersion.content_id == item.id)
            .scalar()
        )
        version = ContentVersion(
            content_id=item.id,
            user_id=item.user_id,
            version_number=(latest or 0) + 1,
            content_data=item.content_data,
            change_summary=change_summary,
        )
        db.add(version)
        db.flush()
        return version

    def create_content(
        self,
        user_id: str,
        content_type: str,
        scenario_input: str,
        content_data: Dict[str, Any],
        tags: Optional[List[str]] = None,
        notes: Optional[str] = None,
        is_favorite: bool = False,
    ) -> Dict[str, Any]:
        """
        Save a generated artifact to the library and record version 1.

        Returns:
            Dictionary with the saved library item
        """
        with self._transaction("save content") as db:
            item = GeneratedContent(
                user_id=user_id,
                type=content_type,
                scenario_input=scenario_input,
                content_data=content_data,
                tags=tags or [],
                notes=notes,
                is_favorite=is_favorite,
            )
            db.add(item)
            db.flush()
            self._add_version(db, item, "Initial version")
            result = _content_to_dict(item)

        logger.debug(f"Saved {content_type} {result['id']}")
        return result

    def get_content(self, user_id: str, content_id: str) -> Optional[Dict[str, Any]]:
        db: DBSession = self.SessionLocal()
        try:
            item = self._get_content_row(db, user_id, content_id)
            return _content_to_dict(item) if item else None
        finally:
            db.close()

    def list_content(
        self,
        user_id: str,
        content_type: Optional[str] = None,
        search: Optional[str] = None,
        favorite: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        List library items, newest first.

        Args:
            user_id: Owner of the items
            content_type: Optional type filter
            search: Case-insensitive match on scenario_input or notes
            favorite: Optional favorite filter
            limit: Page size
            offset: Page offset

        Returns:
            Tuple of (page of items, total matching items)
        """
        db: DBSession = self.SessionLocal()
        try:
            query = db.query(GeneratedContent).filter(GeneratedContent.user_id == user_id)
            if content_type:
                query = query.filter(GeneratedContent.type == content_type)
            if favorite is not None:
                query = query.filter(GeneratedContent.is_favorite == favorite)
            if search:
                pattern = f"%{search.lower()}%"
                query = query.filter(
                    or_(
                        func.lower(GeneratedContent.scenario_input).like(pattern),
                        func.lower(GeneratedContent.notes).like(pattern),
                    )
                )

            total = query.count()
            items = (
                query.order_by(desc(GeneratedContent.created_at))
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [_content_to_dict(i) for i in items], total
        finally:
            db.close()

    def update_content(
        self,
        user_id: str,
        content_id: str,
        updates: Dict[str, Any],
        change_summary: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Apply a partial update (notes, tags, is_favorite, content_data).

        A content_data change that differs from the stored value records a
        new version.

        Returns:
            The updated item, or None if not found
        """
        with self._transaction("update content") as db:
            item = self._get_content_row(db, user_id, content_id)
            if item is None:
                return None

            for field in ("notes", "tags", "is_favorite"):
                if field in updates:
                    setattr(item, field, updates[field])

            if "content_data" in updates and updates["content_data"] != item.content_data:
                item.content_data = updates["content_data"]
                item.updated_at = utcnow()
                db.flush()
                self._add_version(db, item, change_summary)
            else:
                item.updated_at = utcnow()

            result = _content_to_dict(item)

        logger.debug(f"Updated content {content_id}: {sorted(updates)}")
        return result

    def delete_content(self, user_id: str, content_id: str) -> bool:
        """
        Delete a library item with its memberships, links and versions.

        Returns:
            True if deleted, False if not found
        """
        with self._transaction("delete content") as db:
            item = self._get_content_row(db, user_id, content_id)
            if item is None:
                return False

            campaign_ids = [
                row.campaign_id
                for row in db.query(CampaignContent.campaign_id).filter(CampaignContent.content_id == content_id)
            ]
            db.query(CampaignContent).filter(CampaignContent.content_id == content_id).delete(
                synchronize_session=False
            )
            for campaign_id in campaign_ids:
                self._renumber(self._memberships(db, campaign_id))
            db.query(ContentLink).filter(
                or_(
                    ContentLink.source_content_id == content_id,
                    ContentLink.target_content_id == content_id,
                )
            ).delete(synchronize_session=False)
            db.query(ContentVersion).filter(ContentVersion.content_id == content_id).delete(
                synchronize_session=False
            )
            db.delete(item)

        logger.debug(f"Deleted content {content_id}")
        return True

    # ==================== Version Operations ====================

    def list_versions(self, user_id: str, content_id: str) -> Optional[List[Dict[str, Any]]]:
        """Versions of an item, newest first; None if the item is missing."""
        db: DBSession = self.SessionLocal()
        try:
            if self._get_content_row(db, user_id, content_id) is None:
                return None
            versions = (
                db.query(ContentVersion)
                .filter(ContentVersion.content_id == content_id)
                .order_by(desc(ContentVersion.version_number))
                .all()
            )
            return [_version_to_dict(v) for v in versions]
        finally:
            db.close()

    def get_version(self, user_id: str, content_id: str, version_id: str) -> Optional[Dict[str, Any]]:
        db: DBSession = self.SessionLocal()
        try:
            version = (
                db.query(ContentVersion)
                .filter(
                    ContentVersion.id == version_id,
                    ContentVersion.content_id == content_id,
                    ContentVersion.user_id == user_id,
                )
                .first()
            )
            return _version_to_dict(version) if version else None
        finally:
            db.close()

    def restore_version(
        self,
        user_id: str,
        content_id: str,
        version_id: str,
        change_summary: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Make an old version current again, recording a new version.

        Raises:
            RecordNotFound: If the item or the version does not exist
        """
        with self._transaction("restore version") as db:
            item = self._get_content_row(db, user_id, content_id)
            if item is None:
                raise RecordNotFound("Content not found")
            version = (
                db.query(ContentVersion)
                .filter(ContentVersion.id == version_id, ContentVersion.content_id == content_id)
                .first()
            )
            if version is None:
                raise RecordNotFound("Version not found")

            item.content_data = version.content_data
            item.updated_at = utcnow()
            db.flush()
            new_version = self._add_version(
                db, item, change_summary or f"Restored to version {version.version_number}"
            )
            result = {
                "content": _content_to_dict(item),
                "restoredFrom": {"id": version.id, "version_number": version.version_number},
                "newVersion": _version_to_dict(new_version),
            }

        logger.debug(f"Restored content {content_id} to version {version_id}")
        return result

    # ==================== Link Operations ====================

    def list_links(self, user_id: str, content_id: str) -> Optional[Dict[str, List[Dict[str, Any]]]]:
        """Outgoing and incoming links of an item; None if the item is missing."""
        db: DBSession = self.SessionLocal()
        try:
            if self._get_content_row(db, user_id, content_id) is None:
                return None

            links = (
                db.query(ContentLink)
                .filter(
                    ContentLink.user_id == user_id,
                    or_(
                        ContentLink.source_content_id == content_id,
                        ContentLink.target_content_id == content_id,
                    ),
                )
                .order_by(ContentLink.created_at)
                .all()
            )
            other_ids = {
                link.target_content_id if link.source_content_id == content_id else link.source_content_id
                for link in links
            }
            others = {
                c.id: {"id": c.id, "type": c.type, "scenario_input": c.scenario_input}
                for c in db.query(GeneratedContent).filter(GeneratedContent.id.in_(list(other_ids))).all()
            }

            outgoing, incoming = [], []
            for link in links:
                entry = {
                    "id": link.id,
                    "link_type": link.link_type,
                    "created_at": _iso(link.created_at),
                }
                if link.source_content_id == content_id:
                    outgoing.append({**entry, "target": others.get(link.target_content_id)})
                else:
                    incoming.append({**entry, "source": others.get(link.source_content_id)})
            return {"outgoing": outgoing, "incoming": incoming}
        finally:
            db.close()

    def create_link(
        self, user_id: str, source_id: str, target_id: str, link_type: str
    ) -> Dict[str, Any]:
        """
        Link two items of the same user.

        Raises:
            RecordNotFound: If either item does not exist
            DuplicateRecord: If the same link already exists
        """
        with self._transaction("create link") as db:
            if self._get_content_row(db, user_id, source_id) is None:
                raise RecordNotFound("Content not found")
            if self._get_content_row(db, user_id, target_id) is None:
                raise RecordNotFound("Target content not found")

            existing = (
                db.query(ContentLink)
                .filter(
                    ContentLink.source_content_id == source_id,
                    ContentLink.target_content_id == target_id,
                    ContentLink.link_type == link_type,
                )
                .first()
            )
            if existing:
                raise DuplicateRecord("Link already exists")

            link = ContentLink(
                user_id=user_id,
                source_content_id=source_id,
                target_content_id=target_id,
                link_type=link_type,
            )
            db.add(link)
            db.flush()
            return {
                "id": link.id,
                "source_content_id": source_id,
                "target_content_id": target_id,
                "link_type": link_type,
                "created_at": _iso(link.created_at),
            }

    def delete_link(self, user_id: str, content_id: str, link_id: str) -> bool:
        with self._transaction("delete link") as db:
            deleted = (
                db.query(ContentLink)
                .filter(
                    ContentLink.id == link_id,
                    ContentLink.user_id == user_id,
                    or_(
                        ContentLink.source_content_id == content_id,
                        ContentLink.target_content_id == content_id,
                    ),
                )
                .delete(synchronize_session=False)
            )
            return deleted > 0

    # ==================== Campaign Operations ====================

    def _get_campaign_row(self, db: DBSession, user_id: str, campaign_id: str) -> Optional[Campaign]:
        return (
            db.query(Campaign)
            .filter(Campaign.id == campaign_id, Campaign.user_id == user_id)
            .first()
        )

    def _memberships(self, db: DBSession, campaign_id: str) -> List[CampaignContent]:
        return (
            db.query(CampaignContent)
            .filter(CampaignContent.campaign_id == campaign_id)
            .order_by(CampaignContent.sequence, CampaignContent.added_at)
            .all()
        )

    @staticmethod
    def _renumber(memberships: List[CampaignContent]) -> None:
        for index, membership in enumerate(memberships):
            membership.sequence = index

    def list_campaigns(self, user_id: str) -> List[Dict[str, Any]]:
        db: DBSession = self.SessionLocal()
        try:
            campaigns = (
                db.query(Campaign)
                .filter(Campaign.user_id == user_id)
                .order_by(desc(Campaign.updated_at))
                .all()
            )
            return [_campaign_to_dict(c) for c in campaigns]
        finally:
            db.close()

    def create_campaign(
        self,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        with self._transaction("create campaign") as db:
            campaign = Campaign(
                user_id=user_id, name=name, description=description, settings=settings or {}
            )
            db.add(campaign)
            db.flush()
            result = _campaign_to_dict(campaign)

        logger.debug(f"Created campaign {result['id']}: {name}")
        return result

    def get_campaign(self, user_id: str, campaign_id: str) -> Optional[Dict[str, Any]]:
        """Campaign with its content entries ordered by sequence."""
        db: DBSession = self.SessionLocal()
        try:
            campaign = self._get_campaign_row(db, user_id, campaign_id)
            if campaign is None:
                return None

            memberships = self._memberships(db, campaign_id)
            items = {
                c.id: c
                for c in db.query(GeneratedContent)
                .filter(GeneratedContent.id.in_([m.content_id for m in memberships]))
                .all()
            }
            result = _campaign_to_dict(campaign)
            result["content"] = [
                {
                    "contentId": m.content_id,
                    "sequence": m.sequence,
                    "notes": m.notes,
                    "content": _content_to_dict(items[m.content_id]) if m.content_id in items else None,
                }
                for m in memberships
            ]
            return result
        finally:
            db.close()

    def update_campaign(
        self, user_id: str, campaign_id: str, updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        with self._transaction("update campaign") as db:
            campaign = self._get_campaign_row(db, user_id, campaign_id)
            if campaign is None:
                return None
            for field in ("name", "description", "settings"):
                if field in updates:
                    setattr(campaign, field, updates[field])
            campaign.updated_at = utcnow()
            return _campaign_to_dict(campaign)

    def delete_campaign(self, user_id: str, campaign_id: str) -> bool:
        """Delete a campaign; its session notes are kept and detached."""
        with self._transaction("delete campaign") as db:
            campaign = self._get_campaign_row(db, user_id, campaign_id)
            if campaign is None:
                return False
            db.query(CampaignContent).filter(CampaignContent.campaign_id == campaign_id).delete(
                synchronize_session=False
            )
            db.query(SessionNote).filter(SessionNote.campaign_id == campaign_id).update(
                {SessionNote.campaign_id: None}, synchronize_session=False
            )
            db.delete(campaign)
            return True

    def add_campaign_content(
        self,
        user_id: str,
        campaign_id: str,
        content_id: str,
        sequence: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Add an item to a campaign at `sequence` (default: the end).

        Items at or after the insertion point move down by one.

        Raises:
            RecordNotFound: If the campaign or the item does not exist
            DuplicateRecord: If the item is already in the campaign
        """
        with self._transaction("add campaign content") as db:
            campaign = self._get_campaign_row(db, user_id, campaign_id)
            if campaign is None:
                raise RecordNotFound("Campaign not found")
            if self._get_content_row(db, user_id, content_id) is None:
                raise RecordNotFound("Content not found")

            memberships = self._memberships(db, campaign_id)
            if any(m.content_id == content_id for m in memberships):
                raise DuplicateRecord("Content already added to campaign")

            position = len(memberships) if sequence is None else min(sequence, len(memberships))
            membership = CampaignContent(campaign_id=campaign_id, content_id=content_id, notes=notes)
            db.add(membership)
            memberships.insert(position, membership)
            self._renumber(memberships)
            campaign.updated_at = utcnow()
            return {"contentId": content_id, "sequence": membership.sequence, "notes": notes}

    def update_campaign_content(
        self,
        user_id: str,
        campaign_id: str,
        content_id: str,
        sequence: Optional[int] = None,
        notes: Optional[str] = None,
        update_notes: bool = False,
    ) -> Dict[str, Any]:
        """
        Move an item within a campaign and/or change its notes.

        Raises:
            RecordNotFound: If the campaign or the membership does not exist
        """
        with self._transaction("update campaign content") as db:
            campaign = self._get_campaign_row(db, user_id, campaign_id)
            if campaign is None:
                raise RecordNotFound("Campaign not found")

            memberships = self._memberships(db, campaign_id)
            membership = next((m for m in memberships if m.content_id == content_id), None)
            if membership is None:
                raise RecordNotFound("Content not found in campaign")

            if sequence is not None:
                memberships.remove(membership)
                memberships.insert(min(sequence, len(memberships)), membership)
                self._renumber(memberships)
            if update_notes:
                membership.notes = notes
            campaign.updated_at = utcnow()
            return {"contentId": content_id, "sequence": membership.sequence, "notes": membership.notes}

    def remove_campaign_content(self, user_id: str, campaign_id: str, content_id: str) -> bool:
        """
        Remove an item from a campaign and close the sequence gap.

        Raises:
            RecordNotFound: If the campaign does not exist
        """
        with self._transaction("remove campaign content") as db:
            campaign = self._get_campaign_row(db, user_id, campaign_id)
            if campaign is None:
                raise RecordNotFound("Campaign not found")

            memberships = self._memberships(db, campaign_id)
            membership = next((m for m in memberships if m.content_id == content_id), None)
            if membership is None:
                return False
            memberships.remove(membership)
            db.delete(membership)
            self._renumber(memberships)
            campaign.updated_at = utcnow()
            return True

    def reorder_campaign_content(
        self, user_id: str, campaign_id: str, content_ids: List[str]
    ) -> List[Dict[str, Any]]:
        """
        Renumber a campaign's items to follow `content_ids`, in one transaction.

        Raises:
            RecordNotFound: If the campaign does not exist
            ValueError: If `content_ids` is not a permutation of the campaign's items
        """
        with self._transaction("reorder campaign content") as db:
            campaign = self._get_campaign_row(db, user_id, campaign_id)
            if campaign is None:
                raise RecordNotFound("Campaign not found")

            by_id = {m.content_id: m for m in self._memberships(db, campaign_id)}
            if len(content_ids) != len(by_id) or set(content_ids) != set(by_id):
                raise ValueError("contentIds must list every campaign item exactly once")

            ordered = [by_id[cid] for cid in content_ids]
            self._renumber(ordered)
            campaign.updated_at = utcnow()
            result = [{"contentId": m.content_id, "sequence": m.sequence} for m in ordered]

        logger.debug(f"Reordered {len(result)} items in campaign {campaign_id}")
        return result

    # ==================== Session Note Operations ====================

    def _get_note_row(self, db: DBSession, user_id: str, note_id: str) -> Optional[SessionNote]:
        return (
            db.query(SessionNote)
            .filter(SessionNote.id == note_id, SessionNote.user_id == user_id)
            .first()
        )

    def list_session_notes(self, user_id: str, campaign_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Session notes by session_date desc, then updated_at desc."""
        db: DBSession = self.SessionLocal()
        try:
            query = db.query(SessionNote).filter(SessionNote.user_id == user_id)
            if campaign_id:
                query = query.filter(SessionNote.campaign_id == campaign_id)
            notes = query.order_by(desc(SessionNote.session_date), desc(SessionNote.updated_at)).all()
            return [_note_to_dict(n) for n in notes]
        finally:
            db.close()

    def create_session_note(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a session note from already-normalized fields.

        Raises:
            RecordNotFound: If campaign_id names a missing campaign
        """
        with self._transaction("create session note") as db:
            campaign_id = data.get("campaign_id")
            if campaign_id and self._get_campaign_row(db, user_id, campaign_id) is None:
                raise RecordNotFound("Campaign not found")

            note = SessionNote(
                user_id=user_id,
                campaign_id=campaign_id,
                title=data["title"],
                content=data.get("content", ""),
                session_date=data["session_date"],
                linked_content_ids=data.get("linked_content_ids", []),
            )
            db.add(note)
            db.flush()
            return _note_to_dict(note)

    def get_session_note(self, user_id: str, note_id: str) -> Optional[Dict[str, Any]]:
        db: DBSession = self.SessionLocal()
        try:
            note = self._get_note_row(db, user_id, note_id)
            return _note_to_dict(note) if note else None
        finally:
            db.close()

    def update_session_note(
        self, user_id: str, note_id: str, updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Raises:
            RecordNotFound: If updates name a missing campaign
        """
        with self._transaction("update session note") as db:
            note = self._get_note_row(db, user_id, note_id)
            if note is None:
                return None

            campaign_id = updates.get("campaign_id")
            if campaign_id and self._get_campaign_row(db, user_id, campaign_id) is None:
                raise RecordNotFound("Campaign not found")

            for field in ("campaign_id", "title", "content", "session_date", "linked_content_ids"):
                if field in updates:
                    setattr(note, field, updates[field])
            note.updated_at = utcnow()
            return _note_to_dict(note)

    def delete_session_note(self, user_id: str, note_id: str) -> bool:
        with self._transaction("delete session note") as db:
            note = self._get_note_row(db, user_id, note_id)
            if note is None:
                return False
            db.delete(note)
            return True

    # ==================== Template Operations ====================

    def _get_template_row(self, db: DBSession, user_id: str, template_id: str) -> Optional[ContentTemplate]:
        return (
            db.query(ContentTemplate)
            .filter(ContentTemplate.id == template_id, ContentTemplate.user_id == user_id)
            .first()
        )

    def list_templates(self, user_id: str, content_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Templates by updated_at desc, optionally of one content type."""
        db: DBSession = self.SessionLocal()
        try:
            query = db.query(ContentTemplate).filter(ContentTemplate.user_id == user_id)
            if content_type:
                query = query.filter(ContentTemplate.type == content_type)
            templates = query.order_by(desc(ContentTemplate.updated_at)).all()
            return [_template_to_dict(t) for t in templates]
        finally:
            db.close()

    def create_template(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._transaction("create template") as db:
            template = ContentTemplate(
                user_id=user_id,
                name=data["name"],
                description=data.get("description") or "",
                type=data["type"],
                scenario=data["scenario"],
                is_favorite=bool(data.get("is_favorite", False)),
            )
            db.add(template)
            db.flush()
            return _template_to_dict(template)

    def get_template(self, user_id: str, template_id: str) -> Optional[Dict[str, Any]]:
        db: DBSession = self.SessionLocal()
        try:
            template = self._get_template_row(db, user_id, template_id)
            return _template_to_dict(template) if template else None
        finally:
            db.close()

    def update_template(
        self, user_id: str, template_id: str, updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        with self._transaction("update template") as db:
            template = self._get_template_row(db, user_id, template_id)
            if template is None:
                return None
            for field in ("name", "description", "type", "scenario", "is_favorite"):
                if field in updates:
                    setattr(template, field, updates[field])
            template.updated_at = utcnow()
            return _template_to_dict(template)

    def delete_template(self, user_id: str, template_id: str) -> bool:
        with self._transaction("delete template") as db:
            template = self._get_template_row(db, user_id, template_id)
            if template is None:
                return False
            db.delete(template)
            return True
