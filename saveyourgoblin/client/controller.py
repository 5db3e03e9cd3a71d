"""
Diff preview, accept/reject and one-step undo for section regeneration.

State machine::

    IDLE -> REGENERATING -> PREVIEW_READY -> SAVING -> IDLE    (accept)
                                          -> IDLE              (reject)
    IDLE -> UNDOING -> IDLE                                    (undo)

A regenerated section is shown as a DiffPreview and only merged into the
artifact on accept. Accepting persists the merged artifact and keeps a
deep copy of the previous one so the change can be undone once.

``reset()`` is called whenever the displayed artifact is replaced. It bumps
an epoch; a save or undo that completes under an older epoch does not
touch the store.
"""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from saveyourgoblin.schemas import regenerable_sections, section_label
from saveyourgoblin.utils.logger import get_logger

from .api_client import GoblinClient
from .cancellation import CancellationToken
from .errors import (
    Busy,
    Cancelled,
    GenerationFailed,
    PersistenceFailed,
    RegenerateAllFailed,
    WorkflowError,
)
from .regeneration import RegenerationEngine
from .state import ContentStore

logger = get_logger(__name__)


class ControllerState(str, Enum):
    IDLE = "idle"
    REGENERATING = "regenerating"
    PREVIEW_READY = "preview_ready"
    SAVING = "saving"
    UNDOING = "undoing"


@dataclass
class DiffPreview:
    """Old and new value of a regenerated section, not yet applied."""

    section_id: str
    section_label: str
    old_value: Any
    new_value: Any
    section_index: Optional[int] = None


@dataclass
class UndoSnapshot:
    previous_content_data: Dict[str, Any]


def merge_preview(content: Dict[str, Any], preview: DiffPreview) -> Dict[str, Any]:
    """
    Apply a preview to an artifact without mutating it.

    With a section index only that element of the list is replaced;
    otherwise the whole section is.
    """
    if preview.section_index is None:
        return {**content, preview.section_id: preview.new_value}

    items = list(content.get(preview.section_id) or [])
    if not 0 <= preview.section_index < len(items):
        raise GenerationFailed(
            f"{preview.section_label} no longer exists in {preview.section_id}"
        )
    items[preview.section_index] = preview.new_value
    return {**content, preview.section_id: items}


class DiffUndoController:
    """
    Drives regenerate / preview / accept / reject / undo for one store.

    Attributes:
        state: Current ControllerState
        preview: Pending DiffPreview while PREVIEW_READY
    """

    def __init__(self, engine: RegenerationEngine, client: GoblinClient, store: ContentStore):
        self.engine = engine
        self.client = client
        self.store = store
        self.state = ControllerState.IDLE
        self.preview: Optional[DiffPreview] = None
        self._snapshot: Optional[UndoSnapshot] = None
        self._cancel_token: Optional[CancellationToken] = None
        self._epoch = 0

    @property
    def undo_available(self) -> bool:
        return self._snapshot is not None

    @property
    def persisting(self) -> bool:
        """True while an accept or undo is writing to the library."""
        return self.state in (ControllerState.SAVING, ControllerState.UNDOING)

    def _require(self, action: str, *states: ControllerState) -> None:
        if self.state not in states:
            raise Busy(f"Cannot {action} while {self.state.value}")

    def _superseded(self, epoch: int, content: Dict[str, Any], content_id: str) -> bool:
        return (
            epoch != self._epoch
            or self.store.content is not content
            or self.store.content_id != content_id
        )

    async def request_regeneration(
        self, section_id: str, section_index: Optional[int] = None
    ) -> DiffPreview:
        """
        Regenerate a section and capture the result as a preview.

        Any pending preview is discarded and the undo snapshot is cleared.

        Raises:
            Busy: A regeneration, save or undo is in progress
            Cancelled: cancel() was called or the artifact changed meanwhile
        """
        self._require("regenerate", ControllerState.IDLE, ControllerState.PREVIEW_READY)
        self.preview = None
        self._snapshot = None
        content = self.store.content
        token = CancellationToken()
        self._cancel_token = token
        self.state = ControllerState.REGENERATING

        try:
            result = await self.engine.regenerate_section(section_id, content, section_index, token)
            if token.cancelled or self.store.content is not content:
                raise Cancelled("Regeneration result discarded")
        except Exception:
            self.state = ControllerState.IDLE
            raise
        finally:
            self._cancel_token = None

        old_value = content.get(section_id)
        if result.index is not None and isinstance(old_value, list) and result.index < len(old_value):
            old_value = old_value[result.index]

        self.preview = DiffPreview(
            section_id=section_id,
            section_label=section_label(self.store.content_type, section_id, result.index),
            old_value=old_value,
            new_value=result.data,
            section_index=result.index,
        )
        self.state = ControllerState.PREVIEW_READY
        logger.info(f"Preview ready for {self.preview.section_label}")
        return self.preview

    async def accept(self) -> Dict[str, Any]:
        """
        Merge the preview, persist it and keep an undo snapshot.

        On a failed save the preview stays pending so accept() can be
        retried without regenerating; no snapshot is taken.

        Raises:
            Busy: No preview is pending
            PersistenceFailed: The artifact is unsaved or the save failed
            Cancelled: The artifact was replaced while saving; the store is left alone
        """
        self._require("accept", ControllerState.PREVIEW_READY)
        preview = self.preview
        previous = self.store.content
        content_id = self.store.content_id
        if content_id is None:
            raise PersistenceFailed("Save the content to the library before accepting changes")

        merged = merge_preview(previous, preview)
        epoch = self._epoch
        self.state = ControllerState.SAVING
        try:
            await self.client.update_content(
                content_id,
                content_data=merged,
                change_summary=f"Regenerated {preview.section_label}",
            )
        except WorkflowError:
            if self._superseded(epoch, previous, content_id):
                self.state = ControllerState.IDLE
            else:
                self.state = ControllerState.PREVIEW_READY
            raise

        if self._superseded(epoch, previous, content_id):
            self.state = ControllerState.IDLE
            logger.warning(f"Artifact replaced while saving {preview.section_label}; store left unchanged")
            raise Cancelled("The content changed while the regenerated section was being saved")

        self._snapshot = UndoSnapshot(previous_content_data=copy.deepcopy(previous))
        self.store.merge_section(preview.section_id, merged[preview.section_id])
        self.preview = None
        self.state = ControllerState.IDLE
        logger.info(f"✓ Accepted {preview.section_label}")
        return self.store.content

    def reject(self) -> None:
        """Discard the pending preview."""
        self._require("reject", ControllerState.PREVIEW_READY)
        self.preview = None
        self.state = ControllerState.IDLE

    async def undo(self) -> Dict[str, Any]:
        """
        Persist and show the artifact as it was before the last accept.

        Raises:
            Busy: Not idle
            WorkflowError: Nothing to undo
            Cancelled: The artifact was replaced while restoring; the store is left alone
        """
        self._require("undo", ControllerState.IDLE)
        if self._snapshot is None:
            raise WorkflowError("Nothing to undo")

        restored = copy.deepcopy(self._snapshot.previous_content_data)
        current = self.store.content
        content_id = self.store.content_id
        epoch = self._epoch
        self.state = ControllerState.UNDOING
        try:
            await self.client.update_content(
                content_id,
                content_data=restored,
                change_summary="Undo section regeneration",
            )
        finally:
            self.state = ControllerState.IDLE

        if self._superseded(epoch, current, content_id):
            logger.warning("Artifact replaced while undoing; store left unchanged")
            raise Cancelled("The content changed while the undo was being saved")

        self.store.set_content(restored)
        self._snapshot = None
        logger.info("✓ Undid last accepted regeneration")
        return restored

    async def regenerate_all(self) -> Dict[str, Any]:
        """
        Regenerate and save every regenerable section, one after another.

        Raises:
            RegenerateAllFailed: Naming the first section that failed
        """
        for section in regenerable_sections(self.store.content_type):
            try:
                await self.request_regeneration(section)
                await self.accept()
            except WorkflowError as e:
                if self.state == ControllerState.PREVIEW_READY:
                    self.reject()
                logger.error(f"✗ Regenerate all stopped at {section}: {e}")
                raise RegenerateAllFailed(section, e) from e
        return self.store.content

    def reset(self) -> None:
        """Forget the preview and undo snapshot when the artifact is replaced."""
        self._epoch += 1
        self.cancel()
        self.preview = None
        self._snapshot = None
        if self.state == ControllerState.PREVIEW_READY:
            self.state = ControllerState.IDLE

    def cancel(self) -> None:
        """Cancel the in-flight regeneration, if any."""
        if self._cancel_token is not None:
            self._cancel_token.cancel()
