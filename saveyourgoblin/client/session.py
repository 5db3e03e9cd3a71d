"""
One user's generation workflow: build, generate, save, regenerate.
"""

from typing import Any, Dict, List, Optional

from saveyourgoblin.schemas import infer_kind
from saveyourgoblin.utils.logger import get_logger

from .api_client import GoblinClient
from .cancellation import CancellationToken
from .controller import DiffUndoController
from .errors import Busy, NoDataReturned
from .regeneration import RegenerationEngine
from .request_builder import build_generation_request
from .state import ContentStore

logger = get_logger(__name__)


class GenerationSession:
    """
    Ties the request builder, content store, client and controller together.

    Attributes:
        store: The displayed artifact
        engine: Section regeneration engine bound to the store
        controller: Diff/undo controller bound to the store
    """

    def __init__(self, client: GoblinClient, store: Optional[ContentStore] = None):
        self.client = client
        self.store = store or ContentStore()
        self.engine = RegenerationEngine(client, self.store)
        self.controller = DiffUndoController(self.engine, client, self.store)

    def _require_idle(self) -> None:
        if self.controller.persisting:
            raise Busy(f"Cannot replace the content while {self.controller.state.value}")

    def set_content_type(self, content_type: str) -> None:
        if content_type != self.store.content_type:
            self.controller.reset()
        self.store.set_content_type(content_type)

    async def generate(
        self,
        scenario: str,
        content_type: str,
        advanced_mode: bool = False,
        advanced_input: Optional[Dict[str, Any]] = None,
        generation_params: Optional[Dict[str, Any]] = None,
        campaign_context: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Generate a new artifact and show it.

        Returns:
            The artifact, or None when the content type changed while the
            request was in flight (the result is discarded)

        Raises:
            RequestValidationError: Input invalid; no request was sent
            Busy: An accepted change or undo is still being saved
            GenerationFailed, NotAuthenticated, NoDataReturned, Cancelled
        """
        self._require_idle()
        body = build_generation_request(
            scenario,
            content_type,
            advanced_mode=advanced_mode,
            advanced_input=advanced_input,
            generation_params=generation_params,
            campaign_context=campaign_context,
        )
        self.set_content_type(content_type)
        token = self.store.begin_generation()

        document = await self.client.generate(body, cancel_token)
        content = document.get("content")
        if not isinstance(content, dict):
            raise NoDataReturned("No content was generated")
        kind = document.get("type") or infer_kind(content) or content_type
        content = {**content, "kind": kind}

        if not self.store.replace(content, body["scenario"], kind, token):
            return None
        self.controller.reset()
        return content

    async def save(self, tags: Optional[List[str]] = None, notes: Optional[str] = None) -> str:
        """Save the displayed artifact to the library; returns its id."""
        if self.store.content is None:
            raise NoDataReturned("No content to save")
        content_id = await self.client.save_content(
            self.store.content_type,
            self.store.scenario,
            self.store.content,
            tags=tags,
            notes=notes,
        )
        self.store.mark_saved(content_id)
        logger.info(f"✓ Saved {self.store.content_type} as {content_id}")
        return content_id

    async def open(self, content_id: str) -> Dict[str, Any]:
        """Show a saved library item so its sections can be regenerated."""
        self._require_idle()
        item = await self.client.get_content(content_id)
        self.controller.reset()
        self.store.load(item)
        return item["content_data"]
