"""
Holder for the currently displayed generated artifact.
"""

from typing import Any, Dict, Optional

from saveyourgoblin.utils.logger import get_logger

from .errors import GenerationFailed

logger = get_logger(__name__)


class ContentStore:
    """
    Current artifact plus the context needed to regenerate its sections.

    The artifact is only changed by whole replacement or by merging a
    single top-level section. Every full generation takes a token from
    ``begin_generation``; a result carrying a stale token is dropped.

    Attributes:
        content: The artifact dict, or None
        content_type: Kind the store is showing
        scenario: Exact scenario string the artifact was generated from
        content_id: Library id once the artifact has been saved
    """

    def __init__(self):
        self.content: Optional[Dict[str, Any]] = None
        self.content_type: Optional[str] = None
        self.scenario: Optional[str] = None
        self.content_id: Optional[str] = None
        self._generation = 0

    def begin_generation(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def replace(
        self,
        content: Dict[str, Any],
        scenario: str,
        content_type: str,
        token: Optional[int] = None,
    ) -> bool:
        """
        Replace the artifact after a full generation.

        Returns:
            False (and changes nothing) when `token` is stale
        """
        if token is not None and not self.is_current(token):
            logger.info(f"Discarding stale generation result (token {token})")
            return False
        self.content = content
        self.scenario = scenario
        self.content_type = content_type
        self.content_id = None
        return True

    def load(self, item: Dict[str, Any]) -> None:
        """Show a saved library item (as returned by the content API)."""
        self._generation += 1
        self.content = item["content_data"]
        self.content_type = item["type"]
        self.scenario = item["scenario_input"]
        self.content_id = item["id"]

    def merge_section(self, section_key: str, value: Any) -> Dict[str, Any]:
        """
        Replace one top-level section; every other key keeps its value object.

        Returns:
            The new artifact dict
        """
        if self.content is None:
            raise GenerationFailed("No content to update")
        self.content = {**self.content, section_key: value}
        return self.content

    def set_content(self, content: Dict[str, Any]) -> None:
        """Swap in an edited artifact, keeping scenario and library id."""
        self.content = content

    def set_content_type(self, content_type: str) -> None:
        """Switching type clears the artifact and invalidates in-flight generations."""
        if content_type == self.content_type:
            return
        self.content_type = content_type
        self.content = None
        self.scenario = None
        self.content_id = None
        self._generation += 1

    def mark_saved(self, content_id: str) -> None:
        self.content_id = content_id
