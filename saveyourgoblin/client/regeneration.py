"""
Section regeneration requests.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from saveyourgoblin.schemas import infer_kind, regenerable_sections
from saveyourgoblin.utils.logger import get_logger

from .api_client import GoblinClient
from .cancellation import CancellationToken
from .errors import Cancelled, GenerationFailed, NoDataReturned
from .state import ContentStore

logger = get_logger(__name__)


@dataclass
class SectionResult:
    """A regenerated section (or one element of a list section)."""

    section: str
    data: Any
    index: Optional[int] = None


class RegenerationEngine:
    """
    Requests section-scoped replacements for the store's artifact.

    The engine never mutates the store; committing a result is the
    controller's job.
    """

    def __init__(self, client: GoblinClient, store: ContentStore):
        self.client = client
        self.store = store

    async def regenerate_section(
        self,
        section_id: str,
        current_content: Optional[Dict[str, Any]] = None,
        section_index: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SectionResult:
        """
        Regenerate one section.

        Args:
            section_id: Top-level key to regenerate
            current_content: Artifact to regenerate from (default: the store's)
            section_index: Regenerate only this element of a list section
            cancel_token: Cancelling it discards the result

        Raises:
            GenerationFailed: No content, no original scenario, invalid section or server error
            NotAuthenticated: No access token
            NoDataReturned: The stream carried no data for the section
            Cancelled: The token was cancelled
        """
        content = current_content if current_content is not None else self.store.content
        if content is None:
            raise GenerationFailed("No content to regenerate")
        if not self.store.scenario:
            raise GenerationFailed("Original scenario is not available")

        kind = self.store.content_type or infer_kind(content)
        if section_id not in regenerable_sections(kind):
            raise GenerationFailed(f'Invalid section "{section_id}" for content type "{kind}"')

        body: Dict[str, Any] = {
            "scenario": self.store.scenario,
            "contentType": kind,
            "section": section_id,
            "currentContent": content,
        }
        if section_index is not None:
            body["sectionIndex"] = section_index

        line = await self.client.regenerate(body, cancel_token)
        if cancel_token is not None and cancel_token.cancelled:
            raise Cancelled("Regeneration was cancelled")
        if "data" not in line:
            raise NoDataReturned("No regenerated data received")

        index = line.get("index")
        return SectionResult(
            section=section_id,
            data=line["data"],
            index=index if index is not None else section_index,
        )
