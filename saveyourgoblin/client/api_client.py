"""
Async HTTP client for the SaveYourGoblin API.

Wraps an ``httpx.AsyncClient``. The bearer token is fetched from a token
provider on every call so a refreshed session token is always used.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from saveyourgoblin.config import settings
from saveyourgoblin.utils.logger import get_logger

from .cancellation import CancellationToken
from .decoder import decode_document, decode_sections
from .errors import (
    Cancelled,
    GenerationFailed,
    NotAuthenticated,
    PersistenceFailed,
    RequestValidationError,
)

logger = get_logger(__name__)

TokenProvider = Callable[[], Optional[str]]


def _json_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def extract_error_message(response: httpx.Response, fallback: str) -> str:
    """Best-effort message from a JSON error body (error, message or detail)."""
    body = _json_body(response)
    for key in ("error", "message", "detail"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
        if value:
            return json.dumps(value)
    return fallback


class GoblinClient:
    """
    Client for generation, library and campaign endpoints.

    Attributes:
        base_url: Server root URL
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.client_base_url).rstrip("/")
        if token_provider is None:
            static_token = token if token is not None else settings.api_token
            token_provider = lambda: static_token  # noqa: E731
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.client_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GoblinClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider()
        if not token:
            raise NotAuthenticated()
        return {"Authorization": f"Bearer {token}"}

    # ==================== Generation ====================

    async def _cancellable(
        self, request: Awaitable[Dict[str, Any]], cancel_token: Optional[CancellationToken]
    ) -> Dict[str, Any]:
        """
        Run a streamed request so that cancelling the token aborts it.

        The request runs in its own task; ``cancel()`` cancels that task, which
        closes the response even while it waits on headers or a stalled chunk.
        """
        if cancel_token is None:
            return await request
        task = asyncio.ensure_future(request)
        cancel_token.add_callback(task.cancel)
        try:
            return await task
        except asyncio.CancelledError:
            if cancel_token.cancelled and task.cancelled():
                raise Cancelled("Request was cancelled") from None
            raise
        finally:
            cancel_token.remove_callback(task.cancel)

    async def generate(
        self, body: Dict[str, Any], cancel_token: Optional[CancellationToken] = None
    ) -> Dict[str, Any]:
        """
        Run a full generation and decode the streamed document.

        Returns:
            ``{"type", "content", "scenario"}``

        Raises:
            Cancelled: The token was cancelled before the document arrived
        """
        headers = self._headers()
        logger.info(f"Generating {body.get('contentType')}")
        return await self._cancellable(self._stream_document(body, headers, cancel_token), cancel_token)

    async def _stream_document(
        self, body: Dict[str, Any], headers: Dict[str, str], cancel_token: Optional[CancellationToken]
    ) -> Dict[str, Any]:
        try:
            async with self._client.stream("POST", "/api/generate", json=body, headers=headers) as response:
                if response.status_code == 401:
                    raise NotAuthenticated()
                if response.is_error:
                    await response.aread()
                    if response.status_code == 422:
                        detail = _json_body(response).get("detail")
                        if isinstance(detail, dict):
                            raise RequestValidationError(detail)
                    raise GenerationFailed(
                        extract_error_message(response, "Failed to generate content"),
                        response.status_code,
                    )
                return await decode_document(response.aiter_bytes(), cancel_token)
        except httpx.HTTPError as e:
            raise GenerationFailed(f"Failed to generate content: {e}") from e

    async def regenerate(
        self, body: Dict[str, Any], cancel_token: Optional[CancellationToken] = None
    ) -> Dict[str, Any]:
        """
        Regenerate one section and decode the NDJSON reply.

        Returns:
            ``{"section", "data", "index"?}``
        """
        headers = self._headers()
        logger.info(f"Regenerating {body.get('contentType')}.{body.get('section')}")
        return await self._cancellable(self._stream_section(body, headers, cancel_token), cancel_token)

    async def _stream_section(
        self, body: Dict[str, Any], headers: Dict[str, str], cancel_token: Optional[CancellationToken]
    ) -> Dict[str, Any]:
        try:
            async with self._client.stream(
                "POST", "/api/generate/regenerate", json=body, headers=headers
            ) as response:
                if response.status_code == 401:
                    raise NotAuthenticated()
                if response.is_error:
                    await response.aread()
                    raise GenerationFailed(
                        extract_error_message(response, "Failed to regenerate section"),
                        response.status_code,
                    )
                return await decode_sections(response.aiter_bytes(), body["section"], cancel_token)
        except httpx.HTTPError as e:
            raise GenerationFailed(f"Failed to regenerate section: {e}") from e

    async def create_variation(self, content_id: str, content_type: str) -> Dict[str, Any]:
        """Generate and save a variation; returns the new library item."""
        response = await self._send(
            "POST",
            "/api/generate/variation",
            GenerationFailed,
            "Failed to create variation",
            json={"originalContentId": content_id, "contentType": content_type},
        )
        return response.json()["data"]

    # ==================== Library ====================

    async def _send(
        self,
        method: str,
        url: str,
        error_cls: type,
        fallback: str,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = self._headers()
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise error_cls(f"{fallback}: {e}") from e
        if response.status_code == 401:
            raise NotAuthenticated()
        if response.is_error:
            raise error_cls(extract_error_message(response, fallback), response.status_code)
        return response

    async def save_content(
        self,
        content_type: str,
        scenario: str,
        content_data: Dict[str, Any],
        tags: Optional[List[str]] = None,
        notes: Optional[str] = None,
    ) -> str:
        """Save an artifact to the library; returns its id."""
        payload: Dict[str, Any] = {
            "type": content_type,
            "scenario": scenario,
            "contentData": content_data,
        }
        if tags:
            payload["tags"] = tags
        if notes:
            payload["notes"] = notes
        response = await self._send(
            "POST", "/api/content", PersistenceFailed, "Failed to save content", json=payload
        )
        return response.json()["id"]

    async def update_content(self, content_id: str, **fields: Any) -> Dict[str, Any]:
        """PATCH a library item (notes, tags, is_favorite, content_data, change_summary)."""
        response = await self._send(
            "PATCH",
            f"/api/content/{content_id}",
            PersistenceFailed,
            "Failed to save changes",
            json=fields,
        )
        return response.json()["data"]

    async def get_content(self, content_id: str) -> Dict[str, Any]:
        response = await self._send(
            "GET", f"/api/content/{content_id}", GenerationFailed, "Failed to load content"
        )
        return response.json()["data"]

    async def list_content(self, **params: Any) -> Dict[str, Any]:
        response = await self._send(
            "GET",
            "/api/content",
            GenerationFailed,
            "Failed to load content",
            params={k: v for k, v in params.items() if v is not None},
        )
        return response.json()

    async def list_versions(self, content_id: str) -> List[Dict[str, Any]]:
        """Saved versions of a library item, newest first."""
        response = await self._send(
            "GET",
            f"/api/content/{content_id}/versions",
            GenerationFailed,
            "Failed to load versions",
        )
        return response.json()["data"]

    # ==================== Campaigns ====================

    async def list_campaigns(self) -> List[Dict[str, Any]]:
        response = await self._send("GET", "/api/campaigns", GenerationFailed, "Failed to load campaigns")
        return response.json()["data"]

    async def create_campaign(
        self,
        name: str,
        description: Optional[str] = None,
        campaign_settings: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": name}
        if description is not None:
            payload["description"] = description
        if campaign_settings is not None:
            payload["settings"] = campaign_settings
        response = await self._send(
            "POST", "/api/campaigns", PersistenceFailed, "Failed to create campaign", json=payload
        )
        return response.json()["data"]

    async def get_campaign(self, campaign_id: str) -> Dict[str, Any]:
        response = await self._send(
            "GET", f"/api/campaigns/{campaign_id}", GenerationFailed, "Failed to load campaign"
        )
        return response.json()["data"]

    async def add_to_campaign(
        self,
        campaign_id: str,
        content_id: str,
        sequence: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"contentId": content_id}
        if sequence is not None:
            payload["sequence"] = sequence
        if notes is not None:
            payload["notes"] = notes
        response = await self._send(
            "POST",
            f"/api/campaigns/{campaign_id}/content",
            PersistenceFailed,
            "Failed to add content to campaign",
            json=payload,
        )
        return response.json()["data"]

    async def reorder_campaign(self, campaign_id: str, content_ids: List[str]) -> List[Dict[str, Any]]:
        """Apply a new order to every item of a campaign in one request."""
        response = await self._send(
            "PUT",
            f"/api/campaigns/{campaign_id}/content/order",
            PersistenceFailed,
            "Failed to reorder campaign",
            json={"contentIds": content_ids},
        )
        return response.json()["data"]
