"""
Provider interface: one async ``chat`` call over LangChain messages, with call logging.
"""

import json
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from langchain_core.messages import BaseMessage
from pydantic import BaseModel

from saveyourgoblin.utils.logger import get_logger

logger = get_logger(__name__)


class ProviderError(Exception):
    """Raised when the LLM endpoint fails or returns unusable output"""


class ProviderResponse(BaseModel):
    """Text returned by a chat call, plus whatever usage data the backend reported"""

    content: str
    usage: Optional[Dict[str, Any]] = None
    model: Optional[str] = None

    def parse_json(self) -> Any:
        """Parse the content as JSON, tolerating a markdown code fence."""
        content = self.content.strip()
        if content.startswith("```"):
            content = content.replace("```json", "").replace("```", "").strip()
        return json.loads(content)


class BaseProvider(ABC):
    """Shared logging and error wrapping; subclasses implement ``_invoke``"""

    def __init__(self, api_base: str, api_key: str, model_name: str):
        self.api_base = api_base
        self.api_key = api_key
        self.model_name = model_name
        self.llm: Any = None

    def _log_llm_call(self, messages: List[BaseMessage], **kwargs) -> str:
        """Log the outgoing call; the returned id ties it to the response log"""
        call_id = str(uuid.uuid4())[:8]
        total_chars = sum(len(str(m.content)) for m in messages)

        logger.info(
            f"[LLM] Call started: {self.model_name}",
            extra={
                "component": "LLM",
                "call_id": call_id,
                "model": self.model_name,
                "provider": self.__class__.__name__,
                "message_count": len(messages),
                "total_input_chars": total_chars,
                "temperature": kwargs.get("temperature", "default"),
                "structured": kwargs.get("json_schema") is not None,
            },
        )
        return call_id

    def _log_llm_response(
        self,
        call_id: str,
        response: Optional[ProviderResponse],
        duration_ms: float,
        error: Optional[Exception] = None,
    ) -> None:
        """Log the duration and size of a reply, or the failure"""
        if error:
            logger.error(
                f"[LLM] Call failed: {self.model_name} ({duration_ms}ms): {error}",
                extra={
                    "component": "LLM",
                    "call_id": call_id,
                    "model": self.model_name,
                    "duration_ms": duration_ms,
                    "error_type": type(error).__name__,
                },
            )
            return

        logger.info(
            f"[LLM] Call completed: {self.model_name} ({duration_ms}ms)",
            extra={
                "component": "LLM",
                "call_id": call_id,
                "model": self.model_name,
                "duration_ms": duration_ms,
                "response_chars": len(response.content) if response else 0,
                "usage": response.usage if response else None,
            },
        )

    async def chat(
        self,
        messages: List[BaseMessage],
        json_schema: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> ProviderResponse:
        """
        Send a chat request to the LLM provider

        Args:
            messages: List of LangChain message objects
            json_schema: Optional JSON schema for structured output
            **kwargs: temperature, max_tokens

        Returns:
            ProviderResponse whose content is a JSON document when a schema was given

        Raises:
            ProviderError: If the call fails
        """
        call_id = self._log_llm_call(messages, json_schema=json_schema, **kwargs)
        start_time = time.time()
        try:
            response = await self._invoke(messages, json_schema, **kwargs)
        except Exception as e:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            self._log_llm_response(call_id, None, duration_ms, error=e)
            raise ProviderError(f"{self.__class__.__name__} error: {e}") from e

        duration_ms = round((time.time() - start_time) * 1000, 2)
        self._log_llm_response(call_id, response, duration_ms)
        return response

    @abstractmethod
    async def _invoke(
        self,
        messages: List[BaseMessage],
        json_schema: Optional[Dict[str, Any]],
        **kwargs,
    ) -> ProviderResponse:
        """Provider-specific invocation"""
