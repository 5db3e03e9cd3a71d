"""
OpenAI provider implementation using LangChain
"""

import json
from typing import Any, Dict, List, Optional

from langchain_core.messages import BaseMessage
from langchain_openai import ChatOpenAI

from saveyourgoblin.utils.logger import get_logger

from .base import BaseProvider, ProviderResponse

logger = get_logger(__name__)


class OpenAIProvider(BaseProvider):
    """OpenAI API provider using LangChain structured output"""

    # with_structured_output method used for schema-constrained calls
    structured_method = "json_schema"
    default_temperature = 0.8

    def __init__(self, api_base: str, api_key: str, model_name: str):
        super().__init__(api_base, api_key, model_name)
        self.llm = self._build_llm(self.default_temperature)
        logger.info(f"Initialized {self.__class__.__name__} for {model_name}")

    def _build_llm(self, temperature: float, max_tokens: Optional[int] = None) -> ChatOpenAI:
        return ChatOpenAI(
            model=self.model_name,
            base_url=self.api_base,
            api_key=self.api_key,  # type: ignore
            temperature=temperature,
            max_tokens=max_tokens,  # type: ignore
        )

    async def _invoke(
        self,
        messages: List[BaseMessage],
        json_schema: Optional[Dict[str, Any]],
        **kwargs,
    ) -> ProviderResponse:
        llm = self.llm
        if "temperature" in kwargs or "max_tokens" in kwargs:
            llm = self._build_llm(
                kwargs.get("temperature", self.default_temperature),
                kwargs.get("max_tokens"),
            )

        if json_schema is not None:
            structured_llm: Any = llm.with_structured_output(
                json_schema, method=self.structured_method
            )
            structured = await structured_llm.ainvoke(messages)
            return ProviderResponse(content=json.dumps(structured), model=self.model_name)

        response = await llm.ainvoke(messages)
        return ProviderResponse(
            content=str(response.content),
            usage=getattr(response, "usage_metadata", None),
            model=self.model_name,
        )
