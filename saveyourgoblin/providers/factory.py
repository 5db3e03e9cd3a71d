"""
Provider factory for creating LLM providers based on configuration
"""

from typing import Optional

from saveyourgoblin.config import settings
from saveyourgoblin.utils.logger import get_logger

from .base import BaseProvider
from .generic import GenericProvider
from .openai import OpenAIProvider

logger = get_logger(__name__)


def create_provider() -> Optional[BaseProvider]:
    """
    Create a provider instance based on configuration.

    Returns None when generation should use the built-in mock content:
    either the mock provider is selected or OpenAI is selected without an
    API key.
    """
    if settings.model_provider == "mock":
        logger.info("Mock provider selected, serving sample content")
        return None
    elif settings.model_provider == "openai":
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY not set, falling back to mock content")
            return None
        return OpenAIProvider(
            api_base=settings.openai_api_base,
            api_key=settings.openai_api_key,
            model_name=settings.model_name,
        )
    elif settings.model_provider == "generic":
        return GenericProvider(
            api_base=settings.openai_api_base,
            api_key=settings.openai_api_key,
            model_name=settings.model_name,
        )
    else:
        raise ValueError(f"Unsupported provider: {settings.model_provider}")
