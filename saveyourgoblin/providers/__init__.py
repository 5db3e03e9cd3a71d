"""
LLM Provider implementations for SaveYourGoblin
"""

from .base import BaseProvider, ProviderError, ProviderResponse
from .factory import create_provider
from .generic import GenericProvider
from .openai import OpenAIProvider

__all__ = [
    "BaseProvider",
    "ProviderError",
    "ProviderResponse",
    "OpenAIProvider",
    "GenericProvider",
    "create_provider",
]
