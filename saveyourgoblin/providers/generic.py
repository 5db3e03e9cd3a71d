"""
Generic provider for OpenAI-compatible endpoints using LangChain
"""

from .openai import OpenAIProvider


class GenericProvider(OpenAIProvider):
    """
    Provider for self-hosted OpenAI-compatible servers.

    Such servers rarely implement the json_schema response format, so
    structured output goes through function calling instead.
    """

    structured_method = "function_calling"

    def __init__(self, api_base: str, api_key: str, model_name: str):
        # Local servers accept any key but the client library requires one
        super().__init__(api_base, api_key or "not-needed", model_name)
