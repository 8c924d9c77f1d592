"""Groq provider adapter.

Groq serves an OpenAI-compatible API, so this reuses the openai SDK
pointed at the Groq endpoint.
"""

from openai import AsyncOpenAI

from ..config import GROQ_BASE_URL
from ..types import ProviderConfig, ProviderType
from .openai import OpenAIProvider
from .pricing import ModelPrice


class GroqProvider(OpenAIProvider):
    """Groq API adapter (fast hosted open models)."""

    type = ProviderType.GROQ
    default_price = ModelPrice(0.59, 0.79)
    label = "Groq"

    def _create_client(self, config: ProviderConfig) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=config.api_key, base_url=config.base_url or GROQ_BASE_URL)
