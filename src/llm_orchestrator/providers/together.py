"""Together AI provider adapter.

Together AI provides an OpenAI-compatible API, so this adapter extends
OpenAICompatibleProvider with Together-specific handling.
"""

from contextlib import contextmanager
from typing import Any

from together import AsyncTogether
from together.error import APIConnectionError as TogetherConnectionError
from together.error import AuthenticationError as TogetherAuthError
from together.error import RateLimitError as TogetherRateLimitError
from together.error import TogetherException

from ..exceptions import (
    AuthenticationError,
    ProviderCallError,
    ProviderConnectionError,
    RateLimitError,
)
from ..types import ProviderConfig, ProviderType
from .openai_compat import OpenAICompatibleProvider
from .pricing import ModelPrice


class TogetherProvider(OpenAICompatibleProvider):
    """Together AI adapter for hosted Llama, Mistral and similar models."""

    type = ProviderType.TOGETHER
    default_price = ModelPrice(0.88, 0.88)
    stream_usage = False

    def _create_client(self, config: ProviderConfig) -> AsyncTogether:
        return AsyncTogether(api_key=config.api_key)

    @contextmanager
    def _handle_api_errors(self):
        try:
            yield
        except TogetherAuthError as e:
            raise AuthenticationError(
                f"Together authentication failed: {e}", provider=self.type.value
            ) from e
        except TogetherRateLimitError as e:
            raise RateLimitError("Together rate limit exceeded", provider=self.type.value) from e
        except TogetherConnectionError as e:
            raise ProviderConnectionError(
                f"Together API unavailable: {e}", provider=self.type.value
            ) from e
        except TogetherException as e:
            raise ProviderCallError(f"Together API error: {e}", provider=self.type.value) from e

    def _tool_call_fragment(self, tc: Any) -> tuple[int, str | None, str | None, str | None]:
        """Together may return tool call deltas as dict or object, so handle both."""
        if not isinstance(tc, dict):
            return super()._tool_call_fragment(tc)

        function = tc.get("function") or {}
        if isinstance(function, dict):
            name = function.get("name")
            arguments = function.get("arguments")
        else:
            name = function.name
            arguments = function.arguments
        return tc.get("index") or 0, tc.get("id"), name, arguments

    async def close(self) -> None:
        # AsyncTogether holds no pooled connections
        return None
