"""OpenAI provider adapter.

Also serves any OpenAI-compatible endpoint when a base_url is configured.
"""

from contextlib import contextmanager

from openai import APIConnectionError, APIError, APIStatusError, AsyncOpenAI
from openai import AuthenticationError as OpenAIAuthError
from openai import RateLimitError as OpenAIRateLimitError

from ..exceptions import (
    AuthenticationError,
    InvalidResponseError,
    ProviderCallError,
    ProviderConnectionError,
    RateLimitError,
)
from ..types import ProviderConfig, ProviderType
from .base import retry_after_seconds
from .openai_compat import OpenAICompatibleProvider
from .pricing import ModelPrice


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI API adapter."""

    type = ProviderType.OPENAI
    default_price = ModelPrice(2.5, 10)

    # label used in error messages
    label = "OpenAI"

    def _create_client(self, config: ProviderConfig) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)

    @contextmanager
    def _handle_api_errors(self):
        try:
            yield
        except OpenAIAuthError as e:
            raise AuthenticationError(
                f"{self.label} authentication failed: {e}", provider=self.type.value
            ) from e
        except OpenAIRateLimitError as e:
            raise RateLimitError(
                f"{self.label} rate limit exceeded",
                retry_after=retry_after_seconds(e),
                provider=self.type.value,
            ) from e
        except APIConnectionError as e:
            raise ProviderConnectionError(
                f"{self.label} API unavailable: {e}", provider=self.type.value
            ) from e
        except APIStatusError as e:
            raise ProviderCallError(f"{self.label} API error: {e}", provider=self.type.value) from e
        except APIError as e:
            raise InvalidResponseError(
                f"{self.label} returned an unexpected response: {e}", provider=self.type.value
            ) from e
