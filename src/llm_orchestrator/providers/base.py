"""Base class for provider adapters.

Every backend adapter inherits from BaseProvider and normalizes its
backend's request, response and streaming shapes into the unified types.
"""

import asyncio
import functools
import random
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, TypeVar

from ..exceptions import ProviderConnectionError, RateLimitError
from ..logging import get_logger
from ..types import (
    ChunkCallback,
    CompletionRequest,
    CompletionResponse,
    Message,
    MessageRole,
    ProviderConfig,
    ProviderType,
    StopReason,
)
from .pricing import ModelPrice, get_price

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_TOKENS = 8192
DEFAULT_TEMPERATURE = 0.0


def with_retry(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator for retrying async API calls with exponential backoff.

    Retries on RateLimitError and ProviderConnectionError. Other exceptions
    are raised immediately.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Initial delay in seconds between retries (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        exponential_base: Base for exponential backoff (default: 2.0)
        jitter: Whether to add random jitter to delay (default: True)

    Example:
        @with_retry(max_retries=3, initial_delay=1.0)
        async def make_api_call():
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except (RateLimitError, ProviderConnectionError) as e:
                    if attempt == max_retries:
                        logger.warning(
                            f"max retries ({max_retries}) exceeded for {func.__name__}: {e}"
                        )
                        raise

                    actual_delay = min(delay, max_delay)
                    if isinstance(e, RateLimitError) and e.retry_after:
                        actual_delay = min(e.retry_after, max_delay)
                    elif jitter:
                        actual_delay *= (0.5 + random.random())

                    logger.info(
                        f"retry {attempt + 1}/{max_retries} for {func.__name__} "
                        f"after {actual_delay:.1f}s: {e}"
                    )
                    await asyncio.sleep(actual_delay)
                    delay *= exponential_base

            raise RuntimeError("Unexpected retry loop exit")

        return wrapper
    return decorator


def retry_after_seconds(error: Exception) -> float | None:
    """Read the retry-after header off an SDK status error, if any."""
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    try:
        value = headers.get("retry-after")
        return float(value) if value else None
    except (TypeError, ValueError):
        return None


class BaseProvider(ABC):
    """Abstract base class for all provider adapters.

    Each adapter is responsible for:
    1. Converting unified messages and tool definitions to backend format
    2. Making API calls (single round-trip and streaming)
    3. Converting responses back to CompletionResponse / StreamChunk
    4. Mapping backend stop reasons and errors into the unified vocabulary

    Callers only interact with unified types.
    """

    type: ProviderType
    # conservative price used when the configured model is not in the table
    default_price: ModelPrice = ModelPrice(3, 15)

    def __init__(self, config: ProviderConfig):
        """Initialize the adapter.

        Args:
            config: Resolved api key / base url and model for this backend.
        """
        self.config = config
        self.model = config.model
        self.pricing = get_price(self.model, self.default_price)

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Make a single round-trip request.

        Raises:
            ProviderCallError: On transport or API failure.
        """

    @abstractmethod
    async def stream(
        self,
        request: CompletionRequest,
        on_chunk: ChunkCallback,
    ) -> CompletionResponse:
        """Stream a response, pushing chunks to on_chunk in arrival order.

        Emits TEXT chunks as text arrives, one TOOL_USE chunk per completed
        tool call and a final DONE chunk.

        Returns:
            The same aggregate response complete() would have returned.
        """

    @abstractmethod
    async def _probe(self) -> bool:
        """Backend-specific liveness check. May raise."""

    async def is_available(self) -> bool:
        """Cheap liveness probe. Any exception counts as unavailable."""
        try:
            return bool(await self._probe())
        except Exception as e:
            logger.debug(f"{self.type.value} availability probe failed: {e}")
            return False

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Linear cost estimate in USD from the per-model price table."""
        return self.pricing.cost(input_tokens, output_tokens)

    async def close(self) -> None:
        """Release network resources. Override if needed."""

    # ==================== shared helpers ====================

    @staticmethod
    def _max_tokens(request: CompletionRequest) -> int:
        return request.max_tokens or DEFAULT_MAX_TOKENS

    @staticmethod
    def _temperature(request: CompletionRequest) -> float:
        return request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE

    @staticmethod
    def _split_system(messages: list[Message]) -> tuple[str | None, list[Message]]:
        """Separate the system prompt from the conversation turns."""
        system_prompt = None
        turns = []
        for message in messages:
            if message.role == MessageRole.SYSTEM:
                system_prompt = message.content
            else:
                turns.append(message)
        return system_prompt, turns

    @staticmethod
    def _stop_reason(reason: str | None, mapping: dict[str, StopReason]) -> StopReason:
        if not reason:
            return StopReason.END_TURN
        return mapping.get(reason, StopReason.END_TURN)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model='{self.model}')"
