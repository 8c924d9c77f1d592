"""Anthropic provider adapter (Claude models).

Anthropic has a few requirements that differ from the other backends:
- System prompt is passed separately, not in messages
- Tool calls come back as content blocks with type "tool_use"
- Streaming is a sequence of content-block events; a tool call is
  complete when its block stops
"""

from contextlib import contextmanager
from typing import Any

from anthropic import APIConnectionError, APIError, AsyncAnthropic
from anthropic import APIStatusError as AnthropicStatusError
from anthropic import AuthenticationError as AnthropicAuthError
from anthropic import RateLimitError as AnthropicRateLimitError

from ..exceptions import (
    AuthenticationError,
    InvalidResponseError,
    ProviderCallError,
    ProviderConnectionError,
    RateLimitError,
)
from ..logging import get_logger
from ..types import (
    ChunkCallback,
    ChunkType,
    CompletionRequest,
    CompletionResponse,
    MessageRole,
    ProviderConfig,
    ProviderType,
    StopReason,
    StreamChunk,
    TokenUsage,
    ToolCall,
)
from .base import BaseProvider, retry_after_seconds, with_retry
from .pricing import ModelPrice
from .streaming import ToolCallAccumulator

logger = get_logger(__name__)

STOP_REASONS = {
    "end_turn": StopReason.END_TURN,
    "tool_use": StopReason.TOOL_USE,
    "max_tokens": StopReason.MAX_TOKENS,
}


class AnthropicProvider(BaseProvider):
    """Adapter for the Anthropic messages API."""

    type = ProviderType.ANTHROPIC
    default_price = ModelPrice(3, 15)

    def __init__(self, config: ProviderConfig):
        if not config.api_key:
            raise ValueError("Anthropic API key required")
        super().__init__(config)
        self.client = AsyncAnthropic(api_key=config.api_key)

    @contextmanager
    def _handle_api_errors(self):
        """Map Anthropic SDK exceptions into the engine taxonomy."""
        try:
            yield
        except AnthropicAuthError as e:
            raise AuthenticationError(
                f"Anthropic authentication failed: {e}", provider=self.type.value
            ) from e
        except AnthropicRateLimitError as e:
            raise RateLimitError(
                "Anthropic rate limit exceeded",
                retry_after=retry_after_seconds(e),
                provider=self.type.value,
            ) from e
        except APIConnectionError as e:
            raise ProviderConnectionError(
                f"Anthropic API unavailable: {e}", provider=self.type.value
            ) from e
        except AnthropicStatusError as e:
            raise ProviderCallError(f"Anthropic API error: {e}", provider=self.type.value) from e
        except APIError as e:
            raise InvalidResponseError(
                f"Anthropic returned an unexpected response: {e}", provider=self.type.value
            ) from e

    def _build_api_kwargs(self, request: CompletionRequest) -> dict[str, Any]:
        system_prompt, turns = self._split_system(request.messages)

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self._max_tokens(request),
            "temperature": self._temperature(request),
            "messages": [
                {
                    "role": "assistant" if m.role == MessageRole.ASSISTANT else "user",
                    "content": m.content,
                }
                for m in turns
            ],
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        if request.tools:
            kwargs["tools"] = [tool.to_dict() for tool in request.tools]
        return kwargs

    @with_retry()
    async def _create(self, **kwargs: Any) -> Any:
        with self._handle_api_errors():
            return await self.client.messages.create(**kwargs)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        response = await self._create(**self._build_api_kwargs(request))
        return self._parse_response(response)

    def _parse_response(self, response: Any) -> CompletionResponse:
        try:
            content = ""
            tool_calls = []
            for block in response.content:
                if block.type == "text":
                    content += block.text
                elif block.type == "tool_use":
                    tool_calls.append(ToolCall(id=block.id, name=block.name, input=dict(block.input)))

            usage = None
            if response.usage:
                usage = TokenUsage(
                    input_tokens=response.usage.input_tokens,
                    output_tokens=response.usage.output_tokens,
                )
        except (AttributeError, TypeError) as e:
            raise InvalidResponseError(
                f"Failed to parse Anthropic response: {e}", provider=self.type.value
            ) from e

        return CompletionResponse(
            content=content,
            tool_calls=tool_calls or None,
            usage=usage,
            stop_reason=self._stop_reason(response.stop_reason, STOP_REASONS),
            model=self.model,
            provider=self.type,
        )

    async def stream(
        self,
        request: CompletionRequest,
        on_chunk: ChunkCallback,
    ) -> CompletionResponse:
        content = ""
        tool_calls: list[ToolCall] = []
        usage = TokenUsage()
        stop_reason = StopReason.END_TURN
        accumulator = ToolCallAccumulator()

        with self._handle_api_errors():
            events = await self.client.messages.create(**self._build_api_kwargs(request), stream=True)
            async for event in events:
                event_type = getattr(event, "type", None)

                if event_type == "message_start":
                    if event.message.usage:
                        usage.input_tokens = event.message.usage.input_tokens

                elif event_type == "content_block_start":
                    block = event.content_block
                    if block.type == "tool_use":
                        accumulator.add(event.index, id=block.id, name=block.name)

                elif event_type == "content_block_delta":
                    delta = event.delta
                    if delta.type == "text_delta":
                        content += delta.text
                        on_chunk(StreamChunk(type=ChunkType.TEXT, text=delta.text))
                    elif delta.type == "input_json_delta":
                        accumulator.add(event.index, arguments=delta.partial_json)

                elif event_type == "content_block_stop":
                    tool_call = accumulator.finalize_safe(event.index)
                    if tool_call:
                        tool_calls.append(tool_call)
                        on_chunk(StreamChunk(type=ChunkType.TOOL_USE, tool_call=tool_call))

                elif event_type == "message_delta":
                    if getattr(event, "usage", None):
                        usage.output_tokens = event.usage.output_tokens
                    if event.delta.stop_reason:
                        stop_reason = self._stop_reason(event.delta.stop_reason, STOP_REASONS)

        accumulator.clear()
        on_chunk(StreamChunk(type=ChunkType.DONE))

        return CompletionResponse(
            content=content,
            tool_calls=tool_calls or None,
            usage=usage,
            stop_reason=stop_reason,
            model=self.model,
            provider=self.type,
        )

    async def _probe(self) -> bool:
        with self._handle_api_errors():
            await self.client.messages.create(
                model=self.model,
                max_tokens=1,
                messages=[{"role": "user", "content": "hi"}],
            )
        return True

    async def close(self) -> None:
        await self.client.close()
