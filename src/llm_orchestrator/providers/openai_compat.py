"""Base class for OpenAI-compatible provider adapters.

This class provides the shared implementation for backends that speak the
OpenAI chat-completions format (OpenAI, Groq, Together).
"""

from abc import abstractmethod
from contextlib import contextmanager
from typing import Any

from ..exceptions import InvalidResponseError
from ..logging import get_logger
from ..types import (
    ChunkCallback,
    ChunkType,
    CompletionRequest,
    CompletionResponse,
    ProviderConfig,
    StopReason,
    StreamChunk,
    TokenUsage,
    ToolDefinition,
)
from .base import BaseProvider, with_retry
from .streaming import ToolCallAccumulator

logger = get_logger(__name__)

FINISH_REASONS = {
    "stop": StopReason.END_TURN,
    "tool_calls": StopReason.TOOL_USE,
    "function_call": StopReason.TOOL_USE,
    "length": StopReason.MAX_TOKENS,
}


class OpenAICompatibleProvider(BaseProvider):
    """Base class for adapters using the OpenAI-compatible API format.

    Subclasses must implement:
    - _create_client(): initialize the backend SDK client
    - _handle_api_errors(): context manager for exception mapping

    and may override _tool_call_fragment() for backends whose stream deltas
    are not plain SDK objects.
    """

    # whether to ask the backend for a trailing usage chunk when streaming
    stream_usage: bool = True

    def __init__(self, config: ProviderConfig):
        if not config.api_key:
            raise ValueError(f"{self.type.value} API key required")
        super().__init__(config)
        self.client = self._create_client(config)

    @abstractmethod
    def _create_client(self, config: ProviderConfig) -> Any:
        """Create the backend's async SDK client instance."""

    @abstractmethod
    @contextmanager
    def _handle_api_errors(self):
        """Context manager for handling backend-specific errors.

        Should catch SDK exceptions and re-raise as our exceptions:
        - AuthenticationError
        - RateLimitError
        - ProviderConnectionError
        - ProviderCallError
        """

    # ==================== shared implementations ====================

    def _build_api_args(self, request: CompletionRequest) -> dict[str, Any]:
        api_args: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": m.role.value, "content": m.content} for m in request.messages
            ],
            "max_tokens": self._max_tokens(request),
            "temperature": self._temperature(request),
        }
        if request.tools:
            api_args["tools"] = self._convert_tools(request.tools)
            api_args["tool_choice"] = "auto"
        return api_args

    def _convert_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        """Convert tools to OpenAI-compatible function format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.input_schema,
                },
            }
            for tool in tools
        ]

    @with_retry()
    async def _create(self, **api_args: Any) -> Any:
        with self._handle_api_errors():
            return await self.client.chat.completions.create(**api_args)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        response = await self._create(**self._build_api_args(request))
        return self._parse_response(response)

    def _parse_response(self, response: Any) -> CompletionResponse:
        """Parse an OpenAI-compatible response into the unified format."""
        try:
            choice = response.choices[0]
            message = choice.message

            # a call with malformed arguments is dropped, the rest are kept
            accumulator = ToolCallAccumulator()
            for index, tc in enumerate(message.tool_calls or []):
                accumulator.add(index, id=tc.id, name=tc.function.name, arguments=tc.function.arguments)
            tool_calls = accumulator.finalize_all()

            usage = None
            if response.usage:
                usage = TokenUsage(
                    input_tokens=response.usage.prompt_tokens,
                    output_tokens=response.usage.completion_tokens,
                )
        except (AttributeError, IndexError, TypeError) as e:
            raise InvalidResponseError(
                f"Failed to parse {self.__class__.__name__} response: {e}",
                provider=self.type.value,
            ) from e

        return CompletionResponse(
            content=message.content or "",
            tool_calls=tool_calls or None,
            usage=usage,
            stop_reason=self._stop_reason(choice.finish_reason, FINISH_REASONS),
            model=self.model,
            provider=self.type,
        )

    async def stream(
        self,
        request: CompletionRequest,
        on_chunk: ChunkCallback,
    ) -> CompletionResponse:
        api_args = self._build_api_args(request)
        api_args["stream"] = True
        if self.stream_usage:
            api_args["stream_options"] = {"include_usage": True}

        content = ""
        usage = None
        finish_reason = None
        accumulator = ToolCallAccumulator()

        with self._handle_api_errors():
            chunks = await self.client.chat.completions.create(**api_args)
            async for chunk in chunks:
                if getattr(chunk, "usage", None):
                    usage = TokenUsage(
                        input_tokens=chunk.usage.prompt_tokens,
                        output_tokens=chunk.usage.completion_tokens,
                    )

                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta

                text = getattr(delta, "content", None)
                if text:
                    content += text
                    on_chunk(StreamChunk(type=ChunkType.TEXT, text=text))

                for tc in getattr(delta, "tool_calls", None) or []:
                    index, id_, name, arguments = self._tool_call_fragment(tc)
                    accumulator.add(index, id=id_, name=name, arguments=arguments)

                if choice.finish_reason:
                    finish_reason = choice.finish_reason

        # end of stream closes every buffered call
        tool_calls = accumulator.finalize_all()
        accumulator.clear()
        for tool_call in tool_calls:
            on_chunk(StreamChunk(type=ChunkType.TOOL_USE, tool_call=tool_call))
        on_chunk(StreamChunk(type=ChunkType.DONE))

        return CompletionResponse(
            content=content,
            tool_calls=tool_calls or None,
            usage=usage,
            stop_reason=self._stop_reason(finish_reason, FINISH_REASONS),
            model=self.model,
            provider=self.type,
        )

    def _tool_call_fragment(self, tc: Any) -> tuple[int, str | None, str | None, str | None]:
        """Split a streamed tool call delta into (index, id, name, arguments).

        This base implementation assumes OpenAI object format.
        """
        function = tc.function
        return (
            tc.index or 0,
            tc.id,
            function.name if function else None,
            function.arguments if function else None,
        )

    async def _probe(self) -> bool:
        with self._handle_api_errors():
            await self.client.models.list()
        return True

    async def close(self) -> None:
        await self.client.close()
