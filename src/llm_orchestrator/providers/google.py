"""Google Gemini provider adapter using the google-genai SDK.

Gemini has its own conventions:
- "parts" format for message content
- Tool calls arrive whole as "function_call" parts, never as fragments
- System instruction is a separate config parameter
- Role names: "user" and "model" (not "assistant")
"""

from contextlib import contextmanager
from typing import Any

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError, ClientError, ServerError

from ..exceptions import (
    AuthenticationError,
    InvalidResponseError,
    ProviderCallError,
    ProviderConnectionError,
    RateLimitError,
)
from ..types import (
    ChunkCallback,
    ChunkType,
    CompletionRequest,
    CompletionResponse,
    Message,
    MessageRole,
    ProviderConfig,
    ProviderType,
    StopReason,
    StreamChunk,
    TokenUsage,
    ToolCall,
    ToolDefinition,
)
from .base import BaseProvider, with_retry
from .pricing import ModelPrice

FINISH_REASONS = {
    "STOP": StopReason.END_TURN,
    "MAX_TOKENS": StopReason.MAX_TOKENS,
}


class GoogleProvider(BaseProvider):
    """Gemini adapter over the async half of genai.Client."""

    type = ProviderType.GOOGLE
    default_price = ModelPrice(1.25, 5)

    def __init__(self, config: ProviderConfig):
        if not config.api_key:
            raise ValueError("Google API key not found. Set GOOGLE_API_KEY or GEMINI_API_KEY env var.")
        super().__init__(config)
        self.client = genai.Client(api_key=config.api_key)

    @contextmanager
    def _handle_api_errors(self):
        try:
            yield
        except ClientError as e:
            code = getattr(e, "code", None)
            if code in (401, 403):
                raise AuthenticationError(
                    f"Google authentication failed: {e}", provider=self.type.value
                ) from e
            if code == 429:
                raise RateLimitError("Google rate limit exceeded", provider=self.type.value) from e
            raise ProviderCallError(
                f"Invalid request to Google API: {e}", provider=self.type.value
            ) from e
        except ServerError as e:
            raise ProviderConnectionError(
                f"Google API unavailable: {e}", provider=self.type.value
            ) from e
        except APIError as e:
            raise ProviderCallError(f"Google API error: {e}", provider=self.type.value) from e
        except httpx.TransportError as e:
            raise ProviderConnectionError(
                f"Google API unreachable: {e}", provider=self.type.value
            ) from e

    def _build_config(
        self,
        request: CompletionRequest,
        system_instruction: str | None,
    ) -> types.GenerateContentConfig:
        config_kwargs: dict[str, Any] = {
            "max_output_tokens": self._max_tokens(request),
            "temperature": self._temperature(request),
        }
        if system_instruction:
            config_kwargs["system_instruction"] = system_instruction
        if request.tools:
            config_kwargs["tools"] = [
                types.Tool(function_declarations=self._convert_tools(request.tools))
            ]
        return types.GenerateContentConfig(**config_kwargs)

    def _convert_messages(self, messages: list[Message]) -> list[types.Content]:
        return [
            types.Content(
                role="model" if m.role == MessageRole.ASSISTANT else "user",
                parts=[types.Part.from_text(text=m.content or "")],
            )
            for m in messages
        ]

    def _convert_tools(self, tools: list[ToolDefinition]) -> list[types.FunctionDeclaration]:
        return [
            types.FunctionDeclaration(
                name=tool.name,
                description=tool.description,
                parameters=tool.input_schema,
            )
            for tool in tools
        ]

    def _build_call_args(self, request: CompletionRequest) -> dict[str, Any]:
        system_instruction, turns = self._split_system(request.messages)
        return {
            "model": self.model,
            "contents": self._convert_messages(turns),
            "config": self._build_config(request, system_instruction),
        }

    @with_retry()
    async def _generate(self, **call_args: Any) -> Any:
        with self._handle_api_errors():
            return await self.client.aio.models.generate_content(**call_args)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        response = await self._generate(**self._build_call_args(request))
        try:
            content, tool_calls, finish = self._read_candidate(response, offset=0)
        except (AttributeError, IndexError, TypeError) as e:
            raise InvalidResponseError(
                f"Failed to parse Google response: {e}", provider=self.type.value
            ) from e

        return CompletionResponse(
            content=content,
            tool_calls=tool_calls or None,
            usage=self._read_usage(response),
            stop_reason=self._finish(finish, tool_calls),
            model=self.model,
            provider=self.type,
        )

    def _read_candidate(self, response: Any, offset: int) -> tuple[str, list[ToolCall], str | None]:
        """Return (text, tool calls, finish reason name) of the first candidate."""
        if not response.candidates:
            return "", [], None

        candidate = response.candidates[0]
        text = ""
        tool_calls: list[ToolCall] = []
        parts = candidate.content.parts if candidate.content and candidate.content.parts else []
        for part in parts:
            if getattr(part, "thought", None):
                continue
            if getattr(part, "function_call", None):
                fc = part.function_call
                tool_calls.append(ToolCall(
                    id=fc.id or f"call_{fc.name}_{offset + len(tool_calls)}",
                    name=fc.name,
                    input=dict(fc.args) if fc.args else {},
                ))
            elif getattr(part, "text", None):
                text += part.text

        finish = candidate.finish_reason
        finish_name = getattr(finish, "name", None) or (str(finish) if finish else None)
        return text, tool_calls, finish_name

    @staticmethod
    def _read_usage(response: Any) -> TokenUsage | None:
        um = getattr(response, "usage_metadata", None)
        if not um:
            return None
        return TokenUsage(
            input_tokens=getattr(um, "prompt_token_count", 0) or 0,
            output_tokens=getattr(um, "candidates_token_count", 0) or 0,
        )

    def _finish(self, finish: str | None, tool_calls: list[ToolCall]) -> StopReason:
        if tool_calls:
            return StopReason.TOOL_USE
        return self._stop_reason(finish, FINISH_REASONS)

    async def stream(
        self,
        request: CompletionRequest,
        on_chunk: ChunkCallback,
    ) -> CompletionResponse:
        content = ""
        tool_calls: list[ToolCall] = []
        usage = None
        finish = None

        with self._handle_api_errors():
            chunks = await self.client.aio.models.generate_content_stream(
                **self._build_call_args(request)
            )
            async for chunk in chunks:
                text, new_calls, chunk_finish = self._read_candidate(chunk, offset=len(tool_calls))
                if text:
                    content += text
                    on_chunk(StreamChunk(type=ChunkType.TEXT, text=text))
                for tool_call in new_calls:
                    tool_calls.append(tool_call)
                    on_chunk(StreamChunk(type=ChunkType.TOOL_USE, tool_call=tool_call))
                finish = chunk_finish or finish
                usage = self._read_usage(chunk) or usage

        on_chunk(StreamChunk(type=ChunkType.DONE))

        return CompletionResponse(
            content=content,
            tool_calls=tool_calls or None,
            usage=usage,
            stop_reason=self._finish(finish, tool_calls),
            model=self.model,
            provider=self.type,
        )

    async def _probe(self) -> bool:
        with self._handle_api_errors():
            await self.client.aio.models.get(model=self.model)
        return True
