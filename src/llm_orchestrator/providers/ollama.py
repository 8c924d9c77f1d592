"""Ollama provider adapter for local models.

Ollama runs on the local machine and costs nothing. It has no native tool
calling for most coding models, so tools are described in the system prompt
and the model is asked to answer with a fenced JSON block such as

    ```json
    {"tool": "read_file", "input": {"path": "main.py"}}
    ```

which is parsed back into a ToolCall and removed from the visible text.
"""

import json
import re
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from ..config import DEFAULT_OLLAMA_URL
from ..exceptions import InvalidResponseError, ProviderCallError, ProviderConnectionError
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
    ToolDefinition,
)
from .base import BaseProvider
from .pricing import ModelPrice

logger = get_logger(__name__)

TOOL_BLOCK_PATTERN = re.compile(r'```(?:json)?\s*\n?\{[\s\S]*?"tool"[\s\S]*?\}\s*\n?```')
FENCE_OPEN_PATTERN = re.compile(r"```(?:json)?\s*\n?")
FENCE_CLOSE_PATTERN = re.compile(r"\s*```")

TOOL_PROMPT_TEMPLATE = """

You have access to the following tools. To use a tool, respond with a JSON object in this exact format:
```json
{{"tool": "tool_name", "input": {{"param1": "value1"}}}}
```

Available tools:
{tools}

After receiving a tool result, continue your response. Only use tools when necessary."""


def describe_tools(tools: list[ToolDefinition] | None) -> str:
    """Render the tool catalog as system prompt instructions ('' if none)."""
    if not tools:
        return ""

    sections = []
    for tool in tools:
        properties = tool.input_schema.get("properties") or {}
        required = tool.input_schema.get("required") or []
        params = "\n".join(
            f"  - {name}{' (required)' if name in required else ''}: "
            f"{schema.get('description') or schema.get('type')}"
            for name, schema in properties.items()
        )
        sections.append(f"### {tool.name}\n{tool.description}\nParameters:\n{params}")

    return TOOL_PROMPT_TEMPLATE.format(tools="\n\n".join(sections))


def parse_tool_calls(content: str) -> tuple[str, list[ToolCall]]:
    """Extract fenced JSON tool calls from model output.

    Returns:
        (content with the tool blocks removed and stripped, tool calls)
    """
    tool_calls = []
    clean_content = content

    for match in TOOL_BLOCK_PATTERN.findall(content):
        raw = FENCE_CLOSE_PATTERN.sub("", FENCE_OPEN_PATTERN.sub("", match))
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug(f"ignoring non-JSON fenced block: {raw[:80]!r}")
            continue

        if isinstance(parsed, dict) and isinstance(parsed.get("tool"), str):
            tool_calls.append(ToolCall(
                id=f"ollama-{uuid.uuid4().hex[:12]}",
                name=parsed["tool"],
                input=parsed.get("input") or {},
            ))
            clean_content = clean_content.replace(match, "", 1)

    return clean_content.strip(), tool_calls


class OllamaProvider(BaseProvider):
    """Adapter for a local Ollama server."""

    type = ProviderType.OLLAMA
    default_price = ModelPrice(0, 0)

    def __init__(self, config: ProviderConfig, timeout: float = 300.0):
        super().__init__(config)
        self.base_url = (config.base_url or DEFAULT_OLLAMA_URL).rstrip("/")
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return 0.0

    def _build_payload(self, request: CompletionRequest, stream: bool) -> dict[str, Any]:
        tool_prompt = describe_tools(request.tools)
        messages = []
        for m in request.messages:
            content = m.content
            if m.role == MessageRole.SYSTEM and tool_prompt:
                content += tool_prompt
            messages.append({"role": m.role.value, "content": content})

        return {
            "model": self.model,
            "messages": messages,
            "stream": stream,
            "options": {
                "temperature": self._temperature(request),
                "num_predict": self._max_tokens(request),
            },
        }

    @asynccontextmanager
    async def _post_chat(self, payload: dict[str, Any]) -> AsyncIterator[httpx.Response]:
        """POST /api/chat as a stream, mapping transport and status errors."""
        try:
            async with self.client.stream("POST", "/api/chat", json=payload) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode(errors="replace")
                    raise ProviderCallError(f"Ollama error: {body}", provider=self.type.value)
                yield response
        except httpx.TransportError as e:
            raise ProviderConnectionError(
                f"Ollama unreachable at {self.base_url}: {e}", provider=self.type.value
            ) from e
        except httpx.HTTPError as e:
            raise ProviderCallError(f"Ollama request failed: {e}", provider=self.type.value) from e

    def _build_response(self, raw_content: str, usage: TokenUsage) -> CompletionResponse:
        content, tool_calls = parse_tool_calls(raw_content)
        return CompletionResponse(
            content=content,
            tool_calls=tool_calls or None,
            usage=usage,
            stop_reason=StopReason.TOOL_USE if tool_calls else StopReason.END_TURN,
            model=self.model,
            provider=self.type,
        )

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        async with self._post_chat(self._build_payload(request, stream=False)) as response:
            body = await response.aread()

        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise InvalidResponseError(
                f"Failed to parse Ollama response: {e}", provider=self.type.value
            ) from e

        usage = TokenUsage(
            input_tokens=data.get("prompt_eval_count") or 0,
            output_tokens=data.get("eval_count") or 0,
        )
        return self._build_response((data.get("message") or {}).get("content") or "", usage)

    async def stream(
        self,
        request: CompletionRequest,
        on_chunk: ChunkCallback,
    ) -> CompletionResponse:
        content = ""
        usage = TokenUsage()

        async with self._post_chat(self._build_payload(request, stream=True)) as response:
            # ollama streams one JSON object per line
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                try:
                    parsed = json.loads(line)
                except json.JSONDecodeError:
                    continue

                text = (parsed.get("message") or {}).get("content")
                if text:
                    content += text
                    on_chunk(StreamChunk(type=ChunkType.TEXT, text=text))

                if parsed.get("done"):
                    usage = TokenUsage(
                        input_tokens=parsed.get("prompt_eval_count") or 0,
                        output_tokens=parsed.get("eval_count") or 0,
                    )

        result = self._build_response(content, usage)
        for tool_call in result.tool_calls or []:
            on_chunk(StreamChunk(type=ChunkType.TOOL_USE, tool_call=tool_call))
        on_chunk(StreamChunk(type=ChunkType.DONE))
        return result

    async def _probe(self) -> bool:
        response = await self.client.get("/api/tags")
        if response.status_code != 200:
            return False
        models = response.json().get("models") or []
        return any(
            m.get("name") == self.model or m.get("name", "").startswith(f"{self.model}:")
            for m in models
        )

    async def close(self) -> None:
        await self.client.aclose()
