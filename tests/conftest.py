"""Shared test fixtures and configuration."""

import pytest

from llm_orchestrator.classifier import TaskClassifier
from llm_orchestrator.manager import ProviderManager
from llm_orchestrator.providers.base import BaseProvider
from llm_orchestrator.types import (
    ChunkType,
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


class FakeProvider(BaseProvider):
    """Scripted adapter that records every request it receives.

    replies may hold strings, CompletionResponses or exceptions. They are
    served in order; the last one repeats once the script runs out.
    """

    def __init__(
        self,
        provider_type: ProviderType = ProviderType.ANTHROPIC,
        model: str = "claude-sonnet-4-20250514",
        replies=None,
        available: bool = True,
        usage: TokenUsage | None = None,
    ):
        self.type = provider_type
        super().__init__(ProviderConfig(type=provider_type, model=model, api_key="fake"))
        self.replies = list(replies or ["ok"])
        self.available = available
        self.usage = usage if usage is not None else TokenUsage(input_tokens=100, output_tokens=50)
        self.requests = []
        self.closed = False

    def _next_reply(self, request) -> CompletionResponse:
        self.requests.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, CompletionResponse):
            return reply
        if callable(reply):
            reply = reply(request)
        return CompletionResponse(
            content=reply,
            model=self.model,
            provider=self.type,
            usage=TokenUsage(self.usage.input_tokens, self.usage.output_tokens),
        )

    async def complete(self, request):
        return self._next_reply(request)

    async def stream(self, request, on_chunk):
        response = self._next_reply(request)
        if response.content:
            on_chunk(StreamChunk(type=ChunkType.TEXT, text=response.content))
        for tool_call in response.tool_calls or []:
            on_chunk(StreamChunk(type=ChunkType.TOOL_USE, tool_call=tool_call))
        on_chunk(StreamChunk(type=ChunkType.DONE))
        return response

    async def _probe(self):
        return self.available

    async def close(self):
        self.closed = True


def tool_response(*tool_calls: ToolCall, content: str = "", model: str = "fake") -> CompletionResponse:
    return CompletionResponse(
        content=content,
        model=model,
        provider=ProviderType.ANTHROPIC,
        tool_calls=list(tool_calls),
        usage=TokenUsage(input_tokens=10, output_tokens=5),
        stop_reason=StopReason.TOOL_USE,
    )


@pytest.fixture
def fake_provider():
    """A fake anthropic adapter that answers 'ok'."""
    return FakeProvider()


@pytest.fixture
def manager(fake_provider):
    """Manager with smart routing off and a single fake adapter."""
    manager = ProviderManager(classifier=TaskClassifier(), smart_routing=False)
    manager.add_provider("anthropic", fake_provider)
    return manager


@pytest.fixture
def sample_messages():
    """Create sample conversation messages."""
    return [
        Message(role=MessageRole.SYSTEM, content="You are a helpful assistant."),
        Message(role=MessageRole.USER, content="Hello!"),
        Message(role=MessageRole.ASSISTANT, content="Hi there!"),
        Message(role=MessageRole.USER, content="What is the capital of France?"),
    ]


@pytest.fixture
def sample_tool_call():
    """Create a sample tool call."""
    return ToolCall(id="call_123", name="read_file", input={"path": "README.md"})


@pytest.fixture
def sample_tool():
    """Create a sample tool definition."""
    return ToolDefinition(
        name="read_file",
        description="Read a file from disk",
        input_schema={
            "type": "object",
            "properties": {"path": {"type": "string"}},
            "required": ["path"],
        },
    )
