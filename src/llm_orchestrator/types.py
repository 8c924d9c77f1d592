"""Unified types for the orchestration engine.

These types provide a provider-agnostic interface for LLM interactions.
Every provider adapter converts its backend-specific formats to/from these
types, and the agent loop and multi-agent orchestrator only ever see them.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable


class MessageRole(Enum):
    """Role of a message in the conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class StopReason(Enum):
    """Normalized reason why the model stopped generating."""
    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"


class ProviderType(Enum):
    """Closed set of backend variants, one adapter class per member."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GROQ = "groq"
    OLLAMA = "ollama"
    TOGETHER = "together"
    GOOGLE = "google"


class ChunkType(Enum):
    """Kind of a streamed chunk."""
    TEXT = "text"
    TOOL_USE = "tool_use"
    DONE = "done"


@dataclass
class ToolCall:
    """A tool call requested by the model."""
    id: str
    name: str
    input: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "input": self.input}


@dataclass
class ToolDefinition:
    """A tool the model may call.

    Attributes:
        name: Unique name within a catalog
        description: Human-readable description passed to the model
        input_schema: JSON schema of the tool input
    """
    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


@dataclass
class Message:
    """A message in the conversation history.

    Attributes:
        role: The role of the message sender
        content: Text content of the message
        tool_calls: Tool calls carried by an assistant message
    """
    role: MessageRole
    content: str = ""
    tool_calls: list[ToolCall] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary representation."""
        result: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            result["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return result


@dataclass
class TokenUsage:
    """Token usage statistics."""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class CompletionRequest:
    """A single request to a provider.

    Attributes:
        messages: Conversation, system message included
        tools: Optional tool catalog
        max_tokens: Output token bound (adapters default to 8192)
        temperature: Sampling temperature (adapters default to 0)
    """
    messages: list[Message]
    tools: list[ToolDefinition] | None = None
    max_tokens: int | None = None
    temperature: float | None = None

    def last_user_content(self) -> str:
        """Return the content of the most recent user message, or ''."""
        for message in reversed(self.messages):
            if message.role == MessageRole.USER:
                return message.content or ""
        return ""

    @property
    def system_prompt(self) -> str | None:
        for message in self.messages:
            if message.role == MessageRole.SYSTEM:
                return message.content
        return None


@dataclass
class CompletionResponse:
    """Response from an LLM provider, normalized across backends.

    Attributes:
        content: Visible text of the response
        model: Model that produced the response (never empty)
        provider: Backend variant that produced the response
        tool_calls: Tool calls requested by the model
        usage: Token usage, when the backend reports it
        stop_reason: Normalized stop reason
    """
    content: str
    model: str
    provider: ProviderType
    tool_calls: list[ToolCall] | None = None
    usage: TokenUsage | None = None
    stop_reason: StopReason = StopReason.END_TURN

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass
class StreamChunk:
    """A chunk pushed to a stream consumer.

    Attributes:
        type: Kind of chunk
        text: New text for TEXT chunks
        tool_call: Completed tool call for TOOL_USE chunks
    """
    type: ChunkType
    text: str | None = None
    tool_call: ToolCall | None = None


# callback receiving stream chunks in arrival order
ChunkCallback = Callable[[StreamChunk], None]


@dataclass
class ProviderConfig:
    """Resolved configuration for one adapter."""
    type: ProviderType
    model: str
    api_key: str | None = None
    base_url: str | None = None


# ==================== routing types ====================


class TaskComplexity(Enum):
    """Complexity bucket used for routing."""
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class TaskCategory(Enum):
    """Task categories recognized by the classifier."""
    EXPLAIN = "explain"
    AUTOCOMPLETE = "autocomplete"
    REFACTOR = "refactor"
    GENERATE_TESTS = "generate_tests"
    FIX_ERROR = "fix_error"
    CHAT = "chat"
    MULTI_FILE_EDIT = "multi_file_edit"
    ARCHITECTURE = "architecture"
    DEBUG_COMPLEX = "debug_complex"


@dataclass
class ClassificationContext:
    """Numeric signals that raise the complexity score."""
    code_length: int | None = None
    file_count: int | None = None
    conversation_length: int | None = None
    has_tool_use: bool = False


@dataclass
class ClassificationResult:
    """Outcome of classifying a request."""
    category: TaskCategory
    complexity: TaskComplexity
    confidence: float
    suggested_provider: ProviderType
    suggested_model: str
    reasoning: str
    score: int = 0
    matched_keywords: list[str] = field(default_factory=list)


# ==================== cache and cost types ====================


@dataclass
class CacheEntry:
    """A cached response and the time (epoch seconds) it was stored."""
    response: CompletionResponse
    timestamp: float


@dataclass
class CostRecord:
    """One entry of the cost ledger."""
    provider: ProviderType
    model: str
    input_tokens: int
    output_tokens: int
    cost: float
    timestamp: datetime


@dataclass
class CostUpdate:
    """Payload delivered to cost subscribers after each tracked call."""
    total: float
    records: list[CostRecord]


@dataclass
class CostSummary:
    """Aggregated view of the cost ledger."""
    total_cost: float
    by_provider: dict[str, float]
    by_model: dict[str, float]
    last_24_hours: float
    estimated_monthly_savings: float


# ==================== agent loop types ====================


class StepType(Enum):
    """Kind of an agent log step."""
    THINKING = "thinking"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    RESPONSE = "response"


@dataclass
class AgentStep:
    """One entry in the append-only log of an agent run."""
    id: str
    type: StepType
    content: str
    timestamp: datetime
    tool_name: str | None = None
    tool_input: dict[str, Any] | None = None
    tool_result: str | None = None
    duration_ms: int | None = None


@dataclass
class AgentState:
    """State of a single agent loop run.

    Attributes:
        steps: Ordered log of the run
        is_complete: Set when the model answered without tool calls
        error: Last recorded provider failure
        total_tokens: Tokens used across iterations
        total_cost: Estimated cost across iterations
        stop_reason: Why the loop stopped, when it stopped on a policy check
    """
    steps: list[AgentStep] = field(default_factory=list)
    is_complete: bool = False
    error: str | None = None
    total_tokens: int = 0
    total_cost: float = 0.0
    stop_reason: str | None = None

    def count_steps(self, step_type: StepType) -> int:
        return sum(1 for step in self.steps if step.type == step_type)


DEFAULT_DANGEROUS_OPERATIONS = (
    "delete_file",
    "run_terminal_command",
    "git_commit",
    "git_push",
)


@dataclass(frozen=True)
class AgentConfig:
    """Limits and policies of an agent run.

    Frozen: use with_overrides() to derive a modified copy.
    """
    max_iterations: int = 25
    max_tokens_per_iteration: int = 8192
    stop_on_error: bool = False
    require_confirmation: bool = False
    dangerous_operations: tuple[str, ...] = DEFAULT_DANGEROUS_OPERATIONS

    def with_overrides(self, **changes: Any) -> "AgentConfig":
        if "dangerous_operations" in changes:
            changes["dangerous_operations"] = tuple(changes["dangerous_operations"])
        return dataclasses.replace(self, **changes)


@dataclass
class AgentResponse:
    """Result of one agent loop run.

    Attributes:
        content: Final visible content
        state: The run's state, including its step log
        tool_calls: Every tool call requested during the run
        usage: Token usage accumulated during the run
        thinking: Formatted thinking blocks, if extraction was enabled
    """
    content: str
    state: AgentState
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: TokenUsage = field(default_factory=TokenUsage)
    thinking: str | None = None
