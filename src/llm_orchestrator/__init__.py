"""LLM Orchestrator - multi-provider LLM orchestration engine.

This package routes requests across several LLM providers through a
unified adapter interface, runs a bounded tool-using agent loop, and
coordinates two agents through collaboration protocols.
"""

from .agent import AgentLoop
from .classifier import TaskClassifier
from .engine import Engine
from .exceptions import (
    AgentError,
    ClientError,
    ProviderCallError,
    ProviderUnavailableError,
    ToolError,
)
from .manager import ProviderManager
from .multi_agent import CollaborationMode, DualAgentConfig, DualAgentOrchestrator, DualAgentResult
from .types import (
    AgentConfig,
    AgentResponse,
    AgentState,
    CompletionRequest,
    CompletionResponse,
    Message,
    MessageRole,
    ProviderConfig,
    ProviderType,
    StreamChunk,
    TaskComplexity,
    ToolCall,
    ToolDefinition,
)

__all__ = [
    # entry points
    "Engine",
    "AgentLoop",
    "DualAgentOrchestrator",
    "ProviderManager",
    "TaskClassifier",
    # types
    "AgentConfig",
    "AgentResponse",
    "AgentState",
    "CollaborationMode",
    "CompletionRequest",
    "CompletionResponse",
    "DualAgentConfig",
    "DualAgentResult",
    "Message",
    "MessageRole",
    "ProviderConfig",
    "ProviderType",
    "StreamChunk",
    "TaskComplexity",
    "ToolCall",
    "ToolDefinition",
    # exceptions
    "AgentError",
    "ClientError",
    "ProviderCallError",
    "ProviderUnavailableError",
    "ToolError",
]
