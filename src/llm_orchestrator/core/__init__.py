"""Core engine components.

- ResponseCache: TTL cache of provider responses
- CostLedger: Append-only cost ledger with subscribers
- ToolDispatcher: Runs tool calls with confirmation and failure policies
- PromptBuilder: Assembles system prompts and turns for agent runs
"""

from .cost_ledger import CostLedger
from .prompt_builder import ContextProvider, MemoryProvider, PromptBuilder
from .response_cache import ResponseCache
from .tool_executor import (
    CallableToolExecutor,
    Confirmer,
    ToolDispatcher,
    ToolExecutor,
    needs_confirmation,
    should_continue,
)

__all__ = [
    "CostLedger",
    "ContextProvider",
    "MemoryProvider",
    "PromptBuilder",
    "ResponseCache",
    "CallableToolExecutor",
    "Confirmer",
    "ToolDispatcher",
    "ToolExecutor",
    "needs_confirmation",
    "should_continue",
]
