"""Tool execution policy for the agent loop.

The engine never implements tools itself. It calls an external ToolExecutor
and wraps it with the loop's policies:
- confirmation of dangerous operations
- timing
- turning failures into result text instead of exceptions
"""

import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from ..logging import get_logger
from ..types import AgentConfig, AgentState, StepType, ToolCall

logger = get_logger(__name__)

CANCELLED_RESULT = "Tool execution cancelled by user"
LARGE_EDIT_THRESHOLD = 5000
LARGE_EDIT_TOOLS = ("edit_file", "write_file")
DESTRUCTIVE_COMMAND_MARKERS = ("rm -rf", "drop table", "delete from", "--force", "-f ")

# async callback asked before a dangerous tool call runs
Confirmer = Callable[[ToolCall], Awaitable[bool]]


class ToolExecutor(Protocol):
    """Anything that can run a named tool and return its textual result."""

    async def execute(self, name: str, input: dict[str, Any]) -> str:
        ...


class CallableToolExecutor:
    """ToolExecutor over a mapping of tool names to plain or async callables.

    Each callable receives the tool input as keyword arguments.
    """

    def __init__(self, tools: dict[str, Callable[..., Any]]):
        self.tools = tools

    async def execute(self, name: str, input: dict[str, Any]) -> str:
        func = self.tools.get(name)
        if func is None:
            return f"Tool '{name}' not found"
        result = func(**input)
        if inspect.isawaitable(result):
            result = await result
        return str(result)


def needs_confirmation(tool_name: str, tool_input: dict[str, Any], config: AgentConfig) -> bool:
    """Decide whether a tool call must be confirmed before running."""
    if not config.require_confirmation:
        return False

    if tool_name in config.dangerous_operations:
        return True

    if tool_name in LARGE_EDIT_TOOLS:
        content = tool_input.get("content") or tool_input.get("new_string") or ""
        if len(str(content)) > LARGE_EDIT_THRESHOLD:
            return True

    if tool_name == "run_terminal_command":
        command = str(tool_input.get("command") or "").lower()
        if any(marker in command for marker in DESTRUCTIVE_COMMAND_MARKERS):
            return True

    return False


@dataclass
class ContinueCheck:
    proceed: bool
    reason: str | None = None


def should_continue(state: AgentState, config: AgentConfig) -> ContinueCheck:
    """Check the stop policies of a run, in order: iteration cap, error, completion."""
    if state.count_steps(StepType.TOOL_CALL) >= config.max_iterations:
        return ContinueCheck(False, f"Reached maximum iterations ({config.max_iterations})")

    if state.error and config.stop_on_error:
        return ContinueCheck(False, f"Error: {state.error}")

    if state.is_complete:
        return ContinueCheck(False, "Task completed")

    return ContinueCheck(True)


@dataclass
class ToolOutcome:
    """Result of dispatching one tool call.

    Attributes:
        result: Text to feed back to the model
        executed: False when the call was cancelled before running
        duration_ms: Wall time of the execution, if it ran
    """
    result: str
    executed: bool
    duration_ms: int | None = None


class ToolDispatcher:
    """Runs tool calls through the confirmation and failure policies.

    Args:
        executor: The external tool executor.
        config: Agent configuration holding the confirmation policy.
        confirm: Async confirmer. Without one, calls that need
            confirmation are cancelled.
    """

    def __init__(
        self,
        executor: ToolExecutor,
        config: AgentConfig,
        confirm: Confirmer | None = None,
    ):
        self.executor = executor
        self.config = config
        self.confirm = confirm

    async def _confirmed(self, tool_call: ToolCall) -> bool:
        if not needs_confirmation(tool_call.name, tool_call.input, self.config):
            return True
        if self.confirm is None:
            logger.info(f"no confirmer configured, cancelling {tool_call.name}")
            return False
        return await self.confirm(tool_call)

    async def dispatch(self, tool_call: ToolCall) -> ToolOutcome:
        if not await self._confirmed(tool_call):
            return ToolOutcome(result=CANCELLED_RESULT, executed=False)

        start = time.monotonic()
        try:
            result = await self.executor.execute(tool_call.name, tool_call.input)
        except Exception as e:
            logger.warning(f"tool {tool_call.name} failed: {e}")
            result = f"Tool execution failed: {e}"
        duration_ms = int((time.monotonic() - start) * 1000)

        logger.debug(f"tool {tool_call.name} ({duration_ms}ms): {result[:200]}")
        return ToolOutcome(result=result, executed=True, duration_ms=duration_ms)
