"""Agent loop implementation.

The AgentLoop drives one request to completion: it asks the provider
manager for a response, runs any tool calls the model requests, feeds the
results back and repeats until the model answers without tools or a stop
policy fires.
"""

import uuid
from datetime import datetime

from .core.prompt_builder import ContextProvider, MemoryProvider, PromptBuilder
from .core.tool_executor import Confirmer, ToolDispatcher, ToolExecutor, should_continue
from .logging import get_logger
from .manager import ProviderManager
from .providers.pricing import ModelPrice
from .types import (
    AgentConfig,
    AgentResponse,
    AgentState,
    AgentStep,
    CompletionRequest,
    Message,
    StepType,
    TokenUsage,
    ToolCall,
    ToolDefinition,
)
from .utils.thinking import extract_thinking_blocks, format_thinking_for_display

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = """You are an expert AI assistant for software development.

You have access to tools for reading/writing files, running terminal commands, searching code, and more. Always use the most appropriate tool for the task.

Guidelines:
1. Read files before editing them to understand context
2. Make targeted edits, don't rewrite entire files unnecessarily
3. Run builds/tests after making changes to verify they work
4. Use search to understand large codebases
5. Keep code clean and follow existing patterns

For complex tasks:
1. Break them into steps
2. Think through each step before acting
3. Verify results at each stage

Be proactive but not over-eager. Only make changes that are directly requested or clearly necessary."""

# flat per-run estimate, independent of the model that actually served the call
RUN_COST_PRICE = ModelPrice(3, 15)


def new_step_id() -> str:
    return f"step-{uuid.uuid4().hex[:12]}"


def make_step(step_type: StepType, content: str, **fields) -> AgentStep:
    return AgentStep(
        id=new_step_id(),
        type=step_type,
        content=content,
        timestamp=datetime.now(),
        **fields,
    )


def tool_call_step(tool_call: ToolCall) -> AgentStep:
    return make_step(
        StepType.TOOL_CALL,
        f"Calling {tool_call.name}",
        tool_name=tool_call.name,
        tool_input=tool_call.input,
    )


def tool_result_step(tool_name: str, result: str, duration_ms: int | None) -> AgentStep:
    return make_step(
        StepType.TOOL_RESULT,
        result,
        tool_name=tool_name,
        tool_result=result,
        duration_ms=duration_ms,
    )


class AgentLoop:
    """Iterative tool-using agent over a ProviderManager.

    Conversation history persists on the instance across run() calls;
    each run gets a fresh AgentState.

    Args:
        manager: Provider manager serving every completion.
        tools: Tool catalog offered to the model on every iteration.
        executor: External executor that runs the tools.
        config: Limits and policies of a run.
        system_prompt: Base system prompt.
        memory: Optional source of system prompt additions.
        context: Optional source of the per-turn context string.
        confirm: Async confirmer for dangerous tool calls.
    """

    def __init__(
        self,
        manager: ProviderManager,
        tools: list[ToolDefinition] | None = None,
        executor: ToolExecutor | None = None,
        config: AgentConfig | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        memory: MemoryProvider | None = None,
        context: ContextProvider | None = None,
        confirm: Confirmer | None = None,
    ):
        self.manager = manager
        self.tools = list(tools or [])
        self.executor = executor
        self.config = config or AgentConfig()
        self.prompts = PromptBuilder(system_prompt, memory=memory, context=context)
        self.confirm = confirm
        self.history: list[Message] = []
        self.total_usage = TokenUsage()

    def configure(self, **changes) -> AgentConfig:
        """Replace the config with a modified copy and return it."""
        self.config = self.config.with_overrides(**changes)
        return self.config

    def clear_history(self) -> None:
        self.history = []

    @property
    def estimated_cost(self) -> float:
        """Flat-rate cost estimate of every run on this instance."""
        return RUN_COST_PRICE.cost(self.total_usage.input_tokens, self.total_usage.output_tokens)

    async def run(
        self,
        message: str,
        enable_thinking: bool = False,
        max_iterations: int | None = None,
    ) -> AgentResponse:
        """Run the loop for one user message.

        Args:
            message: The user's message.
            enable_thinking: Ask for <thinking> blocks and extract them.
            max_iterations: Bound on loop iterations for this run. Defaults
                to config.max_iterations.

        Returns:
            AgentResponse with the final content and the run's state.
        """
        config = self.config
        state = AgentState()
        usage = TokenUsage()
        dispatcher = ToolDispatcher(self.executor, config, self.confirm) if self.executor else None

        system_message = self.prompts.build_system_message(
            self.prompts.build_system_prompt(enable_thinking)
        )
        self.history.append(self.prompts.build_user_message(self.prompts.build_user_content(message)))

        all_tool_calls: list[ToolCall] = []
        final_content = ""
        thinking_content = ""
        limit = max_iterations or config.max_iterations

        for iteration in range(limit):
            logger.debug(f"iteration {iteration + 1}/{limit}")

            check = should_continue(state, config)
            if not check.proceed:
                state.stop_reason = check.reason
                logger.info(f"stopping: {check.reason}")
                break

            try:
                response = await self.manager.complete(CompletionRequest(
                    messages=[system_message, *self.history],
                    tools=self.tools,
                    max_tokens=config.max_tokens_per_iteration,
                ))

                if response.usage:
                    usage.input_tokens += response.usage.input_tokens
                    usage.output_tokens += response.usage.output_tokens
                    state.total_tokens += response.usage.total_tokens
                    state.total_cost += RUN_COST_PRICE.cost(
                        response.usage.input_tokens, response.usage.output_tokens
                    )

                final_content = response.content
                if enable_thinking and response.content:
                    blocks, final_content = extract_thinking_blocks(response.content)
                    if blocks:
                        thinking_content += format_thinking_for_display(blocks) + "\n\n"
                        state.steps.append(make_step(
                            StepType.THINKING, "\n".join(block.content for block in blocks)
                        ))

                if not response.tool_calls:
                    state.is_complete = True
                    state.stop_reason = "Task completed"
                    state.steps.append(make_step(StepType.RESPONSE, final_content))
                    self.history.append(self.prompts.build_assistant_message(final_content))
                    break

                results = []
                for tool_call in response.tool_calls:
                    all_tool_calls.append(tool_call)
                    state.steps.append(tool_call_step(tool_call))
                    logger.info(f"tool: {tool_call.name}")

                    if dispatcher is None:
                        results.append((tool_call.id, f"Tool '{tool_call.name}' not found"))
                        continue

                    outcome = await dispatcher.dispatch(tool_call)
                    if outcome.executed:
                        state.steps.append(
                            tool_result_step(tool_call.name, outcome.result, outcome.duration_ms)
                        )
                    results.append((tool_call.id, outcome.result))

                self.history.append(
                    self.prompts.build_assistant_message(final_content, response.tool_calls)
                )
                self.history.append(self.prompts.build_tool_results_message(results))

            except Exception as e:
                state.error = str(e)
                logger.error(f"iteration {iteration + 1} failed: {e}")
                if config.stop_on_error:
                    state.stop_reason = f"Error: {state.error}"
                    break
        else:
            if not state.is_complete:
                state.stop_reason = f"Reached maximum iterations ({limit})"

        self.total_usage.input_tokens += usage.input_tokens
        self.total_usage.output_tokens += usage.output_tokens

        return AgentResponse(
            content=final_content,
            state=state,
            tool_calls=all_tool_calls,
            usage=usage,
            thinking=thinking_content.strip() or None,
        )


def format_agent_state(state: AgentState) -> str:
    """Human-readable summary of a run."""
    lines = [
        f"Agent State: {'Complete' if state.is_complete else 'Running'}",
        f"Steps: {len(state.steps)}",
        f"Tokens: {state.total_tokens}",
        f"Cost: ${state.total_cost:.4f}",
    ]
    if state.error:
        lines.append(f"Error: {state.error}")

    lines.append("\nSteps:")
    for step in state.steps:
        duration = f" ({step.duration_ms}ms)" if step.duration_ms else ""
        if step.type == StepType.THINKING:
            lines.append(f"  💭 Thinking{duration}")
        elif step.type == StepType.TOOL_CALL:
            lines.append(f"  🔧 {step.tool_name}{duration}")
        elif step.type == StepType.TOOL_RESULT:
            preview = step.content[:50].replace("\n", " ")
            lines.append(f"  📋 Result: {preview}...{duration}")
        elif step.type == StepType.RESPONSE:
            lines.append(f"  💬 Response{duration}")

    return "\n".join(lines)


def estimate_remaining_iterations(state: AgentState, config: AgentConfig) -> int:
    return max(0, config.max_iterations - state.count_steps(StepType.TOOL_CALL))
