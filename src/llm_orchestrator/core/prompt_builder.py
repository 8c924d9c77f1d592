"""Prompt construction for the agent loop.

This module assembles the system prompt and the opening user turn of a
run from the base prompt, the optional thinking instructions and the
external memory/context collaborators.
"""

from typing import Protocol

from ..types import Message, MessageRole, ToolCall
from ..utils.thinking import THINKING_SYSTEM_PROMPT

TOOL_CALLS_MARKER = "\n[Tool calls executed]"


class MemoryProvider(Protocol):
    """Source of persisted memories and rules."""

    def build_system_prompt_additions(self) -> str:
        ...


class ContextProvider(Protocol):
    """Source of editor context (open files, selection, diagnostics)."""

    def build_context_string(self) -> str:
        ...


class PromptBuilder:
    """Constructs the messages an agent run sends to the provider manager.

    Args:
        base_prompt: The base system prompt.
        memory: Optional provider of system prompt additions.
        context: Optional provider of a per-turn context string.
    """

    def __init__(
        self,
        base_prompt: str,
        memory: MemoryProvider | None = None,
        context: ContextProvider | None = None,
    ):
        self.base_prompt = base_prompt
        self.memory = memory
        self.context = context

    def build_system_prompt(self, enable_thinking: bool = False) -> str:
        """Base prompt, then thinking instructions, then memory additions."""
        prompt = self.base_prompt
        if enable_thinking:
            prompt += "\n\n" + THINKING_SYSTEM_PROMPT
        if self.memory is not None:
            prompt += self.memory.build_system_prompt_additions()
        return prompt

    def build_user_content(self, message: str) -> str:
        """Prefix the message with the context string and a blank line."""
        if self.context is not None:
            context = self.context.build_context_string()
            if context:
                return context + "\n\n" + message
        return message

    def build_system_message(self, content: str) -> Message:
        return Message(role=MessageRole.SYSTEM, content=content)

    def build_user_message(self, content: str) -> Message:
        return Message(role=MessageRole.USER, content=content)

    def build_assistant_message(self, content: str, tool_calls: list[ToolCall] | None = None) -> Message:
        """Create the assistant turn; tool-using turns get the executed marker."""
        if tool_calls:
            return Message(role=MessageRole.ASSISTANT, content=content + TOOL_CALLS_MARKER, tool_calls=tool_calls)
        return Message(role=MessageRole.ASSISTANT, content=content)

    def build_tool_results_message(self, results: list[tuple[str, str]]) -> Message:
        """Create the single user turn carrying every tool result.

        Args:
            results: (tool_use_id, result text) pairs in call order.
        """
        return Message(
            role=MessageRole.USER,
            content="\n".join(
                f'<tool_result tool_use_id="{tool_use_id}">{result}</tool_result>'
                for tool_use_id, result in results
            ),
        )
