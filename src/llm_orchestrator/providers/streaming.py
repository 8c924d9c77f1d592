"""Tool call reconstruction for streamed responses.

Backends stream tool calls as fragments: an id and name in one event,
argument JSON split across many more. ToolCallAccumulator buffers those
fragments per positional index and turns them into ToolCall objects once
the backend signals the call is complete.
"""

import json
from dataclasses import dataclass

from ..exceptions import ToolCallParseError
from ..logging import get_logger
from ..types import ToolCall

logger = get_logger(__name__)


@dataclass
class _ToolCallBuilder:
    id: str | None = None
    name: str | None = None
    arguments: str = ""


class ToolCallAccumulator:
    """Per-stream buffer of partial tool calls, keyed by index.

    One accumulator belongs to exactly one stream. Call clear() when the
    stream is done.
    """

    def __init__(self):
        self._builders: dict[int, _ToolCallBuilder] = {}

    def __len__(self) -> int:
        return len(self._builders)

    def add(
        self,
        index: int,
        id: str | None = None,
        name: str | None = None,
        arguments: str | None = None,
    ) -> None:
        """Record a fragment.

        id and name overwrite earlier values when present; argument text is
        concatenated.
        """
        builder = self._builders.setdefault(index, _ToolCallBuilder())
        if id:
            builder.id = id
        if name:
            builder.name = name
        if arguments:
            builder.arguments += arguments

    def finalize(self, index: int) -> ToolCall | None:
        """Parse and remove the call at index.

        Returns:
            The completed ToolCall, or None if nothing was buffered at index
            or no tool name ever arrived.

        Raises:
            ToolCallParseError: If the buffered arguments are not valid JSON.
        """
        builder = self._builders.pop(index, None)
        if builder is None or not builder.name:
            return None

        try:
            arguments = json.loads(builder.arguments) if builder.arguments else {}
        except json.JSONDecodeError as e:
            raise ToolCallParseError(builder.name, builder.arguments, e) from e

        if not isinstance(arguments, dict):
            raise ToolCallParseError(builder.name, builder.arguments, "arguments are not an object")

        return ToolCall(
            id=builder.id or f"call_{index}",
            name=builder.name,
            input=arguments,
        )

    def finalize_safe(self, index: int) -> ToolCall | None:
        """Like finalize(), but a malformed call is logged and dropped."""
        try:
            return self.finalize(index)
        except ToolCallParseError as e:
            logger.warning(f"dropping streamed tool call: {e}")
            return None

    def finalize_all(self) -> list[ToolCall]:
        """Finalize every buffered call in index order, dropping malformed ones."""
        tool_calls = []
        for index in sorted(self._builders):
            tool_call = self.finalize_safe(index)
            if tool_call:
                tool_calls.append(tool_call)
        return tool_calls

    def clear(self) -> None:
        self._builders.clear()
