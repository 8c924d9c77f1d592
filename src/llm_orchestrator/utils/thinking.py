"""Extraction of <thinking> blocks from model output."""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime

THINKING_PATTERN = re.compile(r"<thinking>([\s\S]*?)</thinking>")

THINKING_SYSTEM_PROMPT = """
When tackling complex problems, use a <thinking> block to reason through your approach before responding:

<thinking>
1. Break down the problem
2. Consider different approaches
3. Identify potential issues
4. Choose the best solution
</thinking>

Then provide your response outside the thinking block. This helps you:
- Catch errors before making them
- Consider edge cases
- Plan multi-step operations
- Debug complex issues

Use thinking for: architecture decisions, debugging, refactoring, multi-file changes.
Skip thinking for: simple questions, single file edits, explanations.
"""


@dataclass
class ThinkingBlock:
    content: str
    id: str = field(default_factory=lambda: f"thinking-{uuid.uuid4().hex[:10]}")
    timestamp: datetime = field(default_factory=datetime.now)


def extract_thinking_blocks(text: str) -> tuple[list[ThinkingBlock], str]:
    """Split text into its thinking blocks and the remaining visible content.

    Returns:
        (blocks in order of appearance, content with every block removed and stripped)
    """
    blocks = [ThinkingBlock(content=match.strip()) for match in THINKING_PATTERN.findall(text)]
    content = THINKING_PATTERN.sub("", text).strip()
    return blocks, content


def format_thinking_for_display(blocks: list[ThinkingBlock]) -> str:
    """Render blocks as collapsible <details> sections ('' if none)."""
    if not blocks:
        return ""

    sections = []
    for i, block in enumerate(blocks):
        counter = f"({i + 1}/{len(blocks)})" if len(blocks) > 1 else ""
        sections.append(
            f"<details>\n<summary>💭 Thinking {counter}</summary>\n\n{block.content}\n\n</details>"
        )
    return "\n\n".join(sections)
