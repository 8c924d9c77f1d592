"""Data model of the multi-agent orchestrator."""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CollaborationMode(Enum):
    """Protocol two agents follow to produce one answer."""
    SEQUENTIAL = "sequential"
    DEBATE = "debate"
    ENSEMBLE = "ensemble"
    CHAIN_OF_THOUGHT = "chain-of-thought"


class AgentRole(Enum):
    GENERATOR = "generator"
    CRITIC = "critic"
    VERIFIER = "verifier"
    SYNTHESIZER = "synthesizer"


@dataclass(frozen=True)
class RoleConfig:
    """One participant of a collaboration.

    Attributes:
        name: Display name used in logs
        role: What the participant does
        provider: Provider name to force for this role's calls
        model: Informational; the model is fixed by the registered provider
        temperature: Sampling temperature of this role's calls
        system_prompt: Overrides the role's default system prompt
    """
    name: str
    role: AgentRole
    provider: str | None = None
    model: str | None = None
    temperature: float | None = None
    system_prompt: str | None = None


@dataclass(frozen=True)
class DualAgentConfig:
    """Configuration of a collaboration run.

    Frozen: use with_overrides() to derive a modified copy.
    """
    mode: CollaborationMode
    agent1: RoleConfig
    agent2: RoleConfig
    max_iterations: int = 3
    consensus_threshold: float = 0.8
    enable_thinking: bool = True
    debug_mode: bool = False

    def with_overrides(self, **changes: Any) -> "DualAgentConfig":
        if isinstance(changes.get("mode"), str):
            changes["mode"] = CollaborationMode(changes["mode"])
        return dataclasses.replace(self, **changes)


@dataclass
class DualAgentResult:
    """Outcome of a collaboration run.

    Attributes:
        final_response: The answer
        thinking: Markdown transcript of every step, if enabled
        iterations: Rounds (debate) or agent-1 calls (chain-of-thought)
        agent1_outputs: Every output of agent 1, in order
        agent2_outputs: Every output of agent 2, in order
        consensus_reached: Whether the protocol reports agreement
        confidence: 0..1 confidence of the answer
        total_tokens: Tokens used by every call of the run
        total_cost: Flat-rate cost estimate of every call of the run
        mode: Protocol that produced the result
        error: Failure message when the run was cut short
    """
    final_response: str
    mode: CollaborationMode
    thinking: str | None = None
    iterations: int = 0
    agent1_outputs: list[str] = field(default_factory=list)
    agent2_outputs: list[str] = field(default_factory=list)
    consensus_reached: bool = False
    confidence: float = 0.0
    total_tokens: int = 0
    total_cost: float = 0.0
    error: str | None = None
