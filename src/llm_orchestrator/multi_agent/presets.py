"""Ready-made collaboration configurations."""

from .models import AgentRole, CollaborationMode, DualAgentConfig, RoleConfig
from .prompts import CRITIC_PROMPT, GENERATOR_PROMPT, VERIFIER_PROMPT

DEFAULT_CONFIG = DualAgentConfig(
    mode=CollaborationMode.SEQUENTIAL,
    agent1=RoleConfig(
        name="Generator",
        role=AgentRole.GENERATOR,
        system_prompt=GENERATOR_PROMPT,
        temperature=0.7,
    ),
    agent2=RoleConfig(
        name="Critic",
        role=AgentRole.CRITIC,
        system_prompt=CRITIC_PROMPT,
        temperature=0.3,
    ),
)

DUAL_AGENT_PRESETS: dict[str, DualAgentConfig] = {
    # generator writes, critic reviews
    "code_review": DualAgentConfig(
        mode=CollaborationMode.SEQUENTIAL,
        agent1=RoleConfig(
            name="Coder",
            role=AgentRole.GENERATOR,
            system_prompt="You are an expert programmer. Write clean, efficient, well-documented code.",
            temperature=0.5,
        ),
        agent2=RoleConfig(
            name="Reviewer",
            role=AgentRole.CRITIC,
            system_prompt=(
                "You are a senior code reviewer. Check for bugs, security issues, performance "
                "problems, and style. Be thorough but constructive."
            ),
            temperature=0.2,
        ),
        max_iterations=2,
        consensus_threshold=0.8,
    ),
    "problem_solving": DualAgentConfig(
        mode=CollaborationMode.CHAIN_OF_THOUGHT,
        agent1=RoleConfig(
            name="Reasoner",
            role=AgentRole.GENERATOR,
            system_prompt=(
                "You are a logical problem solver. Break down problems, think step by step, "
                "and show your reasoning."
            ),
            temperature=0.3,
        ),
        agent2=RoleConfig(
            name="Verifier",
            role=AgentRole.VERIFIER,
            system_prompt=VERIFIER_PROMPT,
            temperature=0.1,
        ),
        max_iterations=3,
        consensus_threshold=0.9,
    ),
    "creative": DualAgentConfig(
        mode=CollaborationMode.ENSEMBLE,
        agent1=RoleConfig(
            name="Creative1",
            role=AgentRole.GENERATOR,
            system_prompt="You are highly creative. Think outside the box and generate innovative solutions.",
            temperature=0.9,
        ),
        agent2=RoleConfig(
            name="Creative2",
            role=AgentRole.GENERATOR,
            system_prompt=(
                "You are creative but practical. Generate solutions that are both innovative "
                "and feasible."
            ),
            temperature=0.7,
        ),
        max_iterations=1,
        consensus_threshold=0.5,
    ),
    "debate": DualAgentConfig(
        mode=CollaborationMode.DEBATE,
        agent1=RoleConfig(
            name="Advocate",
            role=AgentRole.GENERATOR,
            system_prompt="You advocate for the proposed approach. Highlight benefits and address concerns.",
            temperature=0.6,
        ),
        agent2=RoleConfig(
            name="Skeptic",
            role=AgentRole.CRITIC,
            system_prompt=(
                "You are a healthy skeptic. Question assumptions, identify risks, and suggest "
                "alternatives."
            ),
            temperature=0.4,
        ),
        max_iterations=3,
        consensus_threshold=0.7,
    ),
}


def get_preset(name: str) -> DualAgentConfig:
    """Look up a preset by name.

    Raises:
        ValueError: If no preset has that name.
    """
    key = name.replace("-", "_")
    if key not in DUAL_AGENT_PRESETS:
        raise ValueError(f"Unknown preset: {name}. Available: {list(DUAL_AGENT_PRESETS)}")
    return DUAL_AGENT_PRESETS[key]
