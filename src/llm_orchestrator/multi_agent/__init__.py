"""Multi-agent collaboration over the provider manager.

Two agents work on one query through a collaboration mode:

    sequential        generator -> critic -> refined answer
    debate            opening positions, rebuttal rounds, synthesis
    ensemble          two parallel answers, a judge picks one
    chain-of-thought  breakdown -> solution -> verification (-> fix)

Example usage:
    from llm_orchestrator.engine import Engine
    from llm_orchestrator.multi_agent import get_preset

    engine = Engine.from_settings()
    await engine.initialize()

    orchestrator = engine.orchestrator(get_preset("debate"))
    result = await orchestrator.execute("Should we adopt a monorepo?")
    print(result.final_response, result.consensus_reached)
"""

from .models import AgentRole, CollaborationMode, DualAgentConfig, DualAgentResult, RoleConfig
from .orchestrator import (
    DualAgentOrchestrator,
    RunUsage,
    check_consensus,
    extract_confidence,
    jaccard_similarity,
)
from .presets import DEFAULT_CONFIG, DUAL_AGENT_PRESETS, get_preset

__all__ = [
    # orchestrator
    "DualAgentOrchestrator",
    "RunUsage",
    # models
    "AgentRole",
    "CollaborationMode",
    "DualAgentConfig",
    "DualAgentResult",
    "RoleConfig",
    # presets
    "DEFAULT_CONFIG",
    "DUAL_AGENT_PRESETS",
    "get_preset",
    # consensus helpers
    "check_consensus",
    "extract_confidence",
    "jaccard_similarity",
]
