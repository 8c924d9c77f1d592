"""Dual-agent orchestrator.

Two role definitions collaborate through one of four protocols. Every step
is an ordinary ProviderManager completion, so routing, caching and cost
tracking apply to the collaboration exactly as they do to a single call.
"""

import asyncio
import re
from dataclasses import dataclass, field

from ..exceptions import AgentError
from ..logging import get_logger
from ..manager import ProviderManager
from ..providers.pricing import ModelPrice
from ..types import CompletionRequest, CompletionResponse, Message, MessageRole, ToolDefinition
from . import prompts
from .models import AgentRole, CollaborationMode, DualAgentConfig, DualAgentResult, RoleConfig
from .presets import DEFAULT_CONFIG

logger = get_logger(__name__)

AGREEMENT_KEYWORDS = ("agree", "correct", "yes", "right", "consensus", "same")
CONFIDENCE_PATTERN = re.compile(r"confidence:\s*(\d+)%?", re.IGNORECASE)
DEFAULT_CONFIDENCE = 0.75

DEBATE_CONSENSUS_CONFIDENCE = 0.9
DEBATE_NO_CONSENSUS_CONFIDENCE = 0.7
ENSEMBLE_CONFIDENCE = 0.85
JUDGE_WINNER_2 = "WINNER: 2"

# flat estimate, independent of the model that served each call
RUN_COST_PRICE = ModelPrice(3, 15)

JUDGE = RoleConfig(name="Judge", role=AgentRole.CRITIC, system_prompt=prompts.JUDGE_PROMPT)
SYNTHESIZER = RoleConfig(
    name="Synthesizer", role=AgentRole.SYNTHESIZER, system_prompt=prompts.SYNTHESIZER_PROMPT
)


def jaccard_similarity(text1: str, text2: str) -> float:
    """Jaccard index of the lower-cased whitespace-separated word sets."""
    words1 = set(text1.lower().split())
    words2 = set(text2.lower().split())
    union = words1 | words2
    if not union:
        return 1.0
    return len(words1 & words2) / len(union)


def check_consensus(statement1: str, statement2: str, threshold: float) -> bool:
    """Whether two debate statements agree.

    True when the word overlap reaches the threshold, or when an agreement
    keyword appears in both statements.
    """
    if jaccard_similarity(statement1, statement2) >= threshold:
        return True
    lower1, lower2 = statement1.lower(), statement2.lower()
    return any(kw in lower1 and kw in lower2 for kw in AGREEMENT_KEYWORDS)


def extract_confidence(text: str) -> float:
    """Read a 'confidence: NN%' marker as a 0..1 value, 0.75 when absent."""
    match = CONFIDENCE_PATTERN.search(text)
    if match:
        return int(match.group(1)) / 100
    return DEFAULT_CONFIDENCE


@dataclass
class RunUsage:
    """Tokens and flat-rate cost of one collaboration run."""
    tokens: int = 0
    cost: float = 0.0

    def add(self, response: CompletionResponse) -> None:
        if response.usage is None:
            return
        self.tokens += response.usage.total_tokens
        self.cost += RUN_COST_PRICE.cost(response.usage.input_tokens, response.usage.output_tokens)


@dataclass
class _Run:
    """Mutable state of one execute() call."""
    query: str
    context: str | None
    tools: list[ToolDefinition] | None
    usage: RunUsage = field(default_factory=RunUsage)
    agent1_outputs: list[str] = field(default_factory=list)
    agent2_outputs: list[str] = field(default_factory=list)
    sections: list[str] = field(default_factory=list)

    def note(self, title: str, content: str) -> None:
        self.sections.append(f"## {title}\n{content}\n\n")

    @property
    def thinking(self) -> str:
        return "".join(self.sections)


def _conversation(system: str | None, *turns: tuple[MessageRole, str]) -> list[Message]:
    messages = [Message(role=MessageRole.SYSTEM, content=system)] if system else []
    messages.extend(Message(role=role, content=content) for role, content in turns)
    return messages


USER = MessageRole.USER
ASSISTANT = MessageRole.ASSISTANT


class DualAgentOrchestrator:
    """Runs two agents through a collaboration protocol.

    Args:
        manager: Provider manager serving every call.
        config: Collaboration config. Defaults to a sequential
            generator/critic pair.
    """

    def __init__(self, manager: ProviderManager, config: DualAgentConfig | None = None):
        self.manager = manager
        self._config = config or DEFAULT_CONFIG
        self.last_usage = RunUsage()

    @property
    def config(self) -> DualAgentConfig:
        return self._config

    def configure(self, **changes) -> DualAgentConfig:
        """Replace the config with a modified copy and return it."""
        self._config = self._config.with_overrides(**changes)
        return self._config

    async def execute(
        self,
        query: str,
        context: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> DualAgentResult:
        """Run one collaboration.

        Args:
            query: The user's request.
            context: Optional context prepended to the opening turn.
            tools: Tool catalog offered to the generating calls.

        Returns:
            DualAgentResult. Provider failures end the run early and are
            reported in its error field.
        """
        config = self._config
        run = _Run(query=query, context=context, tools=tools or None)
        self.last_usage = run.usage
        logger.info(f"starting {config.mode.value} collaboration")

        protocols = {
            CollaborationMode.SEQUENTIAL: self._sequential,
            CollaborationMode.DEBATE: self._debate,
            CollaborationMode.ENSEMBLE: self._ensemble,
            CollaborationMode.CHAIN_OF_THOUGHT: self._chain_of_thought,
        }
        try:
            result = await protocols[config.mode](run, config)
        except AgentError as e:
            logger.error(f"{config.mode.value} collaboration failed: {e}")
            result = DualAgentResult(
                final_response="",
                mode=config.mode,
                agent1_outputs=run.agent1_outputs,
                agent2_outputs=run.agent2_outputs,
                error=str(e),
            )

        result.thinking = run.thinking if config.enable_thinking else None
        result.total_tokens = run.usage.tokens
        result.total_cost = run.usage.cost
        return result

    async def _call(
        self,
        run: _Run,
        role: RoleConfig,
        messages: list[Message],
        with_tools: bool = False,
    ) -> str:
        response = await self.manager.complete(
            CompletionRequest(
                messages=messages,
                tools=run.tools if with_tools else None,
                temperature=role.temperature,
            ),
            force_provider=role.provider,
        )
        run.usage.add(response)
        if self._config.debug_mode:
            logger.debug(f"{role.name}: {response.content[:200]}...")
        return response.content

    # ==================== protocols ====================

    async def _sequential(self, run: _Run, config: DualAgentConfig) -> DualAgentResult:
        """Generator answers, critic reviews, generator refines."""
        generator_prompt = config.agent1.system_prompt or prompts.GENERATOR_PROMPT
        critic_prompt = config.agent2.system_prompt or prompts.CRITIC_PROMPT

        opening = prompts.with_context(run.query, run.context, "Context:\n{context}\n\nQuery: {query}")
        draft = await self._call(
            run, config.agent1, _conversation(generator_prompt, (USER, opening)), with_tools=True
        )
        run.agent1_outputs.append(draft)
        run.note("Generator Output", draft)

        critique = await self._call(
            run,
            config.agent2,
            _conversation(critic_prompt, (USER, prompts.review_request(run.query, draft))),
        )
        run.agent2_outputs.append(critique)
        run.note("Critic Feedback", critique)

        refined = await self._call(
            run,
            config.agent1,
            _conversation(
                generator_prompt,
                (USER, run.query),
                (ASSISTANT, draft),
                (USER, prompts.refine_request(critique)),
            ),
            with_tools=True,
        )
        run.agent1_outputs.append(refined)
        run.note("Refined Response", refined)

        return DualAgentResult(
            final_response=refined,
            mode=config.mode,
            iterations=1,
            agent1_outputs=run.agent1_outputs,
            agent2_outputs=run.agent2_outputs,
            consensus_reached=True,
            confidence=extract_confidence(critique),
        )

    async def _debate(self, run: _Run, config: DualAgentConfig) -> DualAgentResult:
        """Opening positions, rebuttal rounds until consensus, then synthesis."""
        agent1, agent2 = config.agent1, config.agent2

        position1 = await self._call(
            run,
            agent1,
            _conversation(
                prompts.DEBATE_OPENING_PREFIX + (agent1.system_prompt or ""),
                (USER, prompts.with_context(run.query, run.context)),
            ),
            with_tools=True,
        )
        run.agent1_outputs.append(position1)
        run.note("Round 1 - Agent 1", position1)

        position2 = await self._call(
            run,
            agent2,
            _conversation(
                prompts.DEBATE_RESPONSE_PREFIX + (agent2.system_prompt or ""),
                (USER, run.query),
                (ASSISTANT, f"Other agent says: {position1}"),
                (USER, prompts.DEBATE_OPENING_QUESTION),
            ),
            with_tools=True,
        )
        run.agent2_outputs.append(position2)
        run.note("Round 1 - Agent 2", position2)

        rounds = 1
        consensus = False
        while not consensus and rounds < config.max_iterations:
            logger.debug(f"debate round {rounds + 1}")

            position1 = await self._call(
                run,
                agent1,
                _conversation(
                    agent1.system_prompt,
                    (USER, run.query),
                    (ASSISTANT, position1),
                    (USER, prompts.debate_reply_request(position2)),
                ),
            )
            run.agent1_outputs.append(position1)
            run.note(f"Round {rounds + 1} - Agent 1", position1)

            position2 = await self._call(
                run,
                agent2,
                _conversation(
                    agent2.system_prompt,
                    (USER, run.query),
                    (ASSISTANT, position2),
                    (USER, prompts.debate_reply_request(position1)),
                ),
            )
            run.agent2_outputs.append(position2)
            run.note(f"Round {rounds + 1} - Agent 2", position2)

            rounds += 1
            consensus = check_consensus(position1, position2, config.consensus_threshold)
            logger.debug(f"consensus after round {rounds}: {consensus}")

        synthesis = await self._call(
            run,
            SYNTHESIZER,
            _conversation(
                SYNTHESIZER.system_prompt,
                (USER, prompts.synthesis_request(run.query, position1, position2)),
            ),
        )
        run.note("Synthesis", synthesis)

        return DualAgentResult(
            final_response=synthesis,
            mode=config.mode,
            iterations=rounds,
            agent1_outputs=run.agent1_outputs,
            agent2_outputs=run.agent2_outputs,
            consensus_reached=consensus,
            confidence=DEBATE_CONSENSUS_CONFIDENCE if consensus else DEBATE_NO_CONSENSUS_CONFIDENCE,
        )

    async def _ensemble(self, run: _Run, config: DualAgentConfig) -> DualAgentResult:
        """Both agents answer concurrently and a judge picks one."""
        opening = prompts.with_context(run.query, run.context)

        def generate(role: RoleConfig):
            system = role.system_prompt or prompts.ENSEMBLE_DEFAULT_PROMPT
            return self._call(run, role, _conversation(system, (USER, opening)), with_tools=True)

        tasks = [
            asyncio.create_task(generate(config.agent1)),
            asyncio.create_task(generate(config.agent2)),
        ]
        try:
            response1, response2 = await asyncio.gather(*tasks)
        except Exception:
            # a failed generation must not leave its sibling running past the run
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        run.agent1_outputs.append(response1)
        run.agent2_outputs.append(response2)
        run.note("Agent 1 Response", response1)
        run.note("Agent 2 Response", response2)

        verdict = await self._call(
            run,
            JUDGE,
            _conversation(
                JUDGE.system_prompt,
                (USER, prompts.judge_request(run.query, response1, response2)),
            ),
        )
        run.note("Judge Decision", verdict)

        # anything but an explicit vote for 2 keeps generation 1
        winner = response2 if JUDGE_WINNER_2 in verdict else response1

        return DualAgentResult(
            final_response=winner,
            mode=config.mode,
            iterations=1,
            agent1_outputs=run.agent1_outputs,
            agent2_outputs=run.agent2_outputs,
            consensus_reached=True,
            confidence=ENSEMBLE_CONFIDENCE,
        )

    async def _chain_of_thought(self, run: _Run, config: DualAgentConfig) -> DualAgentResult:
        """Breakdown, solution, verification and a fix when the verifier objects."""
        agent1 = config.agent1

        breakdown = await self._call(
            run,
            agent1,
            _conversation(
                prompts.BREAKDOWN_SYSTEM_PROMPT,
                (USER, prompts.breakdown_request(run.query, run.context)),
            ),
        )
        run.agent1_outputs.append(breakdown)
        run.note("Step 1: Problem Breakdown", breakdown)

        solution = await self._call(
            run,
            agent1,
            _conversation(
                prompts.SOLVE_SYSTEM_PROMPT,
                (USER, run.query),
                (ASSISTANT, breakdown),
                (USER, prompts.SOLVE_REQUEST),
            ),
            with_tools=True,
        )
        run.agent1_outputs.append(solution)
        run.note("Step 2: Solution", solution)

        verification = await self._call(
            run,
            config.agent2,
            _conversation(
                prompts.VERIFIER_PROMPT,
                (USER, prompts.verification_request(run.query, solution)),
            ),
        )
        run.agent2_outputs.append(verification)
        run.note("Step 3: Verification", verification)

        final = solution
        verdict = verification.lower()
        refined = "verified: no" in verdict or "issues:" in verdict
        if refined:
            final = await self._call(
                run,
                agent1,
                _conversation(
                    None,
                    (USER, run.query),
                    (ASSISTANT, solution),
                    (USER, prompts.fix_request(verification)),
                ),
                with_tools=True,
            )
            run.agent1_outputs.append(final)
            run.note("Step 4: Refined Solution", final)

        return DualAgentResult(
            final_response=final,
            mode=config.mode,
            iterations=len(run.agent1_outputs),
            agent1_outputs=run.agent1_outputs,
            agent2_outputs=run.agent2_outputs,
            consensus_reached=not refined,
            confidence=extract_confidence(verification),
        )
