"""Heuristic task classifier.

Maps the text of a request (plus a few numeric context signals) to a task
category, a complexity bucket and a recommended provider/model. Matching is
plain keyword containment and regex search over the data tables below.
"""

import re
from dataclasses import dataclass
from typing import Iterable

from .logging import get_logger
from .providers.pricing import MODEL_PRICING, REFERENCE_MODEL
from .types import (
    ClassificationContext,
    ClassificationResult,
    ProviderType,
    TaskCategory,
    TaskComplexity,
)

logger = get_logger(__name__)


# ordered: the first category with a matching keyword wins
TASK_INDICATORS: list[tuple[TaskCategory, TaskComplexity, tuple[str, ...]]] = [
    (TaskCategory.EXPLAIN, TaskComplexity.SIMPLE, (
        "explain", "what does", "what is", "how does", "understand",
        "describe", "tell me about", "meaning of", "definition",
    )),
    (TaskCategory.AUTOCOMPLETE, TaskComplexity.SIMPLE, (
        "complete", "finish", "continue", "next line", "autocomplete",
    )),
    (TaskCategory.REFACTOR, TaskComplexity.MEDIUM, (
        "refactor", "improve", "optimize", "clean up", "simplify",
        "restructure", "rename", "extract",
    )),
    (TaskCategory.GENERATE_TESTS, TaskComplexity.MEDIUM, (
        "test", "tests", "testing", "unit test", "spec", "coverage",
        "jest", "vitest", "pytest",
    )),
    (TaskCategory.FIX_ERROR, TaskComplexity.MEDIUM, (
        "fix", "error", "bug", "issue", "problem", "broken",
        "not working", "failing", "crash",
    )),
    (TaskCategory.MULTI_FILE_EDIT, TaskComplexity.COMPLEX, (
        "all files", "multiple files", "across the project", "everywhere",
        "throughout", "global", "codebase-wide",
    )),
    (TaskCategory.ARCHITECTURE, TaskComplexity.COMPLEX, (
        "architecture", "design", "structure", "pattern", "system",
        "scalability", "migrate", "migration", "convert",
    )),
    (TaskCategory.DEBUG_COMPLEX, TaskComplexity.COMPLEX, (
        "debug", "trace", "investigate", "race condition", "memory leak",
        "performance", "profiling",
    )),
]

# independent: every matching pattern adds its weight
COMPLEXITY_ESCALATORS: list[tuple[re.Pattern, int]] = [
    (re.compile(r"multiple files?", re.IGNORECASE), 1),
    (re.compile(r"entire (project|codebase)", re.IGNORECASE), 2),
    (re.compile(r"refactor.*(and|with|also)", re.IGNORECASE), 1),
    (re.compile(r"complex|complicated|difficult", re.IGNORECASE), 1),
    (re.compile(r"architecture|system design", re.IGNORECASE), 2),
    (re.compile(r"security|vulnerability", re.IGNORECASE), 1),
    (re.compile(r"performance|optimization", re.IGNORECASE), 1),
    (re.compile(r"database|migration", re.IGNORECASE), 1),
    (re.compile(r"api design|interface", re.IGNORECASE), 1),
]

BASE_SCORES = {
    TaskComplexity.SIMPLE: 0,
    TaskComplexity.MEDIUM: 3,
    TaskComplexity.COMPLEX: 6,
}

DEFAULT_CATEGORY = TaskCategory.CHAT
DEFAULT_COMPLEXITY = TaskComplexity.MEDIUM

# fixed per-message token counts used by estimate_savings
AVERAGE_INPUT_TOKENS = 1000
AVERAGE_OUTPUT_TOKENS = 500


@dataclass(frozen=True)
class ModelRecommendation:
    provider: ProviderType
    model: str


# primary / fallback / premium per bucket
MODEL_RECOMMENDATIONS: dict[TaskComplexity, tuple[ModelRecommendation, ...]] = {
    TaskComplexity.SIMPLE: (
        ModelRecommendation(ProviderType.OLLAMA, "qwen2.5-coder"),
        ModelRecommendation(ProviderType.GROQ, "llama-3.1-8b-instant"),
        ModelRecommendation(ProviderType.OPENAI, "gpt-4o-mini"),
    ),
    TaskComplexity.MEDIUM: (
        ModelRecommendation(ProviderType.GROQ, "llama-3.1-70b-versatile"),
        ModelRecommendation(ProviderType.OPENAI, "gpt-4o-mini"),
        ModelRecommendation(ProviderType.ANTHROPIC, "claude-3-5-haiku-20241022"),
    ),
    TaskComplexity.COMPLEX: (
        ModelRecommendation(ProviderType.ANTHROPIC, "claude-sonnet-4-20250514"),
        ModelRecommendation(ProviderType.OPENAI, "gpt-4o"),
        ModelRecommendation(ProviderType.ANTHROPIC, "claude-opus-4-20250514"),
    ),
}

FALLBACK_RECOMMENDATION = ModelRecommendation(ProviderType.ANTHROPIC, REFERENCE_MODEL)


@dataclass
class SavingsEstimate:
    """Projected cost with and without routing, in USD."""
    with_routing: float
    without_routing: float
    savings: float
    savings_percent: float


def bucket_for_score(score: int) -> TaskComplexity:
    if score <= 2:
        return TaskComplexity.SIMPLE
    if score <= 5:
        return TaskComplexity.MEDIUM
    return TaskComplexity.COMPLEX


class TaskClassifier:
    """Keyword/regex classifier and provider recommender.

    Args:
        use_local_models: Allow a local (ollama) primary recommendation.
        available_providers: Provider names the recommender may pick.
            Defaults to every known variant.
    """

    def __init__(
        self,
        use_local_models: bool = True,
        available_providers: Iterable[str] | None = None,
    ):
        self.use_local_models = use_local_models
        if available_providers is None:
            available_providers = [p.value for p in ProviderType]
        self.available_providers: set[str] = set(available_providers)

    def set_available_providers(self, providers: Iterable[str]) -> None:
        self.available_providers = set(providers)

    def classify(
        self,
        text: str,
        context: ClassificationContext | None = None,
    ) -> ClassificationResult:
        """Classify a request.

        Args:
            text: The request text (typically the last user message).
            context: Optional numeric signals that raise the score.

        Returns:
            ClassificationResult with the recommended provider and model.
        """
        category, base, matched = self._detect_category(text)

        score = BASE_SCORES[base]
        for pattern, weight in COMPLEXITY_ESCALATORS:
            if pattern.search(text):
                score += weight
        score += self._context_score(context)

        complexity = bucket_for_score(score)
        recommendation = self.recommend(complexity)

        result = ClassificationResult(
            category=category,
            complexity=complexity,
            confidence=0.8 if matched else 0.5,
            suggested_provider=recommendation.provider,
            suggested_model=recommendation.model,
            reasoning=self._build_reasoning(category, complexity, matched, score),
            score=score,
            matched_keywords=matched,
        )
        logger.debug(f"classified request: {result.reasoning}")
        return result

    @staticmethod
    def _detect_category(text: str) -> tuple[TaskCategory, TaskComplexity, list[str]]:
        lowered = text.lower()
        for category, complexity, keywords in TASK_INDICATORS:
            for keyword in keywords:
                if keyword in lowered:
                    return category, complexity, [keyword]
        return DEFAULT_CATEGORY, DEFAULT_COMPLEXITY, []

    @staticmethod
    def _context_score(context: ClassificationContext | None) -> int:
        if context is None:
            return 0

        score = 0
        # long code
        if context.code_length and context.code_length > 500:
            score += 1
        if context.code_length and context.code_length > 2000:
            score += 2
        # every file counts once there is more than one
        if context.file_count and context.file_count > 1:
            score += context.file_count
        # long conversations need context awareness
        if context.conversation_length and context.conversation_length > 5:
            score += 1
        return score

    @staticmethod
    def _build_reasoning(
        category: TaskCategory,
        complexity: TaskComplexity,
        keywords: list[str],
        score: int,
    ) -> str:
        parts = [
            f"Task category: {category.value}",
            f"Complexity: {complexity.value} (score: {score})",
        ]
        if keywords:
            parts.append(f"Detected keywords: {', '.join(keywords)}")
        return " | ".join(parts)

    def recommend(self, complexity: TaskComplexity) -> ModelRecommendation:
        """Pick the first available tier for a bucket."""
        for tier, recommendation in enumerate(MODEL_RECOMMENDATIONS[complexity]):
            if (
                tier == 0
                and recommendation.provider == ProviderType.OLLAMA
                and not self.use_local_models
            ):
                continue
            if recommendation.provider.value in self.available_providers:
                return recommendation
        return FALLBACK_RECOMMENDATION

    def force_complexity(self, complexity: TaskComplexity) -> ModelRecommendation:
        """Recommendation for a caller-chosen bucket, skipping classification."""
        return self.recommend(complexity)

    def estimate_savings(
        self,
        items: Iterable[tuple[TaskCategory, TaskComplexity]],
    ) -> SavingsEstimate:
        """Compare routed cost against always using the reference model.

        Every item is assumed to cost 1000 input and 500 output tokens.
        """
        reference = MODEL_PRICING[REFERENCE_MODEL]
        without_routing = 0.0
        with_routing = 0.0

        for _category, complexity in items:
            without_routing += reference.cost(AVERAGE_INPUT_TOKENS, AVERAGE_OUTPUT_TOKENS)
            price = MODEL_PRICING.get(self.recommend(complexity).model, reference)
            with_routing += price.cost(AVERAGE_INPUT_TOKENS, AVERAGE_OUTPUT_TOKENS)

        savings = without_routing - with_routing
        return SavingsEstimate(
            with_routing=with_routing,
            without_routing=without_routing,
            savings=savings,
            savings_percent=(savings / without_routing * 100) if without_routing > 0 else 0.0,
        )
