"""Provider manager: routing, caching, cost tracking and failover.

The manager owns the registry of provider adapters, picks one per request
(explicit override, classifier suggestion, or the default provider), serves
repeated requests from the response cache and appends every call with
reported usage to the cost ledger.
"""

from typing import Callable

from .classifier import TaskClassifier
from .config import Settings, get_settings
from .core.cost_ledger import CostLedger, CostSubscriber
from .core.response_cache import ResponseCache
from .exceptions import ProviderUnavailableError
from .logging import get_logger
from .providers.base import BaseProvider
from .providers.factory import create_provider
from .types import (
    ChunkCallback,
    ClassificationContext,
    CompletionRequest,
    CompletionResponse,
    CostSummary,
    ProviderConfig,
    ProviderType,
    TaskComplexity,
)

logger = get_logger(__name__)

DEFAULT_PROVIDER = ProviderType.ANTHROPIC.value


def _provider_name(provider: ProviderType | str) -> str:
    return provider.value if isinstance(provider, ProviderType) else provider


class ProviderManager:
    """Unified entry point for every provider call.

    Args:
        classifier: Task classifier used for routing. A default one is
            created when omitted.
        default_provider: Name of the provider used when routing cannot
            serve a request.
        smart_routing: Route by classification. When off, every request
            goes to the default provider.
        cache: Response cache (a fresh one when omitted).
        ledger: Cost ledger (a fresh one when omitted).
    """

    def __init__(
        self,
        classifier: TaskClassifier | None = None,
        default_provider: str = DEFAULT_PROVIDER,
        smart_routing: bool = True,
        cache: ResponseCache | None = None,
        ledger: CostLedger | None = None,
    ):
        self.classifier = classifier or TaskClassifier()
        self.default_provider = default_provider
        self.smart_routing = smart_routing
        self.cache = cache or ResponseCache()
        self.ledger = ledger or CostLedger()
        self._providers: dict[str, BaseProvider] = {}

    # ==================== registry ====================

    @property
    def provider_names(self) -> list[str]:
        return list(self._providers)

    def get_provider(self, name: ProviderType | str) -> BaseProvider | None:
        return self._providers.get(_provider_name(name))

    def register_provider(self, name: str, config: ProviderConfig) -> BaseProvider:
        """Build an adapter from config and register it under name.

        Raises:
            ValueError: If the adapter cannot be built from config.
        """
        provider = create_provider(config)
        self.add_provider(name, provider)
        return provider

    def add_provider(self, name: str, provider: BaseProvider) -> None:
        """Register an already built adapter, replacing any under the same name."""
        # swap in a new mapping so concurrent readers never see a partial update
        self._providers = {**self._providers, name: provider}
        logger.debug(f"registered provider {name}: {provider!r}")

    async def get_available_providers(self) -> list[str]:
        """Names of registered providers whose liveness probe succeeds."""
        available = []
        for name, provider in self._providers.items():
            if await provider.is_available():
                available.append(name)
        return available

    async def reinitialize(self, settings: Settings | None = None) -> None:
        """Rebuild the registry from settings, then refresh the classifier.

        The cache and the cost ledger are left untouched.
        """
        settings = settings or get_settings()
        providers: dict[str, BaseProvider] = {}
        for name, config in settings.provider_configs().items():
            try:
                providers[name] = create_provider(config)
            except ValueError as e:
                logger.warning(f"skipping provider {name}: {e}")

        previous = self._providers
        self._providers = providers
        self.smart_routing = settings.enable_smart_routing
        self.classifier.use_local_models = settings.use_local_models

        for provider in previous.values():
            await provider.close()

        available = await self.get_available_providers()
        self.classifier.set_available_providers(available)
        logger.info(f"providers registered: {self.provider_names}, available: {available}")

    async def close(self) -> None:
        for provider in self._providers.values():
            await provider.close()

    # ==================== selection ====================

    def _fallback_provider(self) -> BaseProvider:
        providers = self._providers
        if self.default_provider in providers:
            return providers[self.default_provider]
        if providers:
            name, provider = next(iter(providers.items()))
            logger.info(f"default provider {self.default_provider} not registered, using {name}")
            return provider
        raise ProviderUnavailableError("No providers available")

    async def select_provider(
        self,
        request: CompletionRequest,
        force_provider: ProviderType | str | None = None,
        force_complexity: TaskComplexity | None = None,
    ) -> BaseProvider:
        """Pick the adapter for a request.

        Raises:
            ProviderUnavailableError: If a forced provider is not registered,
                or if no provider is registered at all.
        """
        if force_provider is not None:
            name = _provider_name(force_provider)
            provider = self._providers.get(name)
            if provider is None:
                raise ProviderUnavailableError(f"Provider {name} not configured", provider=name)
            return provider

        if not self.smart_routing:
            return self._fallback_provider()

        if force_complexity is not None:
            suggested = self.classifier.force_complexity(force_complexity).provider
        else:
            text = request.last_user_content()
            classification = self.classifier.classify(
                text,
                ClassificationContext(
                    code_length=len(text),
                    conversation_length=len(request.messages),
                    has_tool_use=bool(request.tools),
                ),
            )
            suggested = classification.suggested_provider

        provider = self._providers.get(suggested.value)
        if provider is not None and await provider.is_available():
            return provider

        logger.info(f"suggested provider {suggested.value} unavailable, falling back")
        return self._fallback_provider()

    # ==================== calls ====================

    async def complete(
        self,
        request: CompletionRequest,
        force_provider: ProviderType | str | None = None,
        force_complexity: TaskComplexity | None = None,
        use_cache: bool = True,
    ) -> CompletionResponse:
        """Single round-trip completion with routing, caching and cost tracking."""
        if use_cache:
            cached = self.cache.get(request)
            if cached is not None:
                return cached

        provider = await self.select_provider(request, force_provider, force_complexity)
        response = await provider.complete(request)

        self._track_cost(provider, response)
        self.cache.put(request, response)
        return response

    async def stream(
        self,
        request: CompletionRequest,
        on_chunk: ChunkCallback,
        force_provider: ProviderType | str | None = None,
        force_complexity: TaskComplexity | None = None,
    ) -> CompletionResponse:
        """Streaming completion. Never cached; cost is still tracked."""
        provider = await self.select_provider(request, force_provider, force_complexity)
        response = await provider.stream(request, on_chunk)
        self._track_cost(provider, response)
        return response

    # ==================== cost ====================

    def _track_cost(self, provider: BaseProvider, response: CompletionResponse) -> None:
        if response.usage is None:
            return
        cost = provider.estimate_cost(response.usage.input_tokens, response.usage.output_tokens)
        self.ledger.record(provider.type, provider.model, response.usage, cost)

    def on_cost_update(self, callback: CostSubscriber) -> Callable[[], None]:
        """Subscribe to ledger updates. Returns an unsubscribe function."""
        return self.ledger.subscribe(callback)

    @property
    def total_cost(self) -> float:
        return self.ledger.total

    def get_cost_summary(self) -> CostSummary:
        return self.ledger.summarize(
            lambda items: self.classifier.estimate_savings(items).savings
        )

    def reset_cost_tracking(self) -> None:
        self.ledger.reset()

    def clear_cache(self) -> None:
        self.cache.clear()

    @property
    def current_model(self) -> str:
        """Model of the default provider, or 'unknown'."""
        provider = self._providers.get(self.default_provider)
        return provider.model if provider else "unknown"
