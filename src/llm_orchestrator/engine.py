"""Engine context: the process-wide objects, built once at startup.

An Engine owns one TaskClassifier and one ProviderManager. Agent loops and
orchestrators are created from it and share its registry, response cache
and cost ledger.
"""

from .agent import DEFAULT_SYSTEM_PROMPT, AgentLoop
from .classifier import TaskClassifier
from .config import Settings, get_settings
from .core.prompt_builder import ContextProvider, MemoryProvider
from .core.tool_executor import Confirmer, ToolExecutor
from .manager import ProviderManager
from .multi_agent import DualAgentConfig, DualAgentOrchestrator
from .types import AgentConfig, ToolDefinition


class Engine:
    """Holds the classifier and provider manager of the process.

    Use Engine.from_settings() to build one, then await initialize() to
    register the configured providers.
    """

    def __init__(self, manager: ProviderManager, settings: Settings | None = None):
        self.manager = manager
        self.classifier = manager.classifier
        self.settings = settings

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Engine":
        settings = settings or get_settings()
        classifier = TaskClassifier(use_local_models=settings.use_local_models)
        manager = ProviderManager(
            classifier=classifier,
            smart_routing=settings.enable_smart_routing,
        )
        return cls(manager, settings)

    async def initialize(self) -> None:
        """Register every configured provider and probe its availability."""
        await self.manager.reinitialize(self.settings)

    async def close(self) -> None:
        await self.manager.close()

    async def __aenter__(self) -> "Engine":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def agent(
        self,
        tools: list[ToolDefinition] | None = None,
        executor: ToolExecutor | None = None,
        config: AgentConfig | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        memory: MemoryProvider | None = None,
        context: ContextProvider | None = None,
        confirm: Confirmer | None = None,
    ) -> AgentLoop:
        """Create an agent loop over the shared manager."""
        return AgentLoop(
            self.manager,
            tools=tools,
            executor=executor,
            config=config,
            system_prompt=system_prompt,
            memory=memory,
            context=context,
            confirm=confirm,
        )

    def orchestrator(self, config: DualAgentConfig | None = None) -> DualAgentOrchestrator:
        """Create a dual-agent orchestrator over the shared manager."""
        return DualAgentOrchestrator(self.manager, config)
