"""Tests for the provider manager."""

import pytest
from conftest import FakeProvider

from llm_orchestrator.classifier import TaskClassifier
from llm_orchestrator.config import Settings
from llm_orchestrator.exceptions import ProviderCallError, ProviderUnavailableError
from llm_orchestrator.manager import ProviderManager
from llm_orchestrator.types import (
    CompletionRequest,
    Message,
    MessageRole,
    ProviderType,
    TaskComplexity,
)

LONG_ANSWER = "Closures capture variables from the enclosing scope, even after it returns."


def ask(text: str) -> CompletionRequest:
    return CompletionRequest(messages=[Message(role=MessageRole.USER, content=text)])


def routing_manager(**providers) -> ProviderManager:
    manager = ProviderManager(classifier=TaskClassifier(), smart_routing=True)
    for name, provider in providers.items():
        manager.add_provider(name, provider)
    return manager


class TestSelection:
    async def test_forced_provider(self, manager):
        groq = FakeProvider(ProviderType.GROQ, "llama-3.1-8b-instant")
        manager.add_provider("groq", groq)
        assert await manager.select_provider(ask("hi"), force_provider="groq") is groq
        assert await manager.select_provider(ask("hi"), force_provider=ProviderType.GROQ) is groq

    async def test_forced_provider_not_registered(self, manager):
        with pytest.raises(ProviderUnavailableError):
            await manager.select_provider(ask("hi"), force_provider="google")

    async def test_empty_registry(self):
        manager = ProviderManager()
        with pytest.raises(ProviderUnavailableError, match="No providers available"):
            await manager.select_provider(ask("hi"))

    async def test_smart_routing_off_uses_default(self, manager, fake_provider):
        manager.add_provider("ollama", FakeProvider(ProviderType.OLLAMA, "qwen2.5-coder"))
        assert await manager.select_provider(ask("explain this")) is fake_provider

    async def test_routes_simple_task_to_local_model(self):
        ollama = FakeProvider(ProviderType.OLLAMA, "qwen2.5-coder")
        manager = routing_manager(anthropic=FakeProvider(), ollama=ollama)
        assert await manager.select_provider(ask("Can you explain how this works?")) is ollama

    async def test_unavailable_suggestion_falls_back_to_default(self):
        default = FakeProvider()
        manager = routing_manager(
            anthropic=default,
            ollama=FakeProvider(ProviderType.OLLAMA, "qwen2.5-coder", available=False),
        )
        assert await manager.select_provider(ask("explain this")) is default

    async def test_unregistered_default_uses_first_registered(self):
        groq = FakeProvider(ProviderType.GROQ, "llama-3.1-70b-versatile")
        manager = ProviderManager(smart_routing=False)
        manager.add_provider("groq", groq)
        assert await manager.select_provider(ask("hi")) is groq

    async def test_force_complexity(self):
        openai = FakeProvider(ProviderType.OPENAI, "gpt-4o")
        manager = routing_manager(
            ollama=FakeProvider(ProviderType.OLLAMA, "qwen2.5-coder"),
            openai=openai,
        )
        manager.classifier.set_available_providers(["ollama", "openai"])
        selected = await manager.select_provider(
            ask("explain this"), force_complexity=TaskComplexity.COMPLEX
        )
        assert selected is openai


class TestComplete:
    async def test_second_identical_request_is_served_from_cache(self, manager, fake_provider):
        fake_provider.replies = [LONG_ANSWER]

        first = await manager.complete(ask("What is a closure?"))
        second = await manager.complete(ask("What is a closure?"))

        assert len(fake_provider.requests) == 1
        assert second.content == first.content
        assert second.model.endswith("(cached)")

    async def test_use_cache_false_bypasses_cache(self, manager, fake_provider):
        fake_provider.replies = [LONG_ANSWER]
        await manager.complete(ask("q"))
        await manager.complete(ask("q"), use_cache=False)
        assert len(fake_provider.requests) == 2

    async def test_short_answers_are_not_cached(self, manager, fake_provider):
        await manager.complete(ask("q"))
        await manager.complete(ask("q"))
        assert len(fake_provider.requests) == 2

    async def test_cost_recorded_per_call(self, manager):
        updates = []
        manager.on_cost_update(updates.append)

        await manager.complete(ask("q"))

        assert len(manager.ledger.records) == 1
        record = manager.ledger.records[0]
        assert record.provider == ProviderType.ANTHROPIC
        assert record.input_tokens == 100
        # claude-sonnet-4: $3/M in, $15/M out
        assert manager.total_cost == pytest.approx((100 * 3 + 50 * 15) / 1_000_000)
        assert updates[0].total == manager.total_cost

    async def test_cache_hits_are_not_charged(self, manager, fake_provider):
        fake_provider.replies = [LONG_ANSWER]
        await manager.complete(ask("q"))
        await manager.complete(ask("q"))
        assert len(manager.ledger.records) == 1

    async def test_provider_errors_propagate(self, manager, fake_provider):
        fake_provider.replies = [ProviderCallError("boom", provider="anthropic")]
        with pytest.raises(ProviderCallError):
            await manager.complete(ask("q"))

    async def test_stream_tracks_cost_without_caching(self, manager, fake_provider):
        fake_provider.replies = [LONG_ANSWER]
        chunks = []

        response = await manager.stream(ask("q"), chunks.append)
        await manager.stream(ask("q"), chunks.append)

        assert response.content == LONG_ANSWER
        assert len(fake_provider.requests) == 2
        assert len(manager.ledger.records) == 2
        assert chunks[0].text == LONG_ANSWER


class TestRegistry:
    async def test_get_available_providers(self, manager):
        manager.add_provider("groq", FakeProvider(ProviderType.GROQ, "x", available=False))
        assert await manager.get_available_providers() == ["anthropic"]

    async def test_reinitialize_builds_from_settings(self, manager, fake_provider, monkeypatch):
        built = {}

        def fake_create(config):
            if config.type == ProviderType.GROQ:
                raise ValueError("bad groq config")
            provider = FakeProvider(config.type, config.model, available=config.type != ProviderType.OLLAMA)
            built[config.type] = provider
            return provider

        monkeypatch.setattr("llm_orchestrator.manager.create_provider", fake_create)
        settings = Settings(
            _env_file=None,
            anthropic_api_key=None,
            openai_api_key="sk-test",
            groq_api_key="gsk-test",
            together_api_key=None,
            google_api_key=None,
            enable_smart_routing=True,
            use_local_models=False,
        )
        await manager.reinitialize(settings)

        assert manager.provider_names == ["openai", "ollama"]
        assert manager.get_provider("openai") is built[ProviderType.OPENAI]
        assert fake_provider.closed
        assert manager.smart_routing is True
        assert manager.classifier.use_local_models is False
        assert manager.classifier.available_providers == {"openai"}

    def test_current_model(self, manager):
        assert manager.current_model == "claude-sonnet-4-20250514"
        assert ProviderManager().current_model == "unknown"

    def test_cost_summary_and_reset(self, manager):
        manager.ledger.record(ProviderType.OPENAI, "gpt-4o", FakeProvider().usage, 0.5)
        summary = manager.get_cost_summary()
        assert summary.total_cost == 0.5
        manager.reset_cost_tracking()
        assert manager.total_cost == 0.0
