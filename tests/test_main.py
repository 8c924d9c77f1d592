"""Tests for the CLI and the engine context."""

import pytest
from conftest import FakeProvider

from llm_orchestrator import main as cli
from llm_orchestrator.config import Settings
from llm_orchestrator.engine import Engine
from llm_orchestrator.multi_agent import CollaborationMode
from llm_orchestrator.types import ProviderType


@pytest.fixture
def settings(monkeypatch):
    for var in ("OPENAI_API_KEY", "GROQ_API_KEY", "TOGETHER_API_KEY", "GOOGLE_API_KEY", "GEMINI_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    return Settings(_env_file=None, anthropic_api_key="sk-test", use_local_models=False)


@pytest.fixture
def fake_factory(monkeypatch):
    """Build FakeProviders instead of real adapters."""
    built = {}

    def create(config):
        provider = FakeProvider(config.type, model=config.model, replies=[f"{config.type.value} says hi"])
        built[config.type.value] = provider
        return provider

    monkeypatch.setattr("llm_orchestrator.manager.create_provider", create)
    return built


class TestParser:
    def test_classify(self):
        args = cli.build_parser().parse_args(["classify", "explain this", "--no-local"])
        assert args.command == "classify"
        assert args.no_local is True

    def test_collab(self):
        args = cli.build_parser().parse_args(
            ["collab", "Is P = NP?", "--mode", "chain-of-thought", "--preset", "debate"]
        )
        assert args.mode == CollaborationMode.CHAIN_OF_THOUGHT.value
        assert args.preset == "debate"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


def test_run_classify_prints_route(monkeypatch, capsys, settings):
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    args = cli.build_parser().parse_args(["classify", "Refactor the architecture across the entire codebase"])

    cli.run_classify(args)

    out = capsys.readouterr().out
    assert "Complexity: complex" in out
    assert "Suggested:  anthropic / claude-sonnet-4-20250514" in out


class TestEngine:
    async def test_lifecycle(self, settings, fake_factory):
        async with Engine.from_settings(settings) as engine:
            assert "anthropic" in engine.manager.provider_names
            assert engine.classifier.use_local_models is False

            response = await engine.agent().run("hello")
            assert response.content == "anthropic says hi"

        assert all(provider.closed for provider in fake_factory.values())

    async def test_orchestrator_shares_manager(self, settings, fake_factory):
        async with Engine.from_settings(settings) as engine:
            orchestrator = engine.orchestrator()
            result = await orchestrator.execute("Write a haiku")

        assert orchestrator.manager is engine.manager
        assert result.mode == CollaborationMode.SEQUENTIAL
        assert result.error is None
        assert fake_factory[ProviderType.ANTHROPIC.value].requests
