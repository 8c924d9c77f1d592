"""Tests for settings and provider config resolution."""

import pytest

from llm_orchestrator.config import DEFAULT_OLLAMA_URL, GROQ_BASE_URL, Settings, get_settings
from llm_orchestrator.types import ProviderType

KEY_VARS = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "GROQ_API_KEY",
    "TOGETHER_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "USE_LOCAL_MODELS",
    "ENABLE_SMART_ROUTING",
)


@pytest.fixture
def clean_env(monkeypatch):
    for var in KEY_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_only_ollama_without_keys(clean_env):
    configs = Settings(_env_file=None).provider_configs()
    assert list(configs) == ["ollama"]
    assert configs["ollama"].base_url == DEFAULT_OLLAMA_URL
    assert configs["ollama"].api_key is None


def test_keys_from_environment(clean_env):
    clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant")
    clean_env.setenv("GROQ_API_KEY", "gsk")
    clean_env.setenv("GEMINI_API_KEY", "gem")

    configs = Settings(_env_file=None).provider_configs()

    assert list(configs) == ["anthropic", "groq", "google", "ollama"]
    assert configs["anthropic"].type == ProviderType.ANTHROPIC
    assert configs["anthropic"].model == "claude-sonnet-4-20250514"
    assert configs["groq"].base_url == GROQ_BASE_URL
    assert configs["google"].api_key == "gem"


def test_routing_flags(clean_env):
    clean_env.setenv("USE_LOCAL_MODELS", "false")
    clean_env.setenv("ENABLE_SMART_ROUTING", "0")
    settings = Settings(_env_file=None)
    assert settings.use_local_models is False
    assert settings.enable_smart_routing is False


def test_get_settings_is_cached(clean_env):
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
