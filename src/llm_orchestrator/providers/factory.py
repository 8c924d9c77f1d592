"""Factory for creating provider adapters.

This module maps each ProviderType to its adapter class through a registry.
Adapter modules are imported lazily, so a backend's SDK is only imported
when that backend is actually configured.
"""

import importlib

from ..types import ProviderConfig, ProviderType
from .base import BaseProvider

# registry of adapter class paths and default models
_PROVIDER_REGISTRY: dict[ProviderType, dict[str, str]] = {
    ProviderType.ANTHROPIC: {
        "class_path": "llm_orchestrator.providers.anthropic.AnthropicProvider",
        "default_model": "claude-sonnet-4-20250514",
    },
    ProviderType.OPENAI: {
        "class_path": "llm_orchestrator.providers.openai.OpenAIProvider",
        "default_model": "gpt-4o-mini",
    },
    ProviderType.GROQ: {
        "class_path": "llm_orchestrator.providers.groq.GroqProvider",
        "default_model": "llama-3.1-70b-versatile",
    },
    ProviderType.TOGETHER: {
        "class_path": "llm_orchestrator.providers.together.TogetherProvider",
        "default_model": "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo",
    },
    ProviderType.GOOGLE: {
        "class_path": "llm_orchestrator.providers.google.GoogleProvider",
        "default_model": "gemini-2.0-flash",
    },
    ProviderType.OLLAMA: {
        "class_path": "llm_orchestrator.providers.ollama.OllamaProvider",
        "default_model": "qwen2.5-coder",
    },
}


def get_supported_providers() -> list[ProviderType]:
    """Get the list of provider variants the factory can build."""
    return list(_PROVIDER_REGISTRY.keys())


def get_default_model(provider_type: ProviderType) -> str:
    """Get the default model for a provider variant.

    Raises:
        ValueError: If the variant is not registered.
    """
    if provider_type not in _PROVIDER_REGISTRY:
        raise ValueError(f"Unknown provider: {provider_type}. Available: {get_supported_providers()}")
    return _PROVIDER_REGISTRY[provider_type]["default_model"]


def create_provider(config: ProviderConfig) -> BaseProvider:
    """Create the adapter for config.type.

    An empty config.model is replaced with the variant's default model.

    Raises:
        ValueError: If the variant is unknown or a required API key is missing.
    """
    if config.type not in _PROVIDER_REGISTRY:
        raise ValueError(f"Unknown provider: {config.type}. Available: {get_supported_providers()}")

    entry = _PROVIDER_REGISTRY[config.type]
    if not config.model:
        config = ProviderConfig(
            type=config.type,
            model=entry["default_model"],
            api_key=config.api_key,
            base_url=config.base_url,
        )

    provider_class = _import_provider_class(entry["class_path"])
    return provider_class(config)


def _import_provider_class(class_path: str) -> type[BaseProvider]:
    """Import an adapter class from its dotted path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
