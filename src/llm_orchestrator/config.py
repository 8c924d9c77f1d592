"""centralized configuration management using pydantic settings.

this module resolves which provider backends are configured and with which
models. values are loaded from environment variables and an optional .env
file. the engine itself never reads the environment directly; it receives
resolved ProviderConfig values from here.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .types import ProviderConfig, ProviderType

DEFAULT_OLLAMA_URL = "http://localhost:11434"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class Settings(BaseSettings):
    """main settings class for the orchestration engine.

    attributes:
        anthropic_api_key: api key for anthropic (claude)
        openai_api_key: api key for openai
        openai_base_url: optional base url for an openai-compatible endpoint
        groq_api_key: api key for groq
        together_api_key: api key for together ai
        google_api_key: api key for google (gemini)
        ollama_url: base url of the local ollama server
        use_local_models: allow the router to pick the local ollama primary
        enable_smart_routing: route by classification instead of the default provider
        log_level: logging level (DEBUG, INFO, WARNING, ERROR)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # api keys and models per provider
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-20250514"

    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None

    groq_api_key: str | None = None
    groq_model: str = "llama-3.1-70b-versatile"

    together_api_key: str | None = None
    together_model: str = "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo"

    google_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    )
    google_model: str = "gemini-2.0-flash"

    # local models, always registered
    ollama_url: str = DEFAULT_OLLAMA_URL
    ollama_model: str = "qwen2.5-coder"

    # routing
    use_local_models: bool = True
    enable_smart_routing: bool = True

    log_level: str = Field(
        default="WARNING",
        validation_alias=AliasChoices("LLM_ORCHESTRATOR_LOG_LEVEL", "LOG_LEVEL"),
    )

    def provider_configs(self) -> dict[str, ProviderConfig]:
        """resolve one ProviderConfig per configured backend.

        backends without an api key are skipped. ollama needs no key and is
        always included.

        returns:
            mapping of provider name to resolved config, in registration order
        """
        configs: dict[str, ProviderConfig] = {}

        if self.anthropic_api_key:
            configs["anthropic"] = ProviderConfig(
                type=ProviderType.ANTHROPIC,
                api_key=self.anthropic_api_key,
                model=self.anthropic_model,
            )
        if self.openai_api_key:
            configs["openai"] = ProviderConfig(
                type=ProviderType.OPENAI,
                api_key=self.openai_api_key,
                model=self.openai_model,
                base_url=self.openai_base_url,
            )
        if self.groq_api_key:
            configs["groq"] = ProviderConfig(
                type=ProviderType.GROQ,
                api_key=self.groq_api_key,
                model=self.groq_model,
                base_url=GROQ_BASE_URL,
            )
        if self.together_api_key:
            configs["together"] = ProviderConfig(
                type=ProviderType.TOGETHER,
                api_key=self.together_api_key,
                model=self.together_model,
            )
        if self.google_api_key:
            configs["google"] = ProviderConfig(
                type=ProviderType.GOOGLE,
                api_key=self.google_api_key,
                model=self.google_model,
            )

        configs["ollama"] = ProviderConfig(
            type=ProviderType.OLLAMA,
            base_url=self.ollama_url,
            model=self.ollama_model,
        )
        return configs


@lru_cache
def get_settings() -> Settings:
    """get the singleton settings instance.

    call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
