from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMProviderEnum(str, Enum):
    """Supported text generation providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DOCSTRUCT_", extra="ignore", populate_by_name=True)

    # Dataset service
    api_url: str = "https://api.smith.langchain.com"
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DOCSTRUCT_API_KEY", "LANGSMITH_API_KEY"),
    )
    timeout_s: float = 30.0
    page_size: int = Field(default=100, ge=1)

    # Text generation
    llm_provider: LLMProviderEnum = LLMProviderEnum.OPENAI
    llm_model: str | None = None
    ollama_base_url: str = "http://localhost:11434"

    def get_default_model_for_provider(self, provider: LLMProviderEnum | None = None) -> str:
        """Get the model name for a provider, defaulting to the configured one.

        DOCSTRUCT_LLM_MODEL only applies to the configured provider.
        """
        provider = provider or self.llm_provider
        if self.llm_model and provider == self.llm_provider:
            return self.llm_model
        defaults = {
            LLMProviderEnum.OPENAI: "gpt-4o-mini",
            LLMProviderEnum.ANTHROPIC: "claude-3-5-haiku-20241022",
            LLMProviderEnum.OLLAMA: "llama3.1",
        }
        return defaults.get(provider, "gpt-4o-mini")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
