"""Tests for environment-driven settings."""
from __future__ import annotations

import pytest

from docstruct.settings import LLMProviderEnum, Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("DOCSTRUCT_API_URL", "DOCSTRUCT_API_KEY", "LANGSMITH_API_KEY", "DOCSTRUCT_LLM_PROVIDER"):
        monkeypatch.delenv(var, raising=False)

    settings = Settings()

    assert settings.api_url == "https://api.smith.langchain.com"
    assert settings.api_key is None
    assert settings.page_size == 100
    assert settings.llm_provider == LLMProviderEnum.OPENAI


def test_reads_prefixed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOCSTRUCT_API_URL", "https://datasets.internal.test")
    monkeypatch.setenv("DOCSTRUCT_PAGE_SIZE", "25")
    monkeypatch.setenv("DOCSTRUCT_LLM_PROVIDER", "anthropic")

    settings = Settings()

    assert settings.api_url == "https://datasets.internal.test"
    assert settings.page_size == 25
    assert settings.llm_provider == LLMProviderEnum.ANTHROPIC


def test_api_key_fallback_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DOCSTRUCT_API_KEY", raising=False)
    monkeypatch.setenv("LANGSMITH_API_KEY", "ls-key")
    assert Settings().api_key == "ls-key"


def test_default_model_follows_provider() -> None:
    assert Settings(llm_provider="ollama").get_default_model_for_provider() == "llama3.1"
    assert Settings(llm_model="custom").get_default_model_for_provider() == "custom"


def test_configured_model_only_applies_to_its_provider() -> None:
    settings = Settings(llm_provider="openai", llm_model="gpt-4.1-mini")

    assert settings.get_default_model_for_provider() == "gpt-4.1-mini"
    assert settings.get_default_model_for_provider(LLMProviderEnum.OPENAI) == "gpt-4.1-mini"
    assert settings.get_default_model_for_provider(LLMProviderEnum.ANTHROPIC) == "claude-3-5-haiku-20241022"
