"""
Text Generation Providers

The parsers consume text from a model; these providers are the thin clients
that produce it, either as one completed string or as a stream of chunks.
Provider selection is done via DOCSTRUCT_LLM_PROVIDER.

Usage:
    from docstruct.llm import get_text_generator

    generator = get_text_generator()
    for chunk in generator.stream(
        messages=[{"role": "user", "content": "Name a capital city as JSON."}],
        model="gpt-4o-mini",
    ):
        print(chunk, end="")
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

import httpx

from docstruct.errors import ConfigurationError
from docstruct.settings import LLMProviderEnum, Settings, get_settings

logger = logging.getLogger(__name__)

LLMProviderType = LLMProviderEnum


class TextGenerator(ABC):
    """Abstract base class for text generation providers."""

    @abstractmethod
    def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        timeout: float = 60.0,
    ) -> str:
        """
        Generate a full response.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            timeout: Request timeout in seconds

        Returns:
            The generated text
        """
        pass

    @abstractmethod
    def stream(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        timeout: float = 60.0,
    ) -> Iterator[str]:
        """Generate a response as text chunks, in arrival order."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured and available."""
        pass

    @property
    @abstractmethod
    def provider_type(self) -> LLMProviderType:
        """Return the provider type."""
        pass


class OpenAIGenerator(TextGenerator):
    """OpenAI chat completions."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self._api_key = api_key
        self._base_url = base_url
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    def _request_kwargs(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float,
        max_tokens: int | None,
        timeout: float,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "timeout": timeout,
        }
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        return kwargs

    def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        timeout: float = 60.0,
    ) -> str:
        client = self._get_client()
        response = client.chat.completions.create(
            **self._request_kwargs(messages, model, temperature, max_tokens, timeout)
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def stream(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        timeout: float = 60.0,
    ) -> Iterator[str]:
        client = self._get_client()
        response = client.chat.completions.create(
            stream=True,
            **self._request_kwargs(messages, model, temperature, max_tokens, timeout),
        )
        try:
            for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        finally:
            close = getattr(response, "close", None)
            if close is not None:
                close()

    def is_available(self) -> bool:
        return bool(self._api_key)

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.OPENAI


class AnthropicGenerator(TextGenerator):
    """Anthropic messages API."""

    def __init__(self, api_key: str | None = None):
        self._api_key = api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from anthropic import Anthropic
            self._client = Anthropic(api_key=self._api_key)
        return self._client

    def _request_kwargs(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float,
        max_tokens: int | None,
        timeout: float,
    ) -> dict[str, Any]:
        # System prompt is a separate parameter on this API
        system_content = ""
        api_messages: list[dict[str, str]] = []
        for msg in messages:
            if msg["role"] == "system":
                system_content = msg["content"]
            else:
                api_messages.append({"role": msg["role"], "content": msg["content"]})

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": api_messages,
            "max_tokens": max_tokens or 4096,
            "temperature": temperature,
            "timeout": timeout,
        }
        if system_content:
            kwargs["system"] = system_content
        return kwargs

    def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        timeout: float = 60.0,
    ) -> str:
        client = self._get_client()
        response = client.messages.create(
            **self._request_kwargs(messages, model, temperature, max_tokens, timeout)
        )
        return "".join(getattr(block, "text", "") for block in response.content or [])

    def stream(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        timeout: float = 60.0,
    ) -> Iterator[str]:
        client = self._get_client()
        with client.messages.stream(
            **self._request_kwargs(messages, model, temperature, max_tokens, timeout)
        ) as response:
            yield from response.text_stream

    def is_available(self) -> bool:
        return bool(self._api_key)

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.ANTHROPIC


class OllamaGenerator(TextGenerator):
    """Ollama local chat API."""

    def __init__(self, base_url: str = "http://localhost:11434"):
        self._base_url = base_url.rstrip("/")
        self._available: bool | None = None

    def _payload(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float,
        max_tokens: int | None,
        stream: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "stream": stream,
            "options": {"temperature": temperature},
        }
        if max_tokens:
            payload["options"]["num_predict"] = max_tokens
        return payload

    def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        timeout: float = 60.0,
    ) -> str:
        with httpx.Client(timeout=timeout) as client:
            response = client.post(
                f"{self._base_url}/api/chat",
                json=self._payload(messages, model, temperature, max_tokens, stream=False),
            )
            response.raise_for_status()
            data = response.json()
        return data.get("message", {}).get("content", "")

    def stream(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        timeout: float = 60.0,
    ) -> Iterator[str]:
        payload = self._payload(messages, model, temperature, max_tokens, stream=True)
        with httpx.Client(timeout=timeout) as client:
            with client.stream("POST", f"{self._base_url}/api/chat", json=payload) as response:
                response.raise_for_status()
                # One JSON object per line
                for line in response.iter_lines():
                    if not line.strip():
                        continue
                    data = json.loads(line)
                    content = data.get("message", {}).get("content", "")
                    if content:
                        yield content
                    if data.get("done"):
                        break

    def is_available(self) -> bool:
        if self._available is not None:
            return self._available

        try:
            with httpx.Client(timeout=5.0) as client:
                response = client.get(f"{self._base_url}/api/tags")
                self._available = response.status_code == 200
        except (httpx.HTTPError, OSError):
            self._available = False

        return self._available

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.OLLAMA


def get_text_generator(
    provider: LLMProviderType | str | None = None,
    *,
    settings: Settings | None = None,
    openai_api_key: str | None = None,
    openai_base_url: str | None = None,
    anthropic_api_key: str | None = None,
    ollama_base_url: str | None = None,
) -> TextGenerator:
    """
    Get a text generator for the specified provider.

    Args:
        provider: Provider type or None to use settings
        settings: Settings to read defaults from
        openai_api_key: OpenAI API key (falls back to OPENAI_API_KEY)
        openai_base_url: OpenAI base URL (falls back to OPENAI_BASE_URL)
        anthropic_api_key: Anthropic API key (falls back to ANTHROPIC_API_KEY)
        ollama_base_url: Ollama server URL

    Raises:
        ConfigurationError: If the provider is unknown or not configured
    """
    settings = settings or get_settings()
    if provider is None:
        provider = settings.llm_provider

    if isinstance(provider, str):
        try:
            provider = LLMProviderType(provider.lower())
        except ValueError as e:
            raise ConfigurationError(f"Unknown provider: {provider}") from e

    generator: TextGenerator

    if provider == LLMProviderType.OPENAI:
        api_key = openai_api_key or os.environ.get("OPENAI_API_KEY")
        base_url = openai_base_url or os.environ.get("OPENAI_BASE_URL")
        generator = OpenAIGenerator(api_key=api_key, base_url=base_url)
        if not generator.is_available():
            raise ConfigurationError("OpenAI provider requires OPENAI_API_KEY")

    elif provider == LLMProviderType.ANTHROPIC:
        api_key = anthropic_api_key or os.environ.get("ANTHROPIC_API_KEY")
        generator = AnthropicGenerator(api_key=api_key)
        if not generator.is_available():
            raise ConfigurationError("Anthropic provider requires ANTHROPIC_API_KEY")

    else:
        base_url = ollama_base_url or settings.ollama_base_url
        generator = OllamaGenerator(base_url=base_url)
        if not generator.is_available():
            raise ConfigurationError(f"Ollama server not available at {base_url}")

    logger.debug("Using %s text generator", generator.provider_type.value)
    return generator
