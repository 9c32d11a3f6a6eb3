# =============================================================================
# Multi-Provider LLM Abstraction
# =============================================================================
#
# Common interface for chat completions, with implementations for
# OpenAI-compatible APIs (OpenAI, DeepSeek, Qwen, ...) and Anthropic.
#
# Three call shapes go through this layer:
#   - expert answers     (primary model, long output, sampling options)
#   - classification     (classifier model, JSON mode, short output)
#   - synthesis          (primary model, medium output)
#
# ARCHITECTURE:
#   LLMProvider (Protocol)
#   ├── OpenAICompatibleProvider : system prompt as first message,
#   │                              JSON mode via response_format
#   ├── AnthropicProvider        : system prompt as top-level kwarg
#   └── get_llm_provider()       : cached provider per model name
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from advisor.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """
    Standardised response from any LLM provider.

    Normalises the OpenAI and Anthropic response formats into a single
    structure that the agents consume.
    """

    content: str           # The generated text
    model: str             # Model identifier (e.g., "gpt-4o")
    input_tokens: int      # Tokens consumed by the prompt
    output_tokens: int     # Tokens generated in the response


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class LLMProvider(Protocol):
    """Interface every provider implements."""

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
        options: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            messages: Conversation messages as dicts with "role" and "content".
                Roles: "user", "assistant" (no "system"; use the system param).
            system: System prompt for the LLM.
            temperature: Override sampling temperature (default from config).
            max_tokens: Override max output tokens (default from config).
            json_mode: Ask the provider for a single JSON object.
            options: Extra sampling parameters (top_p, presence_penalty,
                frequency_penalty, seed). Providers drop what they
                do not support.

        Returns:
            LLMResponse with generated text and usage metrics.
        """
        ...


# ---------------------------------------------------------------------------
# Implementation 1: OpenAI-Compatible
# ---------------------------------------------------------------------------


_OPENAI_OPTIONS = {"top_p", "presence_penalty", "frequency_penalty", "seed"}


class OpenAICompatibleProvider:
    """
    Provider for OpenAI and any API that follows the OpenAI spec.

    Switching to another vendor is a config change:
        LLM_PROVIDER=openai_compatible
        LLM_BASE_URL=https://api.deepseek.com/v1
        LLM_API_KEY=your-key
        LLM_MODEL=deepseek-chat
    """

    provider_type = "openai_compatible"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ) -> None:
        from openai import AsyncOpenAI

        resolved_key = api_key or settings.llm_api_key or settings.openai_api_key
        if not resolved_key:
            raise ValueError(
                "No API key configured for OpenAI-compatible provider. "
                "Set LLM_API_KEY or OPENAI_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": resolved_key}
        resolved_base_url = base_url or settings.llm_base_url
        if resolved_base_url:
            client_kwargs["base_url"] = resolved_base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self.model = model or settings.llm_model
        self._temperature = settings.llm_temperature
        self._max_tokens = settings.llm_max_tokens
        # api.openai.com expects max_completion_tokens; other vendors only
        # accept max_tokens
        self._max_tokens_param = (
            "max_tokens" if resolved_base_url else "max_completion_tokens"
        )

        logger.info(
            "Initialized OpenAICompatibleProvider (model=%s, base_url=%s)",
            self.model,
            resolved_base_url or "https://api.openai.com/v1",
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
        options: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Generate a completion using an OpenAI-compatible API."""
        # OpenAI: system prompt goes as the first message
        all_messages: list[dict[str, str]] = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        kwargs: dict = {
            "model": self.model,
            "messages": all_messages,
            self._max_tokens_param: max_tokens or self._max_tokens,
            "temperature": (
                self._temperature if temperature is None else temperature
            ),
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        for key, value in (options or {}).items():
            if key in _OPENAI_OPTIONS and value is not None:
                kwargs[key] = value

        response = await self._client.chat.completions.create(**kwargs)

        content = response.choices[0].message.content or ""

        usage = response.usage
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        return LLMResponse(
            content=content,
            model=response.model or self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )


# ---------------------------------------------------------------------------
# Implementation 2: Anthropic (Claude)
# ---------------------------------------------------------------------------


class AnthropicProvider:
    """
    Anthropic Claude provider using the native SDK.

    Anthropic takes system prompts as a top-level `system=` kwarg, NOT as
    a message with role "system". It has no JSON response mode, so
    json_mode only appends an instruction to the system prompt.
    `options` are not forwarded: Claude models reject top_p alongside
    temperature.
    """

    provider_type = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        from anthropic import AsyncAnthropic

        resolved_key = api_key or settings.llm_api_key or settings.anthropic_api_key
        if not resolved_key:
            raise ValueError(
                "No Anthropic API key configured. Set LLM_API_KEY or "
                "ANTHROPIC_API_KEY in .env"
            )

        self._client = AsyncAnthropic(api_key=resolved_key)
        self.model = model or settings.llm_model
        self._temperature = settings.llm_temperature
        self._max_tokens = settings.llm_max_tokens

        logger.info("Initialized AnthropicProvider (model=%s)", self.model)

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
        options: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Generate a completion using Claude."""
        kwargs: dict = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": (
                self._temperature if temperature is None else temperature
            ),
        }

        if json_mode:
            system = (system or "") + "\n\nRespond with a single JSON object only."
        if system:
            kwargs["system"] = system

        response = await self._client.messages.create(**kwargs)

        content = ""
        for block in response.content:
            if block.type == "text":
                content = block.text
                break

        return LLMResponse(
            content=content,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


# ---------------------------------------------------------------------------
# Factory Functions
# ---------------------------------------------------------------------------

# Lazy per-model providers; SDK clients manage their own connection pools
_providers: dict[str, AnthropicProvider | OpenAICompatibleProvider] = {}


def get_llm_provider(
    model: str | None = None,
) -> AnthropicProvider | OpenAICompatibleProvider:
    """
    Return the configured provider for a model, creating it on first use.

    Reads `llm_provider` from settings:
    - "openai_compatible" → OpenAICompatibleProvider
    - "anthropic" → AnthropicProvider

    Args:
        model: Model name; defaults to settings.llm_model. The classifier
            passes settings.classifier_model.
    """
    resolved_model = model or settings.llm_model
    provider = _providers.get(resolved_model)
    if provider is None:
        if settings.llm_provider == "anthropic":
            provider = AnthropicProvider(model=resolved_model)
        else:
            provider = OpenAICompatibleProvider(model=resolved_model)
        _providers[resolved_model] = provider
    return provider


def get_classifier_provider() -> AnthropicProvider | OpenAICompatibleProvider:
    """Provider bound to the (cheaper) classifier model."""
    return get_llm_provider(settings.classifier_model)

