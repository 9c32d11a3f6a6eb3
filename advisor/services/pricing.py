# =============================================================================
# Provider Pricing Registry — Cost Estimation for LLM Calls
# =============================================================================
#
# Maps (provider_type, model_name) → per-token costs in USD.
# Used by the prompt engine to attach an estimated cost to every reply and
# by the performance endpoint to report the running total.
#
# Costs are stored as USD per TOKEN (not per 1M tokens).
# estimate_cost() returns None for unknown models: unknown cost != zero cost.
#
# Source: Provider pricing pages. Update this dict when prices change.
# =============================================================================

from __future__ import annotations

import re
from dataclasses import dataclass

# "-2024-08-06" (OpenAI) or "-20250929" (Anthropic)
_SNAPSHOT_SUFFIX = re.compile(r"-(\d{4}-\d{2}-\d{2}|\d{8})$")


@dataclass(frozen=True)
class ModelPricing:
    """Per-token costs for a model."""

    input_cost_per_token: float    # USD per input token
    output_cost_per_token: float   # USD per output token
    provider_label: str            # Human-readable provider name


PRICING_REGISTRY: dict[tuple[str, str], ModelPricing] = {
    # --- OpenAI ---
    ("openai_compatible", "gpt-4o"): ModelPricing(
        2.50 / 1_000_000, 10.00 / 1_000_000, "OpenAI",
    ),
    ("openai_compatible", "gpt-4o-mini"): ModelPricing(
        0.15 / 1_000_000, 0.60 / 1_000_000, "OpenAI",
    ),
    ("openai_compatible", "gpt-4.1"): ModelPricing(
        2.00 / 1_000_000, 8.00 / 1_000_000, "OpenAI",
    ),
    ("openai_compatible", "gpt-4.1-mini"): ModelPricing(
        0.40 / 1_000_000, 1.60 / 1_000_000, "OpenAI",
    ),

    # --- DeepSeek ---
    ("openai_compatible", "deepseek-chat"): ModelPricing(
        0.14 / 1_000_000, 0.28 / 1_000_000, "DeepSeek",
    ),

    # --- Anthropic ---
    ("anthropic", "claude-sonnet-4-6"): ModelPricing(
        3.00 / 1_000_000, 15.00 / 1_000_000, "Anthropic",
    ),
    ("anthropic", "claude-haiku-4-5"): ModelPricing(
        0.80 / 1_000_000, 4.00 / 1_000_000, "Anthropic",
    ),
}


def estimate_cost(
    provider_type: str,
    model: str,
    input_tokens: int,
    output_tokens: int,
) -> float | None:
    """
    Calculate estimated cost in USD for a completion.

    Args:
        provider_type: "openai_compatible" or "anthropic".
        model: Model name as returned by the LLM API.
        input_tokens: Tokens consumed by the prompt.
        output_tokens: Tokens generated in the response.

    Returns:
        Estimated cost in USD, or None if model not in registry.
    """
    pricing = get_pricing(provider_type, model)
    if pricing is None:
        return None
    return (
        pricing.input_cost_per_token * input_tokens
        + pricing.output_cost_per_token * output_tokens
    )


def get_pricing(provider_type: str, model: str) -> ModelPricing | None:
    """
    Look up pricing for a provider+model combination.

    OpenAI reports dated snapshot names ("gpt-4o-2024-08-06"); those fall
    back to the undated entry.
    """
    pricing = PRICING_REGISTRY.get((provider_type, model))
    if pricing is None:
        undated = _SNAPSHOT_SUFFIX.sub("", model)
        pricing = PRICING_REGISTRY.get((provider_type, undated))
    return pricing
