# =============================================================================
# Prompt Engine — LangGraph Pipeline from User Message to Reply
# =============================================================================
#
# Wires classification, caching, expert runs, synthesis, sanitizing and
# session bookkeeping into a LangGraph StateGraph.
#
# GRAPH TOPOLOGY:
#
#   START ──▶ classify ──▶ lookup_cache ──(hit)──────────────────▶ remember ──▶ END
#                                 │                                    ▲
#                                 └─(miss)─▶ run_experts ──▶ finalize ─┘
#
#   classify     : load session history, keyword/AI classification
#   lookup_cache : (sorted expert ids, normalized message) → cached payload
#   run_experts  : one expert, or parallel experts + synthesis
#   finalize     : LaTeX cleanup, chart id dedup, cache store
#   remember     : append the exchange to the session, evict old state
#
# Any exception inside the graph is turned into an in-band error payload by
# handle_prompt(); the session is only written by `remember`, so a failed
# turn leaves the history untouched.
#
# The graph is compiled once at module level and reused for every request.
# =============================================================================

from __future__ import annotations

import logging
import os
import platform
import resource
import sys
import time
from dataclasses import dataclass
from typing import Any

from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from advisor.agents.classifier import Classification, classify
from advisor.agents.runner import (
    AgentFailure,
    run_agent,
    run_agents_in_parallel,
)
from advisor.agents.synthesizer import (
    SynthesisResult,
    synthesize_multiple,
    wrap_single_response,
)
from advisor.config import settings
from advisor.services.cache import get_response_cache
from advisor.services.errors import AllAgentsFailedError, classify_error
from advisor.services.llm import (
    LLMProvider,
    get_classifier_provider,
    get_llm_provider,
)
from advisor.services.pricing import estimate_cost
from advisor.services.sanitizer import (
    extract_used_chart_ids,
    fix_duplicate_chart_ids,
    sanitize_reply,
)
from advisor.services.sessions import get_session_store

logger = logging.getLogger(__name__)

_STARTED_AT = time.time()


# ---------------------------------------------------------------------------
# Graph State Schema
# ---------------------------------------------------------------------------


class PromptState(TypedDict, total=False):
    """
    State that flows through the prompt graph.

    total=False so nodes only return the keys they update.
    """

    # --- Input (set by caller) ---
    session_id: str
    message: str

    # --- Provider injection ---
    # When set, nodes use these instead of the cached providers.
    # Not JSON-serialisable; the graph has no checkpointer.
    llm_override: LLMProvider | None
    classifier_override: LLMProvider | None

    # --- Intermediate (set by nodes) ---
    history: list[dict[str, str]]
    classification: Classification
    result: SynthesisResult
    failures: list[AgentFailure]

    # --- Output ---
    reply: dict[str, Any]


# ---------------------------------------------------------------------------
# Usage accounting
# ---------------------------------------------------------------------------


@dataclass
class UsageTotals:
    """Running totals since process start, reported by /performance."""

    replies: int = 0
    cache_hits: int = 0
    errors: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost_usd: float = 0.0


_usage = UsageTotals()


def _estimate_reply_cost(
    classification: Classification,
    result: SynthesisResult | None,
) -> float | None:
    """Classifier cost + expert/synthesis cost; None if any model is unpriced."""
    provider_type = settings.llm_provider
    total = 0.0

    if classification.input_tokens or classification.output_tokens:
        cost = estimate_cost(
            provider_type,
            classification.model or settings.classifier_model,
            classification.input_tokens,
            classification.output_tokens,
        )
        if cost is None:
            return None
        total += cost

    if result is not None and (result.input_tokens or result.output_tokens):
        model = result.models[0] if result.models else settings.llm_model
        cost = estimate_cost(
            provider_type, model, result.input_tokens, result.output_tokens,
        )
        if cost is None:
            return None
        total += cost

    return total


def _record_usage(reply: dict[str, Any]) -> None:
    _usage.replies += 1
    if reply.get("from_cache"):
        _usage.cache_hits += 1
    _usage.input_tokens += reply.get("input_tokens", 0)
    _usage.output_tokens += reply.get("output_tokens", 0)
    _usage.estimated_cost_usd += reply.get("estimated_cost_usd") or 0.0


# ---------------------------------------------------------------------------
# Node Functions
# ---------------------------------------------------------------------------


async def classify_node(state: PromptState) -> dict:
    """Load the session history and choose the experts."""
    store = get_session_store()
    session_id = state["session_id"]
    history = store.get_history(session_id)
    store.touch(session_id)

    classifier_llm = (
        state.get("classifier_override")
        or state.get("llm_override")
        or get_classifier_provider()
    )
    classification = await classify(state["message"], history, classifier_llm)

    logger.info(
        "Classification (%s): [%s] | mode: %s",
        classification.source,
        ", ".join(f"{a.id}({a.confidence}%)" for a in classification.agents),
        classification.complexity,
    )

    return {"history": history, "classification": classification}


async def lookup_cache_node(state: PromptState) -> dict:
    """Serve a cached payload when the same experts answered this before."""
    classification = state["classification"]
    cached = get_response_cache().get(
        classification.agent_ids, state["message"],
    )
    if cached is None:
        return {}

    # the cached payload may carry chart ids already drawn in this session
    markdown = fix_duplicate_chart_ids(
        cached["markdown"], extract_used_chart_ids(state["history"]),
    )

    reply = {
        **cached,
        "markdown": markdown,
        "from_cache": True,
        "input_tokens": classification.input_tokens,
        "output_tokens": classification.output_tokens,
        "estimated_cost_usd": _estimate_reply_cost(classification, None),
    }
    return {"reply": reply}


def _route_after_cache(state: PromptState) -> str:
    return "hit" if state.get("reply") else "miss"


async def run_experts_node(state: PromptState) -> dict:
    """Run the selected experts and compose their answers."""
    llm = state.get("llm_override") or get_llm_provider()
    agents = state["classification"].agents
    message = state["message"]
    history = state["history"]

    if len(agents) == 1:
        logger.info("Running single expert: %s", agents[0].id)
        response = await run_agent(agents[0].id, message, history, llm)
        return {"result": wrap_single_response(response), "failures": []}

    logger.info("Running %d experts in parallel", len(agents))
    responses, failures = await run_agents_in_parallel(
        agents, message, history, llm,
    )

    if not responses:
        raise AllAgentsFailedError([f.agent_id for f in failures])
    if len(responses) == 1:
        result = wrap_single_response(responses[0])
    else:
        logger.info("Synthesizing %d expert answers", len(responses))
        result = await synthesize_multiple(responses, message, llm)

    if failures:
        failed_names = ", ".join(f.agent_name for f in failures)
        logger.warning("Experts unavailable: %s", failed_names)
        result.markdown += (
            f"\n\n> ⚠️ **שים לב**: ניתוח מ-{failed_names} לא היה זמין הפעם. "
            "התשובה מבוססת על המומחים הזמינים."
        )

    return {"result": result, "failures": failures}


async def finalize_node(state: PromptState) -> dict:
    """Sanitize the markdown, dedupe chart ids, build and cache the payload."""
    result = state["result"]
    classification = state["classification"]

    sanitized = sanitize_reply(result.markdown)
    used_ids = extract_used_chart_ids(state["history"])
    markdown = fix_duplicate_chart_ids(sanitized, used_ids)

    payload = {
        "markdown": markdown,
        "agents_used": result.agents_used,
        "mode": result.mode,
        "sections": [
            {
                "agent_id": s.agent_id,
                "agent_name": s.agent_name,
                "agent_icon": s.agent_icon,
            }
            for s in result.sections
        ],
    }
    get_response_cache().set(
        classification.agent_ids, state["message"], payload,
    )

    reply = {
        **payload,
        "from_cache": False,
        "input_tokens": classification.input_tokens + result.input_tokens,
        "output_tokens": classification.output_tokens + result.output_tokens,
        "estimated_cost_usd": _estimate_reply_cost(classification, result),
    }
    return {"reply": reply}


async def remember_node(state: PromptState) -> dict:
    """Append the exchange to the session and evict stale state."""
    store = get_session_store()
    store.append(
        state["session_id"],
        {"role": "user", "content": state["message"]},
        {"role": "assistant", "content": state["reply"]["markdown"]},
    )
    run_cleanup()
    return {}


# ---------------------------------------------------------------------------
# Graph Assembly
# ---------------------------------------------------------------------------

_builder = StateGraph(PromptState)
_builder.add_node("classify", classify_node)
_builder.add_node("lookup_cache", lookup_cache_node)
_builder.add_node("run_experts", run_experts_node)
_builder.add_node("finalize", finalize_node)
_builder.add_node("remember", remember_node)

_builder.add_edge(START, "classify")
_builder.add_edge("classify", "lookup_cache")
_builder.add_conditional_edges(
    "lookup_cache",
    _route_after_cache,
    {"hit": "remember", "miss": "run_experts"},
)
_builder.add_edge("run_experts", "finalize")
_builder.add_edge("finalize", "remember")
_builder.add_edge("remember", END)

graph = _builder.compile()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def handle_prompt(
    session_id: str,
    message: str,
    llm: LLMProvider | None = None,
    classifier_llm: LLMProvider | None = None,
) -> dict[str, Any]:
    """
    Answer one chat message within a session.

    Args:
        session_id: Client-supplied session identifier.
        message: The user's message.
        llm: Optional provider override for experts and synthesis.
        classifier_llm: Optional provider override for AI classification.
            Defaults to `llm` when only that is given.

    Returns:
        Reply payload. On success: markdown, agents_used, mode, sections,
        from_cache, input_tokens, output_tokens, estimated_cost_usd.
        On failure: markdown (user-facing message), agents_used=[],
        mode="error", error_type, retry_after.
    """
    initial_state: PromptState = {"session_id": session_id, "message": message}
    if llm is not None:
        initial_state["llm_override"] = llm
    if classifier_llm is not None:
        initial_state["classifier_override"] = classifier_llm

    logger.info(
        "New message from %s: '%s'", session_id, message[:50],
    )

    try:
        final_state = await graph.ainvoke(initial_state)
    except Exception as e:
        logger.exception("Prompt pipeline failed: %s", e)
        _usage.errors += 1
        info = classify_error(e)
        return {
            "markdown": info.user_message,
            "agents_used": [],
            "mode": "error",
            "error_type": info.type,
            "retry_after": info.retry_after,
        }

    reply = final_state["reply"]
    _record_usage(reply)
    logger.info(
        "Reply ready | experts: [%s] | mode: %s | cached: %s",
        ", ".join(reply["agents_used"]), reply["mode"], reply["from_cache"],
    )
    return reply


def get_conversation_session(session_id: str) -> list[dict[str, str]]:
    """Copy of the session's history (empty for unknown sessions)."""
    return get_session_store().get_history(session_id)


def clear_session(session_id: str) -> bool:
    """Forget a session. Returns False if it did not exist."""
    return get_session_store().clear(session_id)


def run_cleanup() -> None:
    """Evict idle sessions and expired cache entries."""
    removed_sessions = get_session_store().cleanup()
    removed_entries = get_response_cache().purge_expired()
    if removed_sessions or removed_entries:
        logger.info(
            "Cleanup: %d sessions, %d cache entries removed",
            removed_sessions, removed_entries,
        )


def format_uptime(seconds: float) -> str:
    """
    Human-readable uptime, e.g. "1d 2h 3m 4s".

    Zero-valued units are omitted, except seconds which always appear.
    """
    seconds = int(seconds)
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)
    parts = [
        f"{value}{unit}"
        for value, unit in ((days, "d"), (hours, "h"), (minutes, "m"))
        if value
    ]
    parts.append(f"{secs}s")
    return " ".join(parts)


def _max_rss_mb() -> float:
    """Peak resident set size of this process in MB."""
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # bytes on macOS, kilobytes on Linux
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(max_rss / divisor, 1)


def get_performance_stats() -> dict[str, Any]:
    """Snapshot of sessions, cache, usage and process information."""
    uptime = time.time() - _STARTED_AT
    return {
        **get_session_store().stats(),
        "cache_size": len(get_response_cache()),
        "usage": {
            "replies": _usage.replies,
            "cache_hits": _usage.cache_hits,
            "errors": _usage.errors,
            "input_tokens": _usage.input_tokens,
            "output_tokens": _usage.output_tokens,
            "estimated_cost_usd": round(_usage.estimated_cost_usd, 6),
        },
        "memory_usage": {"max_rss_mb": _max_rss_mb()},
        "uptime_seconds": int(uptime),
        "uptime_formatted": format_uptime(uptime),
        "model": settings.llm_model,
        "classifier_model": settings.classifier_model,
        "platform": platform.platform(),
        "python_version": sys.version.split()[0],
        "pid": os.getpid(),
    }
