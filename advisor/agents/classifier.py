# =============================================================================
# Classifier — Route a Message to One or More Experts
# =============================================================================
#
# Two stages:
#
# 1. LOCAL (free, instant): count keyword hits per specialist category.
#    - one clear winner (no runner-up, or more than 2x the runner-up)
#      → single expert
#    - two or three categories hit → multi-expert
# 2. AI (one small JSON-mode call): only when no keyword matched at all.
#    Sees the last few messages of the session as context, so follow-ups
#    like "ומה לגבי המס על זה?" route correctly.
#
# If the AI stage fails or returns nothing usable the general advisor
# answers alone.
# =============================================================================

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from advisor.agents.prompts import CLASSIFIER_SYSTEM
from advisor.agents.registry import AVAILABLE_AGENTS, DEFAULT_AGENT, KEYWORDS
from advisor.config import settings
from advisor.services.llm import LLMProvider

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class AgentSelection:
    """One expert chosen for a message."""

    id: str
    confidence: int
    reason: str = ""


@dataclass
class Classification:
    """Result of classify()."""

    agents: list[AgentSelection]
    complexity: str          # "single" or "multi"
    source: str              # "local", "ai" or "fallback"
    needs_more_data: bool = False
    summary: str | None = None
    input_tokens: int = 0    # Classifier-call usage (AI stage only)
    output_tokens: int = 0
    model: str | None = None

    @property
    def agent_ids(self) -> list[str]:
        return [a.id for a in self.agents]


@dataclass
class _AIClassification:
    payload: dict[str, Any]
    model: str
    input_tokens: int
    output_tokens: int
    agents: list[AgentSelection] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Stage 1: Local keyword scoring
# ---------------------------------------------------------------------------


def quick_classify(message: str) -> dict[str, int]:
    """Keyword hit count per specialist category."""
    lowered = message.lower()
    return {
        agent_id: sum(1 for word in words if word in lowered)
        for agent_id, words in KEYWORDS.items()
    }


# ---------------------------------------------------------------------------
# Stage 2: AI classification
# ---------------------------------------------------------------------------

_NEWLINES = re.compile(r"\n+")
_CODE_FENCE = re.compile(
    r"^\s*```(?:json)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL,
)


def build_context_summary(history: list[dict[str, str]]) -> str:
    """
    Render the tail of the session history for the classifier prompt.

    Example output:
        👤 משתמש: כמה אקבל פנסיה אם אפרוש בגיל 67?
        🤖 יועץ: לפי צבירה של 800,000 ש"ח ...
    """
    if not history:
        return ""

    recent = history[-settings.classifier_context_messages:]
    lines = []
    for msg in recent:
        role = "👤 משתמש" if msg.get("role") == "user" else "🤖 יועץ"
        content = msg.get("content") or ""
        content = _NEWLINES.sub(" ", content[: settings.classifier_context_chars])
        lines.append(f"{role}: {content}")
    return "\n".join(lines)


async def ai_classify(
    message: str,
    context: str,
    llm: LLMProvider,
) -> _AIClassification | None:
    """
    Ask the classifier model which experts fit the message.

    Returns None on any failure (API error, bad JSON, no agents) so the
    caller can fall back to the general advisor.
    """
    messages: list[dict[str, str]] = []
    if context:
        messages.append({
            "role": "user",
            "content": f"הקשר שיחה קודמת:\n{context}",
        })
    messages.append({"role": "user", "content": message})

    try:
        response = await llm.complete(
            messages=messages,
            system=CLASSIFIER_SYSTEM,
            temperature=settings.classifier_temperature,
            max_tokens=settings.classifier_max_tokens,
            json_mode=True,
        )
        parsed = json.loads(_strip_code_fence(response.content))
        agents = parsed.get("agents") if isinstance(parsed, dict) else None
        if not isinstance(agents, list) or not agents:
            raise ValueError("AI returned invalid agents array")

    except Exception as e:
        logger.warning(
            "AI classification failed, falling back: %s", e,
        )
        return None

    return _AIClassification(
        payload=parsed,
        model=response.model,
        input_tokens=response.input_tokens,
        output_tokens=response.output_tokens,
        agents=_parse_selections(agents),
    )


def _strip_code_fence(content: str) -> str:
    """Unwrap a ```json ... ``` block; providers without JSON mode add one."""
    match = _CODE_FENCE.match(content)
    return match.group(1) if match else content


def _parse_selections(raw_agents: list[Any]) -> list[AgentSelection]:
    """Keep well-formed selections of known experts, in model order."""
    selections = []
    for item in raw_agents:
        if not isinstance(item, dict):
            continue
        agent_id = item.get("id")
        if agent_id not in AVAILABLE_AGENTS:
            logger.warning("AI classifier returned unknown expert: %s", agent_id)
            continue
        try:
            confidence = int(item.get("confidence", 0))
        except (TypeError, ValueError):
            confidence = 0
        selections.append(AgentSelection(
            id=agent_id,
            confidence=confidence,
            reason=str(item.get("reason", "")),
        ))
    return selections


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def classify(
    message: str,
    history: list[dict[str, str]],
    llm: LLMProvider,
) -> Classification:
    """
    Decide which experts answer the message.

    Args:
        message: The user's message.
        history: Session history (role/content dicts), oldest first.
        llm: Provider for the AI stage (the classifier model).
    """
    # --- Stage 1: local keyword scoring ---
    scores = quick_classify(message)
    ranked = sorted(
        ((agent_id, score) for agent_id, score in scores.items() if score > 0),
        key=lambda item: item[1],
        reverse=True,
    )

    if ranked:
        top_id, top_score = ranked[0]
        second = ranked[1] if len(ranked) > 1 else None

        if second is None or top_score > second[1] * 2:
            logger.info("Local classification: %s (%d hits)", top_id, top_score)
            return Classification(
                agents=[AgentSelection(
                    top_id, 90, "סיווג מקומי - מילת מפתח ברורה",
                )],
                complexity="single",
                source="local",
            )

        selected = [
            AgentSelection(top_id, 85, "סיווג מקומי - מומחה ראשי"),
            AgentSelection(second[0], 70, "סיווג מקומי - מומחה משני"),
        ]
        if len(ranked) > 2:
            selected.append(
                AgentSelection(ranked[2][0], 55, "סיווג מקומי - מומחה שלישי"),
            )
        logger.info(
            "Local classification: %s", " + ".join(a.id for a in selected),
        )
        return Classification(agents=selected, complexity="multi", source="local")

    # --- Stage 2: AI classification ---
    logger.info("No keyword match, using AI classification")
    result = await ai_classify(message, build_context_summary(history), llm)

    if result is not None and result.agents:
        confident = [
            a for a in result.agents
            if a.confidence >= settings.classifier_min_confidence
        ]
        final = confident or result.agents[:1]
        logger.info(
            "AI classification: %s",
            ", ".join(f"{a.id}({a.confidence}%)" for a in final),
        )
        complexity = result.payload.get("complexity")
        if complexity not in ("single", "multi"):
            complexity = "multi" if len(final) > 1 else "single"
        return Classification(
            agents=final,
            complexity=complexity,
            source="ai",
            needs_more_data=bool(result.payload.get("needs_more_data", False)),
            summary=result.payload.get("summary"),
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            model=result.model,
        )

    logger.info("Classification fallback: %s", DEFAULT_AGENT)
    return Classification(
        agents=[AgentSelection(DEFAULT_AGENT, 50, "לא זוהה תחום ספציפי")],
        complexity="single",
        source="fallback",
        input_tokens=result.input_tokens if result else 0,
        output_tokens=result.output_tokens if result else 0,
        model=result.model if result else None,
    )
