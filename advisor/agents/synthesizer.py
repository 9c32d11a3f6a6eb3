# =============================================================================
# Synthesizer — Merge Expert Answers into One Reply
# =============================================================================
#
# single expert → the answer is returned as-is, wrapped with metadata
# multi expert  → every answer is shown in its own section, followed by a
#                 short coordinating summary written by one more LLM call
#
# If the synthesis call fails the sections are still returned, just
# without the summary.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from advisor.agents.prompts import SYNTHESIS_SYSTEM
from advisor.agents.runner import AgentResponse
from advisor.config import settings
from advisor.services.llm import LLMProvider

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class Section:
    """One expert's part of the reply."""

    agent_id: str
    agent_name: str
    agent_icon: str
    content: str

    @classmethod
    def from_response(cls, response: AgentResponse) -> Section:
        return cls(
            agent_id=response.agent_id,
            agent_name=response.agent_name,
            agent_icon=response.agent_icon,
            content=response.content,
        )


@dataclass
class SynthesisResult:
    """The composed reply before sanitizing."""

    mode: str                      # "single" or "multi"
    agents_used: list[str]
    sections: list[Section]
    synthesis: str | None
    markdown: str
    input_tokens: int = 0
    output_tokens: int = 0
    models: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def wrap_single_response(response: AgentResponse) -> SynthesisResult:
    """Wrap a lone expert answer; the markdown is the answer unchanged."""
    return SynthesisResult(
        mode="single",
        agents_used=[response.agent_id],
        sections=[Section.from_response(response)],
        synthesis=None,
        markdown=response.content,
        input_tokens=response.input_tokens,
        output_tokens=response.output_tokens,
        models=[response.model],
    )


async def synthesize_multiple(
    responses: list[AgentResponse],
    original_message: str,
    llm: LLMProvider,
) -> SynthesisResult:
    """
    Combine several expert answers with a coordinating summary.

    Args:
        responses: Successful expert answers, in classification order.
        original_message: The user's message, quoted to the synthesizer.
        llm: Primary-model provider.
    """
    sections = [Section.from_response(r) for r in responses]
    input_tokens = sum(r.input_tokens for r in responses)
    output_tokens = sum(r.output_tokens for r in responses)
    models = [r.model for r in responses]

    expert_inputs = "\n\n---\n\n".join(
        f"=== {r.agent_icon} {r.agent_name} ===\n{r.content}" for r in responses
    )
    user_message = (
        f'שאלת המשתמש: "{original_message}"\n\n'
        f"ניתוחי המומחים:\n{expert_inputs}\n\n"
        "כתוב סיכום מתואם שמחבר את כל הניתוחים:"
    )

    synthesis: str | None = None
    try:
        response = await llm.complete(
            messages=[{"role": "user", "content": user_message}],
            system=SYNTHESIS_SYSTEM,
            temperature=settings.synthesis_temperature,
            max_tokens=settings.synthesis_max_tokens,
        )
        synthesis = response.content or None
        input_tokens += response.input_tokens
        output_tokens += response.output_tokens
        models.append(response.model)
        logger.info(
            "Synthesis complete: %d experts, tokens=%d+%d",
            len(responses), response.input_tokens, response.output_tokens,
        )
    except Exception as e:
        logger.error("Synthesis failed, showing expert sections only: %s", e)

    return SynthesisResult(
        mode="multi",
        agents_used=[r.agent_id for r in responses],
        sections=sections,
        synthesis=synthesis,
        markdown=build_combined_markdown(sections, synthesis),
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        models=models,
    )


def build_combined_markdown(
    sections: list[Section], synthesis: str | None,
) -> str:
    """
    Render sections (and the optional summary) as markdown with the HTML
    wrappers the client styles.

    Example output:
        <div class="agent-section" data-agent="tax">

        ### 🧾 מומחה מיסוי

        ...answer...

        </div>
    """
    parts: list[str] = []
    for section in sections:
        parts.append(
            f'\n\n<div class="agent-section" data-agent="{section.agent_id}">\n\n'
            f"### {section.agent_icon} {section.agent_name}\n\n"
            f"{section.content}"
            "\n\n</div>\n\n"
        )

    if synthesis:
        parts.append(
            '\n\n<div class="agent-synthesis">\n\n'
            "### 🔗 סיכום מתואם\n\n"
            f"{synthesis}"
            "\n\n</div>\n\n"
        )

    return "".join(parts)
