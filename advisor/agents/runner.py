# =============================================================================
# Agent Runner — Expert Answer Generation
# =============================================================================
#
# Runs one expert persona against the primary model:
#   system  = expert prompt + BASE_RULES + session context line
#   messages = full session history + the new user message
#
# Multiple experts run concurrently. Each expert's failure is isolated:
# the fan-in collects successes and failures separately so the prompt
# engine can answer with whoever succeeded and say who didn't.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass

from advisor.agents.classifier import AgentSelection
from advisor.agents.prompts import BASE_RULES, EXPERT_PROMPTS
from advisor.agents.registry import DEFAULT_AGENT, get_profile
from advisor.config import settings
from advisor.services.llm import LLMProvider

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class AgentResponse:
    """A successful expert answer."""

    agent_id: str
    agent_name: str
    agent_icon: str
    content: str
    model: str = "n/a"
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class AgentFailure:
    """An expert that raised instead of answering."""

    agent_id: str
    agent_name: str
    error: str


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_system_prompt(agent_id: str, history_length: int) -> str:
    """Expert prompt + shared rules + a per-call context line."""
    expert_prompt = EXPERT_PROMPTS.get(agent_id, EXPERT_PROMPTS[DEFAULT_AGENT])
    context_line = (
        f"[Session context: {int(time.time() * 1000)}] "
        f"[Agent: {agent_id}] [History: {history_length} messages]"
    )
    return f"{expert_prompt}\n\n---\n\n{BASE_RULES}\n\n---\n\n{context_line}"


async def run_agent(
    agent_id: str,
    message: str,
    history: list[dict[str, str]],
    llm: LLMProvider,
) -> AgentResponse:
    """
    Run a single expert with the shared history.

    Errors from the provider propagate to the caller.
    """
    profile = get_profile(agent_id)
    system_prompt = build_system_prompt(agent_id, len(history))

    logger.info(
        "Running expert %s (history=%d messages)", agent_id, len(history),
    )

    response = await llm.complete(
        messages=[*history, {"role": "user", "content": message}],
        system=system_prompt,
        temperature=settings.agent_temperature,
        max_tokens=settings.agent_max_tokens,
        options={
            "top_p": settings.agent_top_p,
            "presence_penalty": settings.agent_presence_penalty,
            "frequency_penalty": settings.agent_frequency_penalty,
            "seed": random.randint(0, 999_999),
        },
    )

    logger.info(
        "Expert %s complete: model=%s, tokens=%d+%d",
        agent_id, response.model, response.input_tokens, response.output_tokens,
    )

    return AgentResponse(
        agent_id=agent_id,
        agent_name=profile.name if agent_id == profile.id else agent_id,
        agent_icon=profile.icon,
        content=response.content,
        model=response.model,
        input_tokens=response.input_tokens,
        output_tokens=response.output_tokens,
    )


async def run_agents_in_parallel(
    agents: list[AgentSelection],
    message: str,
    history: list[dict[str, str]],
    llm: LLMProvider,
) -> tuple[list[AgentResponse], list[AgentFailure]]:
    """
    Fan out one call per expert and fan in the results.

    Returns:
        (responses, failures), each in the order of `agents`.
    """
    results = await asyncio.gather(
        *(run_agent(agent.id, message, history, llm) for agent in agents),
        return_exceptions=True,
    )

    responses: list[AgentResponse] = []
    failures: list[AgentFailure] = []
    for agent, result in zip(agents, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                # CancelledError / KeyboardInterrupt are not expert failures
                raise result
            profile = get_profile(agent.id)
            logger.warning("Expert %s failed: %s", agent.id, result)
            failures.append(AgentFailure(
                agent_id=agent.id,
                agent_name=profile.name if agent.id == profile.id else agent.id,
                error=str(result),
            ))
        else:
            responses.append(result)

    return responses, failures
