# =============================================================================
# Chat API — Conversation Endpoints
# =============================================================================
#
#   POST   /api/chat                → answer one message
#   GET    /api/chat/{session_id}   → session history
#   DELETE /api/chat/{session_id}   → forget a session
#
# This module is thin: request validation and response mapping. The work
# happens in advisor.agents.orchestrator. LLM failures come back in-band
# (HTTP 200 with mode="error") so the chat UI can render them as a reply.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from advisor.agents.orchestrator import (
    clear_session,
    get_conversation_session,
    handle_prompt,
)
from advisor.models.requests import ChatRequest
from advisor.models.responses import (
    ChatResponse,
    ClearSessionResponse,
    ConversationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])


@router.post(
    "",
    response_model=ChatResponse,
    summary="Send a message to the advisor",
    description=(
        "Classifies the message, runs the matching financial experts "
        "(in parallel when several match), merges their answers and "
        "returns markdown ready for the chat client."
    ),
)
async def chat_endpoint(request: ChatRequest) -> ChatResponse:
    reply = await handle_prompt(request.session_id, request.message)
    if reply["mode"] == "error":
        logger.warning(
            "Chat error for session %s: %s",
            request.session_id, reply.get("error_type"),
        )
    return ChatResponse(**reply)


@router.get(
    "/{session_id}",
    response_model=ConversationResponse,
    summary="Get a session's history",
)
async def get_session_endpoint(session_id: str) -> ConversationResponse:
    """Returns an empty conversation for unknown sessions."""
    return ConversationResponse(
        session_id=session_id,
        conversation=get_conversation_session(session_id),
    )


@router.delete(
    "/{session_id}",
    response_model=ClearSessionResponse,
    summary="Clear a session",
)
async def clear_session_endpoint(session_id: str) -> ClearSessionResponse:
    if not clear_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return ClearSessionResponse(session_id=session_id)
