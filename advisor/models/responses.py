# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API.
# ChatResponse is flat and permissive: the same model carries
# both successful replies and in-band errors (mode="error").
# =============================================================================

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /api/health: confirms the API is running."""

    status: str = "ok"
    version: str
    service: str
    uptime_seconds: int


class SectionInfo(BaseModel):
    """Which expert produced one section of a reply."""

    agent_id: str
    agent_name: str
    agent_icon: str


class ChatResponse(BaseModel):
    """
    Response for POST /api/chat.

    On success `mode` is "single" or "multi". On failure `mode` is "error",
    `markdown` holds a user-facing message and `error_type` / `retry_after`
    tell the client whether retrying makes sense.
    """

    markdown: str = Field(description="Reply text (markdown + HTML/JS blocks)")
    agents_used: list[str] = Field(
        default_factory=list,
        description="Expert ids that contributed to the reply",
    )
    mode: str = Field(description="'single', 'multi' or 'error'")
    sections: list[SectionInfo] = Field(default_factory=list)
    from_cache: bool = False
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost_usd: float | None = Field(
        default=None,
        description="Estimated LLM cost of this reply (null if unknown)",
    )
    error_type: str | None = None
    retry_after: int | None = Field(
        default=None,
        description="Suggested seconds before retrying (null = don't retry)",
    )


class ConversationMessage(BaseModel):
    """One message of a session's history."""

    role: str
    content: str


class ConversationResponse(BaseModel):
    """Response for GET /api/chat/{session_id}."""

    session_id: str
    conversation: list[ConversationMessage]


class ClearSessionResponse(BaseModel):
    """Response for DELETE /api/chat/{session_id}."""

    success: bool = True
    session_id: str


class PerformanceResponse(BaseModel):
    """Response for GET /api/performance."""

    success: bool = True
    performance: dict[str, Any]
    timestamp: str
