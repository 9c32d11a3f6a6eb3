# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API.
# FastAPI uses them for request validation (automatic 422 errors) and for
# the OpenAPI docs at /docs.
#
# The chat client sends camelCase ("sessionId"); the alias keeps that wire
# format while the Python side uses snake_case.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatRequest(BaseModel):
    """
    Request body for POST /api/chat: one user message in a session.

    Example:
        {
            "sessionId": "3f6c1e0a-8a8e-4c39-9a53-1d6f1b0b7c21",
            "message": "כמה אקבל פנסיה אם אפרוש בגיל 67?"
        }
    """

    session_id: str = Field(
        ...,
        alias="sessionId",
        min_length=1,
        max_length=200,
        description="Client-generated session identifier",
    )
    message: str = Field(
        ...,
        min_length=1,
        description="The user's message",
        examples=["מה עדיף: מסלול פריים או קבועה לא צמודה?"],
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "sessionId": "demo-session-1",
                    "message": "איך מחשבים מס הכנסה על משכורת של 20,000 ש\"ח?",
                },
            ]
        },
    )

    @field_validator("session_id", "message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value
