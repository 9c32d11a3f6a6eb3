# =============================================================================
# Error Classification — User-Facing Messages for Pipeline Failures
# =============================================================================
#
# The prompt engine never lets an LLM failure escape as an HTTP 500. Any
# exception raised inside the classify → run → synthesize pipeline is mapped
# to an ErrorInfo: a Hebrew message the chat UI shows verbatim, a machine
# readable type, and a suggested retry delay (None = retrying won't help).
#
# Detection uses the HTTP status exposed by the SDK exceptions
# (openai.APIStatusError.status_code, anthropic.APIStatusError.status_code)
# and falls back to substring checks on the message.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass


class AllAgentsFailedError(RuntimeError):
    """Raised when every expert of a multi-expert request failed."""

    def __init__(self, failed_agents: list[str] | None = None) -> None:
        super().__init__("כל המומחים נכשלו — אנא נסה שוב")
        self.failed_agents = failed_agents or []


@dataclass(frozen=True)
class ErrorInfo:
    """Classified pipeline error."""

    user_message: str
    type: str
    retry_after: int | None


def _status_of(error: BaseException) -> int:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return 0


def classify_error(error: BaseException) -> ErrorInfo:
    """Map an exception to a user-facing ErrorInfo."""
    msg = str(error) or error.__class__.__name__
    lowered = msg.lower()
    status = _status_of(error)

    if status == 429 or "rate limit" in lowered:
        return ErrorInfo(
            user_message="⏳ השרת עמוס כרגע. אנא המתן 30 שניות ונסה שוב.",
            type="rate_limit",
            retry_after=30,
        )
    if (
        status == 401
        or "incorrect api key" in lowered
        or "invalid_api_key" in lowered
        or (isinstance(error, ValueError) and "api key" in lowered)
    ):
        return ErrorInfo(
            user_message="🔑 שגיאת הרשאה — יש לבדוק את ה-API Key בקובץ .env",
            type="auth_error",
            retry_after=None,
        )
    if status == 503 or "overloaded" in lowered or "server_error" in lowered:
        return ErrorInfo(
            user_message="🔄 שירות ה-AI זמנית לא זמין. נסה שוב בעוד דקה.",
            type="service_unavailable",
            retry_after=60,
        )
    if (
        isinstance(error, TimeoutError)
        or "timeout" in lowered
        or "timed out" in lowered
        or "etimedout" in lowered
        or "econnreset" in lowered
    ):
        return ErrorInfo(
            user_message=(
                "⏱️ הבקשה לקחה יותר מדי זמן. "
                "נסה שאלה קצרה יותר או נסה שוב."
            ),
            type="timeout",
            retry_after=10,
        )
    if "context_length" in lowered or "maximum context" in lowered:
        return ErrorInfo(
            user_message="📏 השיחה ארוכה מדי. נסה להתחיל שיחה חדשה.",
            type="context_length",
            retry_after=None,
        )

    return ErrorInfo(
        user_message=f"❗ שגיאה טכנית: {msg}. אנא נסה שוב בעוד רגע.",
        type="unknown",
        retry_after=5,
    )
