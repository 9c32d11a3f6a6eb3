# =============================================================================
# FastAPI Application
# =============================================================================
#
# Creates the app, configures logging once, registers the routers and runs
# the periodic session/cache cleanup for the lifetime of the process.
#
# Run locally:
#   uvicorn advisor.main:app --reload --port 15001
# or:
#   python -m advisor.main
# =============================================================================

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from advisor.agents.orchestrator import run_cleanup
from advisor.api import chat, system
from advisor.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def _cleanup_loop(interval: float) -> None:
    """Evict idle sessions and expired cache entries every `interval` s."""
    while True:
        await asyncio.sleep(interval)
        try:
            run_cleanup()
        except Exception:
            logger.exception("Periodic cleanup failed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "Starting %s v%s (model=%s, classifier=%s)",
        settings.app_name, settings.app_version,
        settings.llm_model, settings.classifier_model,
    )
    task = asyncio.create_task(
        _cleanup_loop(settings.cleanup_interval_seconds),
    )
    yield
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    logger.info("Shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(chat.router)
app.include_router(system.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception,
) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "שגיאה פנימית בשרת",
            "details": str(exc) if settings.debug else None,
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
