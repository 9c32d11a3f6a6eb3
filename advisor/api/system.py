"""Operational endpoints: health check and performance statistics."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from advisor.agents.orchestrator import get_performance_stats
from advisor.config import Settings, get_settings
from advisor.models.responses import HealthResponse, PerformanceResponse

router = APIRouter(prefix="/api", tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    stats = get_performance_stats()
    return HealthResponse(
        version=settings.app_version,
        service=settings.app_name,
        uptime_seconds=stats["uptime_seconds"],
    )


@router.get("/performance", response_model=PerformanceResponse)
async def performance() -> PerformanceResponse:
    return PerformanceResponse(
        performance=get_performance_stats(),
        timestamp=datetime.now(UTC).isoformat(),
    )
