# =============================================================================
# Shared test fixtures
# =============================================================================
#
# The prompt engine keeps its cache, sessions and usage totals in
# module-level singletons. Every test gets fresh instances so tests never
# see each other's conversations or cached replies.
# =============================================================================

from __future__ import annotations

import pytest

from advisor.agents import orchestrator
from advisor.services import cache, llm, sessions


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch):
    monkeypatch.setattr(cache, "_response_cache", cache.ResponseCache())
    monkeypatch.setattr(sessions, "_session_store", sessions.SessionStore())
    monkeypatch.setattr(orchestrator, "_usage", orchestrator.UsageTotals())
    monkeypatch.setattr(llm, "_providers", {})
