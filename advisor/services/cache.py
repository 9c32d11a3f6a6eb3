# =============================================================================
# Response Cache — In-Memory, TTL + Bounded Size
# =============================================================================
#
# Caches finished chat payloads keyed by (sorted expert ids, normalized
# message). Two users asking the same question that routes to the same
# experts get the same answer without another round of LLM calls.
#
# Eviction:
#   - on read: an entry older than the TTL is deleted and reported as a miss
#   - on write: beyond max_entries, the oldest inserted entry goes first
#   - purge_expired(): called by the periodic cleanup task
#
# The cache lives in process memory; it resets on restart and is not shared
# between workers.
# =============================================================================

from __future__ import annotations

import logging
import re
import time
from collections.abc import Iterable
from typing import Any

from advisor.config import settings

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


class ResponseCache:
    """Insertion-ordered cache of reply payloads with a time-to-live."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
    ) -> None:
        self.ttl_seconds = (
            settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self.max_entries = (
            settings.cache_max_entries if max_entries is None else max_entries
        )
        # dict preserves insertion order; re-assigning a key keeps its slot
        self._entries: dict[str, dict[str, Any]] = {}

    @staticmethod
    def build_key(agent_ids: Iterable[str], message: str) -> str:
        """Cache key: sorted expert ids + trimmed, lower-cased message."""
        normalized = _WHITESPACE.sub(" ", message.strip().lower())
        return f"{','.join(sorted(agent_ids))}::{normalized}"

    def get(
        self, agent_ids: Iterable[str], message: str,
    ) -> dict[str, Any] | None:
        agent_ids = list(agent_ids)
        key = self.build_key(agent_ids, message)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if time.time() - entry["timestamp"] > self.ttl_seconds:
            del self._entries[key]
            return None
        logger.info("Cache hit: [%s]", ", ".join(agent_ids))
        return {k: v for k, v in entry.items() if k != "timestamp"}

    def set(
        self, agent_ids: Iterable[str], message: str, data: dict[str, Any],
    ) -> None:
        key = self.build_key(agent_ids, message)
        self._entries[key] = {**data, "timestamp": time.time()}
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = time.time()
        expired = [
            key for key, entry in self._entries.items()
            if now - entry["timestamp"] > self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# Global cache instance
_response_cache = ResponseCache()


def get_response_cache() -> ResponseCache:
    """Get the global response cache."""
    return _response_cache
