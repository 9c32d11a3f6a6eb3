# =============================================================================
# Unit Tests — Response Cache and Session Store
# =============================================================================

from __future__ import annotations

from advisor.services.cache import ResponseCache
from advisor.services.sessions import SessionStore

PAYLOAD = {"markdown": "תשובה", "agents_used": ["tax"], "mode": "single"}


# ---------------------------------------------------------------------------
# Test: Response cache
# ---------------------------------------------------------------------------


class TestResponseCache:
    def test_key_sorts_ids_and_normalizes_message(self):
        key = ResponseCache.build_key(["tax", "budget"], "  Hello   WORLD \n")
        assert key == "budget,tax::hello world"

    def test_hit_ignores_agent_order_and_case(self):
        cache = ResponseCache()
        cache.set(["tax", "budget"], "מה עם המס?", PAYLOAD)
        assert cache.get(["budget", "tax"], "  מה עם   המס? ") == PAYLOAD

    def test_different_experts_miss(self):
        cache = ResponseCache()
        cache.set(["tax"], "שאלה", PAYLOAD)
        assert cache.get(["budget"], "שאלה") is None

    def test_timestamp_not_returned(self):
        cache = ResponseCache()
        cache.set(["tax"], "שאלה", PAYLOAD)
        assert "timestamp" not in cache.get(["tax"], "שאלה")

    def test_expired_entry_is_deleted_on_read(self):
        cache = ResponseCache(ttl_seconds=-1)
        cache.set(["tax"], "שאלה", PAYLOAD)
        assert cache.get(["tax"], "שאלה") is None
        assert len(cache) == 0

    def test_oldest_entry_evicted(self):
        cache = ResponseCache(max_entries=2)
        cache.set(["tax"], "1", PAYLOAD)
        cache.set(["tax"], "2", PAYLOAD)
        cache.set(["tax"], "3", PAYLOAD)
        assert len(cache) == 2
        assert cache.get(["tax"], "1") is None
        assert cache.get(["tax"], "3") == PAYLOAD

    def test_overwrite_keeps_insertion_slot(self):
        cache = ResponseCache(max_entries=2)
        cache.set(["tax"], "1", PAYLOAD)
        cache.set(["tax"], "2", PAYLOAD)
        cache.set(["tax"], "1", {"markdown": "חדש"})
        cache.set(["tax"], "3", PAYLOAD)
        assert cache.get(["tax"], "1") is None
        assert cache.get(["tax"], "2") == PAYLOAD

    def test_purge_expired(self):
        cache = ResponseCache(ttl_seconds=-1)
        cache.set(["tax"], "1", PAYLOAD)
        cache.set(["tax"], "2", PAYLOAD)
        assert cache.purge_expired() == 2
        assert len(cache) == 0


# ---------------------------------------------------------------------------
# Test: Session store
# ---------------------------------------------------------------------------


def _exchange(n: int) -> tuple[dict[str, str], dict[str, str]]:
    return (
        {"role": "user", "content": f"q{n}"},
        {"role": "assistant", "content": f"a{n}"},
    )


class TestSessionStore:
    def test_unknown_session_is_empty(self):
        store = SessionStore()
        assert store.get_history("nope") == []
        assert store.stats()["active_sessions"] == 0

    def test_append_and_read(self):
        store = SessionStore()
        store.append("s1", *_exchange(1))
        assert store.get_history("s1") == list(_exchange(1))

    def test_history_is_a_copy(self):
        store = SessionStore()
        store.append("s1", *_exchange(1))
        store.get_history("s1").append({"role": "user", "content": "x"})
        assert len(store.get_history("s1")) == 2

    def test_history_limit_keeps_newest(self):
        store = SessionStore(history_limit=4)
        for n in range(3):
            store.append("s1", *_exchange(n))
        history = store.get_history("s1")
        assert [m["content"] for m in history] == ["q1", "a1", "q2", "a2"]

    def test_zero_history_limit_is_unlimited(self):
        store = SessionStore(history_limit=0)
        for n in range(30):
            store.append("s1", *_exchange(n))
        assert len(store.get_history("s1")) == 60

    def test_clear(self):
        store = SessionStore()
        store.append("s1", *_exchange(1))
        assert store.clear("s1") is True
        assert store.clear("s1") is False
        assert store.get_history("s1") == []

    def test_cleanup_removes_idle_sessions(self):
        store = SessionStore(ttl_seconds=-1)
        store.append("s1", *_exchange(1))
        store.touch("never-written")
        assert store.cleanup() == 1
        assert store.stats()["active_sessions"] == 0

    def test_cleanup_caps_session_count(self):
        store = SessionStore(max_sessions=2)
        for sid in ("s1", "s2", "s3"):
            store.append(sid, *_exchange(1))
        store._last_activity.update({"s1": 300.0, "s2": 100.0, "s3": 200.0})
        store.ttl_seconds = float("inf")

        assert store.cleanup() == 1
        assert store.get_history("s2") == []
        assert store.get_history("s1") != []
        assert store.get_history("s3") != []

    def test_stats(self):
        store = SessionStore()
        store.append("session-123456789", *_exchange(1))
        store.append("other", *_exchange(1), *_exchange(2))

        stats = store.stats()
        assert stats["active_sessions"] == 2
        assert stats["average_history_length"] == 3.0
        detail = stats["session_details"][0]
        assert detail["id"] == "session-..."
        assert detail["messages"] == 2
        assert detail["last_activity"].endswith("+00:00")
