# =============================================================================
# Integration Tests — Prompt Engine
# =============================================================================
#
# Runs the full LangGraph pipeline (classify → cache → experts → finalize →
# remember) with the scripted FakeLLM injected through handle_prompt().
# =============================================================================

from __future__ import annotations

import asyncio
import re

import pytest

from advisor.agents import orchestrator
from advisor.agents.orchestrator import (
    clear_session,
    format_uptime,
    get_conversation_session,
    get_performance_stats,
    handle_prompt,
)
from advisor.services.sessions import get_session_store
from fakes import FakeLLM


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


PENSION_QUESTION = "כמה אקבל פנסיה בגיל פרישה?"
MULTI_QUESTION = "האם כדאי למחזר משכנתא או לקנות מניות?"


class _RateLimited(Exception):
    status_code = 429


# ---------------------------------------------------------------------------
# Test: Single expert
# ---------------------------------------------------------------------------


class TestSingleExpert:
    def test_reply_payload(self):
        llm = FakeLLM(answers={"pension": "תקבל כ-8,000 ₪"})
        reply = _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))

        assert reply["mode"] == "single"
        assert reply["agents_used"] == ["pension"]
        assert reply["markdown"] == "תקבל כ-8,000 ₪"
        assert reply["from_cache"] is False
        assert reply["sections"] == [{
            "agent_id": "pension",
            "agent_name": "מומחה פנסיה",
            "agent_icon": "🏦",
        }]
        assert reply["input_tokens"] == 100
        assert reply["output_tokens"] == 50
        assert reply["estimated_cost_usd"] == pytest.approx(
            100 * 2.5e-6 + 50 * 10e-6,
        )

    def test_exchange_is_remembered(self):
        llm = FakeLLM(answers={"pension": "תשובה"})
        _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))

        assert get_conversation_session("s1") == [
            {"role": "user", "content": PENSION_QUESTION},
            {"role": "assistant", "content": "תשובה"},
        ]

    def test_history_passed_on_next_turn(self):
        llm = FakeLLM()
        _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))
        _run(handle_prompt("s1", "ומה עם קרן השתלמות?", llm=llm))

        second = llm.calls[-1]
        assert len(second["messages"]) == 3
        assert "[History: 2 messages]" in second["system"]

    def test_reply_is_sanitized(self):
        llm = FakeLLM(answers={"pension": r"\( 4{,}000 ₪ \)"})
        reply = _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))
        assert reply["markdown"] == r"\(4{,}000\) ₪"


# ---------------------------------------------------------------------------
# Test: Multiple experts
# ---------------------------------------------------------------------------


class TestMultiExpert:
    def test_experts_and_synthesis(self):
        llm = FakeLLM(synthesis="סיכום שני המומחים")
        reply = _run(handle_prompt("s1", MULTI_QUESTION, llm=llm))

        assert reply["mode"] == "multi"
        assert reply["agents_used"] == ["mortgage", "investment"]
        assert "answer from mortgage" in reply["markdown"]
        assert "answer from investment" in reply["markdown"]
        assert "### 🔗 סיכום מתואם" in reply["markdown"]
        assert len(llm.calls) == 3
        assert reply["input_tokens"] == 100 + 100 + 300

    def test_partial_failure_notice(self):
        llm = FakeLLM(failing={"investment": RuntimeError("down")})
        reply = _run(handle_prompt("s1", MULTI_QUESTION, llm=llm))

        # one survivor: returned as a single answer, no synthesis call
        assert reply["mode"] == "single"
        assert reply["agents_used"] == ["mortgage"]
        assert reply["markdown"].startswith("answer from mortgage")
        assert "ניתוח מ-מומחה השקעות לא היה זמין הפעם" in reply["markdown"]
        assert len(llm.calls) == 2

    def test_all_experts_failing_is_an_error(self):
        llm = FakeLLM(failing={
            "mortgage": RuntimeError("down"),
            "investment": RuntimeError("down"),
        })
        reply = _run(handle_prompt("s1", MULTI_QUESTION, llm=llm))

        assert reply["mode"] == "error"
        assert reply["agents_used"] == []
        assert reply["error_type"] == "unknown"
        assert reply["retry_after"] == 5
        assert "כל המומחים נכשלו" in reply["markdown"]
        assert get_conversation_session("s1") == []


# ---------------------------------------------------------------------------
# Test: Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_rate_limit(self):
        llm = FakeLLM(failing={"pension": _RateLimited("Too many requests")})
        reply = _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))

        assert reply["mode"] == "error"
        assert reply["error_type"] == "rate_limit"
        assert reply["retry_after"] == 30

    def test_failed_turn_leaves_history_untouched(self):
        ok = FakeLLM()
        _run(handle_prompt("s1", PENSION_QUESTION, llm=ok))

        broken = FakeLLM(failing={"tax": RuntimeError("request timed out")})
        reply = _run(handle_prompt("s1", "כמה נקודות זיכוי מגיעות לי?", llm=broken))

        assert reply["error_type"] == "timeout"
        assert len(get_conversation_session("s1")) == 2

    def test_errors_counted(self):
        llm = FakeLLM(failing={"pension": RuntimeError("x")})
        _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))
        assert get_performance_stats()["usage"]["errors"] == 1


# ---------------------------------------------------------------------------
# Test: Cache
# ---------------------------------------------------------------------------


class TestCache:
    def test_repeat_question_served_from_cache(self):
        llm = FakeLLM(answers={"pension": "תשובה"})
        first = _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))
        second = _run(handle_prompt("s2", "  " + PENSION_QUESTION.upper(), llm=llm))

        assert len(llm.calls) == 1
        assert second["from_cache"] is True
        assert second["markdown"] == first["markdown"]
        assert second["input_tokens"] == 0
        assert second["estimated_cost_usd"] == 0.0
        # the cached exchange is still remembered
        assert len(get_conversation_session("s2")) == 2

    def test_cache_hits_counted(self):
        llm = FakeLLM()
        _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))
        _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))

        usage = get_performance_stats()["usage"]
        assert usage["replies"] == 2
        assert usage["cache_hits"] == 1


# ---------------------------------------------------------------------------
# Test: AI classification inside the pipeline
# ---------------------------------------------------------------------------


class TestAIRouting:
    def test_classifier_usage_added_to_reply(self):
        llm = FakeLLM(
            answers={"budget": "תכננו תקציב"},
            classifier_payload={"agents": [{"id": "budget", "confidence": 80}]},
        )
        reply = _run(handle_prompt("s1", "מה דעתך על המצב הכלכלי?", llm=llm))

        assert reply["agents_used"] == ["budget"]
        assert reply["input_tokens"] == 50 + 100
        assert reply["output_tokens"] == 20 + 50

    def test_separate_classifier_provider(self):
        classifier = FakeLLM(
            classifier_payload={"agents": [{"id": "tax", "confidence": 80}]},
        )
        llm = FakeLLM()
        _run(handle_prompt(
            "s1", "מה דעתך על המצב הכלכלי?", llm=llm, classifier_llm=classifier,
        ))

        assert len(classifier.calls) == 1
        assert llm.expert_calls() == ["tax"]


# ---------------------------------------------------------------------------
# Test: Chart ids across turns
# ---------------------------------------------------------------------------


class TestChartIds:
    def test_reused_chart_id_renamed_on_later_turn(self):
        chart = (
            '<canvas id="chart_pension_01"></canvas>'
            "<script>document.getElementById('chart_pension_01')</script>"
        )
        llm = FakeLLM(answers={"pension": chart})
        first = _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))
        second = _run(handle_prompt("s1", "ומה לגבי קצבה?", llm=llm))

        assert 'id="chart_pension_01"' in first["markdown"]
        assert "chart_pension_01" not in second["markdown"]
        new_id = re.search(r'<canvas id="([^"]+)"', second["markdown"]).group(1)
        assert f'getElementById("{new_id}")' in second["markdown"]

    def test_cached_reply_renamed_within_same_session(self):
        chart = (
            '<canvas id="chart_pension_01"></canvas>'
            "<script>document.getElementById('chart_pension_01')</script>"
        )
        llm = FakeLLM(answers={"pension": chart})
        _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))
        second = _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))

        assert second["from_cache"] is True
        assert len(llm.calls) == 1
        canvas_ids = [
            re.search(r'<canvas id="([^"]+)"', m["content"]).group(1)
            for m in get_conversation_session("s1")
            if m["role"] == "assistant"
        ]
        assert len(set(canvas_ids)) == 2
        assert canvas_ids[0] == "chart_pension_01"

    def test_cache_entry_keeps_original_ids(self):
        chart = '<canvas id="chart_pension_01"></canvas>'
        llm = FakeLLM(answers={"pension": chart})
        _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))
        _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))

        # a fresh session gets the stored markdown untouched
        reply = _run(handle_prompt("s2", PENSION_QUESTION, llm=llm))
        assert reply["from_cache"] is True
        assert reply["markdown"] == chart

    def test_other_sessions_unaffected(self):
        chart = '<canvas id="chart_pension_01"></canvas>'
        llm = FakeLLM(answers={"pension": chart})
        _run(handle_prompt("s1", PENSION_QUESTION, llm=llm))
        reply = _run(handle_prompt("s2", "ומה לגבי קצבה?", llm=llm))
        assert reply["markdown"] == chart


# ---------------------------------------------------------------------------
# Test: Session helpers and stats
# ---------------------------------------------------------------------------


class TestSessionHelpers:
    def test_clear_session(self):
        _run(handle_prompt("s1", PENSION_QUESTION, llm=FakeLLM()))
        assert clear_session("s1") is True
        assert clear_session("s1") is False
        assert get_conversation_session("s1") == []

    def test_run_cleanup_evicts_idle_sessions(self):
        _run(handle_prompt("s1", PENSION_QUESTION, llm=FakeLLM()))
        get_session_store().ttl_seconds = -1
        orchestrator.run_cleanup()
        assert get_conversation_session("s1") == []


class TestFormatUptime:
    def test_seconds_only(self):
        assert format_uptime(0) == "0s"
        assert format_uptime(59.9) == "59s"

    def test_all_units(self):
        assert format_uptime(90061) == "1d 1h 1m 1s"

    def test_zero_units_omitted(self):
        assert format_uptime(3601) == "1h 1s"
        assert format_uptime(86400) == "1d 0s"


class TestPerformanceStats:
    def test_fields(self):
        _run(handle_prompt("session-abcdefgh", PENSION_QUESTION, llm=FakeLLM()))
        stats = get_performance_stats()

        assert stats["active_sessions"] == 1
        assert stats["session_details"][0]["id"] == "session-..."
        assert stats["cache_size"] == 1
        assert stats["usage"]["replies"] == 1
        assert stats["usage"]["output_tokens"] == 50
        assert stats["model"] == "gpt-4o"
        assert stats["classifier_model"] == "gpt-4o-mini"
        assert stats["uptime_seconds"] >= 0
        assert stats["uptime_formatted"].endswith("s")
        assert stats["pid"] > 0
        assert stats["memory_usage"]["max_rss_mb"] > 0
        assert stats["python_version"].startswith("3.")
