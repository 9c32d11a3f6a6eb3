# =============================================================================
# Services Package — Supporting Infrastructure
# =============================================================================
#   - llm.py: multi-provider LLM abstraction (OpenAI-compatible, Anthropic)
#   - pricing.py: per-model token pricing for cost estimates
#   - cache.py: in-memory response cache with TTL
#   - sessions.py: in-memory session history store with TTL
#   - sanitizer.py: LaTeX cleanup and chart id deduplication
#   - errors.py: pipeline error classification
# =============================================================================
