# =============================================================================
# Agents Package — Multi-Expert Orchestration
# =============================================================================
#   - registry.py: the six expert personas and their routing keywords
#   - prompts.py: expert, classifier and synthesis system prompts
#   - classifier.py: keyword scoring with an LLM fallback
#   - runner.py: runs one expert, or several concurrently
#   - synthesizer.py: merges several expert answers into one reply
#   - orchestrator.py: LangGraph prompt engine (classify → cache → run →
#     finalize → remember)
# =============================================================================
