# =============================================================================
# Hebrew Financial Advisor
# =============================================================================
# A multi-expert chat backend for Hebrew personal-finance questions.
# Messages are routed to one or more expert personas (pension, mortgage,
# investment, tax, budget, general), answered in parallel by an LLM and
# merged into a single reply.
#
# Package structure:
#   advisor/
#   ├── api/          → FastAPI route handlers (chat, health, performance)
#   ├── agents/       → Expert registry, prompts, classifier, runner,
#   │                    synthesizer and the LangGraph prompt engine
#   ├── models/       → Pydantic V2 request/response schemas
#   └── services/     → LLM providers, pricing, response cache, session
#                        store, reply sanitizer, error classification
# =============================================================================
