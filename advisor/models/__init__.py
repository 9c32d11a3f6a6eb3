# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Request/response schemas for the HTTP API (requests.py, responses.py).
# The agents package works with its own dataclasses; the API layer maps
# between the two.
# =============================================================================
