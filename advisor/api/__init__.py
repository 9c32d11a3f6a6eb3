# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter:
#   - chat.py: send a message, read or clear a session
#   - system.py: health check and performance statistics
# =============================================================================
