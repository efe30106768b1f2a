# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter for a specific feature:
#   - transcribe.py: Audio upload → transcript
#   - notes.py: Note create / list / count / update / delete
#   - auth.py: Sign-out passthrough to the session service
#   - system.py: Health and database checks
#   - deps.py: Authentication and rate-limit dependencies
# =============================================================================
