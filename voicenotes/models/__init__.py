# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Defines request/response schemas for the API, separate from the database
# model (voicenotes/db/models.py). Bodies use camelCase keys.
# =============================================================================
