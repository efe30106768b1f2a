# =============================================================================
# Voice Notes API
# =============================================================================
# Request gateway for a voice-note app: transcribes short recordings,
# enriches notes with AI-generated titles, tags and organized ideas, and
# stores them per user behind an external session service.
#
# Package structure:
#   voicenotes/
#   ├── api/          → FastAPI route handlers (transcribe, notes, auth,
#   │                    system) and request dependencies
#   ├── db/           → Database engine, sessions, ORM model, repository
#   ├── models/       → Pydantic V2 request/response schemas
#   ├── prompts/      → Prompt templates (YAML frontmatter + system prompt)
#   ├── services/     → Rate limiting, validation, sanitizing, AI clients
#   ├── config.py     → Environment settings (pydantic-settings)
#   ├── errors.py     → Error taxonomy mapped to HTTP statuses
#   └── main.py       → Application factory
# =============================================================================
