# =============================================================================
# Database Package
# =============================================================================
# Provides async SQLAlchemy engine, session management, the ORM model and
# the notes repository.
#
# Key exports:
#   - Database: engine + session factory, kept on app.state
#   - get_async_session: FastAPI dependency for database sessions
#   - Note: ORM model for a stored note
#   - NotesRepository: ownership-checked CRUD over notes
# =============================================================================
