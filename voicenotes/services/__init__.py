# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Contains the core logic, separated from API handlers:
#   - rate_limiter.py: Fixed-window limiter (in-memory or Redis store)
#   - validation.py: Pure input validators (audio, note fields)
#   - sanitizer.py: Markup stripping for stored text
#   - auth.py: Session lookup against the external auth service
#   - transcription.py: Speech-to-text client with timeout/error mapping
#   - llm.py: OpenAI-compatible chat-completion provider
#   - prompts.py: Prompt template loading (YAML frontmatter)
#   - enrichment.py: AI title, tags and idea organization with fallbacks
# =============================================================================
