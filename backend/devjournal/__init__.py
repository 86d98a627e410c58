"""
DevJournal Backend — Application Package
=========================================

What: The `devjournal` package: a REST API for developer journal entries,
      code snippets and tags, with AI summaries of entries.
Who:  Imported by uvicorn (devjournal.main:app), Alembic and pytest.

Layering:
    ┌─────────────────────────────────────┐
    │    Routes + auth dependencies       │  ← HTTP, bearer tokens
    ├─────────────────────────────────────┤
    │    Services (business rules)        │  ← ownership gate, tags, provisioning
    ├─────────────────────────────────────┤
    │    Models & Schemas                 │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │    Database                         │  ← async sessions
    └─────────────────────────────────────┘

External collaborators:
    - Supabase Auth verifies bearer tokens (devjournal.auth.identity)
    - Google Gemini writes entry summaries (devjournal.services.gemini_service)
"""

__version__ = "1.0.0"
