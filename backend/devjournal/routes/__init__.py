# Routes package init
"""
DevJournal Backend — API Routes
=================================

    entries.py  → /entries CRUD, feed, search, /entries/{id}/summarize
    tags.py     → /tags catalogue and /entries/{id}/tags set operations
    snippets.py → /snippets CRUD and public browser
    users.py    → /users/me, public profiles, /users/{id}/entries
    health.py   → /health

Handlers stay thin: parse the request, resolve the caller, call a service.
"""
