# Auth package init
"""
DevJournal Backend — Authentication
=====================================

identity.py      → IdentityProvider contract + Supabase Auth client
dependencies.py  → FastAPI dependencies resolving the caller's local User
"""
