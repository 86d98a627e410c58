# Services package init
"""
DevJournal Backend — Services Layer
=====================================

    access          → ownership & visibility gate (pure functions)
    pagination      → offset paging and substring search
    user_service    → just-in-time provisioning, profiles
    entry_service   → entries CRUD, feed, summaries
    snippet_service → snippets CRUD, cross-resource link check
    tag_service     → find-or-create tags, entry tag sets, catalogue
    llm_base        → Summarizer contract
    gemini_service  → Summarizer backed by Google Gemini
"""
