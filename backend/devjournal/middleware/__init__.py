# Middleware package init
"""
DevJournal Backend — Middleware
=================================

Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route
"""
