# Schemas package init
"""
DevJournal Backend — API Schemas
=================================

Pydantic models that define the JSON contract. ORM models never leave the
service layer; routes return these instead.
"""
