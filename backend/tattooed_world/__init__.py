"""
Tattooed World Backend
======================

REST/JSON API for the Tattooed World marketplace, which connects tattoo
artists, studios and clients, plus the studio geocoding batch.

Layering:

    ┌─────────────────────────────────────┐
    │   Routes (API layer, routes/)       │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (business rules)         │  ← roles, ownership, geocoding
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (async sessions)         │  ← commit/rollback per request
    └─────────────────────────────────────┘

Entry points: `uvicorn tattooed_world.main:app` for the server and the
`tattooed-world` console script (tattooed_world.cli) for batch jobs.
"""

__version__ = "1.0.0"
