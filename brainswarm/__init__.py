"""
Brainswarm Backend — Application Package
========================================

What: Multi-tenant API where teams submit, rank and curate improvement ideas.
Who:  Imported by uvicorn (`brainswarm.main:app`), Alembic and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Orchestration)    │  ← load records, authorize, persist
    ├─────────────────────────────────────┤
    │     Core (priority, access rules)   │  ← pure functions, no I/O
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
