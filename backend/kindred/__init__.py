"""
Kindred Backend — Application Package Initializer
==================================================

What: Dating-app backend: profiles, swipes, matches, chat, credits, analytics.
Who:  Imported by uvicorn (`kindred.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Orchestration, ownership, errors
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
              Scoring (kindred.scoring) is pure and sits beside all layers.
"""

__version__ = "1.0.0"
