"""
PostDesk Backend — Application Package Initializer
==================================================

What: Marks the `postdesk` directory as a Python package.
Who:  Imported by uvicorn (`postdesk.main:app`), pytest, and `python -m postdesk`.

Architecture Note:
    The backend is a thin layered CRUD service for blog posts:

    ┌─────────────────────────────────────┐
    │        Routes (Posts, Health)       │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (PostService)      │  ← Field rules, error translation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (DatabaseConnector)      │  ← Memoized async engine + sessions
    └─────────────────────────────────────┘

    Each layer only talks to the one below it, so services are tested with a
    mocked session and routes are tested over ASGI against SQLite.
"""

__version__ = "1.0.0"
