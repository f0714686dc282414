"""
NewsNext Backend — Application Package
=======================================

What: API backend for the NewsNext news-publishing platform.
Who:  Imported by uvicorn (`newsnext.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │      Routes (HTTP, auth guards)     │  ← status codes, envelopes
    ├─────────────────────────────────────┤
    │   Services (ads, users, memos,      │  ← business rules
    │   media, payments, email, GA4)      │
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never talk to the database directly; every rule that decides
    who may do what to an ad, a user or a memo lives in a service.
"""

__version__ = "1.0.0"
