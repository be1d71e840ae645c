"""
Newsdesk Backend — Application Package Initializer
====================================================

What: Marks the `newsdesk` directory as a Python package.
Why:  Enables module imports like `from newsdesk.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← CRUD, image fields, rehydration
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database + Content Store (I/O)    │  ← Async sessions, upload files
    └─────────────────────────────────────┘

    Images live twice: verbatim inside the entity documents (source of truth)
    and as plain files in the content store (a disposable cache that is
    rebuilt from the documents on demand).
"""

__version__ = "1.0.0"
