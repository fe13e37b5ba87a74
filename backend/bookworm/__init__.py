"""
BookWorm Backend — Application Package Initializer
===================================================

What: Marks the `bookworm` directory as a Python package.
Who:  Imported by uvicorn (`bookworm.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Routes (API Layer) + Auth Gate    │  ← HTTP concerns, bearer tokens
    ├─────────────────────────────────────┤
    │   Services (Business Logic)         │  ← users, lists, book search
    ├─────────────────────────────────────┤
    │   Models & Schemas (Data)           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database Session Manager          │  ← one pooled session per request
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
