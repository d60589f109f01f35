"""
RentalQ&A Backend — Application Package Initializer
=====================================================

What: Marks the `rentalqa` directory as a Python package.
Why:  Enables module imports like `from rentalqa.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Query + Mutation (Cache Sync)     │  ← aggregation, submission, QueryCache
    ├─────────────────────────────────────┤
    │       Question Store (Boundary)     │  ← one session per operation
    ├─────────────────────────────────────┤
    │  Models & Schemas / Database layer  │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    The list endpoint reads through the QueryCache; the submit endpoint writes
    through the store and invalidates the cached aggregation on success.
"""

__version__ = "1.0.0"
