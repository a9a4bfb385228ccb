"""Database Layer — SQLAlchemy Base and dialect-aware statement helpers.

Invariants:
    - All sessions are async (AsyncSession)
    - Statements here are dialect-aware (PostgreSQL in production, SQLite in tests)

Design Decisions:
    - asyncpg driver for PostgreSQL (ADR: native async, no thread pool overhead)
"""
