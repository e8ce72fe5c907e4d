"""Database Infrastructure — SQLAlchemy Base for the key-value table.

Invariants:
    - Single async engine per process (initialized via init_db)
    - All sessions are async (AsyncSession)
"""
