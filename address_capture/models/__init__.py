"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - One file per entity; imported here so Base.metadata is complete for
      create_all and alembic autogenerate
"""

from address_capture.models.kv_entry import KeyValueEntry  # noqa: F401
