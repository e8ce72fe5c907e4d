"""Key-Value Entry ORM — one row per storage key holding a serialized payload.

Invariants:
    - key is the primary key (one row per key, last write wins)
    - value is the full serialized payload (the address collection is one JSON array)
    - updated_at is refreshed on every write

Design Decisions:
    - Text column, not JSON: the store owns serialization, the table stays a plain
      key-value provider usable for any payload
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from address_capture.db.base import Base


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
