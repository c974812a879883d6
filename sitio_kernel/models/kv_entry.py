"""
Module: sitio_kernel.models.kv_entry
Responsibility: ORM persistence for the key/value records written by
    SqlAlchemyPersistenceAdapter: config records (``config/<domain>``), audit
    entries (``audit/<domain>/<seq>``) and audit head counters.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per key (primary key).
    - value holds canonical JSON text; the row never carries a partial
      record because writes happen inside one session transaction.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sitio_kernel.db.base import Base


class KeyValueEntry(Base):
    """One persisted key and its JSON text value."""

    __tablename__ = "key_value_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)

    value: Mapped[str] = mapped_column(Text, nullable=False)

    # Wall-clock time of the last write, informational only
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<KeyValueEntry {self.key}>"
