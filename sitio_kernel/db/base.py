"""
Module: sitio_kernel.db.base
Responsibility: Declarative base for the SQLAlchemy ORM models that back the
    durable persistence adapter.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  MUST NOT import from models/, services/, domain/, or outer layers.

Invariants enforced:
    - datetime maps to DateTime(timezone=True): timestamps are always
      timezone-aware.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - datetime maps to DateTime(timezone=True).
        - str maps to Text unless a column narrows it.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        str: Text,
    }
