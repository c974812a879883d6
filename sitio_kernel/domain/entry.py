"""
Config entry -- default/override resolution for one configuration domain.

Responsibility:
    Models the per-domain state as an explicit tagged variant:
    ``DefaultValue(value)`` when no operator customization exists and
    ``OverrideValue(value, meta)`` when one does. Override presence is carried
    by the variant itself, never inferred from an empty or missing field of a
    serialized blob.

Architecture position:
    Kernel > Domain -- pure, zero I/O. ConfigStore decodes persisted records
    into these types; presentation collaborators read them through
    ``ConfigStore.resolve()`` and ``ConfigStore.entry()``.

Invariants enforced:
    - ``ConfigEntry.override_meta`` is present iff ``ConfigEntry.override`` is
      present (checked in ``__post_init__``).
    - Effective value = override if present else default; ``resolve_entry``
      is pure.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class OverrideMeta:
    """When and why the override was written."""

    saved_at: datetime
    note: str

    def to_payload(self) -> dict[str, Any]:
        return {"savedAt": self.saved_at.isoformat(), "note": self.note}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> OverrideMeta:
        return cls(
            saved_at=datetime.fromisoformat(data["savedAt"]),
            note=str(data["note"]),
        )


@dataclass(frozen=True)
class DefaultValue(Generic[T]):
    """The domain resolves to its shipped default."""

    value: T

    @property
    def is_override(self) -> bool:
        return False


@dataclass(frozen=True)
class OverrideValue(Generic[T]):
    """The domain resolves to an operator override."""

    value: T
    meta: OverrideMeta

    @property
    def is_override(self) -> bool:
        return True


@dataclass(frozen=True)
class ConfigEntry(Generic[T]):
    """
    Full per-domain state: the immutable default plus the optional override.

    Guarantees:
        - ``override_meta is None`` iff ``override is None``.
    """

    domain: str
    default_value: T
    override: T | None = None
    override_meta: OverrideMeta | None = None

    def __post_init__(self) -> None:
        if (self.override is None) != (self.override_meta is None):
            raise ValueError(
                f"ConfigEntry for {self.domain}: override and override_meta "
                "must be both present or both absent"
            )

    @property
    def has_override(self) -> bool:
        return self.override is not None

    @property
    def effective_value(self) -> T:
        return resolve_entry(self).value


def resolve_entry(entry: ConfigEntry[T]) -> DefaultValue[T] | OverrideValue[T]:
    """Resolve an entry to its tagged effective value."""
    if entry.override is not None and entry.override_meta is not None:
        return OverrideValue(entry.override, entry.override_meta)
    return DefaultValue(entry.default_value)
