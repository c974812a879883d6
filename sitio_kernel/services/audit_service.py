"""
ConfigChangeAudit -- append-only record of configuration overrides.

Responsibility:
    Records who changed which configuration domain, when, and why, and
    replays those records in chronological order for review.

Architecture position:
    Kernel > Services -- imperative shell, called by ConfigStore.save() and
    ConfigStore.reset() inside the same persistence transaction as the
    configuration write.

Invariants enforced:
    - Append-only: entries are never modified or deleted by this service.
    - Per-domain ``seq`` is allocated from the stored head counter
      (``audit/<domain>/head``), so seq order is insertion order.
    - An append joins the caller's persistence transaction; if it fails the
      configuration write rolls back with it.

Failure modes:
    - PersistenceError: adapter failure during append or read, or a stored
      entry that cannot be decoded.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from sitio_kernel.exceptions import PersistenceError
from sitio_kernel.logging_config import get_logger
from sitio_kernel.services.persistence import PersistenceAdapter
from sitio_kernel.utils.hashing import canonicalize_json

logger = get_logger("services.audit")

SEQ_WIDTH = 10


def head_key(domain: str) -> str:
    return f"audit/{domain}/head"


def entry_key(domain: str, seq: int) -> str:
    return f"audit/{domain}/{seq:0{SEQ_WIDTH}d}"


@dataclass(frozen=True)
class AuditEntry:
    """
    One configuration change.

    ``seq`` is 0 until the entry is recorded.
    """

    domain: str
    timestamp: datetime
    note: str
    reverted_to_default: bool
    previous_override_present: bool
    actor: str | None = None
    payload_hash: str | None = None
    seq: int = 0

    def to_payload(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "timestamp": self.timestamp.isoformat(),
            "note": self.note,
            "revertedToDefault": self.reverted_to_default,
            "previousOverridePresent": self.previous_override_present,
            "actor": self.actor,
            "payloadHash": self.payload_hash,
            "seq": self.seq,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> AuditEntry:
        return cls(
            domain=str(data["domain"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            note=str(data["note"]),
            reverted_to_default=bool(data["revertedToDefault"]),
            previous_override_present=bool(data["previousOverridePresent"]),
            actor=data.get("actor"),
            payload_hash=data.get("payloadHash"),
            seq=int(data["seq"]),
        )


class AuditHistory:
    """
    Lazy view over one domain's audit entries.

    Every iteration re-reads the head counter, so iterating twice yields the
    same entries unless something was recorded in between.
    """

    def __init__(self, audit: ConfigChangeAudit, domain: str):
        self._audit = audit
        self._domain = domain

    @property
    def domain(self) -> str:
        return self._domain

    def __iter__(self) -> Iterator[AuditEntry]:
        for seq in range(1, self._audit._head(self._domain) + 1):
            yield self._audit._load(self._domain, seq)

    def __len__(self) -> int:
        return self._audit._head(self._domain)

    def latest(self) -> AuditEntry | None:
        head = self._audit._head(self._domain)
        return self._audit._load(self._domain, head) if head else None


class ConfigChangeAudit:
    """
    Append-only audit log stored through a PersistenceAdapter.

    Contract:
        ``record`` assigns the next seq and persists the entry.  Called
        inside an open ``persistence.transaction()`` it joins that
        transaction; otherwise it opens its own.

    Non-goals:
        - No trimming or retention policy; entries accumulate.
        - No tamper detection beyond the payload hash carried per entry.
    """

    def __init__(self, persistence: PersistenceAdapter):
        self._persistence = persistence

    def record(self, entry: AuditEntry) -> AuditEntry:
        with self._persistence.transaction():
            seq = self._head(entry.domain) + 1
            recorded = replace(entry, seq=seq)
            self._persistence.set(
                entry_key(entry.domain, seq), canonicalize_json(recorded.to_payload())
            )
            self._persistence.set(head_key(entry.domain), str(seq))

        logger.info(
            "audit_entry_recorded",
            extra={
                "domain": entry.domain,
                "seq": seq,
                "reverted_to_default": entry.reverted_to_default,
                "actor": entry.actor,
            },
        )
        return recorded

    def history(self, domain: str) -> AuditHistory:
        return AuditHistory(self, domain)

    def _head(self, domain: str) -> int:
        raw = self._persistence.get(head_key(domain))
        if raw is None:
            return 0
        try:
            return int(raw)
        except ValueError as exc:
            raise PersistenceError(
                "read", head_key(domain), f"corrupt audit head counter {raw!r}"
            ) from exc

    def _load(self, domain: str, seq: int) -> AuditEntry:
        key = entry_key(domain, seq)
        raw = self._persistence.get(key)
        if raw is None:
            raise PersistenceError("read", key, "audit entry missing")
        try:
            return AuditEntry.from_payload(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            raise PersistenceError("read", key, f"corrupt audit entry: {exc}") from exc
