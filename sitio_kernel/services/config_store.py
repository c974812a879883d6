"""
ConfigStore -- layered default/override store for one configuration domain.

Responsibility:
    Resolves the effective value of a domain from its shipped default plus
    an optional operator override, and writes or clears that override under
    authorization, schema validation and audit.

Architecture position:
    Kernel > Services -- imperative shell.  One instance per domain, wired by
    ``sitio_config.build_config_stores`` with an injected persistence
    adapter, audit log, authorizer and clock.

Invariants enforced:
    - Resolution: override if present else default.  ``get()`` and
      ``has_override()`` always agree on the source.
    - Validation gating: an invalid candidate is never persisted; every
      violation is reported.
    - Atomicity: the override write and its audit entry are persisted in one
      ``persistence.transaction()``; either both are observable or neither.
    - Serialization: ``save``/``reset`` on the same store hold the store's
      lock, so concurrent writers are applied one after another and the last
      one wins.

Failure modes (returned in ConfigWriteResult, never swallowed):
    - AuthorizationError: the authorizer rejects the caller.  No state change.
    - ValidationError: the candidate violates the domain schema.  No write.
    - PersistenceError: the adapter failed.  Nothing from the write is
      observable.

    ``get()`` never fails: an unreadable or undecodable stored override is
    logged and the domain resolves to its default.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from sitio_kernel.domain.clock import Clock, SystemClock
from sitio_kernel.domain.entry import (
    ConfigEntry,
    DefaultValue,
    OverrideMeta,
    OverrideValue,
    resolve_entry,
)
from sitio_kernel.domain.schemas.base import DomainSchema
from sitio_kernel.exceptions import (
    AuthorizationError,
    ConfigError,
    PersistenceError,
    ValidationError,
)
from sitio_kernel.logging_config import LogContext, get_logger
from sitio_kernel.services.audit_service import AuditEntry, ConfigChangeAudit
from sitio_kernel.services.authorization import ConfigWriteAuthorizer
from sitio_kernel.services.persistence import PersistenceAdapter
from sitio_kernel.utils.hashing import canonicalize_json, hash_payload

logger = get_logger("services.config_store")

T = TypeVar("T")


def config_key(domain: str) -> str:
    return f"config/{domain}"


class ConfigWriteStatus(str, Enum):
    """Status of a save or reset."""

    SAVED = "saved"
    RESET = "reset"
    UNCHANGED = "unchanged"
    VALIDATION_FAILED = "validation_failed"
    UNAUTHORIZED = "unauthorized"
    PERSISTENCE_FAILED = "persistence_failed"


_STATUS_FOR_ERROR: dict[type[ConfigError], ConfigWriteStatus] = {
    ValidationError: ConfigWriteStatus.VALIDATION_FAILED,
    AuthorizationError: ConfigWriteStatus.UNAUTHORIZED,
    PersistenceError: ConfigWriteStatus.PERSISTENCE_FAILED,
}


@dataclass(frozen=True)
class ConfigWriteResult:
    """
    Result of ConfigStore.save() or ConfigStore.reset().

    Carries the recorded audit entry on success, the typed error otherwise.
    """

    status: ConfigWriteStatus
    domain: str
    audit_entry: AuditEntry | None = None
    error: ConfigError | None = None

    @classmethod
    def saved(cls, domain: str, audit_entry: AuditEntry) -> ConfigWriteResult:
        return cls(status=ConfigWriteStatus.SAVED, domain=domain, audit_entry=audit_entry)

    @classmethod
    def reset(cls, domain: str, audit_entry: AuditEntry) -> ConfigWriteResult:
        return cls(status=ConfigWriteStatus.RESET, domain=domain, audit_entry=audit_entry)

    @classmethod
    def unchanged(cls, domain: str) -> ConfigWriteResult:
        """Reset of a domain without override (idempotent success)."""
        return cls(status=ConfigWriteStatus.UNCHANGED, domain=domain)

    @classmethod
    def failed(cls, domain: str, error: ConfigError) -> ConfigWriteResult:
        return cls(status=_STATUS_FOR_ERROR[type(error)], domain=domain, error=error)

    @property
    def is_success(self) -> bool:
        return self.status in (
            ConfigWriteStatus.SAVED,
            ConfigWriteStatus.RESET,
            ConfigWriteStatus.UNCHANGED,
        )

    @property
    def error_code(self) -> str | None:
        return None if self.error is None else self.error.code

    def raise_for_error(self) -> ConfigWriteResult:
        """Raise the carried error, or return self on success."""
        if self.error is not None:
            raise self.error
        return self


class ConfigStore(Generic[T]):
    """
    Layered store for one configuration domain.

    Contract:
        Reads resolve against the persisted record at call time, so every
        read observes the most recently committed write.  Writes go through
        ``save`` and ``reset`` only.

    Non-goals:
        - No change notification; callers re-read after writing.
        - No optimistic concurrency or merge of concurrent edits.
    """

    def __init__(
        self,
        schema: DomainSchema[T],
        persistence: PersistenceAdapter,
        audit: ConfigChangeAudit,
        authorizer: ConfigWriteAuthorizer,
        clock: Clock | None = None,
    ):
        self._schema = schema
        self._persistence = persistence
        self._audit = audit
        self._authorizer = authorizer
        self._clock = clock or SystemClock()
        self._lock = threading.RLock()

    @property
    def domain(self) -> str:
        return self._schema.domain.value

    @property
    def label(self) -> str:
        return self._schema.label

    @property
    def schema(self) -> DomainSchema[T]:
        return self._schema

    @property
    def key(self) -> str:
        return config_key(self.domain)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def entry(self) -> ConfigEntry[T]:
        """Default, override and override metadata as currently persisted."""
        stored = self._read_override()
        if stored is None:
            return ConfigEntry(self.domain, self._schema.default)
        value, meta = stored
        return ConfigEntry(self.domain, self._schema.default, value, meta)

    def resolve(self) -> DefaultValue[T] | OverrideValue[T]:
        return resolve_entry(self.entry())

    def get(self) -> T:
        """Effective value.  Never fails, never mutates."""
        return self.resolve().value

    def has_override(self) -> bool:
        return self.resolve().is_override

    def history(self):
        return self._audit.history(self.domain)

    def _read_override(self) -> tuple[T, OverrideMeta] | None:
        try:
            raw = self._persistence.get(self.key)
        except PersistenceError as exc:
            logger.warning(
                "config_read_failed",
                extra={"domain": self.domain, "key": self.key, "reason": exc.reason},
            )
            return None
        if raw is None:
            return None

        try:
            record = json.loads(raw)
            value = self._schema.from_payload(record["override"])
            meta = OverrideMeta.from_payload(record["overrideMeta"])
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning(
                "config_override_unreadable",
                extra={"domain": self.domain, "key": self.key, "reason": str(exc)},
            )
            return None

        violations = self._schema.validate(value)
        if violations:
            logger.warning(
                "config_override_invalid",
                extra={
                    "domain": self.domain,
                    "key": self.key,
                    "violation_count": len(violations),
                },
            )
            return None
        return value, meta

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, candidate: T, note: str | None = None) -> ConfigWriteResult:
        """
        Validate and persist ``candidate`` as the domain override.

        A blank ``note`` is replaced by the schema's default save note.
        """
        actor = self._authorizer.actor_name
        with LogContext.bind(domain=self.domain, actor_id=actor):
            if not self._authorizer.is_authorized_to_write_config():
                return self._unauthorized("save", actor)

            violations = self._schema.validate(candidate)
            if violations:
                error = ValidationError(self.domain, violations)
                logger.warning(
                    "config_validation_failed",
                    extra={
                        "violation_count": len(violations),
                        "fields": list(error.fields),
                    },
                )
                return ConfigWriteResult.failed(self.domain, error)

            if note is None or not note.strip():
                note = self._schema.default_save_note(candidate)
            payload = self._schema.to_payload(candidate)

            with self._lock:
                try:
                    with self._persistence.transaction():
                        previous = self.has_override()
                        saved_at = self._clock.now()
                        meta = OverrideMeta(saved_at=saved_at, note=note)
                        self._persistence.set(
                            self.key,
                            canonicalize_json(
                                {"override": payload, "overrideMeta": meta.to_payload()}
                            ),
                        )
                        recorded = self._audit.record(
                            AuditEntry(
                                domain=self.domain,
                                timestamp=saved_at,
                                note=note,
                                reverted_to_default=False,
                                previous_override_present=previous,
                                actor=actor,
                                payload_hash=hash_payload(payload),
                            )
                        )
                except PersistenceError as exc:
                    return self._write_failed("save", exc)

            logger.info(
                "config_override_saved",
                extra={
                    "seq": recorded.seq,
                    "payload_hash": recorded.payload_hash,
                    "previous_override_present": previous,
                },
            )
            return ConfigWriteResult.saved(self.domain, recorded)

    def reset(self, note: str | None = None) -> ConfigWriteResult:
        """
        Remove the override so the domain resolves to its default.

        Idempotent: without a stored override nothing is written and no
        audit entry is recorded.
        """
        actor = self._authorizer.actor_name
        with LogContext.bind(domain=self.domain, actor_id=actor):
            if not self._authorizer.is_authorized_to_write_config():
                return self._unauthorized("reset", actor)

            if note is None or not note.strip():
                note = f"Reset {self.label} to default values"

            with self._lock:
                try:
                    with self._persistence.transaction():
                        if self._persistence.get(self.key) is None:
                            logger.info("config_reset_unchanged")
                            return ConfigWriteResult.unchanged(self.domain)
                        previous = self.has_override()
                        self._persistence.remove(self.key)
                        recorded = self._audit.record(
                            AuditEntry(
                                domain=self.domain,
                                timestamp=self._clock.now(),
                                note=note,
                                reverted_to_default=True,
                                previous_override_present=previous,
                                actor=actor,
                                payload_hash=hash_payload(
                                    self._schema.to_payload(self._schema.default)
                                ),
                            )
                        )
                except PersistenceError as exc:
                    return self._write_failed("reset", exc)

            logger.info("config_override_reset", extra={"seq": recorded.seq})
            return ConfigWriteResult.reset(self.domain, recorded)

    def _unauthorized(self, operation: str, actor: str) -> ConfigWriteResult:
        error = AuthorizationError(self.domain, operation, actor)
        logger.warning("config_write_unauthorized", extra={"operation": operation})
        return ConfigWriteResult.failed(self.domain, error)

    def _write_failed(self, operation: str, exc: PersistenceError) -> ConfigWriteResult:
        logger.error(
            "config_write_failed",
            extra={"operation": operation},
            exc_info=exc,
        )
        return ConfigWriteResult.failed(self.domain, exc)

    def __repr__(self) -> str:
        return f"<ConfigStore {self.domain}>"


def describe_entry(store: ConfigStore[Any]) -> dict[str, Any]:
    """JSON-safe summary of a store's state for display."""
    entry = store.entry()
    schema = store.schema
    return {
        "domain": store.domain,
        "label": store.label,
        "hasOverride": entry.has_override,
        "effective": schema.to_payload(entry.effective_value),
        "default": schema.to_payload(entry.default_value),
        "overrideMeta": None if entry.override_meta is None else entry.override_meta.to_payload(),
    }
