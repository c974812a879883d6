"""
PersistenceAdapter -- key/value storage for configuration records and audit.

Responsibility:
    Reads and writes raw serialized text blobs by key, and groups several
    writes into one atomic ``transaction()``.  Knows nothing about domains,
    schemas or audit semantics.

Architecture position:
    Kernel > Services -- leaf of the imperative shell.  ConfigStore and
    ConfigChangeAudit are its only callers.

Invariants enforced:
    - Writes inside ``transaction()`` become visible together or not at all.
    - Nested ``transaction()`` calls on the same thread join the outermost
      scope; only the outermost scope commits or rolls back.
    - Reads inside a transaction observe that transaction's own writes.

Failure modes:
    - PersistenceError wrapping any SQLAlchemyError (read, write, commit).
    - Exceptions raised inside a transaction body roll the transaction back
      and propagate unchanged.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sitio_kernel.db.engine import get_session_factory, session_scope
from sitio_kernel.domain.clock import Clock, SystemClock
from sitio_kernel.exceptions import PersistenceError
from sitio_kernel.logging_config import get_logger
from sitio_kernel.models.kv_entry import KeyValueEntry

logger = get_logger("services.persistence")


class PersistenceAdapter(ABC):
    """
    Abstract key/value store.

    Contract:
        ``get`` returns the text last written under ``key`` or None.
        ``set`` and ``remove`` are durable once the enclosing transaction
        (or, outside a transaction, the call itself) completes.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Context manager making the enclosed writes atomic."""
        ...


class InMemoryPersistenceAdapter(PersistenceAdapter):
    """
    Dict-backed adapter for tests and single-process hosts.

    A transaction holds the adapter lock for its whole duration and restores
    a snapshot of the data if the body raises.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()
        self._depth = 0

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot = dict(self._data) if self._depth == 0 else None
            self._depth += 1
            try:
                yield
            except Exception:
                if snapshot is not None:
                    self._data = snapshot
                    logger.warning("persistence_transaction_rolled_back")
                raise
            finally:
                self._depth -= 1


class SqlAlchemyPersistenceAdapter(PersistenceAdapter):
    """
    Durable adapter over the ``key_value_entries`` table.

    Each thread's outermost ``transaction()`` opens one session through
    ``session_scope``; calls made inside it reuse that session.  Calls made
    outside a transaction run in their own short session.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        self._factory = session_factory or get_session_factory()
        self._clock = clock or SystemClock()
        self._local = threading.local()

    def _current(self) -> Session | None:
        return getattr(self._local, "session", None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._current() is not None:
            yield
            return
        try:
            with session_scope(self._factory) as session:
                self._local.session = session
                try:
                    yield
                finally:
                    self._local.session = None
        except SQLAlchemyError as exc:
            raise PersistenceError("transaction", "*", str(exc)) from exc

    @contextmanager
    def _session(self, operation: str, key: str) -> Iterator[Session]:
        session = self._current()
        try:
            if session is not None:
                yield session
            else:
                with session_scope(self._factory) as own:
                    yield own
        except SQLAlchemyError as exc:
            raise PersistenceError(operation, key, str(exc)) from exc

    def get(self, key: str) -> str | None:
        with self._session("get", key) as session:
            row = session.get(KeyValueEntry, key)
            return None if row is None else row.value

    def set(self, key: str, value: str) -> None:
        with self._session("set", key) as session:
            row = session.get(KeyValueEntry, key)
            now = self._clock.now()
            if row is None:
                session.add(KeyValueEntry(key=key, value=value, updated_at=now))
            else:
                row.value = value
                row.updated_at = now
            session.flush()

    def remove(self, key: str) -> None:
        with self._session("remove", key) as session:
            row = session.get(KeyValueEntry, key)
            if row is not None:
                session.delete(row)
                session.flush()
