"""Kernel services - persistence, audit, authorization and config stores."""

from sitio_kernel.services.audit_service import (
    AuditEntry,
    AuditHistory,
    ConfigChangeAudit,
)
from sitio_kernel.services.authorization import (
    ConfigWriteAuthorizer,
    RoleBasedAuthorizer,
    StaticAuthorizer,
    UserRole,
)
from sitio_kernel.services.config_store import (
    ConfigStore,
    ConfigWriteResult,
    ConfigWriteStatus,
    describe_entry,
)
from sitio_kernel.services.persistence import (
    InMemoryPersistenceAdapter,
    PersistenceAdapter,
    SqlAlchemyPersistenceAdapter,
)

__all__ = [
    # Persistence
    "PersistenceAdapter",
    "InMemoryPersistenceAdapter",
    "SqlAlchemyPersistenceAdapter",
    # Audit
    "AuditEntry",
    "AuditHistory",
    "ConfigChangeAudit",
    # Authorization
    "ConfigWriteAuthorizer",
    "RoleBasedAuthorizer",
    "StaticAuthorizer",
    "UserRole",
    # Stores
    "ConfigStore",
    "ConfigWriteResult",
    "ConfigWriteStatus",
    "describe_entry",
]
