"""
sitio_config -- single public entrypoint for configuration wiring.

Responsibility:
    Loads runtime settings and the shipped per-domain defaults, and builds
    the explicit ConfigStore instances (one per domain) that hosts hand to
    their presentation collaborators.  No other component reads settings
    files, environment variables or default fragments directly.

Architecture position:
    Configuration -- sits above ``sitio_kernel``.  The kernel MUST NEVER
    import from ``sitio_config``.

Invariants enforced:
    - Each shipped default passes its own domain schema; a default that
      does not is a packaging error and raises ``ValueError`` at build time.
    - Stores share one persistence adapter and one audit log; there is no
      module-level store instance.

Failure modes:
    - ``FileNotFoundError`` / ``yaml.YAMLError`` -- unreadable settings or
      default fragments.
    - ``ValueError`` -- invalid settings or a default violating its schema.
    - ``UnknownDomainError`` -- ``ConfigStores.get`` with an unregistered
      domain.

Audit relevance:
    Every ``build_config_stores()`` call emits a ``SITIO_CONFIG_TRACE`` log
    entry carrying the checksum of each shipped default, tying later audit
    entries back to the baseline they override.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sitio_config.loader import DefaultSet, load_defaults
from sitio_config.settings import KernelSettings, load_settings
from sitio_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from sitio_kernel.domain.clock import Clock
from sitio_kernel.domain.schemas import (
    ComparisonLimits,
    ComparisonLimitsSchema,
    ConfigDomain,
    CustomFieldsConfig,
    CustomFieldsSchema,
    LocationsConfig,
    LocationsSchema,
    PovertyThresholdsConfig,
    PovertyThresholdsSchema,
    SchemaRegistry,
)
from sitio_kernel.exceptions import UnknownDomainError
from sitio_kernel.services.audit_service import ConfigChangeAudit
from sitio_kernel.services.authorization import ConfigWriteAuthorizer
from sitio_kernel.services.config_store import ConfigStore
from sitio_kernel.services.persistence import (
    InMemoryPersistenceAdapter,
    PersistenceAdapter,
    SqlAlchemyPersistenceAdapter,
)

_logger = logging.getLogger("sitio_kernel.config")

__all__ = [
    "ConfigStores",
    "KernelSettings",
    "build_config_stores",
    "build_persistence",
    "build_schema_registry",
    "load_settings",
]


def build_schema_registry(defaults: DefaultSet | None = None) -> SchemaRegistry:
    """Schemas for every domain, seeded with the shipped defaults."""
    defaults = defaults or load_defaults()
    return SchemaRegistry(
        [
            LocationsSchema(defaults.locations),
            CustomFieldsSchema(defaults.custom_fields),
            PovertyThresholdsSchema(defaults.poverty_thresholds),
            ComparisonLimitsSchema(defaults.comparison_limits),
        ]
    )


@dataclass(frozen=True)
class ConfigStores:
    """One ConfigStore per domain plus the audit log they share."""

    locations: ConfigStore[LocationsConfig]
    custom_fields: ConfigStore[CustomFieldsConfig]
    poverty_thresholds: ConfigStore[PovertyThresholdsConfig]
    comparison_limits: ConfigStore[ComparisonLimits]
    audit: ConfigChangeAudit

    def get(self, domain: ConfigDomain | str) -> ConfigStore[Any]:
        for store in self:
            if store.domain == str(getattr(domain, "value", domain)):
                return store
        raise UnknownDomainError(str(getattr(domain, "value", domain)))

    def __iter__(self) -> Iterator[ConfigStore[Any]]:
        return iter(
            (
                self.locations,
                self.custom_fields,
                self.poverty_thresholds,
                self.comparison_limits,
            )
        )


def build_config_stores(
    persistence: PersistenceAdapter,
    authorizer: ConfigWriteAuthorizer,
    clock: Clock | None = None,
    defaults_dir: Path | None = None,
) -> ConfigStores:
    """
    Wire the per-domain stores over one persistence adapter.

    Args:
        persistence: Adapter shared by every store and the audit log.
        authorizer: Decides whether the caller may save or reset.
        clock: Timestamp source for override metadata and audit entries.
        defaults_dir: Alternate directory of default fragments.
    """
    defaults = load_defaults(defaults_dir)
    registry = build_schema_registry(defaults)
    audit = ConfigChangeAudit(persistence)

    def store(domain: ConfigDomain) -> ConfigStore[Any]:
        return ConfigStore(registry.get(domain), persistence, audit, authorizer, clock)

    stores = ConfigStores(
        locations=store(ConfigDomain.LOCATIONS),
        custom_fields=store(ConfigDomain.CUSTOM_FIELDS),
        poverty_thresholds=store(ConfigDomain.POVERTY_THRESHOLDS),
        comparison_limits=store(ConfigDomain.COMPARISON_LIMITS),
        audit=audit,
    )

    _logger.info(
        "SITIO_CONFIG_TRACE",
        extra={
            "trace_type": "SITIO_CONFIG_TRACE",
            "persistence": type(persistence).__name__,
            "actor": authorizer.actor_name,
            "default_checksums": defaults.checksums,
        },
    )
    return stores


def build_persistence(
    settings: KernelSettings, clock: Clock | None = None
) -> PersistenceAdapter:
    """SQLAlchemy adapter for a configured database URL, else in-memory."""
    if not settings.database_url:
        return InMemoryPersistenceAdapter()
    init_engine_from_url(settings.database_url, echo=settings.echo_sql)
    create_tables()
    return SqlAlchemyPersistenceAdapter(get_session_factory(), clock)
