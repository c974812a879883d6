"""
SchemaRegistry -- lookup of the schema governing each configuration domain.

Populated once at session start by ``sitio_config.build_schema_registry``;
schemas are immutable afterwards so the registry is shared freely.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from sitio_kernel.domain.schemas.base import ConfigDomain, DomainSchema
from sitio_kernel.exceptions import UnknownDomainError


class SchemaRegistry:
    """Maps each ConfigDomain to exactly one DomainSchema."""

    def __init__(self, schemas: list[DomainSchema[Any]] | None = None):
        self._schemas: dict[ConfigDomain, DomainSchema[Any]] = {}
        for schema in schemas or ():
            self.register(schema)

    def register(self, schema: DomainSchema[Any]) -> None:
        if schema.domain in self._schemas:
            raise ValueError(f"Schema already registered for {schema.domain.value}")
        self._schemas[schema.domain] = schema

    def get(self, domain: ConfigDomain | str) -> DomainSchema[Any]:
        try:
            return self._schemas[ConfigDomain(domain)]
        except (KeyError, ValueError):
            raise UnknownDomainError(str(getattr(domain, "value", domain))) from None

    def __contains__(self, domain: object) -> bool:
        try:
            return ConfigDomain(domain) in self._schemas
        except ValueError:
            return False

    def __iter__(self) -> Iterator[DomainSchema[Any]]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)
