"""
Pure domain layer.

This module contains configuration values, schemas and the income
classifier with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Persistence adapters
- I/O

All domain objects are immutable and deterministic.
"""

from sitio_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from sitio_kernel.domain.dtos import ValidationResult, Violation
from sitio_kernel.domain.entry import (
    ConfigEntry,
    DefaultValue,
    OverrideMeta,
    OverrideValue,
    resolve_entry,
)
from sitio_kernel.domain.income import (
    CLUSTER_LABELS,
    INCOME_CLUSTER_MULTIPLIERS,
    Bounded,
    ClusterRange,
    IncomeClassifier,
    IncomeCluster,
    MultiplierTable,
    OpenAbove,
    OpenBelow,
    classify,
    classify_daily,
    cluster_label,
    cluster_ranges,
    count_by_cluster,
    format_peso,
    range_label,
    threshold_description,
    threshold_label,
)
from sitio_kernel.domain.schemas import ConfigDomain, DomainSchema, SchemaRegistry

__all__ = [
    # Clock
    "Clock",
    "SystemClock",
    "DeterministicClock",
    # DTOs
    "Violation",
    "ValidationResult",
    # Entry
    "ConfigEntry",
    "DefaultValue",
    "OverrideValue",
    "OverrideMeta",
    "resolve_entry",
    # Schemas
    "ConfigDomain",
    "DomainSchema",
    "SchemaRegistry",
    # Income
    "IncomeCluster",
    "IncomeClassifier",
    "MultiplierTable",
    "OpenBelow",
    "Bounded",
    "OpenAbove",
    "ClusterRange",
    "INCOME_CLUSTER_MULTIPLIERS",
    "CLUSTER_LABELS",
    "cluster_ranges",
    "classify",
    "classify_daily",
    "count_by_cluster",
    "cluster_label",
    "format_peso",
    "range_label",
    "threshold_label",
    "threshold_description",
]
