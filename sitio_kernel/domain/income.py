"""
IncomeClassifier -- income clusters derived from the poverty threshold.

Responsibility:
    Partitions daily income into named clusters, each a multiple range of the
    daily poverty threshold (``monthly_threshold / 30``), and classifies
    incomes into those clusters.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O, no mutable state.
    Consumers pass the *effective* PovertyThresholdsConfig read from the
    poverty threshold ConfigStore.

Invariants enforced:
    - Multiplier table shape (checked when a table is built, so at module
      load for the default table): exactly one open-below cluster first,
      exactly one open-above cluster last, bounded clusters in between,
      strictly increasing and contiguous (``cluster[i].max ==
      cluster[i+1].min``), unique cluster names.
    - Ranges are lower-bound inclusive and upper-bound exclusive; an income
      exactly on a boundary belongs to the higher cluster.
    - Monotonicity: for fixed thresholds a higher income never yields a
      lower-ranked cluster.

Failure modes:
    - ValueError when constructing a malformed MultiplierTable.
    - DomainError for a negative, non-finite or non-numeric income, or a
      non-positive threshold.

Design note:
    Boundary comparisons are done on undivided quantities
    (``income >= monthly_threshold * multiplier``, daily incomes scaled by
    30) so they stay exact for thresholds whose daily figure is a repeating
    decimal (e.g. 20000 / 30).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from sitio_kernel.domain.schemas.poverty_thresholds import (
    DAYS_PER_MONTH,
    PovertyThresholdsConfig,
    as_decimal,
)
from sitio_kernel.exceptions import DomainError

# ---------------------------------------------------------------------------
# Multiplier variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OpenBelow:
    """Cluster covering ``[0, max)`` multiples of the daily threshold."""

    max: Decimal

    @property
    def lower(self) -> Decimal | None:
        return None

    @property
    def upper(self) -> Decimal | None:
        return self.max


@dataclass(frozen=True)
class Bounded:
    """Cluster covering ``[min, max)`` multiples of the daily threshold."""

    min: Decimal
    max: Decimal

    @property
    def lower(self) -> Decimal | None:
        return self.min

    @property
    def upper(self) -> Decimal | None:
        return self.max


@dataclass(frozen=True)
class OpenAbove:
    """Cluster covering ``[min, inf)`` multiples of the daily threshold."""

    min: Decimal

    @property
    def lower(self) -> Decimal | None:
        return self.min

    @property
    def upper(self) -> Decimal | None:
        return None


Multiplier = OpenBelow | Bounded | OpenAbove


class MultiplierTable:
    """
    Ordered ``(cluster, multiplier)`` pairs forming a partition of ``[0, inf)``.

    Raises:
        ValueError: on construction, if the table is not a partition.
    """

    def __init__(self, entries: Sequence[tuple[str, Multiplier]]):
        self._entries: tuple[tuple[str, Multiplier], ...] = tuple(entries)
        self._check()

    def _check(self) -> None:
        entries = self._entries
        if len(entries) < 2:
            raise ValueError("Multiplier table needs an open-below and an open-above cluster")

        names = [name for name, _ in entries]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate cluster names in multiplier table: {names}")

        kinds = [type(m) for _, m in entries]
        if kinds.count(OpenBelow) != 1 or kinds[0] is not OpenBelow:
            raise ValueError("Exactly one open-below cluster is required, listed first")
        if kinds.count(OpenAbove) != 1 or kinds[-1] is not OpenAbove:
            raise ValueError("Exactly one open-above cluster is required, listed last")
        for name, multiplier in entries:
            if not isinstance(multiplier, (OpenBelow, Bounded, OpenAbove)):
                raise ValueError(f"Cluster {name}: unknown multiplier {multiplier!r}")

        first_upper = entries[0][1].upper
        if first_upper is None or first_upper <= 0:
            raise ValueError(f"Cluster {names[0]}: upper multiplier must be positive")

        for (name, current), (next_name, following) in zip(entries, entries[1:]):
            if current.lower is not None and current.upper is not None:
                if current.lower >= current.upper:
                    raise ValueError(f"Cluster {name}: min must be below max")
            if current.upper != following.lower:
                raise ValueError(
                    f"Clusters {name} and {next_name} are not contiguous: "
                    f"{current.upper} != {following.lower}"
                )

    @property
    def clusters(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Default clusters
# ---------------------------------------------------------------------------


class IncomeCluster(str, Enum):
    """Income clusters from poorest to richest."""

    POOR = "poor"
    LOW_INCOME = "low_income"
    LOWER_MIDDLE = "lower_middle"
    MIDDLE_MIDDLE = "middle_middle"
    UPPER_MIDDLE = "upper_middle"
    UPPER_INCOME = "upper_income"
    RICH = "rich"


INCOME_CLUSTER_MULTIPLIERS = MultiplierTable(
    [
        (IncomeCluster.POOR, OpenBelow(max=Decimal(1))),
        (IncomeCluster.LOW_INCOME, Bounded(min=Decimal(1), max=Decimal(2))),
        (IncomeCluster.LOWER_MIDDLE, Bounded(min=Decimal(2), max=Decimal(4))),
        (IncomeCluster.MIDDLE_MIDDLE, Bounded(min=Decimal(4), max=Decimal(7))),
        (IncomeCluster.UPPER_MIDDLE, Bounded(min=Decimal(7), max=Decimal(12))),
        (IncomeCluster.UPPER_INCOME, Bounded(min=Decimal(12), max=Decimal(20))),
        (IncomeCluster.RICH, OpenAbove(min=Decimal(20))),
    ]
)

# (label, short label)
CLUSTER_LABELS: dict[IncomeCluster, tuple[str, str]] = {
    IncomeCluster.POOR: ("Poor", "Poor"),
    IncomeCluster.LOW_INCOME: ("Low-Income (Not Poor)", "Low-Income"),
    IncomeCluster.LOWER_MIDDLE: ("Lower Middle-Income", "Lower Middle"),
    IncomeCluster.MIDDLE_MIDDLE: ("Middle Middle-Income", "Middle"),
    IncomeCluster.UPPER_MIDDLE: ("Upper Middle-Income", "Upper Middle"),
    IncomeCluster.UPPER_INCOME: ("Upper-Income (Not Rich)", "Upper-Income"),
    IncomeCluster.RICH: ("Rich", "Rich"),
}


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClusterRange:
    """
    Daily income range of one cluster for a given threshold.

    The bounds are for display; ``contains`` compares against the undivided
    monthly threshold so it agrees with ``classify_daily`` on boundaries.
    """

    cluster: str
    rank: int
    lower_bound_inclusive: Decimal | None
    upper_bound_exclusive: Decimal | None
    multiplier: Multiplier = field(repr=False, compare=False)
    monthly_threshold: Decimal = field(repr=False, compare=False)

    def contains(self, daily_income: Any) -> bool:
        scaled = _income(daily_income, "daily_income") * DAYS_PER_MONTH
        lower, upper = self.multiplier.lower, self.multiplier.upper
        if lower is not None and scaled < self.monthly_threshold * lower:
            return False
        if upper is not None and scaled >= self.monthly_threshold * upper:
            return False
        return True


def _income(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        raise DomainError(field, value, "must be a number")
    try:
        amount = as_decimal(value)
    except InvalidOperation:
        raise DomainError(field, value, "must be a number") from None
    if not amount.is_finite():
        raise DomainError(field, value, "must be finite")
    if amount < 0:
        raise DomainError(field, value, "must not be negative")
    return amount


def _monthly_threshold(thresholds: PovertyThresholdsConfig) -> Decimal:
    monthly = _income(thresholds.monthly_threshold, "monthly_threshold")
    if monthly == 0:
        raise DomainError("monthly_threshold", thresholds.monthly_threshold, "must be positive")
    return monthly


class IncomeClassifier:
    """Classifies incomes against a multiplier table."""

    def __init__(self, table: MultiplierTable = INCOME_CLUSTER_MULTIPLIERS):
        self._table = table
        self._ranks = {name: rank for rank, name in enumerate(table.clusters)}

    @property
    def clusters(self) -> tuple[str, ...]:
        return self._table.clusters

    def rank(self, cluster: str) -> int:
        return self._ranks[cluster]

    def cluster_ranges(self, thresholds: PovertyThresholdsConfig) -> tuple[ClusterRange, ...]:
        """Daily income ranges in ascending order."""
        monthly = _monthly_threshold(thresholds)
        daily = monthly / DAYS_PER_MONTH
        return tuple(
            ClusterRange(
                cluster=name,
                rank=rank,
                lower_bound_inclusive=None if m.lower is None else daily * m.lower,
                upper_bound_exclusive=None if m.upper is None else daily * m.upper,
                multiplier=m,
                monthly_threshold=monthly,
            )
            for rank, (name, m) in enumerate(self._table)
        )

    def classify(self, monthly_income: Any, thresholds: PovertyThresholdsConfig) -> str:
        """Cluster of a monthly income."""
        income = _income(monthly_income, "monthly_income")
        return self._locate(income, _monthly_threshold(thresholds))

    def classify_daily(self, daily_income: Any, thresholds: PovertyThresholdsConfig) -> str:
        """Cluster of a daily income (e.g. a sitio's average daily income)."""
        income = _income(daily_income, "daily_income")
        return self._locate(income * DAYS_PER_MONTH, _monthly_threshold(thresholds))

    def _locate(self, monthly_income: Decimal, monthly_threshold: Decimal) -> str:
        # Highest cluster whose inclusive lower bound is reached
        for name, multiplier in reversed(tuple(self._table)):
            lower = multiplier.lower
            if lower is None or monthly_income >= monthly_threshold * lower:
                return name
        raise AssertionError("open-below cluster always matches")

    def count_by_cluster(
        self, daily_incomes: Iterable[Any], thresholds: PovertyThresholdsConfig
    ) -> dict[str, int]:
        """Number of daily incomes per cluster, every cluster present."""
        counts = {name: 0 for name in self.clusters}
        for income in daily_incomes:
            counts[self.classify_daily(income, thresholds)] += 1
        return counts


_default_classifier = IncomeClassifier()


def cluster_ranges(thresholds: PovertyThresholdsConfig) -> tuple[ClusterRange, ...]:
    return _default_classifier.cluster_ranges(thresholds)


def classify(monthly_income: Any, thresholds: PovertyThresholdsConfig) -> IncomeCluster:
    return IncomeCluster(_default_classifier.classify(monthly_income, thresholds))


def classify_daily(daily_income: Any, thresholds: PovertyThresholdsConfig) -> IncomeCluster:
    return IncomeCluster(_default_classifier.classify_daily(daily_income, thresholds))


def count_by_cluster(
    daily_incomes: Iterable[Any], thresholds: PovertyThresholdsConfig
) -> dict[str, int]:
    return _default_classifier.count_by_cluster(daily_incomes, thresholds)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

_CENTS = Decimal("0.01")


def format_peso(amount: Decimal) -> str:
    """``Decimal("6000")`` -> ``"₱6,000.00"`` (half-up rounding)."""
    return f"₱{format(amount.quantize(_CENTS, rounding=ROUND_HALF_UP), ',.2f')}"


def cluster_label(cluster: IncomeCluster, short: bool = False) -> str:
    label, short_label = CLUSTER_LABELS[IncomeCluster(cluster)]
    return short_label if short else label


def range_label(cluster: IncomeCluster, thresholds: PovertyThresholdsConfig) -> str:
    """``<₱300.00/day``, ``₱300.00–₱600.00/day`` or ``≥₱6,000.00/day``."""
    found = next(r for r in cluster_ranges(thresholds) if r.cluster == cluster)
    low, high = found.lower_bound_inclusive, found.upper_bound_exclusive
    if low is None:
        return f"<{format_peso(high)}/day"
    if high is None:
        return f"≥{format_peso(low)}/day"
    return f"{format_peso(low)}–{format_peso(high)}/day"


def threshold_label(thresholds: PovertyThresholdsConfig) -> str:
    return f"{format_peso(thresholds.daily_threshold)}/day"


def threshold_description(thresholds: PovertyThresholdsConfig) -> str:
    monthly = as_decimal(thresholds.monthly_threshold)
    return (
        f"Based on {thresholds.reference_year} {thresholds.source} poverty threshold "
        f"of {threshold_label(thresholds)} (₱{format(monthly, ',f')}/month) "
        f"for a {thresholds.description.lower()}"
    )
