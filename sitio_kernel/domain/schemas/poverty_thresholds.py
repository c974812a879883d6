"""
Poverty threshold configuration.

The monthly poverty threshold (family of five, in pesos) is the single
parameter from which the income clusters are derived. The daily threshold is
always computed, never stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sitio_kernel.domain.dtos import Violation
from sitio_kernel.domain.schemas.base import (
    ConfigDomain,
    DomainSchema,
    is_integer,
    is_number,
    require_text,
)

DAYS_PER_MONTH = Decimal(30)
MIN_REFERENCE_YEAR = 1900
MAX_REFERENCE_YEAR = 2100


def as_decimal(value: int | float | Decimal | str) -> Decimal:
    """Exact Decimal for ints and Decimals; floats go through ``str``."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass(frozen=True)
class PovertyThresholdsConfig:
    """Poverty threshold parameters."""

    monthly_threshold: Decimal
    reference_year: int
    source: str
    description: str

    def __post_init__(self) -> None:
        # Floats and ints are stored as the Decimal they persist as
        if is_number(self.monthly_threshold):
            object.__setattr__(
                self, "monthly_threshold", as_decimal(self.monthly_threshold)
            )

    @property
    def daily_threshold(self) -> Decimal:
        return as_decimal(self.monthly_threshold) / DAYS_PER_MONTH


class PovertyThresholdsSchema(DomainSchema[PovertyThresholdsConfig]):
    domain = ConfigDomain.POVERTY_THRESHOLDS
    label = "Poverty Thresholds"
    description = "Configure the official poverty line used for income clusters."
    config_type = PovertyThresholdsConfig

    def _collect_violations(
        self, candidate: PovertyThresholdsConfig, violations: list[Violation]
    ) -> None:
        monthly = candidate.monthly_threshold
        if not is_number(monthly):
            violations.append(
                Violation("NOT_A_NUMBER", "must be a number", "monthly_threshold")
            )
        elif not as_decimal(monthly).is_finite():
            violations.append(
                Violation("NOT_FINITE", "must be a finite number", "monthly_threshold")
            )
        elif monthly <= 0:
            violations.append(
                Violation(
                    "NOT_POSITIVE",
                    f"must be greater than 0, got {monthly}",
                    "monthly_threshold",
                )
            )

        year = candidate.reference_year
        if not is_integer(year):
            violations.append(
                Violation("NOT_AN_INTEGER", "must be an integer year", "reference_year")
            )
        elif not MIN_REFERENCE_YEAR <= year <= MAX_REFERENCE_YEAR:
            violations.append(
                Violation(
                    "OUT_OF_RANGE",
                    f"must be between {MIN_REFERENCE_YEAR} and "
                    f"{MAX_REFERENCE_YEAR}, got {year}",
                    "reference_year",
                )
            )

        require_text(candidate.source, "source", violations)
        require_text(candidate.description, "description", violations)

    def to_payload(self, value: PovertyThresholdsConfig) -> dict[str, Any]:
        return {
            "monthlyThreshold": format(as_decimal(value.monthly_threshold), "f"),
            "referenceYear": value.reference_year,
            "source": value.source,
            "description": value.description,
        }

    def from_payload(self, data: dict[str, Any]) -> PovertyThresholdsConfig:
        try:
            monthly = Decimal(str(data["monthlyThreshold"]))
        except InvalidOperation as exc:
            raise ValueError(
                f"monthlyThreshold is not a decimal: {data['monthlyThreshold']!r}"
            ) from exc
        return PovertyThresholdsConfig(
            monthly_threshold=monthly,
            reference_year=int(data["referenceYear"]),
            source=str(data["source"]),
            description=str(data["description"]),
        )
