"""Limits applied to side-by-side sitio and year comparisons."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sitio_kernel.domain.dtos import Violation
from sitio_kernel.domain.schemas.base import ConfigDomain, DomainSchema, is_integer

SITIOS_BOUNDS = (2, 10)
YEARS_BOUNDS = (2, 20)


@dataclass(frozen=True)
class ComparisonLimits:
    max_sitios: int
    max_years: int

    def check_selection(self, sitio_count: int = 0, year_count: int = 0) -> list[str]:
        """Messages for a comparison selection that exceeds the limits."""
        errors = []
        if year_count > self.max_years:
            errors.append(f"Maximum {self.max_years} years allowed")
        if sitio_count > self.max_sitios:
            errors.append(f"Maximum {self.max_sitios} sitios allowed")
        return errors


class ComparisonLimitsSchema(DomainSchema[ComparisonLimits]):
    domain = ConfigDomain.COMPARISON_LIMITS
    label = "Comparison Limits"
    description = "Configure maximum sitios and years allowed for data comparisons."
    config_type = ComparisonLimits

    def _collect_violations(
        self, candidate: ComparisonLimits, violations: list[Violation]
    ) -> None:
        for name, (low, high) in (
            ("max_sitios", SITIOS_BOUNDS),
            ("max_years", YEARS_BOUNDS),
        ):
            value = getattr(candidate, name)
            if not is_integer(value):
                violations.append(Violation("NOT_AN_INTEGER", "must be an integer", name))
            elif not low <= value <= high:
                violations.append(
                    Violation(
                        "OUT_OF_RANGE",
                        f"must be between {low} and {high}, got {value}",
                        name,
                    )
                )

    def default_save_note(self, value: ComparisonLimits) -> str:
        return (
            f"Updated comparison limits: max {value.max_sitios} sitios, "
            f"max {value.max_years} years"
        )

    def to_payload(self, value: ComparisonLimits) -> dict[str, Any]:
        return {"maxSitios": value.max_sitios, "maxYears": value.max_years}

    def from_payload(self, data: dict[str, Any]) -> ComparisonLimits:
        return ComparisonLimits(
            max_sitios=int(data["maxSitios"]), max_years=int(data["maxYears"])
        )
