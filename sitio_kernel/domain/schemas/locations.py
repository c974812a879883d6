"""
Administrative locations: municipalities and their barangays.

Name lookups are case-insensitive, matching how operators type locations into
sitio profile forms.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sitio_kernel.domain.dtos import Violation
from sitio_kernel.domain.schemas.base import (
    ConfigDomain,
    DomainSchema,
    check_unique,
    require_text,
)


@dataclass(frozen=True)
class Municipality:
    name: str
    barangays: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.barangays, list):
            object.__setattr__(self, "barangays", tuple(self.barangays))


@dataclass(frozen=True)
class LocationsConfig:
    """Municipalities with their barangays, in operator-defined order."""

    municipalities: tuple[Municipality, ...]

    def __post_init__(self) -> None:
        if isinstance(self.municipalities, list):
            object.__setattr__(self, "municipalities", tuple(self.municipalities))

    def municipality_names(self) -> list[str]:
        return sorted(m.name for m in self.municipalities)

    def find(self, municipality: str) -> Municipality | None:
        wanted = municipality.casefold()
        for m in self.municipalities:
            if m.name.casefold() == wanted:
                return m
        return None

    def barangays_for(self, municipality: str) -> list[str]:
        found = self.find(municipality)
        return list(found.barangays) if found else []

    def all_barangays(self) -> list[str]:
        return sorted(b for m in self.municipalities for b in m.barangays)

    def is_municipality_valid(self, municipality: str) -> bool:
        return self.find(municipality) is not None

    def is_barangay_valid(self, municipality: str, barangay: str) -> bool:
        wanted = barangay.casefold()
        return any(b.casefold() == wanted for b in self.barangays_for(municipality))


class LocationsSchema(DomainSchema[LocationsConfig]):
    domain = ConfigDomain.LOCATIONS
    label = "Municipalities & Barangays"
    description = "Manage the list of municipalities and their barangays in South Cotabato."
    config_type = LocationsConfig

    def _collect_violations(
        self, candidate: LocationsConfig, violations: list[Violation]
    ) -> None:
        if not isinstance(candidate.municipalities, tuple):
            violations.append(
                Violation("TYPE_MISMATCH", "must be a list", "municipalities")
            )
            return
        if not candidate.municipalities:
            violations.append(
                Violation(
                    "EMPTY_COLLECTION",
                    "at least one municipality is required",
                    "municipalities",
                )
            )
            return

        names: list[tuple[str, Any]] = []
        for i, municipality in enumerate(candidate.municipalities):
            path = f"municipalities[{i}]"
            if not isinstance(municipality, Municipality):
                violations.append(
                    Violation("TYPE_MISMATCH", "must be a Municipality", path)
                )
                continue
            require_text(municipality.name, f"{path}.name", violations)
            names.append((f"{path}.name", municipality.name))

            if not isinstance(municipality.barangays, tuple):
                violations.append(
                    Violation("TYPE_MISMATCH", "must be a list", f"{path}.barangays")
                )
                continue

            barangays: list[tuple[str, Any]] = []
            for j, barangay in enumerate(municipality.barangays):
                bpath = f"{path}.barangays[{j}]"
                require_text(barangay, bpath, violations)
                barangays.append((bpath, barangay))
            check_unique(
                barangays, "DUPLICATE_BARANGAY", "barangay", violations, casefold=True
            )

        check_unique(
            names, "DUPLICATE_MUNICIPALITY", "municipality", violations, casefold=True
        )

    def to_payload(self, value: LocationsConfig) -> dict[str, Any]:
        return {
            "municipalities": [
                {"name": m.name, "barangays": list(m.barangays)}
                for m in value.municipalities
            ]
        }

    def from_payload(self, data: dict[str, Any]) -> LocationsConfig:
        return LocationsConfig(
            municipalities=tuple(
                Municipality(
                    name=str(m["name"]),
                    barangays=tuple(str(b) for b in m.get("barangays", ())),
                )
                for m in data["municipalities"]
            )
        )
