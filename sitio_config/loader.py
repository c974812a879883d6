"""
Defaults Loader (``sitio_config.loader``).

Responsibility
--------------
Loads the YAML fragments under ``sitio_config/defaults/`` and parses them
into the frozen domain dataclasses that become each ConfigStore's shipped
default.  Runtime callers go through ``sitio_config.build_config_stores()``
rather than calling this module directly.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel's domain
types; the kernel never imports from here.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required keys.
* ``compute_checksum`` produces a deterministic SHA-256 hash of each default
  payload so the shipped baseline can be identified in logs.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from sitio_kernel.domain.schemas import (
    ComparisonLimits,
    CustomFieldDefinition,
    CustomFieldGroup,
    CustomFieldsConfig,
    FieldValidationRules,
    LocationsConfig,
    Municipality,
    PovertyThresholdsConfig,
)
from sitio_kernel.utils.hashing import hash_payload

DEFAULTS_DIR = Path(__file__).parent / "defaults"

DEFAULT_FILES = {
    "locations": "locations.yaml",
    "customFields": "custom_fields.yaml",
    "povertyThresholds": "poverty_thresholds.yaml",
    "comparisonLimits": "comparison_limits.yaml",
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def parse_decimal(value: Any, name: str) -> Decimal:
    """Parse a Decimal from a YAML string, int or float."""
    if isinstance(value, bool):
        raise ValueError(f"{name}: expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name}: expected a number, got {value!r}") from exc


def parse_poverty_thresholds(data: dict[str, Any]) -> PovertyThresholdsConfig:
    return PovertyThresholdsConfig(
        monthly_threshold=parse_decimal(data["monthly_threshold"], "monthly_threshold"),
        reference_year=int(data["reference_year"]),
        source=str(data["source"]),
        description=str(data["description"]),
    )


def parse_locations(data: dict[str, Any]) -> LocationsConfig:
    return LocationsConfig(
        municipalities=tuple(
            Municipality(
                name=str(m["name"]),
                barangays=tuple(str(b) for b in m.get("barangays") or ()),
            )
            for m in data["municipalities"]
        )
    )


def parse_comparison_limits(data: dict[str, Any]) -> ComparisonLimits:
    return ComparisonLimits(
        max_sitios=int(data["max_sitios"]),
        max_years=int(data["max_years"]),
    )


def parse_custom_field(data: dict[str, Any]) -> CustomFieldDefinition:
    """Parse a CustomFieldDefinition from a snake_case dict."""
    rules = data.get("validation_rules") or {}
    return CustomFieldDefinition(
        id=data["id"],
        field_name=data["field_name"],
        display_label=data["display_label"],
        data_type=data["data_type"],
        validation_rules=FieldValidationRules(
            required=rules.get("required", False),
            min=rules.get("min"),
            max=rules.get("max"),
            min_length=rules.get("min_length"),
            max_length=rules.get("max_length"),
            pattern=rules.get("pattern"),
            choices=tuple(rules.get("choices") or ()),
        ),
        aggregation_type=data.get("aggregation_type"),
        display_order=data.get("display_order", 0),
        is_active=data.get("is_active", True),
        description=data.get("description"),
        group_id=data.get("group_id"),
        group_display_order=data.get("group_display_order"),
    )


def parse_custom_field_group(data: dict[str, Any]) -> CustomFieldGroup:
    return CustomFieldGroup(
        id=data["id"],
        name=data["name"],
        description=data.get("description"),
        icon=data.get("icon", "Folder"),
        display_order=data.get("display_order", 0),
        is_collapsible=data.get("is_collapsible", True),
        is_active=data.get("is_active", True),
    )


def parse_custom_fields(data: dict[str, Any]) -> CustomFieldsConfig:
    return CustomFieldsConfig(
        fields=tuple(parse_custom_field(f) for f in data.get("fields") or ()),
        groups=tuple(parse_custom_field_group(g) for g in data.get("groups") or ()),
    )


_PARSERS = {
    "locations": parse_locations,
    "customFields": parse_custom_fields,
    "povertyThresholds": parse_poverty_thresholds,
    "comparisonLimits": parse_comparison_limits,
}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    return hash_payload(data)


@dataclass(frozen=True)
class DefaultSet:
    """Parsed shipped defaults, one per domain, with source checksums."""

    locations: LocationsConfig
    custom_fields: CustomFieldsConfig
    poverty_thresholds: PovertyThresholdsConfig
    comparison_limits: ComparisonLimits
    checksums: dict[str, str] = field(default_factory=dict)


def load_defaults(defaults_dir: Path | None = None) -> DefaultSet:
    """
    Load and parse every default fragment.

    Args:
        defaults_dir: Directory holding the fragments named in
            ``DEFAULT_FILES``.  Defaults to the packaged ``defaults/``.
    """
    directory = defaults_dir or DEFAULTS_DIR
    parsed: dict[str, Any] = {}
    checksums: dict[str, str] = {}
    for domain, filename in DEFAULT_FILES.items():
        raw = load_yaml_file(directory / filename)
        parsed[domain] = _PARSERS[domain](raw)
        checksums[domain] = compute_checksum(raw)

    return DefaultSet(
        locations=parsed["locations"],
        custom_fields=parsed["customFields"],
        poverty_thresholds=parsed["povertyThresholds"],
        comparison_limits=parsed["comparisonLimits"],
        checksums=checksums,
    )
