"""
Domain schema base -- typed defaults and validation per configuration domain.

Responsibility:
    Every configurable domain supplies one ``DomainSchema`` subclass that
    knows its default value, how to validate a candidate, and how to convert
    values to and from the JSON-safe payload persisted by ConfigStore.

Architecture position:
    Kernel > Domain > Schemas -- pure, zero I/O. Defaults are injected at
    construction (``sitio_config`` parses them from shipped YAML) so this
    layer never reads files.

Invariants enforced:
    - The default value must itself satisfy the schema (checked once, at
      construction).
    - ``validate`` reports every violation, never only the first.
    - No cross-domain checks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from sitio_kernel.domain.dtos import ValidationResult, Violation

T = TypeVar("T")


class ConfigDomain(str, Enum):
    """Configurable subject areas. Values double as persistence key suffixes."""

    LOCATIONS = "locations"
    CUSTOM_FIELDS = "customFields"
    POVERTY_THRESHOLDS = "povertyThresholds"
    COMPARISON_LIMITS = "comparisonLimits"


class DomainSchema(ABC, Generic[T]):
    """
    Default value plus validation and payload codec for one domain.

    Contract:
        Subclasses set ``domain``, ``label``, ``description`` and
        ``config_type`` and implement ``_collect_violations``,
        ``to_payload`` and ``from_payload``.

    Guarantees:
        - ``validate`` never raises for a wrong-typed candidate; it reports a
          single ``TYPE_MISMATCH`` violation instead.
        - ``from_payload(to_payload(v)) == v`` for every valid ``v``.
    """

    domain: ClassVar[ConfigDomain]
    label: ClassVar[str]
    description: ClassVar[str] = ""
    config_type: ClassVar[type]

    def __init__(self, default: T):
        result = self.check(default)
        if not result:
            raise ValueError(
                f"Shipped default for {self.domain.value} violates its own schema: "
                + "; ".join(v.message for v in result.violations)
            )
        self._default = default

    @property
    def default(self) -> T:
        return self._default

    def validate(self, candidate: Any) -> tuple[Violation, ...]:
        """Return every violated rule; empty tuple means valid."""
        if not isinstance(candidate, self.config_type):
            return (
                Violation(
                    code="TYPE_MISMATCH",
                    message=(
                        f"Expected {self.config_type.__name__}, "
                        f"got {type(candidate).__name__}"
                    ),
                ),
            )
        violations: list[Violation] = []
        self._collect_violations(candidate, violations)
        return tuple(violations)

    def check(self, candidate: Any) -> ValidationResult:
        return ValidationResult.from_violations(self.validate(candidate))

    def default_save_note(self, value: T) -> str:
        """Audit note for a save made without one."""
        return f"Updated {self.label} configuration"

    @abstractmethod
    def _collect_violations(self, candidate: T, violations: list[Violation]) -> None:
        ...

    @abstractmethod
    def to_payload(self, value: T) -> dict[str, Any]:
        """Convert a value into a JSON-safe dict."""
        ...

    @abstractmethod
    def from_payload(self, data: dict[str, Any]) -> T:
        """Rebuild a value from ``to_payload`` output.

        Raises:
            KeyError, TypeError, ValueError: if the payload is malformed.
        """
        ...


# ---------------------------------------------------------------------------
# Shared rule helpers
# ---------------------------------------------------------------------------


def is_blank(value: Any) -> bool:
    """True when *value* is not a string or is empty after trimming."""
    return not isinstance(value, str) or not value.strip()


def require_text(value: Any, field: str, violations: list[Violation]) -> None:
    if is_blank(value):
        violations.append(
            Violation(code="REQUIRED", message="must be non-empty text", field=field)
        )


def is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def check_unique(
    names: list[tuple[str, Any]],
    code: str,
    what: str,
    violations: list[Violation],
    *,
    casefold: bool = False,
) -> None:
    """Flag every repeat of a name after its first occurrence.

    *names* is a list of ``(field_path, name)`` pairs; non-string and blank
    names are skipped (they are reported by ``require_text``).
    """
    seen: dict[str, str] = {}
    for field, name in names:
        if is_blank(name):
            continue
        key = name.strip().casefold() if casefold else name.strip()
        if key in seen:
            violations.append(
                Violation(
                    code=code,
                    message=f"duplicate {what} '{name}' (first at {seen[key]})",
                    field=field,
                )
            )
        else:
            seen[key] = field
