"""
Data transfer objects for schema validation.

Responsibility:
    Immutable carriers for the outcome of validating a candidate
    configuration value against its domain schema.

Architecture position:
    Kernel > Domain -- pure, zero I/O. Produced by domain schemas, consumed by
    ConfigStore and wrapped into ValidationError for callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Violation:
    """
    A single violated schema rule.

    Contract:
        Carries a machine-readable code, a human-readable message and the
        dotted path of the offending field (``municipalities[2].name``).
        ``field`` is None for rules about the value as a whole.
    """

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    """
    Aggregate of zero or more violations.

    Guarantees:
        - ``is_valid`` is True only when ``violations`` is empty.
        - ``violations`` is always a tuple, in rule evaluation order.
        - ``bool(result) == result.is_valid``.
    """

    is_valid: bool
    violations: tuple[Violation, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(is_valid=True, violations=())

    @classmethod
    def failure(cls, *violations: Violation) -> ValidationResult:
        return cls(is_valid=False, violations=tuple(violations))

    @classmethod
    def from_violations(cls, violations: list[Violation] | tuple[Violation, ...]) -> ValidationResult:
        if not violations:
            return cls.success()
        return cls.failure(*violations)

    def __bool__(self) -> bool:
        return self.is_valid
