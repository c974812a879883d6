"""
Typed Exception Hierarchy for the Sitio Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Configuration writes are operator actions that the presentation layer must
explain precisely ("the threshold must be positive", "you may not edit
configuration", "storage is unavailable"). Generic exceptions like ValueError
force callers to parse messages. Instead:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    result = store.save(candidate, note="raised threshold")
    if not result.is_success:
        if isinstance(result.error, ValidationError):
            for violation in result.error.violations:
                form.mark(violation.field, violation.message)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ConfigKernelError:

    ConfigKernelError (base)
    |
    +-- ConfigError
    |   +-- ValidationError
    |   +-- AuthorizationError
    |   +-- PersistenceError
    |   +-- UnknownDomainError
    |
    +-- DomainError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Config          | CONFIG_VALIDATION_FAILED    | Candidate violates schema rules
                | CONFIG_WRITE_UNAUTHORIZED   | Save/reset without write privilege
                | PERSISTENCE_FAILURE         | Storage read/write/append failed
                | UNKNOWN_CONFIG_DOMAIN       | Domain has no registered schema/store
----------------|-----------------------------|-----------------------------------------
Computation     | DOMAIN_INPUT_INVALID        | Bad input to a pure computation
                |                             | (e.g. negative income to classify)

===============================================================================
HANDLING PATTERNS
===============================================================================

ConfigStore.save() and ConfigStore.reset() never raise these errors; they
return a ConfigWriteResult carrying the exception in ``error``. Pure
computations (income classification) raise DomainError directly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sitio_kernel.domain.dtos import Violation


class ConfigKernelError(Exception):
    """
    Base exception for all sitio kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CONFIG_KERNEL_ERROR"


# Configuration store exceptions


class ConfigError(ConfigKernelError):
    """Base exception for configuration store errors."""

    code: str = "CONFIG_ERROR"


class ValidationError(ConfigError):
    """
    Candidate configuration violates its domain schema.

    Carries every violation, not just the first, so the caller can surface
    all problems at once. Never partially applied.
    """

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, domain: str, violations: tuple[Violation, ...]):
        self.domain = domain
        self.violations = tuple(violations)
        super().__init__(
            f"Validation failed for {domain}: {len(self.violations)} violation(s): "
            + "; ".join(
                f"{v.field}: {v.message}" if v.field else v.message
                for v in self.violations
            )
        )

    @property
    def fields(self) -> tuple[str, ...]:
        """Distinct violated field paths in report order."""
        seen: list[str] = []
        for violation in self.violations:
            if violation.field and violation.field not in seen:
                seen.append(violation.field)
        return tuple(seen)


class AuthorizationError(ConfigError):
    """Configuration write attempted without sufficient privilege."""

    code: str = "CONFIG_WRITE_UNAUTHORIZED"

    def __init__(self, domain: str, operation: str, actor: str):
        self.domain = domain
        self.operation = operation
        self.actor = actor
        super().__init__(
            f"Actor '{actor}' is not authorized to {operation} {domain} configuration"
        )


class PersistenceError(ConfigError):
    """
    Underlying storage operation failed.

    Write and audit-append are atomic as a pair: when this is raised from a
    write path, neither half is observable.
    """

    code: str = "PERSISTENCE_FAILURE"

    def __init__(self, operation: str, key: str, reason: str):
        self.operation = operation
        self.key = key
        self.reason = reason
        super().__init__(f"Persistence {operation} failed for key '{key}': {reason}")


class UnknownDomainError(ConfigError):
    """No schema or store is registered for the configuration domain."""

    code: str = "UNKNOWN_CONFIG_DOMAIN"

    def __init__(self, domain: str):
        self.domain = domain
        super().__init__(f"Unknown configuration domain: {domain}")


# Pure computation exceptions


class DomainError(ConfigKernelError):
    """Invalid input to a pure computation."""

    code: str = "DOMAIN_INPUT_INVALID"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")
