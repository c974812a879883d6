"""Write authorization for configuration overrides."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class UserRole(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    VIEWER = "viewer"


CONFIG_WRITE_ROLES = frozenset({UserRole.SUPERADMIN, UserRole.ADMIN})


class ConfigWriteAuthorizer(ABC):
    """Decides whether the current caller may write configuration."""

    @property
    @abstractmethod
    def actor_name(self) -> str:
        """Name recorded in audit entries."""
        ...

    @abstractmethod
    def is_authorized_to_write_config(self) -> bool:
        ...


class RoleBasedAuthorizer(ConfigWriteAuthorizer):
    """Superadmins and admins may write; viewers may not."""

    def __init__(self, role: UserRole | str, actor_name: str):
        self._role = UserRole(role)
        self._actor_name = actor_name

    @property
    def role(self) -> UserRole:
        return self._role

    @property
    def actor_name(self) -> str:
        return self._actor_name

    def is_authorized_to_write_config(self) -> bool:
        return self._role in CONFIG_WRITE_ROLES


class StaticAuthorizer(ConfigWriteAuthorizer):
    """Fixed answer; for scripts and tests."""

    def __init__(self, allowed: bool = True, actor_name: str = "system"):
        self._allowed = allowed
        self._actor_name = actor_name

    @property
    def actor_name(self) -> str:
        return self._actor_name

    def is_authorized_to_write_config(self) -> bool:
        return self._allowed
