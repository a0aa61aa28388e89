"""Operator identity and capabilities

Operator actions on the ledger are authorised by explicit permissions
resolved from the caller's roles, never by comparing identities.
"""

from enum import Enum
from typing import FrozenSet, Iterable, Mapping
from pydantic import BaseModel, Field


class Permission(str, Enum):
    LEDGER_READ = "ledger:read"
    LEDGER_WRITE = "ledger:write"
    COMMISSION_READ = "commission:read"


class Operator(BaseModel):
    """An authenticated caller acting on the ledger"""

    id: str = Field(..., min_length=1, description="Operator user id")
    permissions: FrozenSet[Permission] = Field(default_factory=frozenset)

    def can(self, permission: Permission) -> bool:
        return permission in self.permissions

    @classmethod
    def from_roles(
        cls,
        operator_id: str,
        roles: Iterable[str],
        role_permissions: Mapping[str, Iterable[str]],
    ) -> "Operator":
        """Resolve permissions for the given roles; unknown roles grant nothing."""
        granted = set()
        for role in roles:
            for name in role_permissions.get(role, []):
                try:
                    granted.add(Permission(name))
                except ValueError:
                    continue
        return cls(id=operator_id, permissions=frozenset(granted))

    @classmethod
    def system(cls, operator_id: str = "system") -> "Operator":
        """Operator with every permission (workers, auth-disabled deployments)"""
        return cls(id=operator_id, permissions=frozenset(Permission))
