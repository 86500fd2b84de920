"""
AccessGate -- identity and role checks run before every mutation.

Pure checks against the role store and the property row: no writes, no
logging of successes.  A failed check raises ``UnauthorizedError`` naming
the role the caller was missing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lease_registry.domain.dtos import ZERO_IDENTITY, Identity, Role
from lease_registry.exceptions import UnauthorizedError

if TYPE_CHECKING:
    from lease_registry.models.property import PropertyModel
    from lease_registry.services.role_store import RoleStore


class AccessGate:
    """Role and ownership preconditions."""

    def __init__(self, roles: RoleStore):
        self._roles = roles

    def is_manager(self, caller: Identity) -> bool:
        return self._roles.has_role(caller, Role.MANAGER)

    def require_contract_owner(self, caller: Identity) -> None:
        if not self._roles.has_role(caller, Role.OWNER):
            raise UnauthorizedError(caller, "the contract owner")

    def require_manager(self, caller: Identity) -> None:
        if not self.is_manager(caller):
            raise UnauthorizedError(caller, "a manager")

    def require_owner_of(self, prop: PropertyModel, caller: Identity) -> None:
        if caller != prop.owner:
            raise UnauthorizedError(caller, "the property owner", prop.property_index)

    def require_tenant_of(self, prop: PropertyModel, caller: Identity) -> None:
        if prop.lease_tenant == ZERO_IDENTITY or caller != prop.lease_tenant:
            raise UnauthorizedError(caller, "the tenant", prop.property_index)

    def require_owner_or_tenant(self, prop: PropertyModel, caller: Identity) -> None:
        if caller == prop.owner:
            return
        if prop.lease_tenant != ZERO_IDENTITY and caller == prop.lease_tenant:
            return
        raise UnauthorizedError(caller, "the property owner or tenant", prop.property_index)

    def require_owner_or_manager(self, prop: PropertyModel, caller: Identity) -> None:
        if caller == prop.owner or self.is_manager(caller):
            return
        raise UnauthorizedError(caller, "the property owner or a manager", prop.property_index)
