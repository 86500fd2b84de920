"""
Role store -- injectable mapping of identity -> registry-wide roles.

Responsibility:
    Holds who the contract owner is and who the managers are.  The store is
    an explicit component handed to the registry rather than ambient state,
    so tests can seed an ``InMemoryRoleStore`` directly while deployments
    use ``SqlRoleStore``, which lives in the same transaction as every other
    write.

    ``RoleService`` layers the owner-only administration (add/remove
    manager, transfer ownership) and the deployment seeding on top of any
    store.

Invariants enforced:
    - At most one identity holds ``Role.OWNER``.
    - The contract owner is always a manager: seeding and ownership
      transfer grant MANAGER, and removing the owner's MANAGER role is
      refused.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from lease_registry.domain.dtos import ZERO_IDENTITY, ActivityAction, Identity, Role
from lease_registry.exceptions import InvalidRoleChangeError
from lease_registry.logging_config import get_logger
from lease_registry.models.role import RoleAssignmentModel
from lease_registry.services.access import AccessGate
from lease_registry.services.activity_recorder import ActivityRecorder

logger = get_logger("services.roles")


class RoleStore(ABC):
    """Abstract role storage."""

    @abstractmethod
    def roles_of(self, identity: Identity) -> frozenset[Role]:
        ...

    @abstractmethod
    def grant(self, identity: Identity, role: Role, actor: Identity) -> None:
        """Give ``identity`` the role; a no-op if it already holds it."""
        ...

    @abstractmethod
    def revoke(self, identity: Identity, role: Role) -> None:
        """Take the role away; a no-op if ``identity`` does not hold it."""
        ...

    @abstractmethod
    def contract_owner(self) -> Identity:
        """The contract owner, or ZERO_IDENTITY before seeding."""
        ...

    def has_role(self, identity: Identity, role: Role) -> bool:
        return role in self.roles_of(identity)

    def set_contract_owner(self, identity: Identity, actor: Identity) -> None:
        previous = self.contract_owner()
        if previous != ZERO_IDENTITY:
            self.revoke(previous, Role.OWNER)
        self.grant(identity, Role.OWNER, actor)

    # Unit-of-work hooks called by LeaseRegistry around every operation.
    # Stores that write through the operation's session need none of them.

    def begin(self) -> None:
        pass

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass


class InMemoryRoleStore(RoleStore):
    """Dict-backed store for tests and embedded use.

    The database transaction does not cover it, so each operation works on
    top of a snapshot that ``rollback()`` restores.  Operations may nest.
    """

    def __init__(self, assignments: dict[Identity, set[Role]] | None = None):
        self._roles: dict[Identity, set[Role]] = {
            identity: set(roles) for identity, roles in (assignments or {}).items()
        }
        self._snapshots: list[dict[Identity, set[Role]]] = []

    def begin(self) -> None:
        self._snapshots.append(
            {identity: set(roles) for identity, roles in self._roles.items()}
        )

    def commit(self) -> None:
        self._snapshots.pop()

    def rollback(self) -> None:
        self._roles = self._snapshots.pop()

    def roles_of(self, identity: Identity) -> frozenset[Role]:
        return frozenset(self._roles.get(identity, ()))

    def grant(self, identity: Identity, role: Role, actor: Identity) -> None:
        self._roles.setdefault(identity, set()).add(role)

    def revoke(self, identity: Identity, role: Role) -> None:
        self._roles.get(identity, set()).discard(role)

    def contract_owner(self) -> Identity:
        for identity, roles in self._roles.items():
            if Role.OWNER in roles:
                return identity
        return ZERO_IDENTITY


class SqlRoleStore(RoleStore):
    """Store backed by ``role_assignments``; flushes, never commits."""

    def __init__(self, session: Session):
        self._session = session

    def roles_of(self, identity: Identity) -> frozenset[Role]:
        rows = self._session.execute(
            select(RoleAssignmentModel.role).where(
                RoleAssignmentModel.identity == identity
            )
        ).scalars().all()
        return frozenset(Role(r) for r in rows)

    def grant(self, identity: Identity, role: Role, actor: Identity) -> None:
        if self.has_role(identity, role):
            return
        self._session.add(
            RoleAssignmentModel(identity=identity, role=role.value, created_by=actor)
        )
        self._session.flush()

    def revoke(self, identity: Identity, role: Role) -> None:
        self._session.execute(
            delete(RoleAssignmentModel).where(
                RoleAssignmentModel.identity == identity,
                RoleAssignmentModel.role == role.value,
            )
        )
        self._session.flush()

    def contract_owner(self) -> Identity:
        owner = self._session.execute(
            select(RoleAssignmentModel.identity).where(
                RoleAssignmentModel.role == Role.OWNER.value
            )
        ).scalar_one_or_none()
        return owner or ZERO_IDENTITY


class RoleService:
    """
    Role administration on top of a ``RoleStore``.

    Every mutating method checks that the caller is the contract owner and
    records an activity event.
    """

    def __init__(self, store: RoleStore, gate: AccessGate, recorder: ActivityRecorder):
        self._store = store
        self._gate = gate
        self._recorder = recorder

    def owner(self) -> Identity:
        return self._store.contract_owner()

    def is_manager(self, identity: Identity) -> bool:
        return self._store.has_role(identity, Role.MANAGER)

    def is_initialized(self) -> bool:
        return self._store.contract_owner() != ZERO_IDENTITY

    def initialize(self, deployer: Identity) -> None:
        """Seed the deployer as contract owner and manager.

        Raises:
            InvalidRoleChangeError: If the store already has an owner or the
                deployer is the zero identity.
        """
        if deployer == ZERO_IDENTITY:
            raise InvalidRoleChangeError(deployer, "deployer must be a non-zero identity")
        if self.is_initialized():
            raise InvalidRoleChangeError(deployer, "registry is already initialized")

        self._store.set_contract_owner(deployer, deployer)
        self._store.grant(deployer, Role.MANAGER, deployer)
        self._recorder.record(ActivityAction.REGISTRY_INITIALIZED, deployer)
        logger.info("registry_initialized", extra={"owner": deployer})

    def add_manager(self, caller: Identity, identity: Identity) -> None:
        self._gate.require_contract_owner(caller)
        if identity == ZERO_IDENTITY:
            raise InvalidRoleChangeError(identity, "manager must be a non-zero identity")

        self._store.grant(identity, Role.MANAGER, caller)
        self._recorder.record(ActivityAction.MANAGER_ADDED, caller, manager=identity)
        logger.info("manager_added", extra={"manager": identity})

    def remove_manager(self, caller: Identity, identity: Identity) -> None:
        self._gate.require_contract_owner(caller)
        if identity == self._store.contract_owner():
            raise InvalidRoleChangeError(identity, "the contract owner is always a manager")

        self._store.revoke(identity, Role.MANAGER)
        self._recorder.record(ActivityAction.MANAGER_REMOVED, caller, manager=identity)
        logger.info("manager_removed", extra={"manager": identity})

    def transfer_ownership(self, caller: Identity, new_owner: Identity) -> None:
        """Hand the contract owner role to ``new_owner``.

        The new owner also becomes a manager; the previous owner keeps its
        manager role until explicitly removed.
        """
        self._gate.require_contract_owner(caller)
        if new_owner == ZERO_IDENTITY:
            raise InvalidRoleChangeError(new_owner, "new owner must be a non-zero identity")

        self._store.set_contract_owner(new_owner, caller)
        self._store.grant(new_owner, Role.MANAGER, caller)
        self._recorder.record(
            ActivityAction.OWNERSHIP_TRANSFERRED,
            caller,
            previous_owner=caller,
            new_owner=new_owner,
        )
        logger.info(
            "ownership_transferred",
            extra={"previous_owner": caller, "new_owner": new_owner},
        )
