"""
LeaseRegistry -- the public operation surface of the registry.

The registry ties together:
- AccessGate / RoleService: who may call what
- PropertyRegistryService / PropertySelector: properties
- LeaseService / TerminationService: the lease lifecycle
- ComplaintService: complaints
- ActivityRecorder: the hash-chained activity log
- PolicyService: the lease policy stored with the deployment

Every public operation runs under one re-entrant lock and inside one
``session_scope`` transaction.  A failed operation is rolled back whole, so
it leaves neither state changes nor activity events behind.  Services are
built per operation around that operation's session.

Usage:
    init_engine_from_url("sqlite:///lease_registry.db")
    create_tables()
    registry = LeaseRegistry(get_session_factory(), deployer="0xdeployer")
    index = registry.add_property("0xalice", "1 Main St", PropertyType.HOUSE, "Alice")
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker

from lease_registry.config import LeasePolicy
from lease_registry.db.engine import session_scope
from lease_registry.domain.clock import Clock, SystemClock
from lease_registry.domain.dtos import (
    ZERO_IDENTITY,
    ActivityRecord,
    ComplaintInfo,
    Identity,
    LeaseInfo,
    LeaseState,
    PropertyInfo,
    PropertyType,
)
from lease_registry.exceptions import LeaseRegistryError
from lease_registry.logging_config import LogContext, get_logger
from lease_registry.selectors.property_selector import PropertySelector
from lease_registry.services.access import AccessGate
from lease_registry.services.activity_recorder import ActivityRecorder
from lease_registry.services.complaint_service import ComplaintService
from lease_registry.services.lease_service import LeaseService
from lease_registry.services.policy_service import PolicyService
from lease_registry.services.property_registry import PropertyRegistryService, load_property
from lease_registry.services.role_store import RoleService, RoleStore, SqlRoleStore
from lease_registry.services.sequence_service import SequenceService
from lease_registry.services.termination_service import TerminationService

logger = get_logger("registry")

RoleStoreFactory = Callable[[Session], RoleStore]


@dataclass(frozen=True)
class _Services:
    """Services bound to the session of one operation."""

    session: Session
    store: RoleStore
    gate: AccessGate
    roles: RoleService
    recorder: ActivityRecorder
    properties: PropertyRegistryService
    selector: PropertySelector
    leases: LeaseService
    terminations: TerminationService
    complaints: ComplaintService
    policies: PolicyService


class LeaseRegistry:
    """
    Property registry and lease state machine.

    Args:
        session_factory: Creates the session of each operation.
        deployer: Identity seeded as contract owner and manager when the
            database has no owner yet.  Ignored for an initialized database.
        clock: Time source; defaults to the system clock.
        policy: Lease rules for this instance.  When omitted, the policy
            stored by ``configure_policy`` is used, else
            ``LeasePolicy.with_defaults()``.
        role_store_factory: Builds the role store for a session; defaults to
            ``SqlRoleStore`` so roles commit together with everything else.

    Raises:
        InvalidRoleChangeError: The database is not initialized and no
            deployer was given.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        deployer: Identity | None = None,
        *,
        clock: Clock | None = None,
        policy: LeasePolicy | None = None,
        role_store_factory: RoleStoreFactory | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._policy = policy or LeasePolicy.with_defaults()
        self._role_store_factory = role_store_factory or SqlRoleStore
        self._lock = threading.RLock()

        with self._operation("initialize", deployer) as s:
            SequenceService(s.session).initialize_sequences()
            if not s.roles.is_initialized():
                s.roles.initialize(deployer or ZERO_IDENTITY)
            if policy is None:
                self._policy = s.policies.load() or self._policy

    @property
    def policy(self) -> LeasePolicy:
        return self._policy

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------
    # Transaction and logging scope
    # ------------------------------------------------------------------

    def _build_services(self, session: Session) -> _Services:
        store = self._role_store_factory(session)
        gate = AccessGate(store)
        recorder = ActivityRecorder(session, self._clock)
        leases = LeaseService(session, gate, recorder, self._policy, self._clock)
        return _Services(
            session=session,
            store=store,
            gate=gate,
            roles=RoleService(store, gate, recorder),
            recorder=recorder,
            properties=PropertyRegistryService(session, gate, recorder, self._clock),
            selector=PropertySelector(session),
            leases=leases,
            terminations=TerminationService(
                session, gate, recorder, leases, self._policy, self._clock
            ),
            complaints=ComplaintService(session, gate, recorder, leases, self._clock),
            policies=PolicyService(session, gate, recorder, self._clock),
        )

    @contextmanager
    def _operation(
        self,
        name: str,
        caller: Identity | None = None,
        property_index: int | None = None,
    ) -> Iterator[_Services]:
        start = time.monotonic()
        with self._lock, LogContext.bind(
            correlation_id=str(uuid4()),
            operation=name,
            actor=caller,
            property_index=property_index,
        ):
            services: _Services | None = None
            try:
                with session_scope(self._session_factory) as session:
                    services = self._build_services(session)
                    services.store.begin()
                    yield services
            except Exception as exc:
                if services is not None:
                    services.store.rollback()
                if isinstance(exc, LeaseRegistryError):
                    logger.warning(
                        "operation_rejected",
                        extra={"error_code": exc.code, "error": str(exc)},
                    )
                raise
            services.store.commit()
            logger.debug(
                "operation_completed",
                extra={"duration_ms": round((time.monotonic() - start) * 1000, 2)},
            )

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def owner(self) -> Identity:
        with self._operation("owner") as s:
            return s.roles.owner()

    def is_manager(self, identity: Identity) -> bool:
        with self._operation("is_manager") as s:
            return s.roles.is_manager(identity)

    def add_manager(self, caller: Identity, identity: Identity) -> None:
        with self._operation("add_manager", caller) as s:
            s.roles.add_manager(caller, identity)

    def remove_manager(self, caller: Identity, identity: Identity) -> None:
        with self._operation("remove_manager", caller) as s:
            s.roles.remove_manager(caller, identity)

    def transfer_ownership(self, caller: Identity, new_owner: Identity) -> None:
        with self._operation("transfer_ownership", caller) as s:
            s.roles.transfer_ownership(caller, new_owner)

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    def configure_policy(self, caller: Identity, policy: LeasePolicy) -> None:
        """Store ``policy`` for this deployment and switch to it.

        Registries opened later without an explicit policy pick it up.
        Contract owner only.
        """
        with self._lock:
            with self._operation("configure_policy", caller) as s:
                s.policies.configure(caller, policy)
            self._policy = policy

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def add_property(
        self,
        caller: Identity,
        address: str,
        property_type: PropertyType | str,
        owner_name: str,
    ) -> int:
        with self._operation("add_property", caller) as s:
            return s.properties.add_property(caller, address, property_type, owner_name)

    def unlist_property(self, caller: Identity, index: int) -> PropertyInfo:
        with self._operation("unlist_property", caller, index) as s:
            return s.properties.unlist_property(caller, index)

    def get_all_properties(self) -> list[PropertyInfo]:
        with self._operation("get_all_properties") as s:
            return s.selector.get_all_properties()

    def get_owner_properties(self, caller: Identity) -> list[PropertyInfo]:
        with self._operation("get_owner_properties", caller) as s:
            return s.selector.get_owner_properties(caller)

    def get_listed_properties(self) -> list[PropertyInfo]:
        with self._operation("get_listed_properties") as s:
            return s.selector.get_listed_properties()

    def get_property_info(self, key: int | str) -> PropertyInfo:
        with self._operation("get_property_info") as s:
            return s.selector.get_property_info(key)

    # ------------------------------------------------------------------
    # Lease lifecycle
    # ------------------------------------------------------------------

    def lease_state(self, index: int) -> LeaseState:
        """Lifecycle state of the lease on ``index`` at the current time."""
        with self._operation("lease_state", property_index=index) as s:
            return s.leases.state_of(load_property(s.session, index))

    def start_lease(
        self,
        caller: Identity,
        index: int,
        tenant: Identity,
        tenant_name: str,
        duration: int,
    ) -> LeaseInfo:
        with self._operation("start_lease", caller, index) as s:
            return s.leases.start_lease(caller, index, tenant, tenant_name, duration)

    def sign_lease(self, caller: Identity, index: int) -> LeaseInfo:
        with self._operation("sign_lease", caller, index) as s:
            return s.leases.sign_lease(caller, index)

    def end_lease(self, caller: Identity, index: int) -> LeaseInfo:
        with self._operation("end_lease", caller, index) as s:
            return s.leases.end_lease(caller, index)

    # ------------------------------------------------------------------
    # Termination
    # ------------------------------------------------------------------

    def request_termination(self, caller: Identity, index: int, reason: str) -> LeaseInfo:
        with self._operation("request_termination", caller, index) as s:
            return s.terminations.request_termination(caller, index, reason)

    def confirm_termination(self, caller: Identity, index: int) -> LeaseInfo:
        with self._operation("confirm_termination", caller, index) as s:
            return s.terminations.confirm_termination(caller, index)

    # ------------------------------------------------------------------
    # Complaints
    # ------------------------------------------------------------------

    def submit_complaint(
        self,
        caller: Identity,
        index: int,
        accused: Identity,
        description: str,
    ) -> ComplaintInfo:
        with self._operation("submit_complaint", caller, index) as s:
            return s.complaints.submit_complaint(caller, index, accused, description)

    def review_complaint(
        self,
        caller: Identity,
        index: int,
        accused: Identity,
        confirm: bool,
    ) -> ComplaintInfo:
        with self._operation("review_complaint", caller, index) as s:
            return s.complaints.review_complaint(caller, index, accused, confirm)

    def get_complaint(self, accused: Identity) -> ComplaintInfo | None:
        with self._operation("get_complaint") as s:
            return s.selector.get_complaint(accused)

    # ------------------------------------------------------------------
    # Activity log
    # ------------------------------------------------------------------

    def get_activity(
        self,
        property_index: int | None = None,
        limit: int = 100,
    ) -> list[ActivityRecord]:
        with self._operation("get_activity", property_index=property_index) as s:
            return s.recorder.list_events(property_index, limit)

    def validate_activity_chain(self) -> bool:
        with self._operation("validate_activity_chain") as s:
            return s.recorder.validate_chain()
