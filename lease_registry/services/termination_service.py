"""
TerminationService -- two-step early termination of an active lease.

Responsibility:
    Either party of an active lease files a termination request; a manager
    confirms it once the cooling-off period has elapsed.  When the policy
    enables counter-confirmation, the other party of the lease may confirm
    at any time instead.

Invariants enforced:
    - At most one pending request per lease; there is no withdrawal.
    - The lease stays active while a request is pending.
    - Confirmation ends the lease exactly as ``LeaseService.end_lease`` does.
    - The cooling-off period passes when ``now - requested_at >= period``.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from lease_registry.config import LeasePolicy
from lease_registry.domain.clock import Clock
from lease_registry.domain.dtos import (
    ZERO_IDENTITY,
    ActivityAction,
    Identity,
    LeaseInfo,
    LeaseState,
)
from lease_registry.domain.lease_terms import cooling_off_elapsed, cooling_off_ends
from lease_registry.domain.workflow import LEASE_LIFECYCLE_WORKFLOW, TERMINATION_WORKFLOW
from lease_registry.exceptions import (
    NoActiveLeaseError,
    NoTerminationRequestError,
    NotPassed15DaysError,
    TerminationAlreadyRequestedError,
    UnauthorizedError,
)
from lease_registry.logging_config import get_logger
from lease_registry.models.property import PropertyModel
from lease_registry.services.access import AccessGate
from lease_registry.services.activity_recorder import ActivityRecorder
from lease_registry.services.base import BaseService
from lease_registry.services.lease_service import LeaseService
from lease_registry.services.property_registry import load_property

logger = get_logger("services.termination")


class TerminationService(BaseService[PropertyModel]):
    """Request and confirmation of lease terminations."""

    def __init__(
        self,
        session: Session,
        gate: AccessGate,
        recorder: ActivityRecorder,
        leases: LeaseService,
        policy: LeasePolicy,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._gate = gate
        self._recorder = recorder
        self._leases = leases
        self._policy = policy

    @staticmethod
    def _termination_state(prop: PropertyModel) -> str:
        return "none" if prop.termination_requester == ZERO_IDENTITY else "requested"

    def request_termination(self, caller: Identity, index: int, reason: str) -> LeaseInfo:
        """
        File a termination request on an active lease.

        Raises:
            PropertyNotFoundError: Unknown index.
            UnauthorizedError: Caller is neither the owner nor the tenant.
            NoActiveLeaseError: The lease is not active.
            TerminationAlreadyRequestedError: A request is already pending.
        """
        prop = load_property(self.session, index)
        self._gate.require_owner_or_tenant(prop, caller)

        state = self._leases.state_of(prop)
        if not LEASE_LIFECYCLE_WORKFLOW.allows(state.value, "request_termination"):
            raise NoActiveLeaseError(index, state.value)
        if not TERMINATION_WORKFLOW.allows(self._termination_state(prop), "request_termination"):
            raise TerminationAlreadyRequestedError(index, prop.termination_requester)

        now = self.clock.now()
        prop.termination_requester = caller
        prop.termination_reason = reason
        prop.termination_request_time = now
        prop.updated_by = caller
        self.session.flush()

        self._recorder.record(
            ActivityAction.TERMINATION_REQUESTED,
            caller,
            index,
            reason=reason,
            requested_at=now,
        )
        logger.info(
            "termination_requested",
            extra={
                "property_index": index,
                "requester": caller,
                "confirmable_from": cooling_off_ends(now, self._policy),
            },
        )
        return prop.lease_info()

    def _counter_party(self, prop: PropertyModel) -> Identity:
        if prop.termination_requester == prop.owner:
            return prop.lease_tenant
        return prop.owner

    def confirm_termination(self, caller: Identity, index: int) -> LeaseInfo:
        """
        Confirm a pending termination and end the lease.

        A manager may confirm once the cooling-off period has elapsed.  With
        ``allow_counter_confirmation`` the party that did not file the
        request may confirm immediately.

        Raises:
            PropertyNotFoundError: Unknown index.
            UnauthorizedError: Caller may not confirm.
            NoTerminationRequestError: Nothing pending.
            NotPassed15DaysError: Manager confirmation inside the
                cooling-off period.
        """
        prop = load_property(self.session, index)

        is_manager = self._gate.is_manager(caller)
        counter_party = (
            self._policy.allow_counter_confirmation
            and prop.termination_requester != ZERO_IDENTITY
            and caller == self._counter_party(prop)
        )
        if not is_manager and not counter_party:
            raise UnauthorizedError(caller, "a manager", index)

        if not TERMINATION_WORKFLOW.allows(self._termination_state(prop), "confirm_termination"):
            raise NoTerminationRequestError(index)

        state = self._leases.state_of(prop)
        if not LEASE_LIFECYCLE_WORKFLOW.allows(state.value, "confirm_termination"):
            raise NoActiveLeaseError(index, state.value)

        now = self.clock.now()
        requested_at = prop.termination_request_time
        if not counter_party and not cooling_off_elapsed(requested_at, now, self._policy):
            raise NotPassed15DaysError(
                index, requested_at, cooling_off_ends(requested_at, self._policy)
            )

        requester = prop.termination_requester
        reason = prop.termination_reason
        tenant = prop.lease_tenant
        self._leases.clear_lease(prop, caller)

        self._recorder.record(
            ActivityAction.TERMINATION_CONFIRMED,
            caller,
            index,
            requester=requester,
            reason=reason,
            tenant=tenant,
            by_counter_party=counter_party,
        )
        logger.info(
            "termination_confirmed",
            extra={
                "property_index": index,
                "requester": requester,
                "by_counter_party": counter_party,
                "lease_state": LeaseState.UNLEASED,
            },
        )
        return prop.lease_info()
