"""
LeaseService -- offer, signature and end of the lease embedded in a property.

Responsibility:
    Drives the lease lifecycle ``UNLEASED -> OFFERED -> ACTIVE -> UNLEASED``.
    The current lifecycle state is derived from the stored lease and the
    clock (``lease_terms.lease_state``); ``LEASE_LIFECYCLE_WORKFLOW`` decides
    whether an action is allowed from it.

Invariants enforced:
    - Only the property owner offers a lease; only the offered tenant signs.
    - An offer's ``end_date`` is its signing deadline; signing re-anchors
      ``start_date``/``end_date`` to the signing instant.
    - Ending a lease clears every lease field (``PropertyModel.reset_lease``).

Failure modes:
    - UnauthorizedError, PropertyNotFoundError from the access checks.
    - LeaseAlreadyActiveError, NoPendingOfferError, OfferExpiredError,
      NoActiveLeaseError, LeaseNotEndableError, InvalidLeaseTermsError.
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
from lease_registry.domain.lease_terms import (
    latest_lease_end,
    lease_end,
    lease_state,
    offer_deadline,
)
from lease_registry.domain.workflow import LEASE_LIFECYCLE_WORKFLOW
from lease_registry.exceptions import (
    InvalidLeaseTermsError,
    LeaseAlreadyActiveError,
    LeaseNotEndableError,
    NoActiveLeaseError,
    NoPendingOfferError,
    OfferExpiredError,
)
from lease_registry.logging_config import get_logger
from lease_registry.models.property import PropertyModel
from lease_registry.services.access import AccessGate
from lease_registry.services.activity_recorder import ActivityRecorder
from lease_registry.services.base import BaseService
from lease_registry.services.property_registry import load_property

logger = get_logger("services.lease")


class LeaseService(BaseService[PropertyModel]):
    """
    Lease lifecycle operations.

    Non-goals:
        - Does NOT call ``session.commit()``.
        - Does NOT settle rent or deposits.
    """

    def __init__(
        self,
        session: Session,
        gate: AccessGate,
        recorder: ActivityRecorder,
        policy: LeasePolicy,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._gate = gate
        self._recorder = recorder
        self._policy = policy

    def state_of(self, prop: PropertyModel) -> LeaseState:
        return lease_state(prop.lease_info(), self.clock.now())

    def start_lease(
        self,
        caller: Identity,
        index: int,
        tenant: Identity,
        tenant_name: str,
        duration: int,
    ) -> LeaseInfo:
        """
        Offer a lease of ``duration`` term units to ``tenant``.

        The offer stays open for ``duration + signing_grace_units`` signing
        units.  An offer whose deadline has passed may be replaced.

        Raises:
            PropertyNotFoundError: Unknown index.
            UnauthorizedError: Caller is not the property owner.
            LeaseAlreadyActiveError: A lease is active/expired or an offer is
                still open.
            InvalidLeaseTermsError: Zero tenant, owner as tenant, a
                non-positive duration, or a term that would end beyond
                ``datetime.max``.
        """
        prop = load_property(self.session, index)
        self._gate.require_owner_of(prop, caller)

        state = self.state_of(prop)
        if not LEASE_LIFECYCLE_WORKFLOW.allows(state.value, "start_lease"):
            raise LeaseAlreadyActiveError(index, state.value)

        if tenant == ZERO_IDENTITY:
            raise InvalidLeaseTermsError(index, "tenant must be a non-zero identity")
        if tenant == prop.owner:
            raise InvalidLeaseTermsError(index, "the owner cannot lease to itself")
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidLeaseTermsError(index, f"duration must be a positive integer, got {duration!r}")

        now = self.clock.now()
        try:
            latest_lease_end(now, duration, self._policy)
        except OverflowError:
            raise InvalidLeaseTermsError(
                index, f"a lease of {duration} units would end past the last supported date"
            ) from None
        deadline = offer_deadline(now, duration, self._policy)

        prop.reset_lease()
        prop.lease_tenant = tenant
        prop.lease_tenant_name = tenant_name
        prop.lease_start_date = now
        prop.lease_end_date = deadline
        prop.lease_is_active = False
        prop.lease_duration = duration
        prop.updated_by = caller
        self.session.flush()

        self._recorder.record(
            ActivityAction.LEASE_OFFERED,
            caller,
            index,
            tenant=tenant,
            tenant_name=tenant_name,
            duration=duration,
            signing_deadline=deadline,
        )
        logger.info(
            "lease_offered",
            extra={
                "property_index": index,
                "tenant": tenant,
                "duration": duration,
                "signing_deadline": deadline,
            },
        )
        return prop.lease_info()

    def sign_lease(self, caller: Identity, index: int) -> LeaseInfo:
        """
        Accept a pending offer.  The term starts at the signing instant.

        Signing exactly at the deadline is still accepted.

        Raises:
            PropertyNotFoundError: Unknown index.
            UnauthorizedError: Caller is not the offered tenant.
            NoPendingOfferError: No offer is pending.
            OfferExpiredError: The signing deadline has passed.
        """
        prop = load_property(self.session, index)
        self._gate.require_tenant_of(prop, caller)

        state = self.state_of(prop)
        if state == LeaseState.OFFER_EXPIRED:
            raise OfferExpiredError(index, prop.lease_end_date)
        if not LEASE_LIFECYCLE_WORKFLOW.allows(state.value, "sign_lease"):
            raise NoPendingOfferError(index, state.value)

        now = self.clock.now()
        prop.lease_start_date = now
        prop.lease_end_date = lease_end(now, prop.lease_duration, self._policy)
        prop.lease_is_active = True
        prop.updated_by = caller
        self.session.flush()

        self._recorder.record(
            ActivityAction.LEASE_SIGNED,
            caller,
            index,
            start_date=prop.lease_start_date,
            end_date=prop.lease_end_date,
        )
        logger.info(
            "lease_signed",
            extra={"property_index": index, "tenant": caller, "end_date": prop.lease_end_date},
        )
        return prop.lease_info()

    def end_lease(self, caller: Identity, index: int) -> LeaseInfo:
        """
        Clear the lease of a property.

        Allowed for an unsigned offer (open or expired) and for an active
        lease whose end date has passed.  A running lease is ended through
        the termination workflow instead.

        Raises:
            PropertyNotFoundError: Unknown index.
            UnauthorizedError: Caller is neither the owner nor a manager.
            NoActiveLeaseError: Nothing to end.
            LeaseNotEndableError: The lease is active and not yet expired.
        """
        prop = load_property(self.session, index)
        self._gate.require_owner_or_manager(prop, caller)

        state = self.state_of(prop)
        if state == LeaseState.ACTIVE:
            raise LeaseNotEndableError(index, prop.lease_end_date)
        if not LEASE_LIFECYCLE_WORKFLOW.allows(state.value, "end_lease"):
            raise NoActiveLeaseError(index, state.value)

        previous_tenant = prop.lease_tenant
        self.clear_lease(prop, caller)

        self._recorder.record(
            ActivityAction.LEASE_ENDED,
            caller,
            index,
            tenant=previous_tenant,
            state=state,
        )
        logger.info(
            "lease_ended",
            extra={"property_index": index, "tenant": previous_tenant, "state": state},
        )
        return prop.lease_info()

    def clear_lease(self, prop: PropertyModel, caller: Identity) -> None:
        """Reset the lease to its zero state; shared with termination."""
        prop.reset_lease()
        prop.updated_by = caller
        self.session.flush()
