"""
ComplaintService -- complaints between the parties of an active lease.

Responsibility:
    The owner or the tenant of an active lease files a complaint against the
    other party; a manager confirms or rejects it.

Invariants enforced:
    - One slot per accused identity.  A new complaint against the same
      identity replaces the previous one, whichever property it concerned,
      and resets the verdict to NONE.
    - Only managers review, and the manager check runs before any lookup.
    - A verdict may be changed by a later review.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from lease_registry.domain.clock import Clock
from lease_registry.domain.dtos import (
    ActivityAction,
    ComplaintInfo,
    ConfirmationType,
    Identity,
)
from lease_registry.domain.workflow import COMPLAINT_WORKFLOW, LEASE_LIFECYCLE_WORKFLOW
from lease_registry.exceptions import (
    ComplaintNotFoundError,
    InvalidComplaintTargetError,
    NoActiveLeaseError,
)
from lease_registry.logging_config import get_logger
from lease_registry.models.complaint import ComplaintModel
from lease_registry.services.access import AccessGate
from lease_registry.services.activity_recorder import ActivityRecorder
from lease_registry.services.base import BaseService
from lease_registry.services.lease_service import LeaseService
from lease_registry.services.property_registry import load_property

logger = get_logger("services.complaint")

_WORKFLOW_STATE = {
    ConfirmationType.NONE.value: "submitted",
    ConfirmationType.CONFIRMED.value: "confirmed",
    ConfirmationType.REJECTED.value: "rejected",
}


class ComplaintService(BaseService[ComplaintModel]):
    """Submission and review of complaints."""

    def __init__(
        self,
        session: Session,
        gate: AccessGate,
        recorder: ActivityRecorder,
        leases: LeaseService,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._gate = gate
        self._recorder = recorder
        self._leases = leases

    def _slot(self, accused: Identity) -> ComplaintModel | None:
        return self.session.execute(
            select(ComplaintModel)
            .where(ComplaintModel.accused == accused)
            .with_for_update()
        ).scalar_one_or_none()

    def submit_complaint(
        self,
        caller: Identity,
        index: int,
        accused: Identity,
        description: str,
    ) -> ComplaintInfo:
        """
        File a complaint against the other party of the lease on ``index``.

        Raises:
            PropertyNotFoundError: Unknown index.
            UnauthorizedError: Caller is neither the owner nor the tenant.
            NoActiveLeaseError: The lease is not active.
            InvalidComplaintTargetError: ``accused`` is not the other party.
        """
        prop = load_property(self.session, index)
        self._gate.require_owner_or_tenant(prop, caller)

        state = self._leases.state_of(prop)
        if not LEASE_LIFECYCLE_WORKFLOW.allows(state.value, "submit_complaint"):
            raise NoActiveLeaseError(index, state.value)

        other_party = prop.lease_tenant if caller == prop.owner else prop.owner
        if accused != other_party:
            raise InvalidComplaintTargetError(index, caller, accused)

        slot = self._slot(accused)
        if slot is None:
            slot = ComplaintModel(accused=accused, created_by=caller)
            self.session.add(slot)
            replaced = False
        else:
            slot.updated_by = caller
            replaced = True

        slot.complainant = caller
        slot.property_index = index
        slot.description = description
        slot.confirmation = ConfirmationType.NONE.value
        self.session.flush()

        self._recorder.record(
            ActivityAction.COMPLAINT_SUBMITTED,
            caller,
            index,
            accused=accused,
            description=description,
            replaced_previous=replaced,
        )
        logger.info(
            "complaint_submitted",
            extra={
                "property_index": index,
                "accused": accused,
                "replaced_previous": replaced,
            },
        )
        return slot.to_dto()

    def review_complaint(
        self,
        caller: Identity,
        index: int,
        accused: Identity,
        confirm: bool,
    ) -> ComplaintInfo:
        """
        Record a manager's verdict on the complaint against ``accused``.

        Raises:
            UnauthorizedError: Caller is not a manager.
            PropertyNotFoundError: Unknown index.
            ComplaintNotFoundError: No complaint against ``accused`` for
                this property.
        """
        self._gate.require_manager(caller)
        load_property(self.session, index)

        slot = self._slot(accused)
        if slot is None or slot.property_index != index:
            raise ComplaintNotFoundError(accused, index)

        action = "confirm" if confirm else "reject"
        transition = COMPLAINT_WORKFLOW.transition(
            _WORKFLOW_STATE[slot.confirmation], action
        )
        verdict = ConfirmationType(transition.to_state)

        slot.confirmation = verdict.value
        slot.updated_by = caller
        self.session.flush()

        self._recorder.record(
            ActivityAction.COMPLAINT_REVIEWED,
            caller,
            index,
            accused=accused,
            confirmation=verdict,
        )
        logger.info(
            "complaint_reviewed",
            extra={"property_index": index, "accused": accused, "confirmation": verdict},
        )
        return slot.to_dto()
