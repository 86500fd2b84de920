"""Tests for the workflow definitions (lease_registry/domain/workflow.py)."""

import pytest

from lease_registry.domain.dtos import LeaseState
from lease_registry.domain.workflow import (
    COMPLAINT_WORKFLOW,
    COOLING_OFF_ELAPSED,
    LEASE_LIFECYCLE_WORKFLOW,
    SIGNING_WINDOW_OPEN,
    TERMINATION_WORKFLOW,
    Transition,
    Workflow,
)


class TestWorkflowDefinition:
    """Structural validation of Workflow."""

    def test_unknown_initial_state_rejected(self):
        with pytest.raises(ValueError, match="initial state"):
            Workflow(
                name="broken",
                description="",
                initial_state="missing",
                states=("a",),
                transitions=(),
            )

    def test_transition_to_unknown_state_rejected(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow(
                name="broken",
                description="",
                initial_state="a",
                states=("a",),
                transitions=(Transition("a", "b", action="go"),),
            )

    def test_every_lease_state_is_a_workflow_state(self):
        assert set(LEASE_LIFECYCLE_WORKFLOW.states) == {s.value for s in LeaseState}


class TestLeaseLifecycle:
    """Which actions the lease lifecycle allows from each state."""

    @pytest.mark.parametrize(
        "state, action, allowed",
        [
            (LeaseState.UNLEASED, "start_lease", True),
            (LeaseState.OFFER_EXPIRED, "start_lease", True),
            (LeaseState.OFFERED, "start_lease", False),
            (LeaseState.ACTIVE, "start_lease", False),
            (LeaseState.EXPIRED, "start_lease", False),
            (LeaseState.OFFERED, "sign_lease", True),
            (LeaseState.OFFER_EXPIRED, "sign_lease", False),
            (LeaseState.UNLEASED, "end_lease", False),
            (LeaseState.ACTIVE, "end_lease", False),
            (LeaseState.EXPIRED, "end_lease", True),
            (LeaseState.ACTIVE, "request_termination", True),
            (LeaseState.EXPIRED, "request_termination", False),
            (LeaseState.ACTIVE, "submit_complaint", True),
            (LeaseState.OFFERED, "submit_complaint", False),
        ],
    )
    def test_allows(self, state, action, allowed):
        assert LEASE_LIFECYCLE_WORKFLOW.allows(state.value, action) is allowed

    def test_signing_is_guarded_by_the_window(self):
        t = LEASE_LIFECYCLE_WORKFLOW.transition(LeaseState.OFFERED.value, "sign_lease")
        assert t.to_state == LeaseState.ACTIVE.value
        assert t.guard == SIGNING_WINDOW_OPEN

    def test_actions_from_unleased(self):
        assert LEASE_LIFECYCLE_WORKFLOW.actions_from(LeaseState.UNLEASED.value) == ("start_lease",)


class TestTerminationAndComplaintWorkflows:

    def test_single_pending_request(self):
        assert TERMINATION_WORKFLOW.allows("none", "request_termination")
        assert not TERMINATION_WORKFLOW.allows("requested", "request_termination")
        t = TERMINATION_WORKFLOW.transition("requested", "confirm_termination")
        assert t.guard == COOLING_OFF_ELAPSED

    def test_confirm_needs_a_request(self):
        assert not TERMINATION_WORKFLOW.allows("none", "confirm_termination")

    @pytest.mark.parametrize("state", ["submitted", "confirmed", "rejected"])
    def test_verdict_can_always_be_revised(self, state):
        assert COMPLAINT_WORKFLOW.transition(state, "confirm").to_state == "confirmed"
        assert COMPLAINT_WORKFLOW.transition(state, "reject").to_state == "rejected"

    def test_no_review_before_submission(self):
        assert not COMPLAINT_WORKFLOW.allows("none", "confirm")
