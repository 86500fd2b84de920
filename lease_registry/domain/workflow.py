"""
Workflow state machines (``lease_registry.domain.workflow``).

Responsibility
--------------
Pure value objects describing the lease lifecycle, the termination protocol
and the complaint review flow, plus the definitions themselves.  Services ask
``Workflow.allows(state, action)`` before mutating anything and translate a
refusal into the typed error that fits the operation.

Architecture position
---------------------
**Registry domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
"""

from __future__ import annotations

from dataclasses import dataclass

from lease_registry.domain.dtos import LeaseState


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.  The owning service evaluates it.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def __post_init__(self):
        if self.initial_state not in self.states:
            raise ValueError(
                f"{self.name}: initial state {self.initial_state!r} not in states"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"{self.name}: transition {t.action!r} references unknown state"
                )

    def transition(self, from_state: str, action: str) -> Transition | None:
        """Return the transition taken by ``action`` from ``from_state``, if any."""
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def allows(self, from_state: str, action: str) -> bool:
        return self.transition(from_state, action) is not None

    def actions_from(self, from_state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == from_state)


SIGNING_WINDOW_OPEN = Guard("signing_window_open", "Offer signed before its deadline")
COOLING_OFF_ELAPSED = Guard(
    "cooling_off_elapsed",
    "Cooling-off period passed, or the counter-party confirms",
)

_UNLEASED = LeaseState.UNLEASED.value
_OFFERED = LeaseState.OFFERED.value
_OFFER_EXPIRED = LeaseState.OFFER_EXPIRED.value
_ACTIVE = LeaseState.ACTIVE.value
_EXPIRED = LeaseState.EXPIRED.value


LEASE_LIFECYCLE_WORKFLOW = Workflow(
    name="lease_lifecycle",
    description="Offer, signature and end of the lease embedded in a property",
    initial_state=_UNLEASED,
    states=(_UNLEASED, _OFFERED, _OFFER_EXPIRED, _ACTIVE, _EXPIRED),
    transitions=(
        Transition(_UNLEASED, _OFFERED, action="start_lease"),
        Transition(_OFFER_EXPIRED, _OFFERED, action="start_lease"),
        Transition(_OFFERED, _ACTIVE, action="sign_lease", guard=SIGNING_WINDOW_OPEN),
        Transition(_OFFERED, _UNLEASED, action="end_lease"),
        Transition(_OFFER_EXPIRED, _UNLEASED, action="end_lease"),
        Transition(_EXPIRED, _UNLEASED, action="end_lease"),
        Transition(_ACTIVE, _ACTIVE, action="request_termination"),
        Transition(_ACTIVE, _UNLEASED, action="confirm_termination", guard=COOLING_OFF_ELAPSED),
        Transition(_EXPIRED, _UNLEASED, action="confirm_termination", guard=COOLING_OFF_ELAPSED),
        Transition(_ACTIVE, _ACTIVE, action="submit_complaint"),
    ),
)


TERMINATION_WORKFLOW = Workflow(
    name="termination",
    description="Request, cooling-off and confirmation of an early termination",
    initial_state="none",
    states=("none", "requested"),
    transitions=(
        Transition("none", "requested", action="request_termination"),
        Transition("requested", "none", action="confirm_termination", guard=COOLING_OFF_ELAPSED),
    ),
)


COMPLAINT_WORKFLOW = Workflow(
    name="complaint",
    description="Complaint slot of one accused identity",
    initial_state="none",
    states=("none", "submitted", "confirmed", "rejected"),
    transitions=(
        Transition("none", "submitted", action="submit_complaint"),
        Transition("submitted", "submitted", action="submit_complaint"),
        Transition("confirmed", "submitted", action="submit_complaint"),
        Transition("rejected", "submitted", action="submit_complaint"),
        Transition("submitted", "confirmed", action="confirm"),
        Transition("submitted", "rejected", action="reject"),
        Transition("confirmed", "confirmed", action="confirm"),
        Transition("confirmed", "rejected", action="reject"),
        Transition("rejected", "confirmed", action="confirm"),
        Transition("rejected", "rejected", action="reject"),
    ),
)
