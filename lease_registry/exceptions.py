"""
Typed exception hierarchy for the lease registry.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the registry (a transport layer, a CLI, a test) need to react to
failures precisely: an unauthorized caller is reported differently from a
lease that is not in the right state, and a termination attempted during the
cooling-off period is something the caller simply retries later.

Every error therefore:
  1. Has its own class (catch by type, not by message)
  2. Carries a ``code`` class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (property index, caller, ...)

    try:
        registry.confirm_termination(manager, index)
    except NotPassed15DaysError as e:
        schedule_retry(at=e.available_at)
    except InvalidStateError as e:
        api_response(code=e.code, property_index=e.property_index)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LeaseRegistryError (base)
    |
    +-- UnauthorizedError
    |
    +-- NotFoundError
    |   +-- PropertyNotFoundError
    |   +-- ComplaintNotFoundError
    |
    +-- InvalidStateError
    |   +-- LeaseAlreadyActiveError
    |   +-- NoActiveLeaseError
    |   +-- NoPendingOfferError
    |   +-- OfferExpiredError
    |   +-- LeaseNotEndableError
    |   +-- TerminationAlreadyRequestedError
    |   +-- NoTerminationRequestError
    |   +-- InvalidComplaintTargetError
    |   +-- InvalidLeaseTermsError
    |   +-- InvalidRoleChangeError
    |
    +-- NotPassed15DaysError
    |
    +-- ActivityChainBrokenError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                           | When Raised
--------------|--------------------------------|-------------------------------------
Access        | UNAUTHORIZED                   | Role or ownership check failed
--------------|--------------------------------|-------------------------------------
Lookup        | PROPERTY_NOT_FOUND             | Property index/address unknown
              | COMPLAINT_NOT_FOUND            | No complaint slot for the accused
--------------|--------------------------------|-------------------------------------
Lease state   | LEASE_ALREADY_ACTIVE           | Offer/lease already in progress
              | NO_ACTIVE_LEASE                | Operation needs an active lease
              | NO_PENDING_OFFER               | Signing without an open offer
              | OFFER_EXPIRED                  | Signing after the signing deadline
              | LEASE_NOT_ENDABLE              | Ending an active lease before term
              | TERMINATION_ALREADY_REQUESTED  | Second pending termination request
              | NO_TERMINATION_REQUEST         | Confirming with nothing pending
              | INVALID_COMPLAINT_TARGET       | Accused is not the other party
              | INVALID_LEASE_TERMS            | Bad tenant or duration on offer
              | INVALID_ROLE_CHANGE            | Role change would orphan the owner
--------------|--------------------------------|-------------------------------------
Time gate     | NOT_PASSED_15_DAYS             | Cooling-off period still running
--------------|--------------------------------|-------------------------------------
Activity log  | ACTIVITY_CHAIN_BROKEN          | Hash chain validation failed

===============================================================================
"""

from datetime import datetime


class LeaseRegistryError(Exception):
    """
    Base exception for all lease registry errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "LEASE_REGISTRY_ERROR"


# Access


class UnauthorizedError(LeaseRegistryError):
    """Caller does not hold the role the operation requires."""

    code: str = "UNAUTHORIZED"

    def __init__(self, caller: str, required: str, property_index: int | None = None):
        self.caller = caller
        self.required = required
        self.property_index = property_index
        where = f" on property {property_index}" if property_index is not None else ""
        super().__init__(f"Caller {caller!r} is not {required}{where}")


# Lookup


class NotFoundError(LeaseRegistryError):
    """Base exception for unknown keys."""

    code: str = "NOT_FOUND"


class PropertyNotFoundError(NotFoundError):
    """Property index or address does not exist."""

    code: str = "PROPERTY_NOT_FOUND"

    def __init__(self, key: int | str):
        self.key = key
        super().__init__(f"Property not found: {key!r}")


class ComplaintNotFoundError(NotFoundError):
    """No complaint slot for the accused on the given property."""

    code: str = "COMPLAINT_NOT_FOUND"

    def __init__(self, accused: str, property_index: int):
        self.accused = accused
        self.property_index = property_index
        super().__init__(
            f"No complaint against {accused!r} on property {property_index}"
        )


# Lease / workflow state


class InvalidStateError(LeaseRegistryError):
    """Base exception for operations attempted in the wrong state."""

    code: str = "INVALID_STATE"


class LeaseAlreadyActiveError(InvalidStateError):
    """A lease is already active or an open offer is pending."""

    code: str = "LEASE_ALREADY_ACTIVE"

    def __init__(self, property_index: int, state: str):
        self.property_index = property_index
        self.state = state
        super().__init__(
            f"Property {property_index} already has a lease in state {state}"
        )


class NoActiveLeaseError(InvalidStateError):
    """The operation requires an active lease."""

    code: str = "NO_ACTIVE_LEASE"

    def __init__(self, property_index: int, state: str):
        self.property_index = property_index
        self.state = state
        super().__init__(
            f"Property {property_index} has no active lease (state {state})"
        )


class NoPendingOfferError(InvalidStateError):
    """Signing was attempted without an open offer."""

    code: str = "NO_PENDING_OFFER"

    def __init__(self, property_index: int, state: str):
        self.property_index = property_index
        self.state = state
        super().__init__(
            f"Property {property_index} has no pending lease offer (state {state})"
        )


class OfferExpiredError(InvalidStateError):
    """The signing deadline of the offer has passed."""

    code: str = "OFFER_EXPIRED"

    def __init__(self, property_index: int, deadline: datetime):
        self.property_index = property_index
        self.deadline = deadline
        super().__init__(
            f"Lease offer on property {property_index} expired at {deadline.isoformat()}"
        )


class LeaseNotEndableError(InvalidStateError):
    """An active lease cannot be ended before its end date."""

    code: str = "LEASE_NOT_ENDABLE"

    def __init__(self, property_index: int, end_date: datetime):
        self.property_index = property_index
        self.end_date = end_date
        super().__init__(
            f"Lease on property {property_index} runs until {end_date.isoformat()}; "
            "use the termination workflow"
        )


class TerminationAlreadyRequestedError(InvalidStateError):
    """A termination request is already pending."""

    code: str = "TERMINATION_ALREADY_REQUESTED"

    def __init__(self, property_index: int, requester: str):
        self.property_index = property_index
        self.requester = requester
        super().__init__(
            f"Termination of property {property_index} already requested by {requester!r}"
        )


class NoTerminationRequestError(InvalidStateError):
    """Confirmation was attempted with no pending request."""

    code: str = "NO_TERMINATION_REQUEST"

    def __init__(self, property_index: int):
        self.property_index = property_index
        super().__init__(f"No termination request pending on property {property_index}")


class InvalidComplaintTargetError(InvalidStateError):
    """The accused is not the other party of the lease."""

    code: str = "INVALID_COMPLAINT_TARGET"

    def __init__(self, property_index: int, complainant: str, accused: str):
        self.property_index = property_index
        self.complainant = complainant
        self.accused = accused
        super().__init__(
            f"{complainant!r} cannot file a complaint against {accused!r} "
            f"on property {property_index}"
        )


class InvalidLeaseTermsError(InvalidStateError):
    """Offer terms are unusable (zero tenant, owner as tenant, bad duration)."""

    code: str = "INVALID_LEASE_TERMS"

    def __init__(self, property_index: int, reason: str):
        self.property_index = property_index
        self.reason = reason
        super().__init__(f"Invalid lease terms for property {property_index}: {reason}")


class InvalidRoleChangeError(InvalidStateError):
    """The role change would leave the registry without a managing owner."""

    code: str = "INVALID_ROLE_CHANGE"

    def __init__(self, identity: str, reason: str):
        self.identity = identity
        self.reason = reason
        super().__init__(f"Invalid role change for {identity!r}: {reason}")


# Time gate


class NotPassed15DaysError(LeaseRegistryError):
    """
    The cooling-off period after a termination request has not elapsed.

    The name follows the observable error of the registry; the actual period
    comes from ``LeasePolicy.cooling_off_period``.
    """

    code: str = "NOT_PASSED_15_DAYS"

    def __init__(self, property_index: int, requested_at: datetime, available_at: datetime):
        self.property_index = property_index
        self.requested_at = requested_at
        self.available_at = available_at
        super().__init__(
            f"Termination of property {property_index} can be confirmed "
            f"from {available_at.isoformat()}"
        )


# Activity log


class ActivityChainBrokenError(LeaseRegistryError):
    """Activity log hash chain validation failed."""

    code: str = "ACTIVITY_CHAIN_BROKEN"

    def __init__(self, seq: int, expected_hash: str, actual_hash: str):
        self.seq = seq
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Activity chain broken at seq {seq}: "
            f"expected {expected_hash}, got {actual_hash}"
        )
