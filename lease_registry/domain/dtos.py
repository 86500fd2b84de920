"""
Domain DTOs (``lease_registry.domain.dtos``).

Responsibility
--------------
Frozen value objects returned by services and selectors: properties with
their embedded lease, complaints, and activity records, plus the enums that
classify them.  Callers never receive ORM instances.

Architecture position
---------------------
**Registry domain layer** -- pure data definitions with ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# An identity is an opaque string supplied by the execution environment.
Identity = str

ZERO_IDENTITY: Identity = ""


class PropertyType(str, Enum):
    """Kind of real estate registered."""

    HOUSE = "house"
    SHOP = "shop"


class ConfirmationType(str, Enum):
    """Manager verdict on a complaint."""

    NONE = "none"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class Role(str, Enum):
    """Registry-wide roles held in the role store."""

    OWNER = "owner"
    MANAGER = "manager"


class LeaseState(str, Enum):
    """Lifecycle state of the lease embedded in a property.

    ``UNLEASED`` also covers a lease that has ended: ending resets every
    field, so the two are indistinguishable.
    """

    UNLEASED = "unleased"
    OFFERED = "offered"
    OFFER_EXPIRED = "offer_expired"
    ACTIVE = "active"
    EXPIRED = "expired"


class ActivityAction(str, Enum):
    """Kinds of state change written to the activity log."""

    REGISTRY_INITIALIZED = "registry_initialized"
    PROPERTY_ADDED = "property_added"
    PROPERTY_UNLISTED = "property_unlisted"
    LEASE_OFFERED = "lease_offered"
    LEASE_SIGNED = "lease_signed"
    LEASE_ENDED = "lease_ended"
    TERMINATION_REQUESTED = "termination_requested"
    TERMINATION_CONFIRMED = "termination_confirmed"
    COMPLAINT_SUBMITTED = "complaint_submitted"
    COMPLAINT_REVIEWED = "complaint_reviewed"
    MANAGER_ADDED = "manager_added"
    MANAGER_REMOVED = "manager_removed"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    POLICY_CONFIGURED = "policy_configured"


@dataclass(frozen=True)
class LeaseInfo:
    """Lease terms embedded 1:1 in a property.

    All fields at their zero values means no lease.
    """

    tenant: Identity = ZERO_IDENTITY
    tenant_name: str = ""
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool = False
    duration: int = 0
    termination_requester: Identity = ZERO_IDENTITY
    termination_reason: str = ""
    termination_request_time: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return self == LeaseInfo()

    @property
    def has_pending_termination(self) -> bool:
        return self.termination_requester != ZERO_IDENTITY


@dataclass(frozen=True)
class PropertyInfo:
    """A registered property and its current lease."""

    index: int
    address: str
    owner: Identity
    property_type: PropertyType
    owner_name: str
    is_listed: bool
    lease: LeaseInfo = field(default_factory=LeaseInfo)


@dataclass(frozen=True)
class ComplaintInfo:
    """The complaint slot of one accused identity."""

    complainant: Identity
    accused: Identity
    property_index: int
    description: str
    confirmation: ConfirmationType = ConfirmationType.NONE


@dataclass(frozen=True)
class ActivityRecord:
    """One entry of the hash-chained activity log."""

    seq: int
    action: ActivityAction
    actor: Identity
    property_index: int | None
    occurred_at: datetime
    payload: dict[str, Any]
    payload_hash: str
    prev_hash: str | None
    hash: str
