"""
Lease term calculations (``lease_registry.domain.lease_terms``).

Pure functions over ``LeaseInfo`` and a ``LeasePolicy``: where a lease is
in its lifecycle at a given instant, when an offer's signing window closes,
when a signed lease ends, and when a termination request may be confirmed.
ZERO I/O; the current time is always passed in.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from lease_registry.domain.dtos import ZERO_IDENTITY, LeaseInfo, LeaseState

if TYPE_CHECKING:
    from lease_registry.config import LeasePolicy


def offer_deadline(offered_at: datetime, duration: int, policy: LeasePolicy) -> datetime:
    """Last instant at which the tenant may sign an offer."""
    return offered_at + (duration + policy.signing_grace_units) * policy.signing_unit


def lease_end(signed_at: datetime, duration: int, policy: LeasePolicy) -> datetime:
    """End of a lease signed at ``signed_at``; the term runs from signing."""
    return signed_at + duration * policy.term_unit


def latest_lease_end(offered_at: datetime, duration: int, policy: LeasePolicy) -> datetime:
    """End of the lease if the offer is signed at the last possible instant.

    Raises:
        OverflowError: The date falls outside the ``datetime`` range.
    """
    return lease_end(offer_deadline(offered_at, duration, policy), duration, policy)


def lease_state(lease: LeaseInfo, now: datetime) -> LeaseState:
    """Classify the lease at ``now``."""
    if lease.tenant == ZERO_IDENTITY:
        return LeaseState.UNLEASED

    expired = lease.end_date is not None and now > lease.end_date
    if lease.is_active:
        return LeaseState.EXPIRED if expired else LeaseState.ACTIVE
    return LeaseState.OFFER_EXPIRED if expired else LeaseState.OFFERED


def cooling_off_ends(requested_at: datetime, policy: LeasePolicy) -> datetime:
    """First instant at which a manager may confirm a termination."""
    return requested_at + policy.cooling_off_period


def cooling_off_elapsed(requested_at: datetime, now: datetime, policy: LeasePolicy) -> bool:
    return now - requested_at >= policy.cooling_off_period
