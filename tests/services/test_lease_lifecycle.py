"""
Tests for the lease lifecycle: offer, signature and end.

Covers:
- start_lease: owner only, terms validation, offer window
- sign_lease: offered tenant only, deadline (inclusive), re-anchoring
- end_lease: unsigned offers, expired leases, refused on a running lease
- Zeroing of every lease field on end
"""

from datetime import timedelta

import pytest

from lease_registry.domain.dtos import ActivityAction, LeaseInfo, LeaseState
from lease_registry.exceptions import (
    InvalidLeaseTermsError,
    LeaseAlreadyActiveError,
    LeaseNotEndableError,
    NoActiveLeaseError,
    NoPendingOfferError,
    OfferExpiredError,
    PropertyNotFoundError,
    UnauthorizedError,
)


class TestStartLease:
    """Offering a lease."""

    def test_offer_fields(self, registry, deterministic_clock, owner, tenant, property_index):
        now = deterministic_clock.now()
        lease = registry.start_lease(owner, property_index, tenant, "Bob", 3)

        assert lease.tenant == tenant
        assert lease.tenant_name == "Bob"
        assert lease.duration == 3
        assert lease.is_active is False
        assert lease.start_date == now
        assert lease.end_date - lease.start_date == timedelta(days=4)
        assert registry.lease_state(property_index) == LeaseState.OFFERED

    def test_offer_is_persisted(self, registry, owner, tenant, property_index):
        lease = registry.start_lease(owner, property_index, tenant, "Bob", 1)
        assert registry.get_property_info(property_index).lease == lease

    @pytest.mark.parametrize("who", ["tenant", "manager", "stranger"])
    def test_only_owner_may_offer(self, request, registry, tenant, property_index, who):
        with pytest.raises(UnauthorizedError):
            registry.start_lease(request.getfixturevalue(who), property_index, tenant, "Bob", 1)
        assert registry.lease_state(property_index) == LeaseState.UNLEASED

    def test_unknown_property(self, registry, owner, tenant):
        with pytest.raises(PropertyNotFoundError):
            registry.start_lease(owner, 0, tenant, "Bob", 1)

    def test_open_offer_blocks_new_offer(self, registry, owner, stranger, offered_lease):
        with pytest.raises(LeaseAlreadyActiveError) as exc_info:
            registry.start_lease(owner, offered_lease, stranger, "Mallory", 1)
        assert exc_info.value.state == "offered"

    def test_active_lease_blocks_new_offer(self, registry, owner, stranger, active_lease):
        with pytest.raises(LeaseAlreadyActiveError):
            registry.start_lease(owner, active_lease, stranger, "Mallory", 1)

    def test_expired_lease_blocks_new_offer(
        self, registry, deterministic_clock, owner, stranger, active_lease
    ):
        deterministic_clock.advance(days=3 * 364)
        assert registry.lease_state(active_lease) == LeaseState.EXPIRED
        with pytest.raises(LeaseAlreadyActiveError):
            registry.start_lease(owner, active_lease, stranger, "Mallory", 1)

    def test_expired_offer_can_be_replaced(
        self, registry, deterministic_clock, owner, stranger, offered_lease
    ):
        deterministic_clock.advance(days=3, seconds=1)
        assert registry.lease_state(offered_lease) == LeaseState.OFFER_EXPIRED

        lease = registry.start_lease(owner, offered_lease, stranger, "Mallory", 1)
        assert lease.tenant == stranger
        assert registry.lease_state(offered_lease) == LeaseState.OFFERED

    @pytest.mark.parametrize("duration", [0, -1, True, 1.5])
    def test_invalid_duration(self, registry, owner, tenant, property_index, duration):
        with pytest.raises(InvalidLeaseTermsError):
            registry.start_lease(owner, property_index, tenant, "Bob", duration)

    @pytest.mark.parametrize("duration", [10_000, 2**32 - 1])
    def test_duration_past_calendar_rejected(self, registry, owner, tenant, property_index, duration):
        """A term that could never be signed is refused when offered."""
        with pytest.raises(InvalidLeaseTermsError):
            registry.start_lease(owner, property_index, tenant, "Bob", duration)

        assert registry.lease_state(property_index) == LeaseState.UNLEASED
        assert registry.get_activity(property_index=property_index)[-1].action == (
            ActivityAction.PROPERTY_ADDED
        )

    def test_long_duration_within_calendar_signs(
        self, registry, deterministic_clock, owner, tenant, property_index
    ):
        registry.start_lease(owner, property_index, tenant, "Bob", 5_000)
        sign_time = deterministic_clock.advance(days=5_001)

        lease = registry.sign_lease(tenant, property_index)
        assert lease.end_date - sign_time == 5_000 * timedelta(weeks=52)

    def test_zero_tenant(self, registry, owner, property_index):
        with pytest.raises(InvalidLeaseTermsError):
            registry.start_lease(owner, property_index, "", "Nobody", 1)

    def test_owner_cannot_be_tenant(self, registry, owner, property_index):
        with pytest.raises(InvalidLeaseTermsError):
            registry.start_lease(owner, property_index, owner, "Alice", 1)

    def test_records_activity(self, registry, owner, tenant, offered_lease):
        event = registry.get_activity(property_index=offered_lease)[-1]
        assert event.action == ActivityAction.LEASE_OFFERED
        assert event.payload["tenant"] == tenant
        assert event.payload["duration"] == 2


class TestSignLease:
    """Accepting an offer."""

    def test_sign_reanchors_term(self, registry, deterministic_clock, tenant, offered_lease):
        sign_time = deterministic_clock.advance(days=1)
        lease = registry.sign_lease(tenant, offered_lease)

        assert lease.is_active is True
        assert lease.start_date == sign_time
        assert lease.end_date - sign_time == timedelta(weeks=2 * 52)
        assert registry.lease_state(offered_lease) == LeaseState.ACTIVE

    def test_sign_at_deadline_accepted(self, registry, deterministic_clock, tenant, offered_lease):
        deadline = registry.get_property_info(offered_lease).lease.end_date
        deterministic_clock.set_time(deadline)

        assert registry.sign_lease(tenant, offered_lease).is_active

    def test_sign_after_deadline_rejected(
        self, registry, deterministic_clock, tenant, offered_lease
    ):
        deadline = registry.get_property_info(offered_lease).lease.end_date
        deterministic_clock.set_time(deadline + timedelta(seconds=1))

        with pytest.raises(OfferExpiredError) as exc_info:
            registry.sign_lease(tenant, offered_lease)
        assert exc_info.value.deadline == deadline
        assert registry.get_property_info(offered_lease).lease.is_active is False

    @pytest.mark.parametrize("who", ["owner", "manager", "stranger"])
    def test_only_offered_tenant_may_sign(self, request, registry, offered_lease, who):
        with pytest.raises(UnauthorizedError):
            registry.sign_lease(request.getfixturevalue(who), offered_lease)

    def test_no_offer(self, registry, owner, property_index):
        # nobody is tenant of record, so the access check fails first
        with pytest.raises(UnauthorizedError):
            registry.sign_lease(owner, property_index)

    def test_already_signed(self, registry, tenant, active_lease):
        with pytest.raises(NoPendingOfferError) as exc_info:
            registry.sign_lease(tenant, active_lease)
        assert exc_info.value.state == "active"

    def test_records_activity(self, registry, tenant, active_lease):
        event = registry.get_activity(property_index=active_lease)[-1]
        assert event.action == ActivityAction.LEASE_SIGNED
        assert event.actor == tenant


class TestEndLease:
    """Clearing a lease outside the termination workflow."""

    def test_owner_withdraws_offer(self, registry, owner, offered_lease):
        lease = registry.end_lease(owner, offered_lease)

        assert lease == LeaseInfo()
        assert registry.get_property_info(offered_lease).lease == LeaseInfo()
        assert registry.lease_state(offered_lease) == LeaseState.UNLEASED

    def test_manager_clears_expired_offer(
        self, registry, deterministic_clock, manager, offered_lease
    ):
        deterministic_clock.advance(days=10)
        assert registry.end_lease(manager, offered_lease).is_empty

    def test_expired_lease_is_zeroed(self, registry, deterministic_clock, owner, active_lease):
        deterministic_clock.advance(days=2 * 364 + 1)
        registry.end_lease(owner, active_lease)

        lease = registry.get_property_info(active_lease).lease
        assert lease.tenant == ""
        assert lease.tenant_name == ""
        assert lease.start_date is None
        assert lease.end_date is None
        assert lease.is_active is False
        assert lease.duration == 0
        assert lease.termination_requester == ""
        assert lease.termination_reason == ""
        assert lease.termination_request_time is None

    def test_running_lease_not_endable(self, registry, owner, active_lease):
        with pytest.raises(LeaseNotEndableError):
            registry.end_lease(owner, active_lease)
        assert registry.lease_state(active_lease) == LeaseState.ACTIVE

    def test_running_lease_at_end_date_not_endable(
        self, registry, deterministic_clock, owner, active_lease
    ):
        end = registry.get_property_info(active_lease).lease.end_date
        deterministic_clock.set_time(end)
        with pytest.raises(LeaseNotEndableError):
            registry.end_lease(owner, active_lease)

    def test_nothing_to_end(self, registry, owner, property_index):
        with pytest.raises(NoActiveLeaseError):
            registry.end_lease(owner, property_index)

    @pytest.mark.parametrize("who", ["tenant", "stranger"])
    def test_tenant_and_stranger_may_not_end(self, request, registry, offered_lease, who):
        with pytest.raises(UnauthorizedError):
            registry.end_lease(request.getfixturevalue(who), offered_lease)

    def test_property_can_be_leased_again(
        self, registry, deterministic_clock, owner, stranger, active_lease
    ):
        deterministic_clock.advance(days=3 * 364)
        registry.end_lease(owner, active_lease)

        lease = registry.start_lease(owner, active_lease, stranger, "Mallory", 1)
        assert lease.tenant == stranger

    def test_records_activity(self, registry, owner, tenant, offered_lease):
        registry.end_lease(owner, offered_lease)

        event = registry.get_activity(property_index=offered_lease)[-1]
        assert event.action == ActivityAction.LEASE_ENDED
        assert event.payload == {"tenant": tenant, "state": "offered"}
