"""
Tests for property registration and unlisting.

Covers:
- Sequential 0-based indices, never reused
- Caller becomes owner; duplicate addresses are distinct properties
- Unlisting: owner only, unknown index, lease untouched
- Activity and log events for each change
"""

import pytest

from lease_registry.domain.dtos import ActivityAction, LeaseInfo, PropertyType
from lease_registry.exceptions import PropertyNotFoundError, UnauthorizedError


class TestAddProperty:
    """Registration of new properties."""

    def test_first_index_is_zero(self, registry, owner):
        assert registry.add_property(owner, "1 Main St", PropertyType.HOUSE, "Alice") == 0

    def test_indices_are_sequential(self, registry, owner, tenant):
        indices = [
            registry.add_property(owner, "1 Main St", PropertyType.HOUSE, "Alice"),
            registry.add_property(tenant, "2 Side St", PropertyType.SHOP, "Bob"),
            registry.add_property(owner, "3 High St", PropertyType.SHOP, "Alice"),
        ]
        assert indices == [0, 1, 2]

    def test_caller_becomes_owner(self, registry, owner):
        index = registry.add_property(owner, "1 Main St", PropertyType.SHOP, "Alice")

        info = registry.get_property_info(index)
        assert info.owner == owner
        assert info.owner_name == "Alice"
        assert info.property_type == PropertyType.SHOP
        assert info.is_listed is True
        assert info.lease == LeaseInfo()

    def test_property_type_accepts_value_string(self, registry, owner):
        index = registry.add_property(owner, "1 Main St", "house", "Alice")
        assert registry.get_property_info(index).property_type == PropertyType.HOUSE

    def test_unknown_property_type_rejected(self, registry, owner):
        with pytest.raises(ValueError):
            registry.add_property(owner, "1 Main St", "castle", "Alice")
        assert registry.get_all_properties() == []

    def test_duplicate_address_is_a_new_property(self, registry, owner, tenant):
        first = registry.add_property(owner, "1 Main St", PropertyType.HOUSE, "Alice")
        second = registry.add_property(tenant, "1 Main St", PropertyType.HOUSE, "Bob")

        assert first != second
        assert registry.get_property_info(second).owner == tenant

    def test_records_activity(self, registry, owner):
        index = registry.add_property(owner, "1 Main St", PropertyType.HOUSE, "Alice")

        event = registry.get_activity(property_index=index)[-1]
        assert event.action == ActivityAction.PROPERTY_ADDED
        assert event.actor == owner
        assert event.payload == {
            "address": "1 Main St",
            "owner_name": "Alice",
            "property_type": "house",
        }

    def test_logs_property_added(self, registry, owner, captured_logs):
        registry.add_property(owner, "1 Main St", PropertyType.HOUSE, "Alice")

        added = [r for r in captured_logs() if r["message"] == "property_added"]
        assert len(added) == 1
        assert added[0]["operation"] == "add_property"
        assert added[0]["actor"] == owner
        assert added[0]["property_type"] == "house"


class TestUnlistProperty:
    """Soft deletion of a property."""

    def test_owner_unlists(self, registry, owner, property_index):
        info = registry.unlist_property(owner, property_index)

        assert info.is_listed is False
        assert registry.get_property_info(property_index).is_listed is False

    def test_index_survives_unlisting(self, registry, owner, property_index):
        registry.unlist_property(owner, property_index)
        next_index = registry.add_property(owner, "2 Side St", PropertyType.HOUSE, "Alice")

        assert next_index == property_index + 1
        assert registry.get_property_info(property_index).address == "1 Main St"

    @pytest.mark.parametrize("who", ["tenant", "manager", "deployer", "stranger"])
    def test_only_owner_may_unlist(self, request, registry, property_index, who):
        caller = request.getfixturevalue(who)
        with pytest.raises(UnauthorizedError) as exc_info:
            registry.unlist_property(caller, property_index)

        assert exc_info.value.property_index == property_index
        assert registry.get_property_info(property_index).is_listed is True

    @pytest.mark.parametrize("index", [1, 99, -1, 2**63, 2**64 - 1])
    def test_unknown_index(self, registry, owner, property_index, index):
        with pytest.raises(PropertyNotFoundError):
            registry.unlist_property(owner, index)

    def test_index_beyond_column_range_on_every_lookup(
        self, registry, owner, tenant, manager, property_index
    ):
        index = 2**63
        with pytest.raises(PropertyNotFoundError):
            registry.start_lease(owner, index, tenant, "Bob", 1)
        with pytest.raises(PropertyNotFoundError):
            registry.lease_state(index)
        with pytest.raises(PropertyNotFoundError):
            registry.review_complaint(manager, index, tenant, True)
        assert registry.get_activity(property_index=index) == []

    def test_lease_untouched(self, registry, owner, tenant, active_lease):
        before = registry.get_property_info(active_lease).lease
        registry.unlist_property(owner, active_lease)

        after = registry.get_property_info(active_lease).lease
        assert after == before
        assert after.tenant == tenant and after.is_active

    def test_records_activity(self, registry, owner, property_index):
        registry.unlist_property(owner, property_index)

        event = registry.get_activity(property_index=property_index)[-1]
        assert event.action == ActivityAction.PROPERTY_UNLISTED
        assert event.actor == owner
