"""
PropertySelector -- read-only projections of properties and complaints.

Every list is returned in registration order (ascending property index).
"""

from sqlalchemy import select

from lease_registry.domain.dtos import ComplaintInfo, Identity, PropertyInfo
from lease_registry.exceptions import PropertyNotFoundError
from lease_registry.models.complaint import ComplaintModel
from lease_registry.models.property import MAX_PROPERTY_INDEX, PropertyModel
from lease_registry.selectors.base import BaseSelector


class PropertySelector(BaseSelector[PropertyModel]):
    """Queries over registered properties."""

    def _ordered(self):
        return select(PropertyModel).order_by(PropertyModel.property_index)

    def get_all_properties(self) -> list[PropertyInfo]:
        rows = self.session.execute(self._ordered()).scalars().all()
        return [p.to_dto() for p in rows]

    def get_owner_properties(self, owner: Identity) -> list[PropertyInfo]:
        """Properties registered by ``owner``, listed or not."""
        rows = self.session.execute(
            self._ordered().where(PropertyModel.owner == owner)
        ).scalars().all()
        return [p.to_dto() for p in rows]

    def get_listed_properties(self) -> list[PropertyInfo]:
        rows = self.session.execute(
            self._ordered().where(PropertyModel.is_listed.is_(True))
        ).scalars().all()
        return [p.to_dto() for p in rows]

    def get_property_info(self, key: int | str) -> PropertyInfo:
        """
        Look a property up by index, or by address.

        An address may be registered several times; the earliest
        registration wins.

        Raises:
            PropertyNotFoundError: No property matches ``key``.
        """
        if isinstance(key, bool):
            raise PropertyNotFoundError(key)

        if isinstance(key, int):
            if not 0 <= key <= MAX_PROPERTY_INDEX:
                raise PropertyNotFoundError(key)
            stmt = select(PropertyModel).where(PropertyModel.property_index == key)
        elif isinstance(key, str):
            stmt = self._ordered().where(PropertyModel.address == key).limit(1)
        else:
            raise PropertyNotFoundError(key)

        prop = self.session.execute(stmt).scalars().first()
        if prop is None:
            raise PropertyNotFoundError(key)
        return prop.to_dto()

    def get_complaint(self, accused: Identity) -> ComplaintInfo | None:
        """The complaint slot of ``accused``, or None if it was never filled."""
        slot = self.session.execute(
            select(ComplaintModel).where(ComplaintModel.accused == accused)
        ).scalar_one_or_none()
        return slot.to_dto() if slot else None
