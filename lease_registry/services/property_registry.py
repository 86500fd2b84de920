"""
Property registry service (write side).

Registers properties under the calling identity and soft-deletes them by
unlisting.  Indices come from the ``property_index`` sequence: 0-based,
gap-free under normal operation, and never reused because rows are never
deleted.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from lease_registry.domain.clock import Clock
from lease_registry.domain.dtos import ActivityAction, Identity, PropertyInfo, PropertyType
from lease_registry.exceptions import PropertyNotFoundError
from lease_registry.logging_config import get_logger
from lease_registry.models.property import MAX_PROPERTY_INDEX, PropertyModel
from lease_registry.services.access import AccessGate
from lease_registry.services.activity_recorder import ActivityRecorder
from lease_registry.services.base import BaseService
from lease_registry.services.sequence_service import SequenceService

logger = get_logger("services.property_registry")


def load_property(session: Session, index: int) -> PropertyModel:
    """Load a property row for update, raising if the index is unknown.

    Indices outside the column range cannot exist and are rejected before
    they reach the driver.
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise PropertyNotFoundError(index)
    if not 0 <= index <= MAX_PROPERTY_INDEX:
        raise PropertyNotFoundError(index)

    prop = session.execute(
        select(PropertyModel)
        .where(PropertyModel.property_index == index)
        .with_for_update()
    ).scalar_one_or_none()
    if prop is None:
        raise PropertyNotFoundError(index)
    return prop


class PropertyRegistryService(BaseService[PropertyModel]):
    """Adds and unlists properties."""

    def __init__(
        self,
        session: Session,
        gate: AccessGate,
        recorder: ActivityRecorder,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._gate = gate
        self._recorder = recorder
        self._sequences = SequenceService(session)

    def add_property(
        self,
        caller: Identity,
        address: str,
        property_type: PropertyType | str,
        owner_name: str,
    ) -> int:
        """
        Register a property owned by ``caller``.

        The same address may be registered any number of times, by the same
        or different callers; each registration is a distinct property.

        Returns:
            The assigned index.

        Raises:
            ValueError: If ``property_type`` is not a PropertyType value.
        """
        property_type = PropertyType(property_type)
        index = self._sequences.next_value(SequenceService.PROPERTY_INDEX) - 1

        prop = PropertyModel(
            property_index=index,
            address=address,
            owner=caller,
            property_type=property_type.value,
            owner_name=owner_name,
            is_listed=True,
            created_by=caller,
        )
        prop.reset_lease()
        self.session.add(prop)
        self.session.flush()

        self._recorder.record(
            ActivityAction.PROPERTY_ADDED,
            caller,
            index,
            address=address,
            property_type=property_type,
            owner_name=owner_name,
        )
        logger.info(
            "property_added",
            extra={"property_index": index, "owner": caller, "property_type": property_type},
        )
        return index

    def unlist_property(self, caller: Identity, index: int) -> PropertyInfo:
        """
        Mark a property as no longer listed.  Any lease in progress is
        left untouched.

        Raises:
            PropertyNotFoundError: Unknown index.
            UnauthorizedError: Caller is not the owner.
        """
        prop = load_property(self.session, index)
        self._gate.require_owner_of(prop, caller)

        prop.is_listed = False
        prop.updated_by = caller
        self.session.flush()

        self._recorder.record(ActivityAction.PROPERTY_UNLISTED, caller, index)
        logger.info("property_unlisted", extra={"property_index": index})
        return prop.to_dto()
