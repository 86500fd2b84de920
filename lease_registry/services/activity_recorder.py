"""
ActivityRecorder -- append-only, hash-chained activity log.

Responsibility:
    Writes one ``ActivityEvent`` per successful state change (property
    added, lease signed, complaint reviewed, ...) and validates the chain.
    The log is the observable history of the registry: what a contract
    would emit as events.

Invariants enforced:
    - Sequence numbers come from ``SequenceService``, never from max+1.
    - ``hash = H(action | property_index | actor | payload_hash | prev_hash)``
      so any edit to a stored row is detectable by ``validate_chain()``.
    - Rows are only ever inserted.

Failure modes:
    - ActivityChainBrokenError from ``validate_chain()`` on a hash mismatch.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from lease_registry.domain.clock import Clock
from lease_registry.domain.dtos import ActivityAction, ActivityRecord, Identity
from lease_registry.exceptions import ActivityChainBrokenError
from lease_registry.logging_config import get_logger
from lease_registry.models.activity_event import ActivityEvent
from lease_registry.models.property import MAX_PROPERTY_INDEX
from lease_registry.services.base import BaseService
from lease_registry.services.sequence_service import SequenceService
from lease_registry.utils.hashing import hash_activity_event, hash_payload, to_json_safe

logger = get_logger("services.activity")


class ActivityRecorder(BaseService[ActivityEvent]):
    """
    Creates and validates activity log entries.

    Non-goals:
        - Does NOT call ``session.commit()`` -- the event becomes visible
          together with the change it describes, or not at all.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._sequence_service = SequenceService(session)

    def _last_hash(self) -> str | None:
        last_event = self.session.execute(
            select(ActivityEvent).order_by(ActivityEvent.seq.desc()).limit(1)
        ).scalar_one_or_none()

        return last_event.hash if last_event else None

    def record(
        self,
        action: ActivityAction,
        actor: Identity,
        property_index: int | None = None,
        **payload: Any,
    ) -> ActivityRecord:
        """
        Append an event to the log.

        Args:
            action: What happened.
            actor: Identity whose call caused it.
            property_index: Property concerned, if any.
            **payload: Context stored with the event (JSON-safe after
                canonicalization: datetimes become ISO strings, enums their
                values).

        Returns:
            The created ActivityRecord.
        """
        seq = self._sequence_service.next_value(SequenceService.ACTIVITY_EVENT)
        prev_hash = self._last_hash()

        payload_data = to_json_safe(payload)
        payload_hash = hash_payload(payload_data)
        event_hash = hash_activity_event(
            action=action.value,
            property_index=property_index,
            actor=actor,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
        )

        event = ActivityEvent(
            seq=seq,
            action=action.value,
            actor=actor,
            property_index=property_index,
            occurred_at=self.clock.now(),
            payload=payload_data,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
            hash=event_hash,
        )
        self.session.add(event)
        self.session.flush()

        logger.debug(
            "activity_recorded",
            extra={"action": action.value, "seq": seq, "property_index": property_index},
        )
        return event.to_dto()

    def list_events(
        self,
        property_index: int | None = None,
        limit: int = 100,
    ) -> list[ActivityRecord]:
        """Most recent ``limit`` events in sequence order, optionally per property."""
        stmt = select(ActivityEvent)
        if property_index is not None:
            if not 0 <= property_index <= MAX_PROPERTY_INDEX:
                return []
            stmt = stmt.where(ActivityEvent.property_index == property_index)
        stmt = stmt.order_by(ActivityEvent.seq.desc()).limit(limit)

        events = self.session.execute(stmt).scalars().all()
        return [e.to_dto() for e in reversed(events)]

    def validate_chain(self) -> bool:
        """
        Recompute every hash and link of the log.

        Returns:
            True if the chain is intact.

        Raises:
            ActivityChainBrokenError: At the first event whose stored hash or
                previous-hash link does not match.
        """
        events = self.session.execute(
            select(ActivityEvent).order_by(ActivityEvent.seq)
        ).scalars().all()

        prev_hash: str | None = None
        for event in events:
            if event.prev_hash != prev_hash:
                raise ActivityChainBrokenError(
                    event.seq, prev_hash or "", event.prev_hash or ""
                )

            payload_hash = hash_payload(event.payload or {})
            expected = hash_activity_event(
                action=event.action,
                property_index=event.property_index,
                actor=event.actor,
                payload_hash=payload_hash,
                prev_hash=event.prev_hash,
            )
            if expected != event.hash:
                raise ActivityChainBrokenError(event.seq, expected, event.hash)

            prev_hash = event.hash

        logger.info("activity_chain_validated", extra={"event_count": len(events)})
        return True
