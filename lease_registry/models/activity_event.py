"""
Module: lease_registry.models.activity_event
Responsibility: ORM persistence for the hash-chained activity log.
Architecture position: Registry > Models.  May import from db/ and domain/dtos.

Invariants enforced:
    - Append-only: rows are written by ActivityRecorder and never updated.
    - seq is monotonically increasing, allocated by SequenceService.
    - hash = H(action | property_index | actor | payload_hash | prev_hash),
      validated by ActivityRecorder.validate_chain().

Audit relevance:
    ActivityEvent is the observable history of the registry -- the
    equivalent of the events a contract emits.  Every successful mutating
    operation writes exactly one row in the same transaction as the change.
"""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from lease_registry.db.base import Base
from lease_registry.db.types import UTCDateTime
from lease_registry.domain.dtos import ActivityAction, ActivityRecord


class ActivityEvent(Base):
    """
    One activity log entry.

    Guarantees:
        - seq is globally unique and monotonically increasing.
        - prev_hash is None only for the genesis event.
    """

    __tablename__ = "activity_events"

    __table_args__ = (
        Index("idx_activity_property", "property_index"),
        Index("idx_activity_action", "action"),
        Index("idx_activity_seq", "seq"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    property_index: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)

    @property
    def is_genesis(self) -> bool:
        return self.prev_hash is None

    def to_dto(self) -> ActivityRecord:
        return ActivityRecord(
            seq=self.seq,
            action=ActivityAction(self.action),
            actor=self.actor,
            property_index=self.property_index,
            occurred_at=self.occurred_at,
            payload=dict(self.payload or {}),
            payload_hash=self.payload_hash,
            prev_hash=self.prev_hash,
            hash=self.hash,
        )

    def __repr__(self) -> str:
        return f"<ActivityEvent {self.seq}: {self.action} by {self.actor}>"
