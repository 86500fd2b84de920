"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing numbers for property indices and activity
    log sequence numbers.  A dedicated counter table is the only source of
    truth; the aggregate-max-plus-one pattern is never used, so an index
    cannot be handed out twice even if the highest row were ever removed.

Invariants enforced:
    - Monotonicity: each call returns a value greater than every value
      previously returned for the same sequence name.
    - Transactional: the increment is only visible after the caller's
      transaction commits.  Rollback returns the value.

Failure modes:
    - IntegrityError if two writers create the same counter concurrently.
      Counters are created up front by ``initialize_sequences`` and the
      registry serializes writers, so this only happens when two
      registries share one database without calling it.
"""

from sqlalchemy import BigInteger, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from lease_registry.db.base import Base
from lease_registry.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.

    Usage:
        seq = sequence_service.next_value(SequenceService.ACTIVITY_EVENT)
    """

    PROPERTY_INDEX = "property_index"
    ACTIVITY_EVENT = "activity_event"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Postconditions:
            - Returns an integer > 0 strictly greater than any value
              previously returned for this sequence name.
            - On PostgreSQL the counter row stays locked until the
              transaction completes.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            counter = SequenceCounter(name=sequence_name, current_value=0)
            self._session.add(counter)

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence without incrementing, or None."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()

        return counter.current_value if counter else None

    def initialize_sequences(self) -> None:
        """Create the well-known counters if they do not exist yet."""
        for name in (self.PROPERTY_INDEX, self.ACTIVITY_EVENT):
            if self.current_value(name) is None:
                self._session.add(SequenceCounter(name=name, current_value=0))

        self._session.flush()
