"""
Module: lease_registry.models.property
Responsibility: ORM persistence for registered properties and the lease
    embedded in each of them.
Architecture position: Registry > Models.  May import from db/ and domain/dtos
    only.  MUST NOT import from services/, selectors/, or the facade.

Invariants enforced:
    - property_index is unique and assigned once (uq_property_index); rows are
      never deleted, so an index is never reused.
    - The lease lives in ``lease_*`` / ``termination_*`` columns of the same
      row (1:1, no separate table).  ``reset_lease()`` is the only way the
      lease returns to its zero state, and it clears every one of them.

Failure modes:
    - IntegrityError on a duplicate property_index.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lease_registry.db.base import TrackedBase
from lease_registry.db.types import UTCDateTime
from lease_registry.domain.dtos import (
    ZERO_IDENTITY,
    LeaseInfo,
    PropertyInfo,
    PropertyType,
)

# Largest value a BIGINT property_index column can hold
MAX_PROPERTY_INDEX = 2**63 - 1


class PropertyModel(TrackedBase):
    """
    A registered property.

    Guarantees:
        - property_index is 0-based, sequential and immutable.
        - owner is the identity that registered the property.
        - is_listed only ever goes from True to False (soft delete).
    """

    __tablename__ = "properties"

    __table_args__ = (
        UniqueConstraint("property_index", name="uq_property_index"),
        Index("idx_property_owner", "owner"),
        Index("idx_property_address", "address"),
        Index("idx_property_tenant", "lease_tenant"),
    )

    property_index: Mapped[int] = mapped_column(BigInteger, nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    property_type: Mapped[str] = mapped_column(String(20), nullable=False)
    owner_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_listed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Embedded lease
    lease_tenant: Mapped[str] = mapped_column(
        String(255), nullable=False, default=ZERO_IDENTITY
    )
    lease_tenant_name: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    lease_start_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    lease_end_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    lease_is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    lease_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Pending termination request
    termination_requester: Mapped[str] = mapped_column(
        String(255), nullable=False, default=ZERO_IDENTITY
    )
    termination_reason: Mapped[str] = mapped_column(
        String(4000), nullable=False, default=""
    )
    termination_request_time: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )

    def lease_info(self) -> LeaseInfo:
        return LeaseInfo(
            tenant=self.lease_tenant or ZERO_IDENTITY,
            tenant_name=self.lease_tenant_name or "",
            start_date=self.lease_start_date,
            end_date=self.lease_end_date,
            is_active=bool(self.lease_is_active),
            duration=self.lease_duration or 0,
            termination_requester=self.termination_requester or ZERO_IDENTITY,
            termination_reason=self.termination_reason or "",
            termination_request_time=self.termination_request_time,
        )

    def to_dto(self) -> PropertyInfo:
        return PropertyInfo(
            index=self.property_index,
            address=self.address,
            owner=self.owner,
            property_type=PropertyType(self.property_type),
            owner_name=self.owner_name,
            is_listed=bool(self.is_listed),
            lease=self.lease_info(),
        )

    def clear_termination(self) -> None:
        self.termination_requester = ZERO_IDENTITY
        self.termination_reason = ""
        self.termination_request_time = None

    def reset_lease(self) -> None:
        """Return the embedded lease to its zero state."""
        self.lease_tenant = ZERO_IDENTITY
        self.lease_tenant_name = ""
        self.lease_start_date = None
        self.lease_end_date = None
        self.lease_is_active = False
        self.lease_duration = 0
        self.clear_termination()

    def __repr__(self) -> str:
        return f"<Property {self.property_index}: {self.address} ({self.owner})>"
