"""
Module: lease_registry.models.complaint
Responsibility: ORM persistence for complaint slots.

There is exactly one slot per accused identity (uq_complaint_accused).  A
new complaint against the same identity overwrites the row in place, which
discards any earlier, possibly unreviewed, complaint.
"""

from sqlalchemy import BigInteger, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lease_registry.db.base import TrackedBase
from lease_registry.domain.dtos import ComplaintInfo, ConfirmationType


class ComplaintModel(TrackedBase):
    """The complaint slot of one accused identity."""

    __tablename__ = "complaints"

    __table_args__ = (
        UniqueConstraint("accused", name="uq_complaint_accused"),
        Index("idx_complaint_property", "property_index"),
    )

    accused: Mapped[str] = mapped_column(String(255), nullable=False)
    complainant: Mapped[str] = mapped_column(String(255), nullable=False)
    property_index: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(String(4000), nullable=False)
    confirmation: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ConfirmationType.NONE.value,
    )

    def to_dto(self) -> ComplaintInfo:
        return ComplaintInfo(
            complainant=self.complainant,
            accused=self.accused,
            property_index=self.property_index,
            description=self.description,
            confirmation=ConfirmationType(self.confirmation),
        )

    def __repr__(self) -> str:
        return f"<Complaint against {self.accused} on {self.property_index}: {self.confirmation}>"
