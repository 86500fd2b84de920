"""
Module: lease_registry.models.role
Responsibility: ORM persistence for registry-wide role assignments (contract
    owner and managers) backing ``SqlRoleStore``.

Invariants enforced:
    - One row per (identity, role) pair (uq_role_assignment).
    - At most one OWNER row; SqlRoleStore replaces it on ownership transfer.
"""

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lease_registry.db.base import TrackedBase


class RoleAssignmentModel(TrackedBase):
    """An identity holding a registry-wide role."""

    __tablename__ = "role_assignments"

    __table_args__ = (
        UniqueConstraint("identity", "role", name="uq_role_assignment"),
        Index("idx_role_role", "role"),
    )

    identity: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<RoleAssignment {self.identity}: {self.role}>"
