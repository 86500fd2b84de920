"""
Module: lease_registry.models.setting
Responsibility: ORM persistence for registry-wide settings that must outlive
    the process that wrote them (the lease policy chosen at deployment).

Invariants enforced:
    - One row per setting name (uq_registry_setting_name).
    - ``value`` holds plain JSON; callers convert to and from domain objects.
"""

from typing import Any

from sqlalchemy import JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lease_registry.db.base import TrackedBase


class RegistrySettingModel(TrackedBase):
    """A named JSON setting."""

    __tablename__ = "registry_settings"

    __table_args__ = (
        UniqueConstraint("name", name="uq_registry_setting_name"),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    value: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<RegistrySetting {self.name}>"
