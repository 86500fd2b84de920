"""SQLAlchemy ORM models for the lease registry."""

from lease_registry.models.activity_event import ActivityEvent
from lease_registry.models.complaint import ComplaintModel
from lease_registry.models.property import PropertyModel
from lease_registry.models.role import RoleAssignmentModel
from lease_registry.models.setting import RegistrySettingModel


def import_all_models() -> None:
    """Import every module that defines tables so Base.metadata sees them."""
    import lease_registry.models.activity_event  # noqa: F401
    import lease_registry.models.complaint  # noqa: F401
    import lease_registry.models.property  # noqa: F401
    import lease_registry.models.role  # noqa: F401
    import lease_registry.models.setting  # noqa: F401
    import lease_registry.services.sequence_service  # noqa: F401


__all__ = [
    "ActivityEvent",
    "ComplaintModel",
    "PropertyModel",
    "RegistrySettingModel",
    "RoleAssignmentModel",
    "import_all_models",
]
