"""Services for the lease registry (write side)."""

from lease_registry.services.access import AccessGate
from lease_registry.services.activity_recorder import ActivityRecorder
from lease_registry.services.complaint_service import ComplaintService
from lease_registry.services.lease_service import LeaseService
from lease_registry.services.policy_service import PolicyService
from lease_registry.services.property_registry import PropertyRegistryService
from lease_registry.services.role_store import (
    InMemoryRoleStore,
    RoleService,
    RoleStore,
    SqlRoleStore,
)
from lease_registry.services.sequence_service import SequenceService
from lease_registry.services.termination_service import TerminationService

__all__ = [
    "AccessGate",
    "ActivityRecorder",
    "ComplaintService",
    "InMemoryRoleStore",
    "LeaseService",
    "PolicyService",
    "PropertyRegistryService",
    "RoleService",
    "RoleStore",
    "SequenceService",
    "SqlRoleStore",
    "TerminationService",
]
