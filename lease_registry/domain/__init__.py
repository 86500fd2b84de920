"""
Pure domain layer: DTOs, clock, lease term calculations and workflow
definitions.  Nothing in this package performs I/O.
"""

from lease_registry.domain.clock import Clock, DeterministicClock, SystemClock
from lease_registry.domain.dtos import (
    ZERO_IDENTITY,
    ActivityAction,
    ActivityRecord,
    ComplaintInfo,
    ConfirmationType,
    Identity,
    LeaseInfo,
    LeaseState,
    PropertyInfo,
    PropertyType,
    Role,
)

__all__ = [
    "ActivityAction",
    "ActivityRecord",
    "Clock",
    "ComplaintInfo",
    "ConfirmationType",
    "DeterministicClock",
    "Identity",
    "LeaseInfo",
    "LeaseState",
    "PropertyInfo",
    "PropertyType",
    "Role",
    "SystemClock",
    "ZERO_IDENTITY",
]
