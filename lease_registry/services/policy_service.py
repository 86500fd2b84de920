"""
PolicyService -- the lease policy stored with a deployment.

A registry opened without an explicit ``LeasePolicy`` runs the policy the
contract owner last configured, so a policy chosen at deployment survives
process restarts.  With nothing stored the built-in defaults apply.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from lease_registry.config import LeasePolicy
from lease_registry.domain.clock import Clock
from lease_registry.domain.dtos import ActivityAction, Identity
from lease_registry.logging_config import get_logger
from lease_registry.models.setting import RegistrySettingModel
from lease_registry.services.access import AccessGate
from lease_registry.services.activity_recorder import ActivityRecorder
from lease_registry.services.base import BaseService

logger = get_logger("services.policy")

LEASE_POLICY_SETTING = "lease_policy"


class PolicyService(BaseService[RegistrySettingModel]):
    """Loads and stores the deployment's ``LeasePolicy``."""

    def __init__(
        self,
        session: Session,
        gate: AccessGate,
        recorder: ActivityRecorder,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._gate = gate
        self._recorder = recorder

    def _row(self) -> RegistrySettingModel | None:
        return self.session.execute(
            select(RegistrySettingModel)
            .where(RegistrySettingModel.name == LEASE_POLICY_SETTING)
            .with_for_update()
        ).scalar_one_or_none()

    def load(self) -> LeasePolicy | None:
        """The stored policy, or None if none was ever configured."""
        row = self._row()
        return LeasePolicy.from_dict(row.value) if row else None

    def configure(self, caller: Identity, policy: LeasePolicy) -> None:
        """
        Store ``policy`` as the deployment's policy.

        Raises:
            UnauthorizedError: Caller is not the contract owner.
        """
        self._gate.require_contract_owner(caller)

        value = policy.to_dict()
        row = self._row()
        if row is None:
            self.session.add(
                RegistrySettingModel(name=LEASE_POLICY_SETTING, value=value, created_by=caller)
            )
        else:
            row.value = value
            row.updated_by = caller
        self.session.flush()

        self._recorder.record(ActivityAction.POLICY_CONFIGURED, caller, **value)
        logger.info("lease_policy_configured", extra={"policy": value})
