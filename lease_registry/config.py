"""
Lease policy configuration (``lease_registry.config``).

Responsibility
--------------
Holds the tunable rules of the lease lifecycle: how long a tenant has to
sign an offer, how long one duration unit of a signed lease lasts, the
cooling-off period before a manager can force a termination, and whether
the non-requesting party may confirm a termination early.

``load_policy`` reads the same settings from a YAML file.  Unknown keys are
rejected so a typo cannot silently fall back to a default.

Failure modes
-------------
* Non-positive periods or a negative grace  -> ``ValueError``.
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys, values of the wrong YAML type, or a non-mapping
  document  -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Self

import yaml

from lease_registry.logging_config import get_logger

logger = get_logger("config")

_YAML_KEYS = frozenset({
    "signing_unit_days",
    "signing_grace_units",
    "term_unit_days",
    "cooling_off_days",
    "allow_counter_confirmation",
})


@dataclass(frozen=True)
class LeasePolicy:
    """Tunable rules of the lease and termination workflows."""

    # One duration unit of the signing window
    signing_unit: timedelta = timedelta(days=1)

    # Extra signing units granted on top of the offered duration
    signing_grace_units: int = 1

    # One duration unit of a signed lease (52 weeks)
    term_unit: timedelta = timedelta(weeks=52)

    # Wait between a termination request and a manager confirmation
    cooling_off_period: timedelta = timedelta(days=15)

    # Let the non-requesting party confirm a termination before the period ends
    allow_counter_confirmation: bool = False

    def __post_init__(self):
        if self.signing_unit <= timedelta(0):
            raise ValueError("signing_unit must be positive")
        if self.signing_grace_units < 0:
            raise ValueError("signing_grace_units cannot be negative")
        if self.term_unit <= timedelta(0):
            raise ValueError("term_unit must be positive")
        if self.cooling_off_period < timedelta(0):
            raise ValueError("cooling_off_period cannot be negative")

        logger.debug(
            "lease_policy_initialized",
            extra={
                "signing_unit": self.signing_unit,
                "signing_grace_units": self.signing_grace_units,
                "term_unit": self.term_unit,
                "cooling_off_period": self.cooling_off_period,
                "allow_counter_confirmation": self.allow_counter_confirmation,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create a policy with the registry's standard rules."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build a policy from the flat key/value form used in YAML files.

        Values must already have the right YAML type: a number of days, an
        integer grace count, a boolean flag.  Quoted strings are rejected.
        """
        unknown = set(data) - _YAML_KEYS
        if unknown:
            raise ValueError(f"Unknown lease policy keys: {sorted(unknown)}")

        defaults = cls()
        return cls(
            signing_unit=_days(data, "signing_unit_days", defaults.signing_unit),
            signing_grace_units=_count(
                data, "signing_grace_units", defaults.signing_grace_units
            ),
            term_unit=_days(data, "term_unit_days", defaults.term_unit),
            cooling_off_period=_days(
                data, "cooling_off_days", defaults.cooling_off_period
            ),
            allow_counter_confirmation=_flag(
                data,
                "allow_counter_confirmation",
                defaults.allow_counter_confirmation,
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """The flat key/value form accepted by ``from_dict``."""
        day = timedelta(days=1)
        return {
            "signing_unit_days": self.signing_unit / day,
            "signing_grace_units": self.signing_grace_units,
            "term_unit_days": self.term_unit / day,
            "cooling_off_days": self.cooling_off_period / day,
            "allow_counter_confirmation": self.allow_counter_confirmation,
        }


def _days(data: dict[str, Any], key: str, default: timedelta) -> timedelta:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number of days, got {value!r}")
    return timedelta(days=value)


def _count(data: dict[str, Any], key: str, default: int) -> int:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    return value


def _flag(data: dict[str, Any], key: str, default: bool) -> bool:
    if key not in data:
        return default
    value = data[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false, got {value!r}")
    return value


def load_policy(path: Path | str) -> LeasePolicy:
    """
    Load a ``LeasePolicy`` from a YAML file.

    An empty file yields the default policy.  A ``lease_policy`` top-level
    key is accepted so the settings can live inside a larger document.
    """
    path = Path(path)
    with path.open() as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping, got {type(raw).__name__}")

    if "lease_policy" in raw:
        raw = raw["lease_policy"] or {}

    policy = LeasePolicy.from_dict(raw)
    logger.info(
        "lease_policy_loaded",
        extra={"path": str(path), "keys": sorted(raw)},
    )
    return policy
