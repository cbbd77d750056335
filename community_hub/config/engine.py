"""Behaviour switches for the scheduling engine.

The product changed its mind on a few rules over time. Rather than hard-coding
one answer, each rule is a named policy picked from the environment:

- OWNERSHIP_POLICY: who may edit, publish or delete an event and its tasks
- CAPACITY_POLICY: whether a full task still accepts sign-ups
- EXPOSE_GUEST_CONTACTS: whether any organizer sees guest contact details
- RECURRENCE_STOP_ON_FAILURE: whether a failed copy stops the rest of a series
- MAX_REPEAT_COUNT: upper bound on copies generated per request
"""

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

# Internal imports - environment must be first
from .environment import env_flag, env_int

class OwnershipPolicy(str, Enum):
    """Who may mutate an event (and the tasks hanging off it)."""
    OWNER_OR_ADMIN = 'owner_or_admin'
    ANY_ORGANIZER = 'any_organizer'

class CapacityPolicy(str, Enum):
    """Whether required_volunteers is a target or a ceiling."""
    ADVISORY = 'advisory'   # legacy: sign-ups past capacity are accepted
    ENFORCED = 'enforced'   # sign-ups past capacity fail with TaskFull

@dataclass(frozen=True)
class EngineSettings:
    """
    Engine configuration settings.

    Fields:
        ownership_policy: Rule applied to event/task mutations
        capacity_policy: Rule applied to volunteer sign-ups
        expose_guest_contacts: If False, only the event owner and admins see
                               guest names and phone numbers
        recurrence_stop_on_failure: If True, the generator stops at the first
                                    failed copy and reports the rest as skipped
        max_repeat_count: Largest repeat_count accepted by the generator
    """
    ownership_policy: OwnershipPolicy = OwnershipPolicy.OWNER_OR_ADMIN
    capacity_policy: CapacityPolicy = CapacityPolicy.ADVISORY
    expose_guest_contacts: bool = True
    recurrence_stop_on_failure: bool = True
    max_repeat_count: int = 52

    @classmethod
    def from_environment(cls) -> 'EngineSettings':
        """
        Build settings from environment variables, falling back to defaults.

        Raises:
            ValueError: If any variable holds an unknown value
        """
        ownership = os.environ.get('OWNERSHIP_POLICY', OwnershipPolicy.OWNER_OR_ADMIN.value)
        capacity = os.environ.get('CAPACITY_POLICY', CapacityPolicy.ADVISORY.value)
        try:
            ownership_policy = OwnershipPolicy(ownership.strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid OWNERSHIP_POLICY '{ownership}'. "
                f"Expected one of: {', '.join(p.value for p in OwnershipPolicy)}"
            ) from None
        try:
            capacity_policy = CapacityPolicy(capacity.strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid CAPACITY_POLICY '{capacity}'. "
                f"Expected one of: {', '.join(p.value for p in CapacityPolicy)}"
            ) from None

        max_repeat_count = env_int('MAX_REPEAT_COUNT', cls.max_repeat_count)
        if max_repeat_count < 1:
            raise ValueError("MAX_REPEAT_COUNT must be at least 1")

        return cls(
            ownership_policy=ownership_policy,
            capacity_policy=capacity_policy,
            expose_guest_contacts=env_flag('EXPOSE_GUEST_CONTACTS', cls.expose_guest_contacts),
            recurrence_stop_on_failure=env_flag(
                'RECURRENCE_STOP_ON_FAILURE', cls.recurrence_stop_on_failure
            ),
            max_repeat_count=max_repeat_count,
        )

@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Return the process-wide settings, read once from the environment."""
    return EngineSettings.from_environment()

__all__ = ['OwnershipPolicy', 'CapacityPolicy', 'EngineSettings', 'get_settings']
