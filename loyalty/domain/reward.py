"""
Reward entity - a redeemable item in a program's catalog.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from .ids import LoyaltyProgramId, RewardId
from ..utils.exceptions import ValidationError
from ..utils.time_utils import Clock, system_clock, to_utc_z


def _validate_reward_fields(title, required_value, valid_from, valid_to):
    if not isinstance(title, str):
        raise ValidationError('Reward title must be a string', field='title')
    if not title.strip():
        raise ValidationError('Reward title cannot be empty', field='title')
    if isinstance(required_value, bool) or not isinstance(required_value, int):
        raise ValidationError('Required value must be an integer', field='required_value')
    if required_value <= 0:
        raise ValidationError('Required value must be greater than zero', field='required_value')
    if valid_from is not None and valid_to is not None and valid_from > valid_to:
        raise ValidationError('Valid from date must be before valid to date', field='valid_from')


class Reward:
    """
    A reward that cards of the owning program can redeem.

    ``required_value`` is a stamp count for stamp programs and a points cost
    for points programs. Rewards are never deleted; they are deactivated.
    """

    def __init__(
        self,
        program_id: LoyaltyProgramId,
        title: str,
        description: Optional[str],
        required_value: int,
        valid_from: Optional[datetime] = None,
        valid_to: Optional[datetime] = None,
        clock: Clock = system_clock,
    ):
        if not isinstance(program_id, LoyaltyProgramId):
            raise ValidationError('Reward requires a program ID', field='program_id')
        _validate_reward_fields(title, required_value, valid_from, valid_to)

        now = clock.now()
        self.id = RewardId.new()
        self._program_id = program_id
        self.title = title.strip()
        self.description = description
        self.required_value = required_value
        self.valid_from = valid_from
        self.valid_to = valid_to
        self.is_active = True
        self.created_at = now
        self.updated_at = now
        self._clock = clock

    @classmethod
    def rehydrate(
        cls,
        id: RewardId,
        program_id: LoyaltyProgramId,
        title: str,
        description: Optional[str],
        required_value: int,
        valid_from: Optional[datetime],
        valid_to: Optional[datetime],
        is_active: bool,
        created_at: datetime,
        updated_at: datetime,
        clock: Clock = system_clock,
    ) -> 'Reward':
        """Restore a stored reward without re-running validation."""
        reward = cls.__new__(cls)
        reward.id = id
        reward._program_id = program_id
        reward.title = title
        reward.description = description
        reward.required_value = required_value
        reward.valid_from = valid_from
        reward.valid_to = valid_to
        reward.is_active = is_active
        reward.created_at = created_at
        reward.updated_at = updated_at
        reward._clock = clock
        return reward

    def __repr__(self):
        return f'<Reward {self.title}: {self.required_value}>'

    @property
    def program_id(self) -> LoyaltyProgramId:
        return self._program_id

    def update(
        self,
        title: str,
        description: Optional[str],
        required_value: int,
        valid_from: Optional[datetime] = None,
        valid_to: Optional[datetime] = None,
    ) -> None:
        _validate_reward_fields(title, required_value, valid_from, valid_to)

        self.title = title.strip()
        self.description = description
        self.required_value = required_value
        self.valid_from = valid_from
        self.valid_to = valid_to
        self.updated_at = self._clock.now()

    def activate(self) -> None:
        self.is_active = True
        self.updated_at = self._clock.now()

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = self._clock.now()

    def is_valid_at(self, when: datetime) -> bool:
        """Active and inside the (inclusive, open-ended) validity window."""
        if not self.is_active:
            return False
        if self.valid_from is not None and when < self.valid_from:
            return False
        return self.valid_to is None or when <= self.valid_to

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for API responses."""
        return {
            'id': str(self.id),
            'program_id': str(self.program_id),
            'title': self.title,
            'description': self.description,
            'required_value': self.required_value,
            'valid_from': to_utc_z(self.valid_from),
            'valid_to': to_utc_z(self.valid_to),
            'is_active': self.is_active,
            'created_at': to_utc_z(self.created_at),
            'updated_at': to_utc_z(self.updated_at),
        }
