"""
LoyaltyProgram aggregate root.

A program defines the accrual rules of a brand's loyalty scheme (stamp
threshold or points rate, constraints, expiration policy) and owns the
catalog of rewards its cards can redeem.

Design notes:
- ``type`` is fixed at creation; ``update`` can never change it
- Exactly one of ``stamp_threshold`` / ``points_conversion_rate`` is set,
  selected by ``type``
- When a points program carries a PointsConfig, that config is the single
  source of truth for point calculation; the bare conversion rate is only
  used by programs created without one
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_FLOOR
from typing import Any, Dict, List, Optional, Tuple

from .enums import LoyaltyProgramType
from .expiration_policy import ExpirationPolicy
from .ids import BrandId, LoyaltyProgramId, RewardId
from .points_config import MONEY_PLACES, RATE_PLACES, PointsConfig, to_decimal
from .reward import Reward
from ..utils.exceptions import InvalidOperationError, RewardNotFoundError, ValidationError
from ..utils.time_utils import Clock, system_clock, to_utc_z


def _validate_type_parameters(
    program_type: LoyaltyProgramType,
    stamp_threshold: Optional[int],
    points_conversion_rate: Optional[Decimal],
    points_config: Optional[PointsConfig],
    creating: bool,
) -> None:
    """
    Shared rule for construction and update.

    On creation the parameter matching the type is required (a points
    program may supply a PointsConfig instead of a bare rate). On update it
    is optional, but a supplied value must still be positive.
    """
    if program_type == LoyaltyProgramType.STAMP:
        if stamp_threshold is None:
            if creating:
                raise ValidationError('Stamp programs require a stamp threshold', field='stamp_threshold')
            return
        if isinstance(stamp_threshold, bool) or not isinstance(stamp_threshold, int) or stamp_threshold <= 0:
            raise ValidationError('Stamp threshold must be greater than zero', field='stamp_threshold')
        return

    if points_conversion_rate is None:
        if creating and points_config is None:
            raise ValidationError('Points programs require a points conversion rate',
                                  field='points_conversion_rate')
        return
    if points_conversion_rate <= 0:
        raise ValidationError('Points conversion rate must be greater than zero', field='points_conversion_rate')


def _validate_constraints(daily_stamp_limit, minimum_transaction_amount) -> None:
    if daily_stamp_limit is not None and (isinstance(daily_stamp_limit, bool)
                                          or not isinstance(daily_stamp_limit, int)
                                          or daily_stamp_limit <= 0):
        raise ValidationError('Daily stamp limit must be greater than zero', field='daily_stamp_limit')
    if minimum_transaction_amount is not None and minimum_transaction_amount < 0:
        raise ValidationError('Minimum transaction amount cannot be negative', field='minimum_transaction_amount')


class LoyaltyProgram:
    """A brand's loyalty scheme and its rewards catalog."""

    def __init__(
        self,
        brand_id: BrandId,
        name: str,
        type: LoyaltyProgramType,
        stamp_threshold: Optional[int] = None,
        points_conversion_rate=None,
        points_config: Optional[PointsConfig] = None,
        daily_stamp_limit: Optional[int] = None,
        minimum_transaction_amount=None,
        expiration_policy: Optional[ExpirationPolicy] = None,
        description: Optional[str] = None,
        terms_and_conditions: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        clock: Clock = system_clock,
    ):
        if not isinstance(brand_id, BrandId):
            raise ValidationError('Brand ID cannot be empty', field='brand_id')
        if not isinstance(name, str):
            raise ValidationError('Program name must be a string', field='name')
        if not name.strip():
            raise ValidationError('Program name cannot be empty', field='name')
        try:
            program_type = LoyaltyProgramType(type)
        except ValueError:
            raise ValidationError(f"Unknown program type '{type}'", field='type') from None

        rate = to_decimal(points_conversion_rate, 'points_conversion_rate', RATE_PLACES) \
            if points_conversion_rate is not None else None
        minimum = to_decimal(minimum_transaction_amount, 'minimum_transaction_amount', MONEY_PLACES) \
            if minimum_transaction_amount is not None else None

        _validate_type_parameters(program_type, stamp_threshold, rate, points_config, creating=True)
        _validate_constraints(daily_stamp_limit, minimum)
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValidationError('Program start date must be before end date', field='start_date')

        now = clock.now()
        self.id = LoyaltyProgramId.new()
        self._brand_id = brand_id
        self.name = name.strip()
        self.description = description
        self._type = program_type
        self.stamp_threshold = stamp_threshold if program_type == LoyaltyProgramType.STAMP else None
        self.points_conversion_rate = rate if program_type == LoyaltyProgramType.POINTS else None
        self.points_config = points_config if program_type == LoyaltyProgramType.POINTS else None
        self.daily_stamp_limit = daily_stamp_limit
        self.minimum_transaction_amount = minimum
        self.expiration_policy = expiration_policy or ExpirationPolicy.never()
        self.terms_and_conditions = terms_and_conditions
        self.start_date = start_date or now
        self.end_date = end_date
        self.is_active = True
        self.created_at = now
        self.updated_at = now
        self._rewards: List[Reward] = []
        self._clock = clock

    @classmethod
    def rehydrate(
        cls,
        id: LoyaltyProgramId,
        brand_id: BrandId,
        name: str,
        type: LoyaltyProgramType,
        stamp_threshold: Optional[int],
        points_conversion_rate: Optional[Decimal],
        points_config: Optional[PointsConfig],
        daily_stamp_limit: Optional[int],
        minimum_transaction_amount: Optional[Decimal],
        expiration_policy: ExpirationPolicy,
        is_active: bool,
        created_at: datetime,
        updated_at: datetime,
        description: Optional[str] = None,
        terms_and_conditions: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        rewards=(),
        clock: Clock = system_clock,
    ) -> 'LoyaltyProgram':
        """Restore a stored program and its rewards without re-running validation."""
        program = cls.__new__(cls)
        program.id = id
        program._brand_id = brand_id
        program.name = name
        program.description = description
        program._type = LoyaltyProgramType(type)
        program.stamp_threshold = stamp_threshold
        program.points_conversion_rate = points_conversion_rate
        program.points_config = points_config
        program.daily_stamp_limit = daily_stamp_limit
        program.minimum_transaction_amount = minimum_transaction_amount
        program.expiration_policy = expiration_policy or ExpirationPolicy.never()
        program.terms_and_conditions = terms_and_conditions
        program.start_date = start_date or created_at
        program.end_date = end_date
        program.is_active = is_active
        program.created_at = created_at
        program.updated_at = updated_at
        program._rewards = list(rewards)
        program._clock = clock
        return program

    def __repr__(self):
        return f'<LoyaltyProgram {self.name} ({self._type.value})>'

    # ==================== Read-only identity ====================

    @property
    def brand_id(self) -> BrandId:
        return self._brand_id

    @property
    def type(self) -> LoyaltyProgramType:
        return self._type

    @property
    def rewards(self) -> Tuple[Reward, ...]:
        return tuple(self._rewards)

    @property
    def enrollment_bonus_points(self) -> int:
        if self.points_config is None:
            return 0
        return self.points_config.enrollment_bonus_points

    # ==================== Rewards catalog ====================

    def create_reward(
        self,
        title: str,
        description: Optional[str],
        required_value: int,
        valid_from: Optional[datetime] = None,
        valid_to: Optional[datetime] = None,
    ) -> Reward:
        """Create a reward attached to this program."""
        reward = Reward(
            self.id,
            title,
            description,
            required_value,
            valid_from=valid_from,
            valid_to=valid_to,
            clock=self._clock,
        )
        self._rewards.append(reward)
        self.updated_at = self._clock.now()
        return reward

    def get_reward(self, reward_id: RewardId) -> Reward:
        for reward in self._rewards:
            if reward.id == reward_id:
                return reward
        raise RewardNotFoundError(reward_id)

    def active_rewards(self, at: Optional[datetime] = None) -> List[Reward]:
        at = at or self._clock.now()
        return [r for r in self._rewards if r.is_valid_at(at)]

    # ==================== Lifecycle ====================

    def update(
        self,
        name: str,
        stamp_threshold: Optional[int] = None,
        points_conversion_rate=None,
        points_config: Optional[PointsConfig] = None,
        daily_stamp_limit: Optional[int] = None,
        minimum_transaction_amount=None,
        expiration_policy: Optional[ExpirationPolicy] = None,
        description: Optional[str] = None,
        terms_and_conditions: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> None:
        """
        Update program settings. ``None`` leaves a setting unchanged.

        The type-specific parameter is re-validated with the construction
        rule; parameters for the other program type are ignored.
        """
        if not isinstance(name, str):
            raise ValidationError('Program name must be a string', field='name')
        if not name.strip():
            raise ValidationError('Program name cannot be empty', field='name')

        rate = to_decimal(points_conversion_rate, 'points_conversion_rate', RATE_PLACES) \
            if points_conversion_rate is not None else None
        minimum = to_decimal(minimum_transaction_amount, 'minimum_transaction_amount', MONEY_PLACES) \
            if minimum_transaction_amount is not None else None

        _validate_type_parameters(self._type, stamp_threshold, rate, points_config, creating=False)
        _validate_constraints(daily_stamp_limit, minimum)
        new_start = start_date or self.start_date
        new_end = end_date or self.end_date
        if new_end is not None and new_start > new_end:
            raise ValidationError('Program start date must be before end date', field='start_date')

        self.name = name.strip()
        if description:
            self.description = description
        if terms_and_conditions:
            self.terms_and_conditions = terms_and_conditions
        self.start_date = new_start
        self.end_date = new_end

        if self._type == LoyaltyProgramType.STAMP:
            if stamp_threshold is not None:
                self.stamp_threshold = stamp_threshold
        else:
            if rate is not None:
                self.points_conversion_rate = rate
            if points_config is not None:
                self.points_config = points_config

        if daily_stamp_limit is not None:
            self.daily_stamp_limit = daily_stamp_limit
        if minimum is not None:
            self.minimum_transaction_amount = minimum
        if expiration_policy is not None:
            self.expiration_policy = expiration_policy

        self.updated_at = self._clock.now()

    def update_points_config(self, points_config: PointsConfig) -> None:
        if self._type != LoyaltyProgramType.POINTS:
            raise InvalidOperationError('Cannot update points configuration for non-points program')
        if points_config is None:
            raise ValidationError('Points configuration is required', field='points_config')
        self.points_config = points_config
        self.updated_at = self._clock.now()

    def activate(self) -> None:
        self.is_active = True
        self.updated_at = self._clock.now()

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = self._clock.now()

    def is_within_schedule(self, at: Optional[datetime] = None) -> bool:
        at = at or self._clock.now()
        if at < self.start_date:
            return False
        return self.end_date is None or at <= self.end_date

    # ==================== Accrual rules ====================

    def is_valid_for_stamp_issuance(self) -> bool:
        return self.is_active and self._type == LoyaltyProgramType.STAMP

    def is_valid_for_points_issuance(self, transaction_amount) -> bool:
        if not self.is_active or self._type != LoyaltyProgramType.POINTS:
            return False
        if self.minimum_transaction_amount is not None:
            return to_decimal(transaction_amount, 'transaction_amount') >= self.minimum_transaction_amount
        return True

    def calculate_points(self, transaction_amount, tier_multiplier=Decimal('1')) -> Decimal:
        """
        Points earned for a purchase of ``transaction_amount``.

        Returns 0 below the program's minimum transaction amount. Uses the
        PointsConfig when present, otherwise floor(amount * rate * multiplier).
        """
        if self._type != LoyaltyProgramType.POINTS:
            raise InvalidOperationError('Cannot calculate points for non-points program')

        amount = to_decimal(transaction_amount, 'transaction_amount')
        if amount < 0:
            raise ValidationError('Transaction amount cannot be negative', field='transaction_amount')
        if self.minimum_transaction_amount is not None and amount < self.minimum_transaction_amount:
            return Decimal('0')

        if self.points_config is not None:
            return self.points_config.calculate_points(amount, tier_multiplier)

        if self.points_conversion_rate is None:
            raise InvalidOperationError('Missing points conversion rate and points config')

        multiplier = to_decimal(tier_multiplier, 'tier_multiplier')
        if multiplier <= 0:
            raise ValidationError('Tier multiplier must be greater than zero', field='tier_multiplier')
        raw_points = amount * self.points_conversion_rate * multiplier
        return raw_points.quantize(Decimal('1'), rounding=ROUND_FLOOR)

    def to_dict(self, include_rewards: bool = False) -> Dict[str, Any]:
        """Serialize to dictionary for API responses."""
        data = {
            'id': str(self.id),
            'brand_id': str(self.brand_id),
            'name': self.name,
            'description': self.description,
            'type': self._type.value,
            'stamp_threshold': self.stamp_threshold,
            'points_conversion_rate': str(self.points_conversion_rate) if self.points_conversion_rate is not None else None,
            'points_config': self.points_config.to_dict() if self.points_config else None,
            'daily_stamp_limit': self.daily_stamp_limit,
            'minimum_transaction_amount': str(self.minimum_transaction_amount) if self.minimum_transaction_amount is not None else None,
            'expiration_policy': self.expiration_policy.to_dict(),
            'terms_and_conditions': self.terms_and_conditions,
            'start_date': to_utc_z(self.start_date),
            'end_date': to_utc_z(self.end_date),
            'is_active': self.is_active,
            'created_at': to_utc_z(self.created_at),
            'updated_at': to_utc_z(self.updated_at),
        }
        if include_rewards:
            data['rewards'] = [r.to_dict() for r in self._rewards]
        return data
