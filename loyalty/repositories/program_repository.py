"""
Program repository - maps LoyaltyProgram aggregates to ProgramRecord rows.

Repositories only stage changes on ``db.session``; the calling service owns
the commit.
"""
from decimal import Decimal
from typing import List, Optional

from ..extensions import db
from ..domain import (
    BrandId,
    ExpirationPolicy,
    LoyaltyProgram,
    LoyaltyProgramId,
    PointsConfig,
    Reward,
    RewardId,
)
from ..models import ProgramRecord, RewardRecord
from ..utils.exceptions import ProgramNotFoundError
from ..utils.time_utils import Clock, system_clock


def stored_decimal(value: Optional[Decimal]) -> Optional[Decimal]:
    """Strip the column scale from a Numeric value ('12.0000' -> '12')."""
    if value is None:
        return None
    value = Decimal(value)
    if value == value.to_integral_value():
        return value.quantize(Decimal('1'))
    return value.normalize()


class LoyaltyProgramRepository:
    """Load and store programs together with their rewards catalog."""

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    # ==================== Queries ====================

    def get_by_id(self, program_id: LoyaltyProgramId) -> Optional[LoyaltyProgram]:
        record = db.session.get(ProgramRecord, str(program_id))
        return self._to_domain(record) if record else None

    def get_by_brand(self, brand_id: BrandId, active_only: bool = False) -> List[LoyaltyProgram]:
        query = ProgramRecord.query.filter_by(brand_id=str(brand_id))
        if active_only:
            query = query.filter_by(is_active=True)
        return [self._to_domain(r) for r in query.order_by(ProgramRecord.created_at).all()]

    def get_reward(self, reward_id: RewardId) -> Optional[Reward]:
        record = db.session.get(RewardRecord, str(reward_id))
        return self._reward_to_domain(record) if record else None

    # ==================== Writes ====================

    def add(self, program: LoyaltyProgram) -> None:
        record = ProgramRecord(id=str(program.id))
        self._apply(record, program)
        db.session.add(record)

    def update(self, program: LoyaltyProgram) -> None:
        record = db.session.get(ProgramRecord, str(program.id))
        if record is None:
            raise ProgramNotFoundError(program.id)
        self._apply(record, program)

    # ==================== Mapping ====================

    def _apply(self, record: ProgramRecord, program: LoyaltyProgram) -> None:
        record.brand_id = str(program.brand_id)
        record.name = program.name
        record.description = program.description
        record.type = program.type.value
        record.stamp_threshold = program.stamp_threshold
        record.points_conversion_rate = program.points_conversion_rate
        record.points_config = program.points_config.to_dict() if program.points_config else None
        record.daily_stamp_limit = program.daily_stamp_limit
        record.minimum_transaction_amount = program.minimum_transaction_amount
        record.expiration_policy = program.expiration_policy.to_dict()
        record.terms_and_conditions = program.terms_and_conditions
        record.start_date = program.start_date
        record.end_date = program.end_date
        record.is_active = program.is_active
        record.created_at = program.created_at
        record.updated_at = program.updated_at

        # Rewards are added or updated, never removed
        existing = {r.id: r for r in record.rewards}
        for reward in program.rewards:
            reward_record = existing.get(str(reward.id))
            if reward_record is None:
                reward_record = RewardRecord(id=str(reward.id), program_id=record.id)
                record.rewards.append(reward_record)
            self._apply_reward(reward_record, reward)

    @staticmethod
    def _apply_reward(record: RewardRecord, reward: Reward) -> None:
        record.title = reward.title
        record.description = reward.description
        record.required_value = reward.required_value
        record.valid_from = reward.valid_from
        record.valid_to = reward.valid_to
        record.is_active = reward.is_active
        record.created_at = reward.created_at
        record.updated_at = reward.updated_at

    def _reward_to_domain(self, record: RewardRecord) -> Reward:
        return Reward.rehydrate(
            id=RewardId(record.id),
            program_id=LoyaltyProgramId(record.program_id),
            title=record.title,
            description=record.description,
            required_value=record.required_value,
            valid_from=record.valid_from,
            valid_to=record.valid_to,
            is_active=record.is_active,
            created_at=record.created_at,
            updated_at=record.updated_at,
            clock=self.clock,
        )

    def _to_domain(self, record: ProgramRecord) -> LoyaltyProgram:
        return LoyaltyProgram.rehydrate(
            id=LoyaltyProgramId(record.id),
            brand_id=BrandId(record.brand_id),
            name=record.name,
            type=record.type,
            stamp_threshold=record.stamp_threshold,
            points_conversion_rate=stored_decimal(record.points_conversion_rate),
            points_config=PointsConfig.from_dict(record.points_config),
            daily_stamp_limit=record.daily_stamp_limit,
            minimum_transaction_amount=stored_decimal(record.minimum_transaction_amount),
            expiration_policy=ExpirationPolicy.from_dict(record.expiration_policy),
            is_active=record.is_active,
            created_at=record.created_at,
            updated_at=record.updated_at,
            description=record.description,
            terms_and_conditions=record.terms_and_conditions,
            start_date=record.start_date,
            end_date=record.end_date,
            rewards=[self._reward_to_domain(r) for r in record.rewards],
            clock=self.clock,
        )
