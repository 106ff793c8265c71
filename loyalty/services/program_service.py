"""
Program Service - brand-side management of loyalty programs and rewards.

Usage:
    service = LoyaltyProgramService()

    program = service.create_program(brand_id, 'Coffee Club', LoyaltyProgramType.STAMP,
                                     stamp_threshold=10)
    reward = service.add_reward(program.id, 'Free coffee', None, 10)
"""
from datetime import datetime
from typing import List, Optional

from flask import current_app

from ..domain import (
    BrandId,
    ExpirationPolicy,
    LoyaltyProgram,
    LoyaltyProgramId,
    LoyaltyProgramType,
    PointsConfig,
    Reward,
    RewardId,
)
from ..extensions import get_clock
from ..repositories import LoyaltyProgramRepository
from ..utils.exceptions import ProgramNotFoundError
from ..utils.time_utils import Clock
from .persistence import commit


class LoyaltyProgramService:
    """Create, configure and toggle programs and their reward catalogs."""

    def __init__(self, clock: Optional[Clock] = None, programs: Optional[LoyaltyProgramRepository] = None):
        self.clock = clock or get_clock()
        self.programs = programs or LoyaltyProgramRepository(self.clock)

    # ==================== Programs ====================

    def create_program(
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
    ) -> LoyaltyProgram:
        program = LoyaltyProgram(
            brand_id,
            name,
            type,
            stamp_threshold=stamp_threshold,
            points_conversion_rate=points_conversion_rate,
            points_config=points_config,
            daily_stamp_limit=daily_stamp_limit,
            minimum_transaction_amount=minimum_transaction_amount,
            expiration_policy=expiration_policy,
            description=description,
            terms_and_conditions=terms_and_conditions,
            start_date=start_date,
            end_date=end_date,
            clock=self.clock,
        )
        self.programs.add(program)
        commit('Program', program.id)

        current_app.logger.info(
            f"Program created: {program.id} '{program.name}' ({program.type.value}) for brand {brand_id}"
        )
        return program

    def get_program(self, program_id: LoyaltyProgramId) -> LoyaltyProgram:
        program = self.programs.get_by_id(program_id)
        if program is None:
            raise ProgramNotFoundError(program_id)
        return program

    def list_programs(self, brand_id: BrandId, active_only: bool = False) -> List[LoyaltyProgram]:
        return self.programs.get_by_brand(brand_id, active_only=active_only)

    def update_program(self, program_id: LoyaltyProgramId, name: Optional[str] = None, **changes) -> LoyaltyProgram:
        """
        Apply settings changes. Unspecified settings keep their value.

        Accepts the keyword arguments of ``LoyaltyProgram.update``.
        """
        program = self.get_program(program_id)
        program.update(program.name if name is None else name, **changes)
        self.programs.update(program)
        commit('Program', program.id)

        current_app.logger.info(f"Program updated: {program.id} ({', '.join(sorted(changes)) or 'name'})")
        return program

    def update_points_config(self, program_id: LoyaltyProgramId, points_config: PointsConfig) -> LoyaltyProgram:
        program = self.get_program(program_id)
        program.update_points_config(points_config)
        self.programs.update(program)
        commit('Program', program.id)

        current_app.logger.info(f"Points config updated for program {program.id}: {points_config.to_dict()}")
        return program

    def set_program_active(self, program_id: LoyaltyProgramId, active: bool) -> LoyaltyProgram:
        program = self.get_program(program_id)
        if active:
            program.activate()
        else:
            program.deactivate()
        self.programs.update(program)
        commit('Program', program.id)

        current_app.logger.info(f"Program {program.id} {'activated' if active else 'deactivated'}")
        return program

    # ==================== Rewards ====================

    def add_reward(
        self,
        program_id: LoyaltyProgramId,
        title: str,
        description: Optional[str],
        required_value: int,
        valid_from: Optional[datetime] = None,
        valid_to: Optional[datetime] = None,
    ) -> Reward:
        program = self.get_program(program_id)
        reward = program.create_reward(title, description, required_value, valid_from=valid_from, valid_to=valid_to)
        self.programs.update(program)
        commit('Reward', reward.id)

        current_app.logger.info(
            f"Reward created: {reward.id} '{reward.title}' ({reward.required_value}) in program {program.id}"
        )
        return reward

    def update_reward(
        self,
        program_id: LoyaltyProgramId,
        reward_id: RewardId,
        title: str,
        description: Optional[str],
        required_value: int,
        valid_from: Optional[datetime] = None,
        valid_to: Optional[datetime] = None,
    ) -> Reward:
        program = self.get_program(program_id)
        reward = program.get_reward(reward_id)
        reward.update(title, description, required_value, valid_from=valid_from, valid_to=valid_to)
        self.programs.update(program)
        commit('Reward', reward.id)

        current_app.logger.info(f"Reward updated: {reward.id} in program {program.id}")
        return reward

    def set_reward_active(self, program_id: LoyaltyProgramId, reward_id: RewardId, active: bool) -> Reward:
        program = self.get_program(program_id)
        reward = program.get_reward(reward_id)
        if active:
            reward.activate()
        else:
            reward.deactivate()
        self.programs.update(program)
        commit('Reward', reward.id)

        current_app.logger.info(f"Reward {reward.id} {'activated' if active else 'deactivated'}")
        return reward

    def list_rewards(self, program_id: LoyaltyProgramId, available_only: bool = False) -> List[Reward]:
        """All rewards of a program, or only those redeemable right now."""
        program = self.get_program(program_id)
        if available_only:
            return program.active_rewards(self.clock.now())
        return list(program.rewards)
