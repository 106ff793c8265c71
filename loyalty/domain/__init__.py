"""
Loyalty accrual/redemption domain model.

Pure, synchronous objects with no database access:
programs, rewards, cards, their transaction ledger, and the expiration and
points value objects.
"""
from .enums import (
    LoyaltyProgramType,
    CardStatus,
    TransactionType,
    ExpirationType,
    PointsRoundingRule,
)
from .ids import (
    TypedId,
    BrandId,
    LoyaltyProgramId,
    RewardId,
    LoyaltyCardId,
    CustomerId,
    TransactionId,
    StoreId,
    StaffId,
)
from .expiration_policy import ExpirationPolicy
from .points_config import PointsConfig
from .reward import Reward
from .transaction import Transaction
from .program import LoyaltyProgram
from .card import LoyaltyCard

__all__ = [
    'LoyaltyProgramType',
    'CardStatus',
    'TransactionType',
    'ExpirationType',
    'PointsRoundingRule',
    'TypedId',
    'BrandId',
    'LoyaltyProgramId',
    'RewardId',
    'LoyaltyCardId',
    'CustomerId',
    'TransactionId',
    'StoreId',
    'StaffId',
    'ExpirationPolicy',
    'PointsConfig',
    'Reward',
    'Transaction',
    'LoyaltyProgram',
    'LoyaltyCard',
]
