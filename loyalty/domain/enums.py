"""
Enumerations shared by the loyalty domain model.

All enums subclass ``str`` so they serialize directly into JSON and into the
String columns of the persistence rows.
"""
from enum import Enum


class LoyaltyProgramType(str, Enum):
    """How customers accrue value in a program."""
    STAMP = 'stamp'     # Discrete stamps toward a threshold
    POINTS = 'points'   # Points converted from money spent


class CardStatus(str, Enum):
    """Status of a loyalty card."""
    ACTIVE = 'active'         # Can accrue and redeem
    EXPIRED = 'expired'       # Terminal
    SUSPENDED = 'suspended'   # Blocked by staff, can be reactivated


class TransactionType(str, Enum):
    """Types of card ledger entries."""
    STAMP_ISSUANCE = 'stamp_issuance'
    STAMP_VOID = 'stamp_void'
    POINTS_ISSUANCE = 'points_issuance'
    POINTS_VOID = 'points_void'
    REWARD_REDEMPTION = 'reward_redemption'


class ExpirationType(str, Enum):
    """Unit of a relative expiration period."""
    DAYS = 'days'
    MONTHS = 'months'
    YEARS = 'years'


class PointsRoundingRule(str, Enum):
    """How fractional points are rounded."""
    ROUND_DOWN = 'round_down'
    ROUND_UP = 'round_up'
    ROUND_TO_NEAREST = 'round_to_nearest'   # Half-up: 10.5 -> 11
