"""
Points configuration value object for points-based programs.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, InvalidOperation
from typing import Any, Dict, Optional

from .enums import PointsRoundingRule
from ..utils.exceptions import ValidationError

_ROUNDING = {
    PointsRoundingRule.ROUND_DOWN: ROUND_FLOOR,
    PointsRoundingRule.ROUND_UP: ROUND_CEILING,
    PointsRoundingRule.ROUND_TO_NEAREST: ROUND_HALF_UP,
}


# Decimal places kept in storage; finer values are rejected instead of rounded
POINTS_PLACES = 4   # points balances and point amounts
RATE_PLACES = 4     # points conversion rate
MONEY_PLACES = 2    # purchase and minimum transaction amounts


def to_decimal(value, field: str, places: Optional[int] = None) -> Decimal:
    """
    Coerce ints, strings and Decimals to Decimal; floats go through str().

    With ``places``, values with more decimal places than that are rejected.
    """
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number', field=field)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f'{field} must be a number', field=field) from None
    if not result.is_finite():
        raise ValidationError(f'{field} must be a finite number', field=field)
    if places is not None and result.normalize().as_tuple().exponent < -places:
        raise ValidationError(f'{field} allows at most {places} decimal places', field=field)
    return result


@dataclass(frozen=True)
class PointsConfig:
    """
    How money spent converts into points.

    Attributes:
        points_per_unit: Points earned per unit of currency (> 0)
        minimum_points_for_redemption: Smallest balance that may be redeemed
        rounding_rule: How fractional points are rounded
        enrollment_bonus_points: Points credited when a customer enrolls
    """
    points_per_unit: Decimal = Decimal('1')
    minimum_points_for_redemption: int = 100
    rounding_rule: PointsRoundingRule = PointsRoundingRule.ROUND_DOWN
    enrollment_bonus_points: int = 0

    def __post_init__(self):
        rate = to_decimal(self.points_per_unit, 'points_per_unit')
        object.__setattr__(self, 'points_per_unit', rate)
        object.__setattr__(self, 'rounding_rule', PointsRoundingRule(self.rounding_rule))

        if rate <= 0:
            raise ValidationError('Points per unit must be greater than zero', field='points_per_unit')
        if self.minimum_points_for_redemption < 0:
            raise ValidationError('Minimum points for redemption cannot be negative',
                                  field='minimum_points_for_redemption')
        if self.enrollment_bonus_points < 0:
            raise ValidationError('Enrollment bonus points cannot be negative', field='enrollment_bonus_points')

    def calculate_points(self, amount, tier_multiplier=Decimal('1')) -> Decimal:
        """
        Convert a transaction amount into whole points.

        Args:
            amount: Transaction amount (>= 0)
            tier_multiplier: Factor supplied by the caller's tier lookup (> 0)

        Returns:
            Integral Decimal number of points
        """
        amount = to_decimal(amount, 'transaction_amount')
        tier_multiplier = to_decimal(tier_multiplier, 'tier_multiplier')

        if amount < 0:
            raise ValidationError('Transaction amount cannot be negative', field='transaction_amount')
        if tier_multiplier <= 0:
            raise ValidationError('Tier multiplier must be greater than zero', field='tier_multiplier')

        raw_points = amount * self.points_per_unit * tier_multiplier
        return raw_points.quantize(Decimal('1'), rounding=_ROUNDING[self.rounding_rule])

    def can_redeem(self, balance) -> bool:
        return to_decimal(balance, 'balance') >= self.minimum_points_for_redemption

    def to_dict(self) -> Dict[str, Any]:
        return {
            'points_per_unit': str(self.points_per_unit),
            'minimum_points_for_redemption': self.minimum_points_for_redemption,
            'rounding_rule': self.rounding_rule.value,
            'enrollment_bonus_points': self.enrollment_bonus_points,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['PointsConfig']:
        if data is None:
            return None
        try:
            rounding_rule = PointsRoundingRule(data.get('rounding_rule', PointsRoundingRule.ROUND_DOWN.value))
        except ValueError:
            raise ValidationError(f"Unknown rounding rule '{data.get('rounding_rule')}'", field='rounding_rule') from None
        try:
            minimum = int(data.get('minimum_points_for_redemption', 100))
            bonus = int(data.get('enrollment_bonus_points', 0))
        except (TypeError, ValueError):
            raise ValidationError('Points config values must be integers') from None
        return cls(
            points_per_unit=to_decimal(data.get('points_per_unit', '1'), 'points_per_unit'),
            minimum_points_for_redemption=minimum,
            rounding_rule=rounding_rule,
            enrollment_bonus_points=bonus,
        )
