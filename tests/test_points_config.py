"""
Tests for the PointsConfig value object.
"""
import pytest
from decimal import Decimal

from loyalty.domain import PointsConfig, PointsRoundingRule
from loyalty.domain.points_config import to_decimal
from loyalty.utils.exceptions import ValidationError


class TestCalculatePoints:
    """Rounding rules and multipliers."""

    def test_rate_times_amount(self):
        config = PointsConfig(points_per_unit=Decimal('2'))
        assert config.calculate_points(Decimal('10')) == Decimal('20')

    def test_round_down(self):
        config = PointsConfig(rounding_rule=PointsRoundingRule.ROUND_DOWN)
        assert config.calculate_points(Decimal('10.33')) == Decimal('10')

    def test_round_up(self):
        config = PointsConfig(rounding_rule=PointsRoundingRule.ROUND_UP)
        assert config.calculate_points(Decimal('10.33')) == Decimal('11')

    def test_round_to_nearest_half_goes_up(self):
        config = PointsConfig(rounding_rule=PointsRoundingRule.ROUND_TO_NEAREST)
        assert config.calculate_points(Decimal('10.5')) == Decimal('11')
        assert config.calculate_points(Decimal('10.49')) == Decimal('10')

    def test_tier_multiplier_applied_before_rounding(self):
        config = PointsConfig(points_per_unit=Decimal('1'))
        assert config.calculate_points(Decimal('10'), Decimal('1.25')) == Decimal('12')

    def test_float_amount_goes_through_str(self):
        config = PointsConfig(points_per_unit=Decimal('1'))
        assert config.calculate_points(0.1 + 0.2) == Decimal('0')
        assert config.calculate_points(19.99) == Decimal('19')

    def test_zero_amount_earns_zero(self):
        assert PointsConfig().calculate_points(0) == Decimal('0')

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            PointsConfig().calculate_points(Decimal('-1'))

    def test_non_positive_multiplier_rejected(self):
        with pytest.raises(ValidationError):
            PointsConfig().calculate_points(Decimal('10'), 0)


class TestValidation:

    def test_rate_must_be_positive(self):
        with pytest.raises(ValidationError):
            PointsConfig(points_per_unit=Decimal('0'))

    def test_negative_bonus_rejected(self):
        with pytest.raises(ValidationError):
            PointsConfig(enrollment_bonus_points=-5)

    def test_negative_minimum_rejected(self):
        with pytest.raises(ValidationError):
            PointsConfig(minimum_points_for_redemption=-1)

    def test_non_numeric_rate_rejected(self):
        with pytest.raises(ValidationError):
            PointsConfig(points_per_unit='abc')


class TestRedemptionThreshold:

    def test_can_redeem_at_minimum(self):
        config = PointsConfig(minimum_points_for_redemption=100)
        assert config.can_redeem(100) is True
        assert config.can_redeem(Decimal('99')) is False


class TestSerialization:

    def test_defaults(self):
        config = PointsConfig.from_dict({})
        assert config == PointsConfig()

    def test_round_trip(self):
        config = PointsConfig(
            points_per_unit=Decimal('1.5'),
            minimum_points_for_redemption=200,
            rounding_rule=PointsRoundingRule.ROUND_UP,
            enrollment_bonus_points=25,
        )
        assert PointsConfig.from_dict(config.to_dict()) == config

    def test_rate_serialized_as_string(self):
        assert PointsConfig(points_per_unit=Decimal('1.5')).to_dict()['points_per_unit'] == '1.5'

    def test_unknown_rounding_rule(self):
        with pytest.raises(ValidationError):
            PointsConfig.from_dict({'rounding_rule': 'banker'})

    def test_none_means_no_config(self):
        assert PointsConfig.from_dict(None) is None


class TestToDecimal:

    @pytest.mark.parametrize('value, expected', [
        ('12.34', Decimal('12.34')),
        (Decimal('1.5000'), Decimal('1.5')),
        (7, Decimal('7')),
        (0.1, Decimal('0.1')),
    ])
    def test_within_places(self, value, expected):
        assert to_decimal(value, 'amount', places=2) == expected

    @pytest.mark.parametrize('value', ['12.345', Decimal('0.001'), 0.125])
    def test_finer_than_places_rejected(self, value):
        with pytest.raises(ValidationError) as exc:
            to_decimal(value, 'amount', places=2)
        assert exc.value.field == 'amount'

    @pytest.mark.parametrize('value', [True, 'lots', Decimal('NaN'), Decimal('Infinity'), None])
    def test_non_numbers_rejected(self, value):
        with pytest.raises(ValidationError):
            to_decimal(value, 'amount')
