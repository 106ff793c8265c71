"""
Tests for the Reward entity.
"""
import pytest
from datetime import datetime, timedelta

from loyalty.domain import LoyaltyProgramId, Reward
from loyalty.utils.exceptions import ValidationError


@pytest.fixture
def reward(clock):
    return Reward(LoyaltyProgramId.new(), 'Free coffee', 'Any size', 10, clock=clock)


class TestRewardCreation:

    def test_new_reward_is_active(self, reward, clock):
        assert reward.is_active is True
        assert reward.created_at == clock.now()

    def test_title_trimmed(self, clock):
        reward = Reward(LoyaltyProgramId.new(), '  Muffin  ', None, 5, clock=clock)
        assert reward.title == 'Muffin'

    @pytest.mark.parametrize('title', ['', '   ', None])
    def test_blank_title_rejected(self, title):
        with pytest.raises(ValidationError):
            Reward(LoyaltyProgramId.new(), title, None, 5)

    @pytest.mark.parametrize('title', [123, ['Muffin']])
    def test_non_string_title_rejected(self, title):
        with pytest.raises(ValidationError) as exc:
            Reward(LoyaltyProgramId.new(), title, None, 5)
        assert exc.value.field == 'title'

    @pytest.mark.parametrize('value', [0, -1, 2.5, True])
    def test_required_value_must_be_positive_integer(self, value):
        with pytest.raises(ValidationError):
            Reward(LoyaltyProgramId.new(), 'Muffin', None, value)

    def test_window_order_enforced(self):
        with pytest.raises(ValidationError):
            Reward(LoyaltyProgramId.new(), 'Muffin', None, 5,
                   valid_from=datetime(2026, 5, 1), valid_to=datetime(2026, 4, 1))

    def test_program_id_required(self):
        with pytest.raises(ValidationError):
            Reward('program', 'Muffin', None, 5)


class TestRewardValidity:

    def test_inclusive_window(self, clock):
        start = clock.now()
        end = start + timedelta(days=7)
        reward = Reward(LoyaltyProgramId.new(), 'Muffin', None, 5, valid_from=start, valid_to=end, clock=clock)

        assert reward.is_valid_at(start) is True
        assert reward.is_valid_at(end) is True
        assert reward.is_valid_at(start - timedelta(seconds=1)) is False
        assert reward.is_valid_at(end + timedelta(seconds=1)) is False

    def test_open_ended_window(self, reward, clock):
        assert reward.is_valid_at(clock.now() + timedelta(days=3650)) is True

    def test_inactive_reward_never_valid(self, reward, clock):
        reward.deactivate()
        assert reward.is_valid_at(clock.now()) is False
        reward.activate()
        assert reward.is_valid_at(clock.now()) is True


class TestRewardUpdate:

    def test_update_replaces_fields(self, reward, clock):
        clock.advance(hours=1)
        reward.update('Large coffee', None, 12)

        assert reward.title == 'Large coffee'
        assert reward.required_value == 12
        assert reward.updated_at == clock.now()

    def test_update_revalidates(self, reward):
        with pytest.raises(ValidationError):
            reward.update('Large coffee', None, 0)
        assert reward.required_value == 10

    def test_to_dict(self, reward):
        data = reward.to_dict()
        assert data['title'] == 'Free coffee'
        assert data['required_value'] == 10
        assert data['valid_to'] is None
        assert data['created_at'] == '2026-03-15T10:00:00Z'
