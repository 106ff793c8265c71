"""
Tests for strongly-typed identifiers.
"""
import uuid
import pytest

from loyalty.domain import CustomerId, LoyaltyCardId, RewardId, StoreId
from loyalty.utils.exceptions import ValidationError


class TestTypedId:
    """Construction, parsing and equality of typed IDs."""

    def test_new_ids_are_unique(self):
        assert LoyaltyCardId.new() != LoyaltyCardId.new()

    def test_parse_string_round_trip(self):
        card_id = LoyaltyCardId.new()
        assert LoyaltyCardId.parse(str(card_id)) == card_id

    def test_parse_returns_same_instance(self):
        card_id = LoyaltyCardId.new()
        assert LoyaltyCardId.parse(card_id) is card_id

    def test_ids_of_different_types_never_equal(self):
        """A card ID and a reward ID wrapping the same UUID are different IDs."""
        value = uuid.uuid4()
        assert LoyaltyCardId(value) != RewardId(value)
        assert len({LoyaltyCardId(value), RewardId(value)}) == 2

    def test_parse_rejects_other_id_type(self):
        with pytest.raises(ValidationError):
            LoyaltyCardId.parse(StoreId.new())

    def test_invalid_string_rejected(self):
        with pytest.raises(ValidationError):
            CustomerId('not-a-uuid')

    def test_nil_uuid_rejected(self):
        with pytest.raises(ValidationError):
            CustomerId(uuid.UUID(int=0))

    def test_ids_are_immutable(self):
        card_id = LoyaltyCardId.new()
        with pytest.raises(AttributeError):
            card_id._value = uuid.uuid4()

    def test_usable_as_dict_key(self):
        value = uuid.uuid4()
        balances = {CustomerId(value): 5}
        assert balances[CustomerId(str(value))] == 5
