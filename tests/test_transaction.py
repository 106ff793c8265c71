"""
Tests for card ledger entries.
"""
import pytest
from decimal import Decimal

from loyalty.domain import (
    LoyaltyCardId,
    RewardId,
    StoreId,
    Transaction,
    TransactionId,
    TransactionType,
)
from loyalty.utils.exceptions import ValidationError


@pytest.fixture
def card_id():
    return LoyaltyCardId.new()


class TestTransactionShape:
    """Per-type required fields."""

    def test_stamp_issuance(self, card_id, store_id):
        tx = Transaction(card_id=card_id, type=TransactionType.STAMP_ISSUANCE, quantity=3, store_id=store_id)
        assert tx.quantity == 3
        assert isinstance(tx.id, TransactionId)

    @pytest.mark.parametrize('quantity', [None, 0, -2])
    def test_stamp_issuance_requires_positive_quantity(self, card_id, store_id, quantity):
        with pytest.raises(ValidationError):
            Transaction(card_id=card_id, type=TransactionType.STAMP_ISSUANCE, quantity=quantity, store_id=store_id)

    def test_points_issuance_coerces_decimals(self, card_id, store_id):
        tx = Transaction(
            card_id=card_id,
            type=TransactionType.POINTS_ISSUANCE,
            points_amount=25,
            transaction_amount='24.99',
            store_id=store_id,
        )
        assert tx.points_amount == Decimal('25')
        assert tx.transaction_amount == Decimal('24.99')

    @pytest.mark.parametrize('field, points, amount', [
        ('points_amount', '0.00001', '10'),
        ('transaction_amount', '10', '9.999'),
    ])
    def test_amounts_finer_than_stored_scale_rejected(self, card_id, store_id, field, points, amount):
        with pytest.raises(ValidationError) as exc:
            Transaction(card_id=card_id, type=TransactionType.POINTS_ISSUANCE,
                        points_amount=points, transaction_amount=amount, store_id=store_id)
        assert exc.value.field == field

    def test_points_void_requires_points(self, card_id, store_id):
        with pytest.raises(ValidationError):
            Transaction(card_id=card_id, type=TransactionType.POINTS_VOID, store_id=store_id)

    def test_redemption_requires_reward(self, card_id, store_id):
        with pytest.raises(ValidationError):
            Transaction(card_id=card_id, type=TransactionType.REWARD_REDEMPTION, store_id=store_id)

    def test_store_required(self, card_id):
        with pytest.raises(ValidationError):
            Transaction(card_id=card_id, type=TransactionType.STAMP_ISSUANCE, quantity=1)

    def test_store_id_must_be_typed(self, card_id):
        with pytest.raises(ValidationError):
            Transaction(card_id=card_id, type=TransactionType.STAMP_ISSUANCE, quantity=1, store_id='store-1')


class TestTransactionImmutability:

    def test_fields_cannot_be_reassigned(self, card_id, store_id):
        tx = Transaction(card_id=card_id, type=TransactionType.REWARD_REDEMPTION,
                         reward_id=RewardId.new(), store_id=store_id)
        with pytest.raises(AttributeError):
            tx.quantity = 5

    def test_metadata_is_read_only_copy(self, card_id, store_id):
        metadata = {'source': 'enrollment_bonus'}
        tx = Transaction(card_id=card_id, type=TransactionType.POINTS_ISSUANCE, points_amount=50,
                         store_id=store_id, metadata=metadata)
        metadata['source'] = 'changed'

        assert tx.metadata['source'] == 'enrollment_bonus'
        with pytest.raises(TypeError):
            tx.metadata['source'] = 'other'

    def test_blank_metadata_key_rejected(self, card_id, store_id):
        with pytest.raises(ValidationError):
            Transaction(card_id=card_id, type=TransactionType.POINTS_ISSUANCE, points_amount=1,
                        store_id=store_id, metadata={' ': 'x'})


class TestTransactionRehydrate:

    def test_rehydrate_skips_validation(self, card_id):
        """Stored history is restored even if it would fail today's rules."""
        tx = Transaction.rehydrate(
            id=TransactionId.new(),
            card_id=card_id,
            type=TransactionType.STAMP_ISSUANCE,
            quantity=0,
            store_id=StoreId.new(),
            timestamp=None,
        )
        assert tx.quantity == 0
        assert dict(tx.metadata) == {}

    def test_to_dict(self, card_id, store_id):
        tx = Transaction(card_id=card_id, type=TransactionType.POINTS_ISSUANCE, points_amount=Decimal('12'),
                         transaction_amount=Decimal('12.50'), store_id=store_id)
        data = tx.to_dict()

        assert data['type'] == 'points_issuance'
        assert data['points_amount'] == '12'
        assert data['transaction_amount'] == '12.50'
        assert data['store_id'] == str(store_id)
        assert data['reward_id'] is None
