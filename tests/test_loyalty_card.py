"""
Tests for the LoyaltyCard aggregate.

Covers:
- Stamp and points accrual
- Reward redemption and its failure modes
- Voids
- Status transitions
- Rehydration from stored state
- The end-to-end stamp card scenarios
"""
import pytest
from datetime import timedelta
from decimal import Decimal

from loyalty.domain import (
    CardStatus,
    CustomerId,
    LoyaltyCard,
    LoyaltyCardId,
    LoyaltyProgramId,
    LoyaltyProgramType,
    Reward,
    StoreId,
    Transaction,
    TransactionId,
    TransactionType,
)
from loyalty.utils.exceptions import (
    InsufficientBalanceError,
    InvalidOperationError,
    InvalidStatusTransitionError,
    ValidationError,
)


@pytest.fixture
def program_id():
    return LoyaltyProgramId.new()


@pytest.fixture
def stamp_card(program_id, clock):
    return LoyaltyCard(program_id, CustomerId.new(), LoyaltyProgramType.STAMP, clock=clock)


@pytest.fixture
def points_card(program_id, clock):
    return LoyaltyCard(program_id, CustomerId.new(), LoyaltyProgramType.POINTS, clock=clock)


@pytest.fixture
def reward(program_id, clock):
    return Reward(program_id, 'Free coffee', None, 10, clock=clock)


def snapshot(card):
    return (card.stamps_collected, card.points_balance, card.status, len(card.transactions), card.updated_at)


class TestCardCreation:

    def test_new_card_state(self, stamp_card, clock):
        assert stamp_card.status == CardStatus.ACTIVE
        assert stamp_card.stamps_collected == 0
        assert stamp_card.points_balance == Decimal('0')
        assert stamp_card.transactions == ()
        assert stamp_card.qr_code == str(stamp_card.id)
        assert stamp_card.created_at == clock.now()

    def test_customer_required(self, program_id):
        with pytest.raises(ValidationError):
            LoyaltyCard(program_id, None, LoyaltyProgramType.STAMP)


class TestStampIssuance:

    def test_issue_stamps_appends_one_transaction(self, stamp_card, store_id, staff_id):
        tx = stamp_card.issue_stamps(3, store_id, staff_id=staff_id, pos_transaction_id='POS-1')

        assert stamp_card.stamps_collected == 3
        assert stamp_card.transactions == (tx,)
        assert tx.type == TransactionType.STAMP_ISSUANCE
        assert tx.quantity == 3
        assert tx.store_id == store_id
        assert tx.staff_id == staff_id
        assert tx.pos_transaction_id == 'POS-1'

    def test_issue_stamps_bumps_updated_at(self, stamp_card, store_id, clock):
        clock.advance(minutes=10)
        stamp_card.issue_stamps(1, store_id)
        assert stamp_card.updated_at == clock.now()

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, True])
    def test_invalid_quantity_rejected_without_mutation(self, stamp_card, store_id, quantity):
        before = snapshot(stamp_card)
        with pytest.raises(ValidationError):
            stamp_card.issue_stamps(quantity, store_id)
        assert snapshot(stamp_card) == before

    def test_store_required(self, stamp_card):
        with pytest.raises(ValidationError):
            stamp_card.issue_stamps(1, None)
        assert stamp_card.transactions == ()

    def test_points_card_cannot_take_stamps(self, points_card, store_id):
        before = snapshot(points_card)
        with pytest.raises(InvalidOperationError):
            points_card.issue_stamps(1, store_id)
        assert snapshot(points_card) == before

    def test_stamps_issued_today(self, stamp_card, store_id, clock):
        stamp_card.issue_stamps(2, store_id)
        clock.advance(hours=1)
        stamp_card.issue_stamps(1, store_id)
        assert stamp_card.get_stamps_issued_today() == 3

        clock.advance(days=1)
        assert stamp_card.get_stamps_issued_today() == 0

    def test_stamps_issued_today_zero_for_points_card(self, points_card):
        assert points_card.get_stamps_issued_today() == 0


class TestPointsAccrual:

    def test_add_points(self, points_card, store_id):
        tx = points_card.add_points(Decimal('25'), Decimal('25.40'), store_id)

        assert points_card.points_balance == Decimal('25')
        assert points_card.stamps_collected == 0
        assert tx.type == TransactionType.POINTS_ISSUANCE
        assert tx.points_amount == Decimal('25')
        assert tx.transaction_amount == Decimal('25.40')

    def test_add_points_metadata(self, points_card, store_id):
        tx = points_card.add_points(50, 0, store_id, metadata={'source': 'enrollment_bonus'})
        assert tx.metadata == {'source': 'enrollment_bonus'}

    def test_stamp_card_cannot_take_points(self, stamp_card, store_id):
        before = snapshot(stamp_card)
        with pytest.raises(InvalidOperationError):
            stamp_card.add_points(10, 10, store_id)
        assert snapshot(stamp_card) == before

    @pytest.mark.parametrize('points, amount', [(0, 10), (-5, 10), (10, -1)])
    def test_invalid_amounts_rejected(self, points_card, store_id, points, amount):
        with pytest.raises(ValidationError):
            points_card.add_points(points, amount, store_id)
        assert points_card.points_balance == Decimal('0')
        assert points_card.transactions == ()


class TestRedemption:

    def test_redeem_deducts_and_records(self, stamp_card, reward, store_id):
        stamp_card.issue_stamps(12, store_id)
        tx = stamp_card.redeem_reward(reward, store_id)

        assert stamp_card.stamps_collected == 2
        assert tx.type == TransactionType.REWARD_REDEMPTION
        assert tx.reward_id == reward.id
        assert reward.is_active is True

    def test_redeem_points(self, points_card, program_id, store_id, clock):
        reward = Reward(program_id, '10% off', None, 100, clock=clock)
        points_card.add_points(150, 150, store_id)
        points_card.redeem_reward(reward, store_id)
        assert points_card.points_balance == Decimal('50')

    def test_insufficient_balance(self, stamp_card, reward, store_id):
        stamp_card.issue_stamps(9, store_id)
        before = snapshot(stamp_card)

        with pytest.raises(InsufficientBalanceError) as exc:
            stamp_card.redeem_reward(reward, store_id)

        assert exc.value.current == 9
        assert exc.value.required == 10
        assert snapshot(stamp_card) == before

    def test_reward_from_other_program(self, stamp_card, store_id, clock):
        other = Reward(LoyaltyProgramId.new(), 'Bagel', None, 1, clock=clock)
        stamp_card.issue_stamps(5, store_id)
        with pytest.raises(InvalidOperationError):
            stamp_card.redeem_reward(other, store_id)
        assert stamp_card.stamps_collected == 5

    def test_inactive_reward(self, stamp_card, reward, store_id):
        stamp_card.issue_stamps(10, store_id)
        reward.deactivate()
        with pytest.raises(InvalidOperationError):
            stamp_card.redeem_reward(reward, store_id)
        assert stamp_card.stamps_collected == 10

    def test_reward_required(self, stamp_card, store_id):
        with pytest.raises(ValidationError):
            stamp_card.redeem_reward(None, store_id)

    def test_inactive_card_cannot_redeem(self, stamp_card, reward, store_id):
        stamp_card.issue_stamps(10, store_id)
        stamp_card.suspend()
        with pytest.raises(InvalidOperationError):
            stamp_card.redeem_reward(reward, store_id)


class TestVoids:

    def test_void_stamps(self, stamp_card, store_id):
        stamp_card.issue_stamps(5, store_id)
        tx = stamp_card.void_stamps(2, store_id, reason='refund')

        assert stamp_card.stamps_collected == 3
        assert tx.type == TransactionType.STAMP_VOID
        assert tx.metadata['reason'] == 'refund'

    def test_void_cannot_go_negative(self, stamp_card, store_id):
        stamp_card.issue_stamps(1, store_id)
        with pytest.raises(InsufficientBalanceError):
            stamp_card.void_stamps(2, store_id)
        assert stamp_card.stamps_collected == 1

    def test_void_points(self, points_card, store_id):
        points_card.add_points(40, 40, store_id)
        tx = points_card.void_points(Decimal('15'), store_id)

        assert points_card.points_balance == Decimal('25')
        assert tx.type == TransactionType.POINTS_VOID
        assert dict(tx.metadata) == {}

    @pytest.mark.parametrize('points', [Decimal('0.00001'), '1.23456'])
    def test_void_finer_than_stored_scale_rejected(self, points_card, store_id, points):
        points_card.add_points(40, 40, store_id)
        with pytest.raises(ValidationError):
            points_card.void_points(points, store_id)
        assert points_card.points_balance == Decimal('40')
        assert len(points_card.transactions) == 1

    def test_void_fractional_points(self, points_card, store_id):
        points_card.add_points(40, 40, store_id)
        points_card.void_points(Decimal('0.1234'), store_id)
        assert points_card.points_balance == Decimal('39.8766')

    def test_void_wrong_card_type(self, stamp_card, store_id):
        with pytest.raises(InvalidOperationError):
            stamp_card.void_points(1, store_id)


class TestStatusTransitions:

    def test_suspend_and_reactivate(self, stamp_card):
        stamp_card.suspend()
        assert stamp_card.status == CardStatus.SUSPENDED
        stamp_card.reactivate()
        assert stamp_card.status == CardStatus.ACTIVE

    def test_suspend_twice_is_noop(self, stamp_card, clock):
        stamp_card.suspend()
        updated = stamp_card.updated_at
        clock.advance(minutes=1)
        stamp_card.suspend()
        assert stamp_card.updated_at == updated

    def test_expire_is_terminal(self, stamp_card):
        stamp_card.expire()
        stamp_card.expire()
        assert stamp_card.status == CardStatus.EXPIRED

        with pytest.raises(InvalidStatusTransitionError):
            stamp_card.reactivate()
        with pytest.raises(InvalidStatusTransitionError):
            stamp_card.suspend()

    def test_reactivate_requires_suspended(self, stamp_card):
        with pytest.raises(InvalidStatusTransitionError):
            stamp_card.reactivate()

    def test_expired_card_cannot_accrue(self, stamp_card, store_id):
        stamp_card.expire()
        with pytest.raises(InvalidOperationError):
            stamp_card.issue_stamps(1, store_id)

    def test_set_expiration_date_must_be_future(self, stamp_card, clock):
        with pytest.raises(ValidationError):
            stamp_card.set_expiration_date(clock.now())

        when = clock.now() + timedelta(days=30)
        stamp_card.set_expiration_date(when)
        assert stamp_card.expires_at == when
        assert stamp_card.is_expired_at(when) is True
        assert stamp_card.is_expired_at(when - timedelta(seconds=1)) is False

    def test_update_qr_code(self, stamp_card):
        with pytest.raises(ValidationError):
            stamp_card.update_qr_code('   ')
        stamp_card.update_qr_code(' QR-123 ')
        assert stamp_card.qr_code == 'QR-123'

    def test_non_string_qr_code_rejected(self, stamp_card):
        with pytest.raises(ValidationError) as exc:
            stamp_card.update_qr_code(12345)
        assert exc.value.field == 'qr_code'
        assert stamp_card.qr_code != 12345


class TestRehydrate:

    def test_rehydrate_restores_state_verbatim(self, program_id, clock):
        card_id = LoyaltyCardId.new()
        history = [
            Transaction.rehydrate(
                id=TransactionId.new(), card_id=card_id, type=TransactionType.STAMP_ISSUANCE,
                quantity=4, store_id=StoreId.new(), timestamp=clock.now(),
            )
        ]
        card = LoyaltyCard.rehydrate(
            id=card_id,
            program_id=program_id,
            customer_id=CustomerId.new(),
            type='stamp',
            stamps_collected=4,
            points_balance=Decimal('0'),
            status='suspended',
            qr_code='QR-1',
            created_at=clock.now() - timedelta(days=10),
            updated_at=clock.now(),
            transactions=history,
            version=3,
            clock=clock,
        )

        assert card.status == CardStatus.SUSPENDED
        assert card.stamps_collected == 4
        assert card.transactions == tuple(history)
        assert card.version == 3
        assert card.get_stamps_issued_today() == 4


class TestStampCardScenarios:
    """End-to-end stories for a ten-stamp coffee card."""

    def test_collect_and_redeem(self, stamp_card, reward, store_id):
        for _ in range(3):
            stamp_card.issue_stamps(4, store_id)

        assert stamp_card.stamps_collected == 12
        assert len(stamp_card.transactions) == 3

        stamp_card.redeem_reward(reward, store_id)

        assert stamp_card.stamps_collected == 2
        assert len(stamp_card.transactions) == 4
        assert stamp_card.transactions[-1].type == TransactionType.REWARD_REDEMPTION
        assert reward.is_active is True
        assert reward.required_value == 10

    def test_suspended_card_blocks_stamps_until_reactivated(self, stamp_card, store_id):
        stamp_card.suspend()
        with pytest.raises(InvalidOperationError):
            stamp_card.issue_stamps(1, store_id)
        assert stamp_card.transactions == ()

        stamp_card.reactivate()
        stamp_card.issue_stamps(1, store_id)
        assert stamp_card.stamps_collected == 1

    def test_expired_reward_cannot_be_redeemed(self, stamp_card, program_id, store_id, clock):
        reward = Reward(program_id, 'Summer special', None, 1,
                        valid_to=clock.now() - timedelta(days=1), clock=clock)
        stamp_card.issue_stamps(50, store_id)

        with pytest.raises(InvalidOperationError):
            stamp_card.redeem_reward(reward, store_id)
        assert stamp_card.stamps_collected == 50
        assert len(stamp_card.transactions) == 1
