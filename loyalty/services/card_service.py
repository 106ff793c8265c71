"""
Card Service - customer-facing accrual and redemption.

Loads the card and its program, applies the program's accrual rules,
delegates the balance change to the card aggregate and persists the card
together with its new ledger entry in a single commit.

Usage:
    service = LoyaltyCardService()

    card = service.enroll(program_id, customer_id, store_id)
    card, transaction = service.issue_stamps(card.id, 2, store_id)
    card, transaction = service.redeem_reward(card.id, reward_id, store_id)
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app

from ..domain import (
    CardStatus,
    CustomerId,
    LoyaltyCard,
    LoyaltyCardId,
    LoyaltyProgram,
    LoyaltyProgramId,
    RewardId,
    StaffId,
    StoreId,
    Transaction,
    TransactionType,
)
from ..domain.points_config import MONEY_PLACES, to_decimal
from ..extensions import get_clock
from ..repositories import LoyaltyCardRepository, LoyaltyProgramRepository
from ..utils.exceptions import (
    CardNotFoundError,
    DuplicateError,
    InvalidOperationError,
    LimitExceededError,
    ProgramNotFoundError,
    RewardNotFoundError,
    ValidationError,
)
from ..utils.time_utils import Clock
from .persistence import commit

ENROLLMENT_BONUS_SOURCE = 'enrollment_bonus'


class LoyaltyCardService:
    """Enrollment, accrual, redemption and status changes for cards."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        cards: Optional[LoyaltyCardRepository] = None,
        programs: Optional[LoyaltyProgramRepository] = None,
    ):
        self.clock = clock or get_clock()
        self.cards = cards or LoyaltyCardRepository(self.clock)
        self.programs = programs or LoyaltyProgramRepository(self.clock)

    # ==================== Enrollment ====================

    def enroll(
        self,
        program_id: LoyaltyProgramId,
        customer_id: CustomerId,
        store_id: Optional[StoreId] = None,
        staff_id: Optional[StaffId] = None,
    ) -> LoyaltyCard:
        """
        Issue a new card for a customer.

        The card expires according to the program's expiration policy. For
        points programs with an enrollment bonus, the bonus is credited as
        the card's first ledger entry; that requires the enrolling store.
        """
        program = self._get_program(program_id)
        now = self.clock.now()
        if not program.is_active:
            raise InvalidOperationError('Cannot enroll in an inactive program')
        if not program.is_within_schedule(now):
            raise InvalidOperationError('Program is not running at this time')
        if self.cards.find_by_customer_and_program(customer_id, program.id) is not None:
            raise DuplicateError('Card', f'customer {customer_id} in program {program.id}')

        expires_at = None
        if program.expiration_policy.has_expiration:
            expires_at = program.expiration_policy.calculate_expiration_date(now)

        card = LoyaltyCard(program.id, customer_id, program.type, expires_at=expires_at, clock=self.clock)

        bonus = program.enrollment_bonus_points
        if bonus > 0 and current_app.config.get('APPLY_ENROLLMENT_BONUS', True):
            if store_id is None:
                raise ValidationError('Store ID is required to credit the enrollment bonus', field='store_id')
            card.add_points(
                bonus,
                Decimal('0'),
                store_id,
                staff_id=staff_id,
                metadata={'source': ENROLLMENT_BONUS_SOURCE},
            )

        self.cards.add(card)
        commit('Card', card.id)
        self.cards.refresh_version(card)

        current_app.logger.info(
            f"Card enrolled: {card.id} for customer {customer_id} in program {program.id}"
            + (f" (+{bonus} bonus points)" if card.transactions else "")
        )
        return card

    # ==================== Queries ====================

    def get_card(self, card_id: LoyaltyCardId) -> LoyaltyCard:
        card = self.cards.get_by_id(card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    def get_card_by_qr_code(self, qr_code: str) -> LoyaltyCard:
        card = self.cards.get_by_qr_code(qr_code)
        if card is None:
            raise CardNotFoundError(qr_code)
        return card

    def list_customer_cards(self, customer_id: CustomerId) -> List[LoyaltyCard]:
        return self.cards.get_by_customer(customer_id)

    def list_program_cards(self, program_id: LoyaltyProgramId) -> List[LoyaltyCard]:
        return self.cards.get_by_program(program_id)

    def get_transactions(
        self,
        card_id: LoyaltyCardId,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[Transaction]:
        """Card ledger, oldest first, optionally filtered by type."""
        card = self.get_card(card_id)
        if transaction_type is None:
            return list(card.transactions)
        return [t for t in card.transactions if t.type == transaction_type]

    # ==================== Accrual ====================

    def issue_stamps(
        self,
        card_id: LoyaltyCardId,
        quantity: int,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
        pos_transaction_id: Optional[str] = None,
    ) -> Tuple[LoyaltyCard, Transaction]:
        card = self.get_card(card_id)
        program = self._get_program(card.program_id)
        if not program.is_valid_for_stamp_issuance():
            raise InvalidOperationError('Program is not accepting stamps')
        self._expire_if_due(card)

        limit = program.daily_stamp_limit
        if limit and current_app.config.get('ENFORCE_DAILY_STAMP_LIMIT', True) and self._is_count(quantity):
            issued_today = card.get_stamps_issued_today()
            if issued_today + quantity > limit:
                raise LimitExceededError('Daily stamp', limit, issued_today)

        transaction = card.issue_stamps(quantity, store_id, staff_id=staff_id, pos_transaction_id=pos_transaction_id)
        self._save(card)

        current_app.logger.info(
            f"Stamps issued: card {card.id} +{quantity} at store {store_id} "
            f"(balance {card.stamps_collected}/{program.stamp_threshold})"
        )
        return card, transaction

    def add_points(
        self,
        card_id: LoyaltyCardId,
        transaction_amount,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
        pos_transaction_id: Optional[str] = None,
        tier_multiplier=Decimal('1'),
    ) -> Tuple[LoyaltyCard, Transaction]:
        """
        Credit the points a purchase earns.

        Points are computed by the program from ``transaction_amount``; a
        purchase that earns nothing is rejected rather than recorded.
        """
        card = self.get_card(card_id)
        program = self._get_program(card.program_id)

        amount = to_decimal(transaction_amount, 'transaction_amount', MONEY_PLACES)
        if amount < 0:
            raise ValidationError('Transaction amount cannot be negative', field='transaction_amount')
        if not program.is_valid_for_points_issuance(amount):
            if program.minimum_transaction_amount is not None and program.is_active \
                    and amount < program.minimum_transaction_amount:
                raise InvalidOperationError(
                    f'Transaction amount is below the program minimum of {program.minimum_transaction_amount}'
                )
            raise InvalidOperationError('Program is not accepting points')

        points = program.calculate_points(amount, tier_multiplier)
        if points <= 0:
            raise InvalidOperationError('Transaction amount does not earn any points')
        self._expire_if_due(card)

        transaction = card.add_points(
            points,
            amount,
            store_id,
            staff_id=staff_id,
            pos_transaction_id=pos_transaction_id,
        )
        self._save(card)

        current_app.logger.info(
            f"Points added: card {card.id} +{points} pts for {amount} at store {store_id} "
            f"(balance {card.points_balance})"
        )
        return card, transaction

    # ==================== Redemption ====================

    def redeem_reward(
        self,
        card_id: LoyaltyCardId,
        reward_id: RewardId,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
    ) -> Tuple[LoyaltyCard, Transaction]:
        card = self.get_card(card_id)
        reward = self.programs.get_reward(reward_id)
        if reward is None:
            raise RewardNotFoundError(reward_id)
        self._expire_if_due(card)

        transaction = card.redeem_reward(reward, store_id, staff_id=staff_id)
        self._save(card)

        current_app.logger.info(
            f"Reward redeemed: card {card.id} '{reward.title}' for {reward.required_value} "
            f"at store {store_id} (balance {card.balance})"
        )
        return card, transaction

    # ==================== Voids ====================

    def void_stamps(
        self,
        card_id: LoyaltyCardId,
        quantity: int,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
        reason: Optional[str] = None,
    ) -> Tuple[LoyaltyCard, Transaction]:
        card = self.get_card(card_id)
        transaction = card.void_stamps(quantity, store_id, staff_id=staff_id, reason=reason)
        self._save(card)

        current_app.logger.info(f"Stamps voided: card {card.id} -{quantity} ({reason or 'no reason given'})")
        return card, transaction

    def void_points(
        self,
        card_id: LoyaltyCardId,
        points_amount,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
        reason: Optional[str] = None,
    ) -> Tuple[LoyaltyCard, Transaction]:
        card = self.get_card(card_id)
        transaction = card.void_points(points_amount, store_id, staff_id=staff_id, reason=reason)
        self._save(card)

        current_app.logger.info(
            f"Points voided: card {card.id} -{transaction.points_amount} ({reason or 'no reason given'})"
        )
        return card, transaction

    # ==================== Status ====================

    def update_status(self, card_id: LoyaltyCardId, status: CardStatus) -> LoyaltyCard:
        """Move a card to ``status`` through the card's own transitions."""
        try:
            target = CardStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown card status '{status}'", field='status') from None

        card = self.get_card(card_id)
        previous = card.status
        if target == CardStatus.EXPIRED:
            card.expire()
        elif target == CardStatus.SUSPENDED:
            card.suspend()
        else:
            card.reactivate()
        self._save(card)

        current_app.logger.info(f"Card {card.id} status: {previous.value} -> {card.status.value}")
        return card

    def expire_due_cards(self, program_id: Optional[LoyaltyProgramId] = None, dry_run: bool = False) -> Dict[str, Any]:
        """
        Expire every card whose expiration date has passed.

        Intended for a daily scheduled run. Returns counts and the affected
        card IDs; with ``dry_run`` nothing is written.
        """
        now = self.clock.now()
        due = self.cards.get_due_for_expiration(now, program_id=program_id)

        for card in due:
            if not dry_run:
                card.expire()
                self.cards.update(card)

        if due and not dry_run:
            commit('Card', f'batch of {len(due)}')

        current_app.logger.info(
            f"{'[DRY RUN] ' if dry_run else ''}Card expiration run: {len(due)} cards due"
        )
        return {
            'expired': 0 if dry_run else len(due),
            'card_ids': [str(card.id) for card in due],
            'dry_run': dry_run,
        }

    # ==================== Internals ====================

    def _get_program(self, program_id: LoyaltyProgramId) -> LoyaltyProgram:
        program = self.programs.get_by_id(program_id)
        if program is None:
            raise ProgramNotFoundError(program_id)
        return program

    def _save(self, card: LoyaltyCard) -> None:
        self.cards.update(card)
        commit('Card', card.id)
        self.cards.refresh_version(card)

    def _expire_if_due(self, card: LoyaltyCard) -> None:
        """Persist the EXPIRED status of a card whose expiration date has passed."""
        if card.status != CardStatus.EXPIRED and card.is_expired_at(self.clock.now()):
            card.expire()
            self._save(card)
            current_app.logger.info(f"Card {card.id} expired on {card.expires_at}")

    @staticmethod
    def _is_count(value) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
