"""
LoyaltyCard aggregate root.

One customer's enrollment in a program. The card is the only place balances
change, and every change goes through a validated operation that appends
exactly one Transaction to the card's ledger in the same call.

Design notes:
- All checks run before any mutation, so a failed operation leaves the
  balance, status and ledger untouched
- Only the balance matching the card type ever moves (stamps for stamp
  cards, points for points cards)
- Loading from storage goes through ``rehydrate``, which restores state
  verbatim and never re-runs these rules
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .enums import CardStatus, LoyaltyProgramType, TransactionType
from .ids import CustomerId, LoyaltyCardId, LoyaltyProgramId, StaffId, StoreId
from .points_config import MONEY_PLACES, POINTS_PLACES, to_decimal
from .reward import Reward
from .transaction import Transaction
from ..utils.exceptions import (
    InsufficientBalanceError,
    InvalidOperationError,
    InvalidStatusTransitionError,
    ValidationError,
)
from ..utils.time_utils import Clock, system_clock, to_utc_z


class LoyaltyCard:
    """A customer's card in one loyalty program."""

    def __init__(
        self,
        program_id: LoyaltyProgramId,
        customer_id: CustomerId,
        type: LoyaltyProgramType,
        expires_at: Optional[datetime] = None,
        clock: Clock = system_clock,
    ):
        if not isinstance(program_id, LoyaltyProgramId):
            raise ValidationError('Card requires a program ID', field='program_id')
        if not isinstance(customer_id, CustomerId):
            raise ValidationError('Card requires a customer ID', field='customer_id')
        try:
            card_type = LoyaltyProgramType(type)
        except ValueError:
            raise ValidationError(f"Unknown card type '{type}'", field='type') from None

        now = clock.now()
        self.id = LoyaltyCardId.new()
        self._program_id = program_id
        self._customer_id = customer_id
        self._type = card_type
        self._stamps_collected = 0
        self._points_balance = Decimal('0')
        self._status = CardStatus.ACTIVE
        self.qr_code = str(self.id)
        self.created_at = now
        self.updated_at = now
        self.expires_at = expires_at
        self._transactions: List[Transaction] = []
        self._clock = clock
        # Optimistic-lock token, owned by the repository
        self.version = None

    @classmethod
    def rehydrate(
        cls,
        id: LoyaltyCardId,
        program_id: LoyaltyProgramId,
        customer_id: CustomerId,
        type: LoyaltyProgramType,
        stamps_collected: int,
        points_balance: Decimal,
        status: CardStatus,
        qr_code: str,
        created_at: datetime,
        updated_at: datetime,
        expires_at: Optional[datetime] = None,
        transactions: Iterable[Transaction] = (),
        version: Optional[int] = None,
        clock: Clock = system_clock,
    ) -> 'LoyaltyCard':
        """
        Materialize a stored card.

        Used only by the persistence adapter. Historical transactions are
        attached as-is; no balance or status rule is evaluated.
        """
        card = cls.__new__(cls)
        card.id = id
        card._program_id = program_id
        card._customer_id = customer_id
        card._type = LoyaltyProgramType(type)
        card._stamps_collected = stamps_collected
        card._points_balance = points_balance
        card._status = CardStatus(status)
        card.qr_code = qr_code
        card.created_at = created_at
        card.updated_at = updated_at
        card.expires_at = expires_at
        card._transactions = list(transactions)
        card._clock = clock
        card.version = version
        return card

    def __repr__(self):
        return f'<LoyaltyCard {self.id} ({self._type.value}, {self._status.value})>'

    # ==================== Read-only state ====================

    @property
    def program_id(self) -> LoyaltyProgramId:
        return self._program_id

    @property
    def customer_id(self) -> CustomerId:
        return self._customer_id

    @property
    def type(self) -> LoyaltyProgramType:
        return self._type

    @property
    def stamps_collected(self) -> int:
        return self._stamps_collected

    @property
    def points_balance(self) -> Decimal:
        return self._points_balance

    @property
    def status(self) -> CardStatus:
        return self._status

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return tuple(self._transactions)

    @property
    def balance(self):
        """The balance that matters for this card type."""
        if self._type == LoyaltyProgramType.STAMP:
            return self._stamps_collected
        return self._points_balance

    # ==================== Accrual ====================

    def issue_stamps(
        self,
        quantity: int,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
        pos_transaction_id: Optional[str] = None,
    ) -> Transaction:
        """Add stamps to a stamp card and record a StampIssuance."""
        if self._type != LoyaltyProgramType.STAMP:
            raise InvalidOperationError('Cannot issue stamps to a points-based card')
        if self._status != CardStatus.ACTIVE:
            raise InvalidOperationError('Cannot issue stamps to an inactive card')
        self._require_positive_int(quantity, 'quantity')
        self._require_store(store_id)

        transaction = Transaction(
            card_id=self.id,
            type=TransactionType.STAMP_ISSUANCE,
            quantity=quantity,
            store_id=store_id,
            staff_id=staff_id,
            pos_transaction_id=pos_transaction_id,
            timestamp=self._clock.now(),
        )

        self._stamps_collected += quantity
        return self._record(transaction)

    def add_points(
        self,
        points_amount,
        transaction_amount,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
        pos_transaction_id: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Transaction:
        """Add points to a points card and record a PointsIssuance."""
        if self._type != LoyaltyProgramType.POINTS:
            raise InvalidOperationError('Cannot add points to a stamp-based card')
        if self._status != CardStatus.ACTIVE:
            raise InvalidOperationError('Cannot add points to an inactive card')

        points = to_decimal(points_amount, 'points_amount', POINTS_PLACES)
        amount = to_decimal(transaction_amount, 'transaction_amount', MONEY_PLACES)
        if points <= 0:
            raise ValidationError('Points amount must be greater than zero', field='points_amount')
        if amount < 0:
            raise ValidationError('Transaction amount cannot be negative', field='transaction_amount')
        self._require_store(store_id)

        transaction = Transaction(
            card_id=self.id,
            type=TransactionType.POINTS_ISSUANCE,
            points_amount=points,
            transaction_amount=amount,
            store_id=store_id,
            staff_id=staff_id,
            pos_transaction_id=pos_transaction_id,
            timestamp=self._clock.now(),
            metadata=metadata or {},
        )

        self._points_balance += points
        return self._record(transaction)

    # ==================== Redemption ====================

    def redeem_reward(
        self,
        reward: Reward,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
    ) -> Transaction:
        """
        Spend ``reward.required_value`` stamps/points on a reward.

        The reward itself is not modified.
        """
        if reward is None:
            raise ValidationError('Reward is required', field='reward')
        if store_id is None:
            raise ValidationError('Store ID cannot be empty', field='store_id')

        if self._status != CardStatus.ACTIVE:
            raise InvalidOperationError('Cannot redeem rewards with an inactive card')
        if reward.program_id != self._program_id:
            raise InvalidOperationError('Cannot redeem a reward from a different program')
        if not reward.is_active:
            raise InvalidOperationError('Cannot redeem an inactive reward')
        if not reward.is_valid_at(self._clock.now()):
            raise InvalidOperationError('Reward is not valid at this time')
        self._require_store(store_id)

        if self._type == LoyaltyProgramType.STAMP and self._stamps_collected < reward.required_value:
            raise InsufficientBalanceError(self._stamps_collected, reward.required_value, 'stamps')
        if self._type == LoyaltyProgramType.POINTS and self._points_balance < reward.required_value:
            raise InsufficientBalanceError(self._points_balance, reward.required_value, 'points')

        transaction = Transaction(
            card_id=self.id,
            type=TransactionType.REWARD_REDEMPTION,
            reward_id=reward.id,
            store_id=store_id,
            staff_id=staff_id,
            timestamp=self._clock.now(),
        )

        if self._type == LoyaltyProgramType.STAMP:
            self._stamps_collected -= reward.required_value
        else:
            self._points_balance -= reward.required_value
        return self._record(transaction)

    # ==================== Voids ====================

    def void_stamps(
        self,
        quantity: int,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
        reason: Optional[str] = None,
    ) -> Transaction:
        """Take back previously issued stamps (e.g. a refunded purchase)."""
        if self._type != LoyaltyProgramType.STAMP:
            raise InvalidOperationError('Cannot void stamps on a points-based card')
        if self._status != CardStatus.ACTIVE:
            raise InvalidOperationError('Cannot void stamps on an inactive card')
        self._require_positive_int(quantity, 'quantity')
        self._require_store(store_id)
        if quantity > self._stamps_collected:
            raise InsufficientBalanceError(self._stamps_collected, quantity, 'stamps')

        transaction = Transaction(
            card_id=self.id,
            type=TransactionType.STAMP_VOID,
            quantity=quantity,
            store_id=store_id,
            staff_id=staff_id,
            timestamp=self._clock.now(),
            metadata={'reason': reason} if reason else {},
        )

        self._stamps_collected -= quantity
        return self._record(transaction)

    def void_points(
        self,
        points_amount,
        store_id: StoreId,
        staff_id: Optional[StaffId] = None,
        reason: Optional[str] = None,
    ) -> Transaction:
        """Take back previously issued points."""
        if self._type != LoyaltyProgramType.POINTS:
            raise InvalidOperationError('Cannot void points on a stamp-based card')
        if self._status != CardStatus.ACTIVE:
            raise InvalidOperationError('Cannot void points on an inactive card')
        points = to_decimal(points_amount, 'points_amount', POINTS_PLACES)
        if points <= 0:
            raise ValidationError('Points amount must be greater than zero', field='points_amount')
        self._require_store(store_id)
        if points > self._points_balance:
            raise InsufficientBalanceError(self._points_balance, points, 'points')

        transaction = Transaction(
            card_id=self.id,
            type=TransactionType.POINTS_VOID,
            points_amount=points,
            store_id=store_id,
            staff_id=staff_id,
            timestamp=self._clock.now(),
            metadata={'reason': reason} if reason else {},
        )

        self._points_balance -= points
        return self._record(transaction)

    # ==================== Queries ====================

    def get_stamps_issued_today(self) -> int:
        """Stamps issued on the clock's current UTC date; 0 for points cards."""
        if self._type != LoyaltyProgramType.STAMP:
            return 0

        today = self._clock.now().date()
        return sum(
            t.quantity or 0
            for t in self._transactions
            if t.type == TransactionType.STAMP_ISSUANCE and t.timestamp.date() == today
        )

    def is_expired_at(self, when: Optional[datetime] = None) -> bool:
        when = when or self._clock.now()
        return self.expires_at is not None and self.expires_at <= when

    # ==================== Status ====================

    def expire(self) -> None:
        """Move to EXPIRED. Terminal; repeated calls are no-ops."""
        if self._status == CardStatus.EXPIRED:
            return
        self._status = CardStatus.EXPIRED
        self.updated_at = self._clock.now()

    def suspend(self) -> None:
        if self._status == CardStatus.SUSPENDED:
            return
        if self._status == CardStatus.EXPIRED:
            raise InvalidStatusTransitionError('card', self._status.value, CardStatus.SUSPENDED.value)
        self._status = CardStatus.SUSPENDED
        self.updated_at = self._clock.now()

    def reactivate(self) -> None:
        if self._status != CardStatus.SUSPENDED:
            raise InvalidStatusTransitionError('card', self._status.value, CardStatus.ACTIVE.value)
        self._status = CardStatus.ACTIVE
        self.updated_at = self._clock.now()

    def set_expiration_date(self, expiration_date: datetime) -> None:
        if expiration_date is None:
            raise ValidationError('Expiration date is required', field='expires_at')
        if expiration_date <= self._clock.now():
            raise ValidationError('Expiration date must be in the future', field='expires_at')
        self.expires_at = expiration_date
        self.updated_at = self._clock.now()

    def update_qr_code(self, qr_code: str) -> None:
        if not isinstance(qr_code, str):
            raise ValidationError('QR code must be a string', field='qr_code')
        if not qr_code.strip():
            raise ValidationError('QR code cannot be empty', field='qr_code')
        self.qr_code = qr_code.strip()
        self.updated_at = self._clock.now()

    # ==================== Internals ====================

    def _record(self, transaction: Transaction) -> Transaction:
        self._transactions.append(transaction)
        self.updated_at = transaction.timestamp
        return transaction

    @staticmethod
    def _require_positive_int(value, field: str) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f'{field.capitalize()} must be an integer', field=field)
        if value <= 0:
            raise ValidationError(f'{field.capitalize()} must be greater than zero', field=field)

    @staticmethod
    def _require_store(store_id) -> None:
        if not isinstance(store_id, StoreId):
            raise ValidationError('Store ID cannot be empty', field='store_id')

    def to_dict(self, include_transactions: bool = False) -> Dict[str, Any]:
        """Serialize to dictionary for API responses."""
        data = {
            'id': str(self.id),
            'program_id': str(self.program_id),
            'customer_id': str(self.customer_id),
            'type': self._type.value,
            'stamps_collected': self._stamps_collected,
            'points_balance': str(self._points_balance),
            'status': self._status.value,
            'qr_code': self.qr_code,
            'created_at': to_utc_z(self.created_at),
            'updated_at': to_utc_z(self.updated_at),
            'expires_at': to_utc_z(self.expires_at),
        }
        if include_transactions:
            data['transactions'] = [t.to_dict() for t in self._transactions]
        return data
